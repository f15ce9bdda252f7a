"""Unit tests for the built-in transformers and filters."""

from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from garden.config import SiteSettings
from garden.document import DateSource, Document, FileMetadata
from garden.errors import ConfigurationError
from garden.filters import ExplicitPublish, RemoveDrafts
from garden.parser import parse_tree
from garden.pipeline import BuildContext
from garden.transformers.dates import CreatedModifiedDate, assign_dates
from garden.transformers.description import Description, plain_text, summarise
from garden.transformers.frontmatter import FrontMatter, coerce_date
from garden.transformers.links import CrawlLinks

UTC = timezone.utc


def _raw(slug: str, meta: dict | None = None, body: str = "Body.", fs: FileMetadata | None = None) -> Document:
    return Document(
        slug=slug,
        path=Path(f"{slug}.md"),
        body=body,
        raw_frontmatter=meta or {},
        tree=parse_tree(body),
        fs_metadata=fs or FileMetadata(),
    )


def _ctx(slugs=(), **settings) -> BuildContext:
    return BuildContext(settings=SiteSettings(**settings), all_slugs=tuple(sorted(slugs)))


# ---------------------------------------------------------------------------
# FrontMatter
# ---------------------------------------------------------------------------


class TestFrontMatter:
    def test_typed_fields(self):
        doc = _raw(
            "n",
            {
                "title": "Note",
                "description": " Short ",
                "tags": ["a/b", "#c d"],
                "aliases": "old, older",
                "cssclasses": ["wide"],
                "draft": "true",
                "date": date(2024, 1, 2),
                "lastmod": "2024-02-03T10:00:00",
                "rating": 5,
            },
        )
        fm = FrontMatter().transform(doc, _ctx()).frontmatter
        assert fm.title == "Note"
        assert fm.description == "Short"
        assert fm.tags == ("a/b", "c-d")
        assert fm.aliases == ("old", "older")
        assert fm.css_classes == ("wide",)
        assert fm.draft is True
        assert fm.created == datetime(2024, 1, 2, tzinfo=UTC)
        assert fm.modified == datetime(2024, 2, 3, 10, tzinfo=UTC)
        assert fm.extra == {"rating": 5}

    def test_comma_separated_tags_and_inline_tags(self):
        doc = _raw("n", {"tags": "python, tools"}, body="Also #python and #cli here.")
        assert FrontMatter().transform(doc, _ctx()).tags == ("python", "tools", "cli")

    def test_inline_tags_can_be_disabled(self):
        doc = _raw("n", {}, body="Tagged #inline.")
        assert FrontMatter(inline_tags=False).transform(doc, _ctx()).tags == ()

    def test_title_falls_back_to_stem(self):
        doc = _raw("folder/my-note")
        assert FrontMatter().transform(doc, _ctx()).title == "my-note"

    def test_slug_unchanged(self):
        doc = _raw("keep/me", {"title": "Other"})
        assert FrontMatter().transform(doc, _ctx()).slug == "keep/me"

    def test_unparsable_date_is_omitted(self):
        assert coerce_date("next tuesday") is None


# ---------------------------------------------------------------------------
# CreatedModifiedDate
# ---------------------------------------------------------------------------


FS = FileMetadata(
    created=datetime(2020, 1, 1, tzinfo=UTC),
    modified=datetime(2020, 6, 1, tzinfo=UTC),
    vcs_created=datetime(2019, 1, 1, tzinfo=UTC),
    vcs_modified=datetime(2021, 1, 1, tzinfo=UTC),
)


def _with_frontmatter(meta: dict, fs: FileMetadata = FS) -> Document:
    doc = _raw("d", meta, fs=fs)
    return FrontMatter().transform(doc, _ctx())


class TestCreatedModifiedDate:
    def test_frontmatter_first(self):
        doc = _with_frontmatter({"created": "2024-01-01"})
        dates = CreatedModifiedDate().transform(doc, _ctx()).dates
        assert dates.created.value == datetime(2024, 1, 1, tzinfo=UTC)
        assert dates.created.source is DateSource.FRONTMATTER
        # no frontmatter modified date: filesystem is next in line
        assert dates.modified.source is DateSource.FILESYSTEM

    def test_priority_option_overrides_settings(self):
        doc = _with_frontmatter({"created": "2024-01-01"})
        dates = CreatedModifiedDate(priority=["version_control", "frontmatter"]).transform(doc, _ctx()).dates
        assert dates.created.source is DateSource.VERSION_CONTROL
        assert dates.created.value == datetime(2019, 1, 1, tzinfo=UTC)

    def test_settings_priority(self):
        doc = _with_frontmatter({})
        dates = CreatedModifiedDate().transform(doc, _ctx(date_priority=["version_control"])).dates
        assert dates.modified.value == datetime(2021, 1, 1, tzinfo=UTC)

    def test_missing_sources_leave_dates_empty(self):
        doc = _with_frontmatter({}, fs=FileMetadata())
        dates = assign_dates(doc, ["frontmatter", "filesystem", "version_control"])
        assert (dates.created, dates.modified, dates.published) == (None, None, None)

    def test_published_only_from_frontmatter(self):
        doc = _with_frontmatter({"publishDate": "2024-03-01"})
        assert assign_dates(doc, ["filesystem"]).published is None
        assert assign_dates(doc, ["frontmatter"]).published.value == datetime(2024, 3, 1, tzinfo=UTC)

    def test_unknown_source_rejected(self):
        with pytest.raises(ConfigurationError):
            CreatedModifiedDate(priority=["carrier-pigeon"])


# ---------------------------------------------------------------------------
# CrawlLinks
# ---------------------------------------------------------------------------


class TestCrawlLinks:
    def test_resolves_shortest(self):
        ctx = _ctx({"notes/a", "projects/other-page"})
        doc = _raw("notes/a", body="See [[Other Page]].")
        assert CrawlLinks().transform(doc, ctx).links == ("projects/other-page",)
        assert ctx.warnings == []

    def test_ambiguous_link_warns(self):
        ctx = _ctx({"notes/a", "x/other-page", "y/other-page"})
        doc = _raw("notes/a", body="See [[Other Page]].")
        assert CrawlLinks().transform(doc, ctx).links == ("x/other-page",)
        [warning] = ctx.warnings
        assert warning.reason == "ambiguous"
        assert warning.source == "notes/a"

    def test_dangling_link_kept_and_warned(self):
        ctx = _ctx({"notes/a"})
        doc = _raw("notes/a", body="[[nowhere]]")
        assert CrawlLinks().transform(doc, ctx).links == ("nowhere",)
        assert ctx.warnings[0].reason == "dangling"

    def test_strategy_option(self):
        ctx = _ctx({"notes/a", "notes/b", "b"})
        doc = _raw("notes/a", body="[[b]]")
        assert CrawlLinks(strategy="relative").transform(doc, ctx).links == ("notes/b",)
        assert CrawlLinks(strategy="absolute").transform(doc, ctx).links == ("b",)

    def test_duplicate_targets_collapse(self):
        ctx = _ctx({"a", "b"})
        doc = _raw("a", body="[[b]] and [[b|again]] and [b](b.md)")
        assert CrawlLinks().transform(doc, ctx).links == ("b",)

    def test_invalid_strategy(self):
        with pytest.raises(ConfigurationError):
            CrawlLinks(strategy="nearest")


# ---------------------------------------------------------------------------
# Description
# ---------------------------------------------------------------------------


class TestDescription:
    def test_frontmatter_description_wins(self):
        doc = _with_frontmatter({"description": "Given."})
        assert Description().transform(doc, _ctx()).description == "Given."

    def test_derived_from_body(self):
        doc = _raw("d", body="# Heading\n\nFirst **bold** sentence. Second [[target|link]].")
        assert Description().transform(doc, _ctx()).description == "Heading First bold sentence. Second link."

    def test_truncated_with_ellipsis(self):
        text = "word " * 100
        summary = summarise(text, 20)
        assert summary.endswith("...")
        assert len(summary) <= 23

    def test_empty_body_gives_none(self):
        doc = _raw("d", body="   ")
        assert Description().transform(doc, _ctx()).description is None

    def test_plain_text_strips_markdown_links(self):
        assert plain_text("Read [the docs](https://x.y) now") == "Read the docs now"


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class TestFilters:
    def test_remove_drafts(self):
        draft = _with_frontmatter({"draft": True})
        final = _with_frontmatter({})
        assert RemoveDrafts().keep(draft, _ctx()) is False
        assert RemoveDrafts().keep(final, _ctx()) is True

    def test_explicit_publish(self):
        assert ExplicitPublish().keep(_with_frontmatter({"publish": True}), _ctx()) is True
        assert ExplicitPublish().keep(_with_frontmatter({}), _ctx()) is False

    def test_filters_do_not_mutate(self):
        doc = _with_frontmatter({"draft": True})
        before = replace(doc)
        RemoveDrafts().keep(doc, _ctx())
        assert doc == before


class TestCrawlLinksScale:
    def test_context_index_covers_all_slugs(self):
        ctx = _ctx({"a", "notes/b"})
        assert ctx.slug_index.slugs == ("a", "notes/b")
        assert ctx.slug_index.lookup("NOTES/B") == "notes/b"

    def test_large_corpus(self):
        slugs = {f"f{i % 40}/n{i}" for i in range(5000)}
        ctx = _ctx(slugs)
        crawl = CrawlLinks()
        docs = [_raw(f"f{i % 40}/n{i}", body=" ".join(f"[[n{(i + k) % 5000}]]" for k in range(1, 6))) for i in range(5000)]
        for doc in docs:
            assert len(crawl.transform(doc, ctx).links) == 5
        assert ctx.warnings == []
