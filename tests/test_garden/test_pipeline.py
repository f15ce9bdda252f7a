"""Unit tests for garden.pipeline (stage ordering, failures, publishing)."""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import ClassVar

import pytest

from garden.config import PipelineConfig, SiteSettings
from garden.errors import BuildFailedError, DuplicateSlugError, FilterError, TransformError
from garden.filters import RemoveDrafts
from garden.hierarchy import folder_listing
from garden.pipeline import Artifact, publish, run_pipeline

# ---------------------------------------------------------------------------
# Test plugins
# ---------------------------------------------------------------------------


@dataclass
class Recorder:
    """Transformer that logs ``(label, slug)`` calls into a shared journal."""

    label: str
    journal: list = field(default_factory=list)
    name: ClassVar[str] = "Recorder"

    def transform(self, document, ctx):
        self.journal.append((self.label, document.slug))
        return replace(document, description=f"{document.description or ''}{self.label}")


class Renamer:
    name = "Renamer"

    def transform(self, document, ctx):
        return replace(document, slug=document.slug + "-renamed")


class Exploder:
    name = "Exploder"

    def transform(self, document, ctx):
        raise ValueError("boom")

    def keep(self, document, ctx):
        raise ValueError("bang")


class NotABool:
    name = "NotABool"

    def keep(self, document, ctx):
        return "yes"


@dataclass
class Collector:
    """Emitter recording the documents it was given."""

    name: str = "Collector"
    seen: list = field(default_factory=list)

    def emit(self, documents, ctx):
        self.seen.extend(documents)
        return [Artifact.text(f"{self.name}.txt", ",".join(d.slug for d in documents))]


class BrokenEmitter:
    name = "BrokenEmitter"

    def emit(self, documents, ctx):
        raise RuntimeError("disk on fire")


class FolderCounter:
    name = "FolderCounter"

    def emit(self, documents, ctx):
        listing = folder_listing(documents, "notes")
        return [Artifact.text("count.txt", str(listing.count))]


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestStageOrdering:
    def test_each_transformer_runs_over_all_documents_first(self, make_doc):
        journal: list = []
        config = PipelineConfig(transformers=(Recorder("1", journal), Recorder("2", journal)))
        run_pipeline([make_doc("b"), make_doc("a")], config)
        assert journal == [("1", "a"), ("1", "b"), ("2", "a"), ("2", "b")]

    def test_transformers_compose_in_declaration_order(self, make_doc):
        config = PipelineConfig(transformers=(Recorder("x"), Recorder("y")))
        result = run_pipeline([make_doc("a")], config)
        assert result.documents[0].description == "xy"

    def test_output_independent_of_input_order(self, make_doc):
        docs = [make_doc("c", links=("a",)), make_doc("a", links=("b",)), make_doc("b")]
        config = PipelineConfig(emitters=(Collector(),))
        first = run_pipeline(docs, config)
        second = run_pipeline(list(reversed(docs)), config)
        assert first.artifacts == second.artifacts
        assert first.link_graph == second.link_graph

    def test_parallel_matches_sequential(self, make_doc):
        docs = [make_doc(f"n{i}") for i in range(20)]
        config = PipelineConfig(transformers=(Recorder("x"),), emitters=(Collector("a"), Collector("b")))
        assert run_pipeline(docs, config).artifacts == run_pipeline(docs, config, max_workers=4).artifacts


# ---------------------------------------------------------------------------
# Fatal failures
# ---------------------------------------------------------------------------


class TestFatalFailures:
    def test_duplicate_slugs(self, make_doc):
        with pytest.raises(DuplicateSlugError):
            run_pipeline([make_doc("a"), make_doc("a")], PipelineConfig())

    def test_transformer_exception_aborts(self, make_doc):
        emitter = Collector()
        config = PipelineConfig(transformers=(Exploder(),), emitters=(emitter,))
        with pytest.raises(TransformError, match="boom") as info:
            run_pipeline([make_doc("a")], config)
        assert info.value.plugin == "Exploder"
        assert isinstance(info.value.__cause__, ValueError)
        assert emitter.seen == []

    def test_transformer_may_not_change_slug(self, make_doc):
        config = PipelineConfig(transformers=(Renamer(),))
        with pytest.raises(TransformError, match="slug"):
            run_pipeline([make_doc("a")], config)

    def test_filter_exception_aborts(self, make_doc):
        with pytest.raises(FilterError, match="bang"):
            run_pipeline([make_doc("a")], PipelineConfig(filters=(Exploder(),)))

    def test_filter_must_return_bool(self, make_doc):
        with pytest.raises(FilterError, match="expected bool"):
            run_pipeline([make_doc("a")], PipelineConfig(filters=(NotABool(),)))


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class TestDraftScenario:
    @pytest.fixture()
    def documents(self, make_doc):
        return [
            make_doc("notes/one"),
            make_doc("notes/two", draft=True),
            make_doc("notes/three"),
            make_doc("notes/four", draft=True),
            make_doc("top"),
        ]

    def test_emitters_see_only_published(self, documents):
        collector = Collector()
        result = run_pipeline(documents, PipelineConfig(filters=(RemoveDrafts(),), emitters=(collector,)))
        assert sorted(d.slug for d in collector.seen) == ["notes/one", "notes/three", "top"]
        assert result.dropped == ("notes/four", "notes/two")

    def test_folder_counts_exclude_drafts(self, documents):
        result = run_pipeline(documents, PipelineConfig(filters=(RemoveDrafts(),), emitters=(FolderCounter(),)))
        assert result.artifacts[0].content == b"2"

    def test_dropped_slugs_stay_reserved(self, documents):
        seen = {}

        class SlugSpy:
            name = "SlugSpy"

            def emit(self, documents, ctx):
                seen["all"] = ctx.all_slugs
                return []

        run_pipeline(documents, PipelineConfig(filters=(RemoveDrafts(),), emitters=(SlugSpy(),)))
        assert "notes/two" in seen["all"]

    def test_links_to_dropped_documents_are_dangling(self, make_doc):
        docs = [make_doc("a", links=("secret",)), make_doc("secret", draft=True)]
        result = run_pipeline(docs, PipelineConfig(filters=(RemoveDrafts(),)))
        assert result.link_graph.dangling == (("a", "secret"),)


# ---------------------------------------------------------------------------
# Emitters
# ---------------------------------------------------------------------------


class TestEmitterIsolation:
    def test_failing_emitter_does_not_stop_siblings(self, make_doc):
        config = PipelineConfig(emitters=(BrokenEmitter(), Collector()))
        result = run_pipeline([make_doc("a")], config)
        assert not result.succeeded
        assert [e.emitter for e in result.emit_errors] == ["BrokenEmitter"]
        assert [a.path for a in result.artifacts] == ["Collector.txt"]

    def test_path_collision_is_reported(self, make_doc):
        class Twin:
            name = "Twin"

            def emit(self, documents, ctx):
                return [Artifact.text("Collector.txt", "twin")]

        result = run_pipeline([make_doc("a")], PipelineConfig(emitters=(Collector(), Twin())))
        assert not result.succeeded
        assert "already produced" in str(result.emit_errors[0])

    def test_escaping_path_is_reported(self, make_doc):
        class Escaper:
            name = "Escaper"

            def emit(self, documents, ctx):
                return [Artifact.text("../outside.txt", "x")]

        result = run_pipeline([make_doc("a")], PipelineConfig(emitters=(Escaper(),)))
        assert "invalid output path" in str(result.emit_errors[0])

    def test_link_graph_available_to_emitters(self, make_doc):
        graphs = []

        class GraphSpy:
            name = "GraphSpy"

            def emit(self, documents, ctx):
                graphs.append(ctx.require_graph())
                return []

        run_pipeline([make_doc("a", links=("b",)), make_doc("b")], PipelineConfig(emitters=(GraphSpy(),)))
        assert graphs[0].backlinks("b") == ("a",)


# ---------------------------------------------------------------------------
# publish
# ---------------------------------------------------------------------------


class TestPublish:
    def test_writes_artifacts(self, make_doc, tmp_path: Path):
        result = run_pipeline([make_doc("a")], PipelineConfig(emitters=(Collector(),)))
        out = publish(result, tmp_path / "public")
        assert (out / "Collector.txt").read_text(encoding="utf-8") == "a"

    def test_replaces_previous_output(self, make_doc, tmp_path: Path):
        out = tmp_path / "public"
        out.mkdir()
        (out / "stale.html").write_text("old", encoding="utf-8")
        result = run_pipeline([make_doc("a")], PipelineConfig(emitters=(Collector(),)))
        publish(result, out)
        assert not (out / "stale.html").exists()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["public"]

    def test_failed_build_leaves_output_untouched(self, make_doc, tmp_path: Path):
        out = tmp_path / "public"
        out.mkdir()
        (out / "keep.html").write_text("old", encoding="utf-8")
        result = run_pipeline([make_doc("a")], PipelineConfig(emitters=(BrokenEmitter(), Collector())))
        with pytest.raises(BuildFailedError, match="BrokenEmitter"):
            publish(result, out)
        assert (out / "keep.html").read_text(encoding="utf-8") == "old"
        assert not (out / "Collector.txt").exists()


class TestSettingsPassthrough:
    def test_context_carries_settings(self, make_doc):
        captured = {}

        class SettingsSpy:
            name = "SettingsSpy"

            def emit(self, documents, ctx):
                captured["settings"] = ctx.settings
                return []

        settings = SiteSettings(page_title="Mine")
        run_pipeline([make_doc("a")], PipelineConfig(emitters=(SettingsSpy(),), settings=settings))
        assert captured["settings"] is settings
