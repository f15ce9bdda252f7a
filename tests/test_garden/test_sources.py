"""Unit tests for garden.sources (discovery + Document construction)."""

import textwrap
from pathlib import Path

import pytest

from garden.errors import ConfigurationError, DuplicateSlugError
from garden.sources import discover_sources, load_documents


@pytest.fixture()
def content(tmp_path: Path) -> Path:
    root = tmp_path / "content"
    (root / "notes").mkdir(parents=True)
    (root / "private").mkdir()
    (root / "index.md").write_text("# Home\n", encoding="utf-8")
    (root / "notes" / "index.md").write_text("Notes intro.\n", encoding="utf-8")
    (root / "notes" / "My Note.md").write_text(
        textwrap.dedent("""\
            ---
            title: Mine
            tags: [a]
            ---
            Body with [[Other]].
        """),
        encoding="utf-8",
    )
    (root / "notes" / "image.png").write_bytes(b"\x89PNG")
    (root / "private" / "secret.md").write_text("hidden", encoding="utf-8")
    return root


class TestDiscoverSources:
    def test_sorted_markdown_only(self, content: Path):
        paths = [s.storage_path.as_posix() for s in discover_sources(content)]
        assert paths == ["index.md", "notes/My Note.md", "notes/index.md", "private/secret.md"]

    def test_ignore_patterns(self, content: Path):
        paths = [s.storage_path.as_posix() for s in discover_sources(content, ignore_patterns=["private"])]
        assert "private/secret.md" not in paths

    def test_glob_patterns_match_components(self, content: Path):
        paths = [s.storage_path.as_posix() for s in discover_sources(content, ignore_patterns=["My *"])]
        assert "notes/My Note.md" not in paths
        assert "notes/index.md" in paths

    def test_filesystem_metadata(self, content: Path):
        source = next(iter(discover_sources(content)))
        assert source.fs_metadata.modified is not None
        assert source.fs_metadata.modified.tzinfo is not None
        assert source.fs_metadata.vcs_created is None


class TestLoadDocuments:
    def test_slugs_and_index_detection(self, content: Path):
        docs = {d.slug: d for d in load_documents(discover_sources(content, ignore_patterns=["private"]))}
        assert sorted(docs) == ["", "notes", "notes/My-Note"]
        assert docs["notes"].is_folder_index
        assert not docs["notes/My-Note"].is_folder_index

    def test_frontmatter_split_from_body(self, content: Path):
        docs = {d.slug: d for d in load_documents(discover_sources(content))}
        note = docs["notes/My-Note"]
        assert note.raw_frontmatter == {"title": "Mine", "tags": ["a"]}
        assert note.body.strip() == "Body with [[Other]]."

    def test_bom_stripped(self, tmp_path: Path):
        (tmp_path / "a.md").write_bytes(b"\xef\xbb\xbfHello")
        [doc] = load_documents(discover_sources(tmp_path))
        assert doc.body == "Hello"

    def test_duplicate_slug(self, tmp_path: Path):
        (tmp_path / "a").mkdir()
        (tmp_path / "a.md").write_text("one", encoding="utf-8")
        (tmp_path / "a" / "index.md").write_text("two", encoding="utf-8")
        with pytest.raises(DuplicateSlugError) as info:
            load_documents(discover_sources(tmp_path))
        assert info.value.slug == "a"
        assert {p.as_posix() for p in info.value.paths} == {"a.md", "a/index.md"}

    def test_invalid_utf8_names_the_file(self, tmp_path: Path):
        (tmp_path / "notes").mkdir()
        (tmp_path / "notes" / "latin.md").write_bytes(b"caf\xe9")
        with pytest.raises(ConfigurationError, match="latin.md") as info:
            load_documents(discover_sources(tmp_path))
        assert isinstance(info.value.__cause__, UnicodeDecodeError)
