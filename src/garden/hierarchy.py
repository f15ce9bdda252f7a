"""Folder containment and tag-prefix hierarchy.

Every function here is a pure view over the document set it is given.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from garden.document import Document
from garden.slugs import SEP, path_segments, strip_slashes, tag_prefixes

TAG_ROOT = "tags"


def locale_sort_key(text: str) -> tuple[str, str]:
    """Accent- and case-insensitive key, falling back to the raw string for ties."""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text


def sort_by_date_and_title(documents: Iterable[Document], date_type: str = "created") -> list[Document]:
    """Newest first; undated documents after dated ones; then by title, then slug."""

    def key(doc: Document) -> tuple[int, float, tuple[str, str], str]:
        stamp = doc.dates.get(date_type)
        if stamp is None:
            return (1, 0.0, locale_sort_key(doc.title), doc.slug)
        return (0, -_epoch(stamp.value), locale_sort_key(doc.title), doc.slug)

    return sorted(documents, key=key)


def _epoch(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


# ---------------------------------------------------------------------------
# Folders
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FolderListing:
    folder: str
    documents: tuple[Document, ...]
    #: Document authored at the folder's own slug (``<folder>/index.md``), if any
    index: Document | None = None

    @property
    def count(self) -> int:
        return len(self.documents)


def is_direct_child(slug: str, folder: str) -> bool:
    """True iff *slug* lives in *folder* exactly one segment below it."""
    folder_parts = path_segments(folder)
    slug_parts = path_segments(slug)
    return len(slug_parts) == len(folder_parts) + 1 and slug_parts[: len(folder_parts)] == folder_parts


def folder_listing(
    documents: Iterable[Document], folder: str, *, date_type: str = "created"
) -> FolderListing:
    folder = strip_slashes(folder)
    documents = list(documents)
    children = [d for d in documents if is_direct_child(d.slug, folder)]
    index = next((d for d in documents if d.slug == folder), None)
    return FolderListing(
        folder=folder,
        documents=tuple(sort_by_date_and_title(children, date_type)),
        index=index,
    )


def all_folders(documents: Iterable[Document]) -> list[str]:
    """Every non-root folder that contains at least one document, sorted."""
    folders: set[str] = set()
    for doc in documents:
        parts = path_segments(doc.slug)
        for i in range(1, len(parts)):
            folders.add(SEP.join(parts[:i]))
    return sorted(folders)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


def expanded_tags(document: Document) -> set[str]:
    """The document's tags plus all their ancestor prefixes."""
    return {prefix for tag in document.tags for prefix in tag_prefixes(tag)}


@dataclass(frozen=True)
class TagListing:
    tag: str
    documents: tuple[Document, ...]
    total: int
    #: Document authored at ``tags/<tag>``, if any
    index: Document | None = None

    @property
    def shown(self) -> int:
        return len(self.documents)

    @property
    def truncated(self) -> bool:
        return self.shown < self.total

    @property
    def description(self) -> str | None:
        return self.index.description if self.index is not None else None


def tag_slug(tag: str) -> str:
    return f"{TAG_ROOT}{SEP}{tag}" if tag else TAG_ROOT


def is_tag_slug(slug: str) -> bool:
    """True for ``tags`` and anything below it; those slugs belong to the tag pages."""
    return slug == TAG_ROOT or slug.startswith(TAG_ROOT + SEP)


def tag_listing(
    documents: Iterable[Document],
    tag: str,
    *,
    cap: int | None = None,
    date_type: str = "created",
) -> TagListing:
    """Documents whose expanded tags include *tag*.

    With *cap*, at most that many documents are returned while ``total``
    still reports the full count.
    """
    tag = strip_slashes(tag)
    documents = list(documents)
    members = sort_by_date_and_title((d for d in documents if tag in expanded_tags(d)), date_type)
    shown = members if cap is None else members[:cap]
    index = next((d for d in documents if d.slug == tag_slug(tag)), None)
    return TagListing(tag=tag, documents=tuple(shown), total=len(members), index=index)


def all_tags(documents: Iterable[Document]) -> list[str]:
    """Every distinct expanded tag across *documents*, in locale order."""
    tags: set[str] = set()
    for doc in documents:
        tags |= expanded_tags(doc)
    return sorted(tags, key=locale_sort_key)


def tag_index(
    documents: Sequence[Document],
    *,
    cap: int | None = None,
    date_type: str = "created",
) -> list[TagListing]:
    """One capped :class:`TagListing` per tag, in locale order."""
    return [tag_listing(documents, tag, cap=cap, date_type=date_type) for tag in all_tags(documents)]
