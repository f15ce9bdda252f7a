"""Core Document dataclass and its typed metadata."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

WORDS_PER_MINUTE = 200


class DateSource(str, Enum):
    """Where a resolved date came from."""

    FRONTMATTER = "frontmatter"
    FILESYSTEM = "filesystem"
    VERSION_CONTROL = "version_control"


@dataclass(frozen=True)
class DateStamp:
    value: datetime
    source: DateSource


@dataclass(frozen=True)
class Dates:
    """Resolved dates of a document; each one optional."""

    created: DateStamp | None = None
    modified: DateStamp | None = None
    published: DateStamp | None = None

    def get(self, kind: str) -> DateStamp | None:
        if kind not in {"created", "modified", "published"}:
            raise ValueError(f"Unknown date type '{kind}'")
        return getattr(self, kind)


@dataclass(frozen=True)
class FileMetadata:
    """Filesystem and version-control facts gathered by the input collaborator."""

    created: datetime | None = None
    modified: datetime | None = None
    vcs_created: datetime | None = None
    vcs_modified: datetime | None = None


@dataclass(frozen=True)
class Frontmatter:
    """Typed view over the frontmatter keys the pipeline reads.

    Unrecognised keys are preserved verbatim in :attr:`extra`.
    """

    title: str | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    css_classes: tuple[str, ...] = ()
    draft: bool = False
    #: ``None`` when the key is absent; only :class:`~garden.filters.ExplicitPublish` reads it
    publish: bool | None = None
    created: datetime | None = None
    modified: datetime | None = None
    published: datetime | None = None
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=True)


@dataclass(frozen=True)
class ContentTree:
    """Minimal block tree produced by :func:`garden.parser.parse_tree`.

    The pipeline treats any tree as opaque; it only asks whether the root has
    children (see :func:`tree_is_empty`).
    """

    children: tuple[str, ...] = ()


def tree_is_empty(tree: Any) -> bool:  # noqa: ANN401
    """Return True when *tree* is missing or its root has zero children."""
    if tree is None:
        return True
    if isinstance(tree, Mapping):
        children = tree.get("children") or ()
    else:
        children = getattr(tree, "children", None) or ()
    return len(children) == 0


@dataclass(frozen=True)
class Document:
    """One content unit flowing through the pipeline.

    Documents are frozen: transformers return a new instance (usually via
    :func:`dataclasses.replace`) and must keep :attr:`slug` unchanged.
    """

    slug: str
    path: Path
    body: str = ""
    raw_frontmatter: Mapping[str, Any] = field(default_factory=dict, hash=False)
    frontmatter: Frontmatter = field(default_factory=Frontmatter)
    tree: Any = field(default_factory=ContentTree, hash=False)
    dates: Dates = field(default_factory=Dates)
    description: str | None = None
    #: Resolved target slugs, in order of first appearance
    links: tuple[str, ...] = ()
    fs_metadata: FileMetadata = field(default_factory=FileMetadata)
    #: True for ``index`` files, whose slug names their parent folder
    is_folder_index: bool = False

    @property
    def title(self) -> str:
        if self.frontmatter.title:
            return self.frontmatter.title
        stem = self.path.stem
        if stem == "index" and self.path.parent.name:
            return self.path.parent.name
        return stem

    @property
    def tags(self) -> tuple[str, ...]:
        return self.frontmatter.tags

    @property
    def has_content(self) -> bool:
        return not tree_is_empty(self.tree)

    @property
    def word_count(self) -> int:
        return len(self.body.split())

    @property
    def reading_minutes(self) -> int:
        return math.ceil(self.word_count / WORDS_PER_MINUTE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "links": list(self.links),
            "draft": self.frontmatter.draft,
        }
