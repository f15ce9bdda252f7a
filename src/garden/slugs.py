"""Slug derivation and link-target resolution.

A slug is the canonical identifier of a document: its path below the
content root, ``/``-separated, without extension, without leading or
trailing separators, and with a trailing ``index`` segment folded into its
parent folder (``notes/index.md`` -> ``notes``). Case is preserved.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from urllib.parse import unquote

from garden.errors import ConfigurationError, DuplicateSlugError, LinkResolutionWarning

SEP = "/"
INDEX = "index"
CONTENT_EXTENSIONS = (".md",)

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_DROP_RE = re.compile(r"[?#]")


class LinkStrategy(str, Enum):
    SHORTEST = "shortest"
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


# ---------------------------------------------------------------------------
# Slug derivation
# ---------------------------------------------------------------------------


def slugify_segment(segment: str) -> str:
    """Percent-decode, validate and normalise one path segment."""
    text = unquote(segment)
    if _CONTROL_RE.search(text):
        raise ConfigurationError(f"Path segment {segment!r} contains control characters.")
    text = text.strip()
    text = text.replace(" ", "-").replace("&", "-and-").replace("%", "-percent")
    text = _DROP_RE.sub("", text)
    return re.sub(r"-{2,}", "-", text)


def _split(path: str) -> list[str]:
    return [part for part in path.replace("\\", SEP).split(SEP) if part not in ("", ".")]


def strip_extension(name: str) -> str:
    for ext in CONTENT_EXTENSIONS:
        if name.lower().endswith(ext):
            return name[: -len(ext)]
    return name


def is_index_path(path: Path | str) -> bool:
    parts = _split(str(path))
    return bool(parts) and strip_extension(parts[-1]) == INDEX


def slugify_path(path: Path | str, content_root: Path | str | None = None) -> str:
    """Return the canonical slug of the file at *path*.

    *path* is taken relative to *content_root* when one is given.
    """
    path = Path(path)
    if content_root is not None:
        try:
            path = path.relative_to(Path(content_root))
        except ValueError as exc:
            raise ConfigurationError(f"'{path}' is not inside content root '{content_root}'.") from exc
    parts = _split(str(path))
    if any(part == ".." for part in parts):
        raise ConfigurationError(f"'{path}' escapes the content root.")
    if parts:
        parts[-1] = strip_extension(parts[-1])
    segments = [slugify_segment(part) for part in parts]
    return simplify_slug(SEP.join(seg for seg in segments if seg))


def strip_slashes(slug: str) -> str:
    return slug.strip(SEP)


def simplify_slug(slug: str) -> str:
    """Drop a trailing ``index`` segment and surrounding separators."""
    slug = strip_slashes(slug)
    if slug == INDEX:
        return ""
    if slug.endswith(SEP + INDEX):
        return slug[: -len(SEP + INDEX)]
    return slug


def path_segments(slug: str) -> list[str]:
    slug = strip_slashes(slug)
    return slug.split(SEP) if slug else []


def folder_of(slug: str) -> str:
    """Return the folder containing *slug* (``""`` for top-level documents)."""
    return SEP.join(path_segments(slug)[:-1])


def join_segments(*segments: str) -> str:
    return SEP.join(strip_slashes(s) for s in segments if strip_slashes(s))


def path_to_root(slug: str) -> str:
    """Relative prefix from the page for *slug* back to the site root."""
    depth = len(path_segments(folder_of(slug)))
    return SEP.join([".."] * depth) if depth else "."


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


def slugify_tag(tag: str) -> str:
    """Normalise a tag: drop leading ``#``, slugify each ``/`` segment."""
    tag = tag.strip().lstrip("#")
    return SEP.join(seg for seg in (slugify_segment(s) for s in _split(tag)) if seg)


def tag_prefixes(tag: str) -> list[str]:
    """``"a/b/c"`` -> ``["a", "a/b", "a/b/c"]``."""
    segments = path_segments(tag)
    return [SEP.join(segments[: i + 1]) for i in range(len(segments))]


# ---------------------------------------------------------------------------
# Uniqueness
# ---------------------------------------------------------------------------


def assign_slugs(paths: Iterable[Path], content_root: Path | str | None = None) -> dict[str, Path]:
    """Map each slug to its source path; raise on collisions."""
    slugs: dict[str, Path] = {}
    for path in paths:
        slug = slugify_path(path, content_root)
        if slug in slugs:
            raise DuplicateSlugError(slug, slugs[slug], path)
        slugs[slug] = Path(path)
    return slugs


# ---------------------------------------------------------------------------
# Link resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LinkResolution:
    #: Resolved slug; for dangling links, the normalised target
    slug: str
    warning: LinkResolutionWarning | None = None

    @property
    def dangling(self) -> bool:
        return self.warning is not None and self.warning.reason == "dangling"


def normalise_target(target: str) -> str:
    """Turn a raw link target into slug form (no anchor, no extension)."""
    target = target.split("#", 1)[0].split("|", 1)[0].strip()
    parts = _split(target)
    if parts:
        parts[-1] = strip_extension(parts[-1])
    segments = [p if p == ".." else slugify_segment(p) for p in parts]
    return simplify_slug(SEP.join(seg for seg in segments if seg))


@dataclass(frozen=True)
class SlugIndex:
    """Lookup tables over one build's slugs, built once and shared by every link.

    ``folded`` maps a casefolded slug to the smallest slug with that fold;
    ``suffixes`` maps every casefolded segment suffix (``b``, ``notes/b``)
    to the sorted slugs ending in it.
    """

    slugs: tuple[str, ...]
    exact: frozenset[str]
    folded: Mapping[str, str]
    suffixes: Mapping[str, tuple[str, ...]]

    @classmethod
    def build(cls, all_slugs: Iterable[str]) -> "SlugIndex":
        slugs = tuple(sorted(set(all_slugs)))
        folded: dict[str, str] = {}
        suffixes: dict[str, list[str]] = {}
        for slug in slugs:
            folded.setdefault(slug.casefold(), slug)
            parts = path_segments(slug.casefold())
            for i in range(len(parts)):
                suffixes.setdefault(SEP.join(parts[i:]), []).append(slug)
        return cls(
            slugs=slugs,
            exact=frozenset(slugs),
            folded=folded,
            suffixes={k: tuple(v) for k, v in suffixes.items()},
        )

    def lookup(self, candidate: str) -> str | None:
        if candidate in self.exact:
            return candidate
        return self.folded.get(candidate.casefold())

    def ending_in(self, candidate: str) -> tuple[str, ...]:
        return self.suffixes.get(candidate.casefold(), ())


def resolve_link(
    source_slug: str,
    target: str,
    all_slugs: "SlugIndex | Iterable[str] | Mapping[str, object]",
    strategy: LinkStrategy | str = LinkStrategy.SHORTEST,
) -> LinkResolution:
    """Resolve *target* (as written in *source_slug*) to a document slug.

    ``shortest`` looks for slugs ending in the target on a segment boundary;
    one match wins outright, several pick the lexicographically smallest and
    carry an ``ambiguous`` warning. ``absolute`` reads the target from the
    content root and ``relative`` from the source document's folder. Anything
    that matches nothing comes back with a ``dangling`` warning.

    Pass a prebuilt :class:`SlugIndex` when resolving many links.
    """
    strategy = LinkStrategy(strategy)
    index = all_slugs if isinstance(all_slugs, SlugIndex) else SlugIndex.build(all_slugs)
    raw = target
    normalised = normalise_target(target)

    if strategy is LinkStrategy.RELATIVE and not target.startswith(SEP):
        candidate = posixpath.normpath(posixpath.join(folder_of(source_slug) or ".", normalised or "."))
    else:
        candidate = posixpath.normpath(normalised or ".")
    candidate = "" if candidate == "." else candidate

    if candidate.startswith(".."):
        return LinkResolution(candidate, LinkResolutionWarning(source_slug, raw, "dangling"))

    found = index.lookup(candidate)
    if found is not None:
        return LinkResolution(found)

    if strategy is LinkStrategy.SHORTEST and candidate:
        matches = index.ending_in(candidate)
        if len(matches) == 1:
            return LinkResolution(matches[0])
        if matches:
            chosen = matches[0]
            warning = LinkResolutionWarning(source_slug, raw, "ambiguous", matches, chosen)
            return LinkResolution(chosen, warning)

    return LinkResolution(candidate, LinkResolutionWarning(source_slug, raw, "dangling"))
