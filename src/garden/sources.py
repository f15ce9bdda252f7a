"""File discovery and Document construction.

All file-system and version-control I/O happens here, before the pipeline
starts; the pipeline itself only sees :class:`~garden.document.Document`
instances.
"""

from __future__ import annotations

import fnmatch
import subprocess
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog

from garden.document import Document, FileMetadata
from garden.errors import ConfigurationError
from garden.parser import parse_frontmatter, parse_tree
from garden.slugs import CONTENT_EXTENSIONS, assign_slugs, is_index_path

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """One discovered file: path relative to the content root, bytes, metadata."""

    storage_path: Path
    raw: bytes
    fs_metadata: FileMetadata


def _is_ignored(relative: Path, patterns: Iterable[str]) -> bool:
    return any(fnmatch.fnmatch(part, pattern) for part in relative.parts for pattern in patterns)


def _timestamp(value: float | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def git_dates(path: Path, cwd: Path) -> tuple[datetime | None, datetime | None]:
    """Return ``(first_commit, last_commit)`` dates for *path*, or ``(None, None)``."""
    try:
        proc = subprocess.run(
            ["git", "log", "--follow", "--format=%cI", "--", str(path)],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None, None
    stamps = [datetime.fromisoformat(line.strip()) for line in proc.stdout.splitlines() if line.strip()]
    if not stamps:
        return None, None
    return stamps[-1], stamps[0]


def discover_sources(
    content_root: Path,
    *,
    ignore_patterns: Iterable[str] = (),
    use_git: bool = False,
) -> Iterator[SourceFile]:
    """Yield every content file below *content_root* in sorted path order."""
    content_root = Path(content_root)
    patterns = tuple(ignore_patterns)
    for path in sorted(content_root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in CONTENT_EXTENSIONS:
            continue
        relative = path.relative_to(content_root)
        if _is_ignored(relative, patterns):
            logger.debug("source_ignored", path=str(relative))
            continue
        stat = path.stat()
        vcs_created, vcs_modified = git_dates(relative, content_root) if use_git else (None, None)
        yield SourceFile(
            storage_path=relative,
            raw=path.read_bytes(),
            fs_metadata=FileMetadata(
                created=_timestamp(getattr(stat, "st_birthtime", stat.st_ctime)),
                modified=_timestamp(stat.st_mtime),
                vcs_created=vcs_created,
                vcs_modified=vcs_modified,
            ),
        )


def load_documents(sources: Iterable[SourceFile]) -> list[Document]:
    """Build one :class:`Document` per source file.

    Raises :class:`~garden.errors.DuplicateSlugError` when two files map to
    the same slug, and :class:`~garden.errors.ConfigurationError` when a file
    is not valid UTF-8.
    """
    sources = list(sources)
    slugs = assign_slugs(src.storage_path for src in sources)
    by_path = {src.storage_path: src for src in sources}

    documents: list[Document] = []
    for slug, path in slugs.items():
        src = by_path[path]
        try:
            content = src.raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ConfigurationError(f"'{path}' is not valid UTF-8: {exc}") from exc
        frontmatter, body = parse_frontmatter(content)
        documents.append(
            Document(
                slug=slug,
                path=path,
                body=body,
                raw_frontmatter=frontmatter,
                tree=parse_tree(body),
                fs_metadata=src.fs_metadata,
                is_folder_index=is_index_path(path),
            )
        )
    logger.info("documents_loaded", count=len(documents))
    return documents
