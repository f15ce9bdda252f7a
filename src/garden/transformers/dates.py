"""CreatedModifiedDate transformer: resolve created/modified/published dates.

Sources are consulted in priority order and the first one to supply a
given date wins:

* ``frontmatter``: ``date``/``created``, ``lastmod``/``updated``/``last-modified``,
  ``publishDate``/``published``
* ``filesystem``: creation time and mtime
* ``version_control``: first and last commit touching the file

Dates no source supplies stay ``None``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from garden.document import DateSource, DateStamp, Dates, Document
from garden.errors import ConfigurationError

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor


def _offer(current: DateStamp | None, value: datetime | None, source: DateSource) -> DateStamp | None:
    if current is not None or value is None:
        return current
    return DateStamp(value, source)


def assign_dates(document: Document, priority: Sequence[DateSource | str]) -> Dates:
    created = modified = published = None
    fm = document.frontmatter
    fs = document.fs_metadata
    for source in (DateSource(s) for s in priority):
        if source is DateSource.FRONTMATTER:
            created = _offer(created, fm.created, source)
            modified = _offer(modified, fm.modified, source)
            published = _offer(published, fm.published, source)
        elif source is DateSource.FILESYSTEM:
            created = _offer(created, fs.created, source)
            modified = _offer(modified, fs.modified, source)
        elif source is DateSource.VERSION_CONTROL:
            created = _offer(created, fs.vcs_created, source)
            modified = _offer(modified, fs.vcs_modified, source)
    return Dates(created=created, modified=modified, published=published)


@dataclass(frozen=True)
class CreatedModifiedDate:
    name: ClassVar[str] = "CreatedModifiedDate"

    #: Overrides ``settings.date_priority`` when given
    priority: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if self.priority is not None:
            try:
                object.__setattr__(self, "priority", tuple(DateSource(p).value for p in self.priority))
            except ValueError as exc:
                raise ConfigurationError(f"Unknown date source in {list(self.priority)!r}") from exc

    def transform(self, document: Document, ctx: "BuildContext") -> Document:
        priority = self.priority or ctx.settings.date_priority
        return replace(document, dates=assign_dates(document, priority))


def create_plugin(descriptor: "PluginDescriptor") -> CreatedModifiedDate:
    return CreatedModifiedDate(**descriptor.options)
