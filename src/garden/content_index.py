"""Global content index: one immutable entry per document, newest first.

Feeds the sitemap, the RSS feed, the JSON search index and recent-page
lists.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from garden.document import DateSource, Document
from garden.render import render_body
from garden.transformers.dates import assign_dates

if TYPE_CHECKING:
    import polars as pl

    from garden.config import SiteSettings


@dataclass(frozen=True)
class ContentIndexEntry:
    slug: str
    title: str
    description: str | None
    tags: tuple[str, ...]
    date: datetime | None
    excerpt: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "date": self.date.isoformat() if self.date else None,
        }


def resolve_date(
    document: Document,
    date_type: str = "created",
    priority: Sequence[DateSource] | None = None,
) -> datetime | None:
    """The document's *date_type* date.

    Uses the dates assigned by the date transformer; when none were assigned
    and *priority* is given, they are derived on the spot with the same rules.
    """
    stamp = document.dates.get(date_type)
    if stamp is None and priority:
        stamp = assign_dates(document, priority).get(date_type)
    return stamp.value if stamp else None


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _order_key(entry: ContentIndexEntry) -> tuple[int, float, str]:
    if entry.date is None:
        return (1, 0.0, entry.slug)
    return (0, -_as_utc(entry.date).timestamp(), entry.slug)


def build_content_index(
    documents: Iterable[Document],
    settings: "SiteSettings",
    *,
    limit: int | None = None,
    full_content: bool | None = None,
) -> tuple[ContentIndexEntry, ...]:
    """Snapshot *documents* into entries ordered by date desc, slug asc.

    Documents with an empty body are skipped unless
    ``settings.include_empty_documents_in_index``; *full_content* (default
    ``settings.rss_full_content``) attaches the rendered body as ``excerpt``.
    """
    if full_content is None:
        full_content = settings.rss_full_content
    entries = [
        ContentIndexEntry(
            slug=doc.slug,
            title=doc.title,
            description=doc.description,
            tags=doc.tags,
            date=resolve_date(doc, settings.default_date_type),
            excerpt=render_body(doc) if full_content else None,
        )
        for doc in documents
        if settings.include_empty_documents_in_index or doc.body.strip()
    ]
    entries.sort(key=_order_key)
    if limit is not None:
        entries = entries[:limit]
    return tuple(entries)


def to_frame(entries: Sequence[ContentIndexEntry]) -> "pl.DataFrame":
    """Return *entries* as a Polars DataFrame (one row per entry, index order kept)."""
    import polars as pl

    return pl.DataFrame(
        {
            "slug": [e.slug for e in entries],
            "title": [e.title for e in entries],
            "description": [e.description for e in entries],
            "tags": [list(e.tags) for e in entries],
            "date": [_as_utc(e.date) if e.date else None for e in entries],
        },
        schema={
            "slug": pl.Utf8,
            "title": pl.Utf8,
            "description": pl.Utf8,
            "tags": pl.List(pl.Utf8),
            "date": pl.Datetime(time_zone="UTC"),
        },
    )


# ---------------------------------------------------------------------------
# Serialisers
# ---------------------------------------------------------------------------


def page_url(base_url: str | None, slug: str) -> str:
    base = (base_url or "example.com").rstrip("/")
    return f"https://{base}/{quote(slug)}"


def render_sitemap(entries: Iterable[ContentIndexEntry], base_url: str | None) -> str:
    urlset = ET.Element("urlset", xmlns="http://www.sitemaps.org/schemas/sitemap/0.9")
    for entry in entries:
        url = ET.SubElement(urlset, "url")
        ET.SubElement(url, "loc").text = page_url(base_url, entry.slug)
        if entry.date:
            ET.SubElement(url, "lastmod").text = _as_utc(entry.date).date().isoformat()
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(urlset, encoding="unicode")


def render_rss(entries: Iterable[ContentIndexEntry], settings: "SiteSettings") -> str:
    rss = ET.Element("rss", version="2.0")
    channel = ET.SubElement(rss, "channel")
    ET.SubElement(channel, "title").text = settings.page_title
    ET.SubElement(channel, "link").text = page_url(settings.base_url, "")
    ET.SubElement(channel, "description").text = f"Recent content on {settings.page_title}"
    for entry in entries:
        item = ET.SubElement(channel, "item")
        ET.SubElement(item, "title").text = entry.title
        ET.SubElement(item, "link").text = page_url(settings.base_url, entry.slug)
        ET.SubElement(item, "guid").text = page_url(settings.base_url, entry.slug)
        ET.SubElement(item, "description").text = entry.excerpt or entry.description or ""
        if entry.date:
            ET.SubElement(item, "pubDate").text = format_datetime(_as_utc(entry.date))
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(rss, encoding="unicode")
