"""Backlink listing: every document that links *to* a given document.

A plain-text view over :class:`~garden.graph.LinkGraph`; the graph view in
:mod:`garden.graph` reads the same edge set.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from garden.document import Document
from garden.graph import LinkGraph


def backlinks_listing(
    graph: LinkGraph,
    documents: Mapping[str, Document] | Iterable[Document],
    slug: str,
) -> list[dict[str, str]]:
    """Return ``{slug, title}`` dicts for documents linking to *slug*, sorted by slug."""
    by_slug = documents if isinstance(documents, Mapping) else {d.slug: d for d in documents}
    return [
        {"slug": source, "title": by_slug[source].title}
        for source in graph.backlinks(slug)
        if source in by_slug
    ]
