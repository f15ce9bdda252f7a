"""Bare HTML rendering used by the built-in emitters.

Presentation is not the pipeline's concern; these helpers produce plain,
escaped markup that a theme can restyle.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from html import escape
from typing import TYPE_CHECKING

from garden.document import Document
from garden.slugs import join_segments, path_to_root

if TYPE_CHECKING:
    from garden.config import SiteSettings

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")


def page_path(slug: str) -> str:
    """Output path of the content page for *slug*."""
    return f"{slug}.html" if slug else "index.html"


def href(from_slug: str, to_slug: str) -> str:
    """Relative link from the page rendered at *from_slug* to *to_slug*'s page."""
    return join_segments(path_to_root(from_slug), page_path(to_slug))


def render_body(document: Document) -> str:
    blocks: list[str] = []
    for block in getattr(document.tree, "children", ()) or ():
        match = _HEADING_RE.match(str(block))
        if match:
            level = len(match.group(1))
            blocks.append(f"<h{level}>{escape(match.group(2))}</h{level}>")
        else:
            blocks.append(f"<p>{escape(str(block))}</p>")
    return "\n".join(blocks)


def render_list(page_slug: str, documents: Iterable[Document], *, show_tags: bool = True) -> str:
    items = []
    for doc in documents:
        tags = ""
        if show_tags and doc.tags:
            tags = " " + " ".join(f'<span class="tag">#{escape(t)}</span>' for t in doc.tags)
        items.append(f'<li><a href="{escape(href(page_slug, doc.slug))}">{escape(doc.title)}</a>{tags}</li>')
    return '<ul class="page-listing">' + "".join(items) + "</ul>"


def items_under(count: int, noun: str = "folder") -> str:
    return f"{count} item{'' if count == 1 else 's'} under this {noun}."


def showing_first(shown: int, total: int) -> str:
    return f"Showing first {shown} of {total} items."


def render_page(
    *,
    slug: str,
    title: str,
    settings: "SiteSettings",
    description: str | None = None,
    body: str = "",
    css_classes: Sequence[str] = (),
) -> str:
    classes = " ".join(["popover-hint", *css_classes])
    head = [
        '<meta charset="utf-8">',
        f"<title>{escape(title)}</title>",
        f'<meta name="description" content="{escape((description or "").strip())}">',
    ]
    if settings.base_url:
        base = settings.base_url.rstrip("/")
        head.append(f'<link rel="sitemap" href="https://{escape(base)}/sitemap.xml">')
        head.append(
            f'<link rel="alternate" type="application/rss+xml" title="RSS Feed" href="https://{escape(base)}/index.xml">'
        )
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{escape(settings.locale)}"><head>{"".join(head)}</head>'
        f'<body data-slug="{escape(slug)}"><div class="{escape(classes)}">'
        f'<article><h1 class="article-title">{escape(title)}</h1>{body}</article>'
        "</div></body></html>\n"
    )
