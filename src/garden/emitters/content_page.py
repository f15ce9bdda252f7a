"""ContentPage emitter: one HTML page per document, with its backlinks."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from html import escape
from typing import TYPE_CHECKING, ClassVar

from garden.backlinks import backlinks_listing
from garden.document import Document
from garden.hierarchy import is_tag_slug, tag_slug
from garden.pipeline import Artifact
from garden.render import href, page_path, render_body, render_page

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor


def renders_elsewhere(document: Document) -> bool:
    """Folder indexes and tag documents are rendered by the folder and tag pages."""
    if is_tag_slug(document.slug):
        return True
    return document.is_folder_index and document.slug != ""


def content_meta(document: Document, date_type: str) -> str:
    parts = []
    stamp = document.dates.get(date_type)
    if stamp is not None:
        parts.append(f"Created {stamp.value.date().isoformat()}")
    if document.dates.modified is not None and date_type != "modified":
        parts.append(f"Updated {document.dates.modified.value.date().isoformat()}")
    if document.body.strip():
        parts.append(f"{document.reading_minutes} min read")
    return '<p class="content-meta">' + escape(" • ".join(parts)) + "</p>" if parts else ""


@dataclass(frozen=True)
class ContentPage:
    name: ClassVar[str] = "ContentPage"

    show_backlinks: bool = True

    def emit(self, documents: Sequence[Document], ctx: "BuildContext") -> list[Artifact]:
        graph = ctx.require_graph()
        settings = ctx.settings
        by_slug = {d.slug: d for d in documents}
        artifacts = []
        for doc in documents:
            if renders_elsewhere(doc):
                continue
            sections = [content_meta(doc, settings.default_date_type)]
            if doc.description and doc.frontmatter.description:
                sections.append(f'<p class="article-description">{escape(doc.description)}</p>')
            if doc.tags:
                sections.append(
                    '<ul class="tags">'
                    + "".join(
                        f'<li><a class="tag-link" href="{escape(href(doc.slug, tag_slug(t) + "/index"))}">'
                        f"#{escape(t)}</a></li>"
                        for t in doc.tags
                    )
                    + "</ul>"
                )
            sections.append(render_body(doc))
            if self.show_backlinks:
                entries = backlinks_listing(graph, by_slug, doc.slug)
                items = "".join(
                    f'<li><a href="{escape(href(doc.slug, e["slug"]))}">{escape(e["title"])}</a></li>'
                    for e in entries
                )
                sections.append(f'<div class="backlinks"><h3>Backlinks</h3><ul>{items}</ul></div>')
            artifacts.append(
                Artifact.text(
                    page_path(doc.slug),
                    render_page(
                        slug=doc.slug,
                        title=doc.title,
                        settings=settings,
                        description=doc.description,
                        body="".join(sections),
                        css_classes=doc.frontmatter.css_classes,
                    ),
                    self.name,
                )
            )
        return artifacts


def create_plugin(descriptor: "PluginDescriptor") -> ContentPage:
    return ContentPage(**descriptor.options)
