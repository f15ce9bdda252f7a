"""TagPage emitter: one page per expanded tag plus the ``tags`` root index."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from html import escape
from typing import TYPE_CHECKING, ClassVar

from garden.document import Document
from garden.hierarchy import TAG_ROOT, TagListing, all_tags, locale_sort_key, tag_index, tag_listing
from garden.pipeline import Artifact
from garden.render import items_under, render_body, render_list, render_page, showing_first

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor


def tag_page_path(tag: str) -> str:
    return f"{TAG_ROOT}/{tag}/index.html" if tag else f"{TAG_ROOT}/index.html"


def _count_line(listing: TagListing) -> str:
    if listing.truncated:
        text = showing_first(listing.shown, listing.total)
    else:
        text = items_under(listing.total, "tag")
    return f'<p class="content-meta">{escape(text)}</p>'


@dataclass(frozen=True)
class TagPage:
    name: ClassVar[str] = "TagPage"

    def emit(self, documents: Sequence[Document], ctx: "BuildContext") -> list[Artifact]:
        settings = ctx.settings
        date_type = settings.default_date_type
        prefix = TAG_ROOT + "/"
        tags = set(all_tags(documents))
        tags.update(d.slug[len(prefix) :] for d in documents if d.slug.startswith(prefix))

        artifacts = [self._root_page(documents, ctx)]
        for tag in sorted(tags, key=locale_sort_key):
            listing = tag_listing(documents, tag, date_type=date_type)
            page_slug = f"{TAG_ROOT}/{tag}/index"
            sections = [_count_line(listing)]
            if listing.index is not None and listing.index.has_content:
                sections.append(render_body(listing.index))
            sections.append(render_list(page_slug, listing.documents))
            title = listing.index.title if listing.index is not None else f"Tag: {tag}"
            artifacts.append(
                Artifact.text(
                    tag_page_path(tag),
                    render_page(
                        slug=page_slug,
                        title=title,
                        settings=settings,
                        description=listing.description,
                        body="".join(sections),
                    ),
                    self.name,
                )
            )
        return artifacts

    def _root_page(self, documents: Sequence[Document], ctx: "BuildContext") -> Artifact:
        settings = ctx.settings
        page_slug = f"{TAG_ROOT}/index"
        root = next((d for d in documents if d.slug == TAG_ROOT), None)
        listings = tag_index(documents, cap=settings.tag_display_cap, date_type=settings.default_date_type)

        count = len(listings)
        sections = [f'<p class="content-meta">{count} tag{"" if count == 1 else "s"} in total.</p>']
        if root is not None and root.has_content:
            sections.append(render_body(root))
        for listing in listings:
            section = [_count_line(listing), f'<h2 class="article-title">{escape(listing.tag)}</h2>']
            if listing.index is not None and listing.index.has_content:
                section.append(f'<div class="article-description">{render_body(listing.index)}</div>')
            elif listing.description:
                section.append(f'<p class="article-description">{escape(listing.description)}</p>')
            section.append(render_list(page_slug, listing.documents))
            sections.append('<div class="page-listing-section">' + "".join(section) + "</div>")

        return Artifact.text(
            tag_page_path(""),
            render_page(
                slug=page_slug,
                title=root.title if root is not None else "Tag Index",
                settings=settings,
                description=root.description if root is not None else None,
                body="".join(sections),
            ),
            self.name,
        )


def create_plugin(descriptor: "PluginDescriptor") -> TagPage:
    return TagPage(**descriptor.options)
