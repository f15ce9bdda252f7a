"""FolderPage emitter: a listing page for every non-root folder."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from html import escape
from typing import TYPE_CHECKING, ClassVar

from garden.document import Document
from garden.hierarchy import all_folders, folder_listing, is_tag_slug
from garden.pipeline import Artifact
from garden.render import items_under, render_body, render_list, render_page
from garden.slugs import path_segments

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor


def folder_page_path(folder: str) -> str:
    return f"{folder}/index.html"


@dataclass(frozen=True)
class FolderPage:
    name: ClassVar[str] = "FolderPage"

    show_folder_count: bool = True

    def emit(self, documents: Sequence[Document], ctx: "BuildContext") -> list[Artifact]:
        folders = set(all_folders(documents))
        folders.update(d.slug for d in documents if d.is_folder_index and d.slug)
        folders = {f for f in folders if not is_tag_slug(f)}

        artifacts = []
        for folder in sorted(folders):
            listing = folder_listing(documents, folder, date_type=ctx.settings.default_date_type)
            page_slug = f"{folder}/index"
            index = listing.index
            sections = []
            if self.show_folder_count:
                sections.append(f'<p class="content-meta">{escape(items_under(listing.count))}</p>')
            if index is not None and index.has_content:
                sections.append(render_body(index))
            sections.append(render_list(page_slug, listing.documents))
            title = index.title if index is not None else path_segments(folder)[-1]
            artifacts.append(
                Artifact.text(
                    folder_page_path(folder),
                    render_page(
                        slug=page_slug,
                        title=title,
                        settings=ctx.settings,
                        description=index.description if index is not None else None,
                        body="".join(sections),
                        css_classes=index.frontmatter.css_classes if index is not None else (),
                    ),
                    self.name,
                )
            )
        return artifacts


def create_plugin(descriptor: "PluginDescriptor") -> FolderPage:
    return FolderPage(**descriptor.options)
