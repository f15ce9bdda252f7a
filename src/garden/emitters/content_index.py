"""ContentIndex emitter: sitemap, RSS feed and the JSON content index."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from garden.content_index import build_content_index, render_rss, render_sitemap
from garden.document import Document
from garden.pipeline import Artifact

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor


@dataclass(frozen=True)
class ContentIndex:
    name: ClassVar[str] = "ContentIndex"

    enable_sitemap: bool = True
    enable_rss: bool = True

    def emit(self, documents: Sequence[Document], ctx: "BuildContext") -> list[Artifact]:
        settings = ctx.settings
        graph = ctx.require_graph()
        entries = build_content_index(documents, settings, full_content=False)

        index = {
            e.slug: {**e.to_dict(), "links": list(graph.outlinks(e.slug))}
            for e in entries
        }
        artifacts = [
            Artifact.text(
                "static/contentIndex.json",
                json.dumps(index, ensure_ascii=False, indent=2),
                self.name,
            )
        ]
        if self.enable_sitemap:
            artifacts.append(Artifact.text("sitemap.xml", render_sitemap(entries, settings.base_url), self.name))
        if self.enable_rss:
            feed = build_content_index(documents, settings, limit=settings.rss_limit)
            artifacts.append(Artifact.text("index.xml", render_rss(feed, settings), self.name))
        return artifacts


def create_plugin(descriptor: "PluginDescriptor") -> ContentIndex:
    return ContentIndex(**descriptor.options)
