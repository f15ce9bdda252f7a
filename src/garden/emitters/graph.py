"""GraphData emitter: link graph as JSON and as an Altair/Vega-Lite chart."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from garden.document import Document
from garden.graph import build_graph_spec, graph_data, graph_view
from garden.pipeline import Artifact

if TYPE_CHECKING:
    from garden.pipeline import BuildContext
    from garden.plugin import PluginDescriptor


@dataclass(frozen=True)
class GraphData:
    name: ClassVar[str] = "GraphData"

    seed: int = 42
    chart: bool = True

    def emit(self, documents: Sequence[Document], ctx: "BuildContext") -> list[Artifact]:
        view = graph_view(
            ctx.require_graph(),
            documents,
            include_tags=ctx.settings.graph_include_tag_nodes,
            include_folders=ctx.settings.graph_include_folder_nodes,
        )
        artifacts = [
            Artifact.text(
                "static/graph.json",
                json.dumps(graph_data(view, seed=self.seed), ensure_ascii=False, indent=2),
                self.name,
            )
        ]
        if self.chart:
            spec = build_graph_spec(view, seed=self.seed)
            artifacts.append(Artifact.text("static/graph.vl.json", spec.to_json(), self.name))
        return artifacts


def create_plugin(descriptor: "PluginDescriptor") -> GraphData:
    return GraphData(**descriptor.options)
