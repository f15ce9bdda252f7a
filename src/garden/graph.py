"""Link graph: directed edges between documents and their inverse (backlinks).

The graph is built once per build from the ``links`` each document carries
after link crawling. Backlink listings and the interactive graph view are
both read from the same :class:`LinkGraph`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from garden.document import Document
from garden.slugs import SEP, folder_of, path_segments

if TYPE_CHECKING:
    import altair as alt
    import networkx as nx


# ---------------------------------------------------------------------------
# Link graph
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LinkGraph:
    """Edge list plus two indices (by source, by target).

    ``edges`` holds each ``(source, target)`` pair once, sorted; edges whose
    target is not a document in the set are kept apart in ``dangling``.
    """

    nodes: tuple[str, ...]
    edges: tuple[tuple[str, str], ...]
    dangling: tuple[tuple[str, str], ...]
    by_source: Mapping[str, tuple[str, ...]]
    by_target: Mapping[str, tuple[str, ...]]

    def outlinks(self, slug: str) -> tuple[str, ...]:
        return self.by_source.get(slug, ())

    def backlinks(self, slug: str) -> tuple[str, ...]:
        """Slugs of documents linking to *slug*, sorted, self-links excluded."""
        return self.by_target.get(slug, ())

    def __contains__(self, slug: object) -> bool:
        return slug in self.by_source


def build_link_graph(documents: Iterable[Document]) -> LinkGraph:
    documents = list(documents)
    nodes = tuple(sorted(d.slug for d in documents))
    present = set(nodes)

    edges: set[tuple[str, str]] = set()
    dangling: set[tuple[str, str]] = set()
    for doc in documents:
        for target in doc.links:
            (edges if target in present else dangling).add((doc.slug, target))

    by_source: dict[str, list[str]] = {slug: [] for slug in nodes}
    by_target: dict[str, list[str]] = {slug: [] for slug in nodes}
    for source, target in sorted(edges):
        by_source[source].append(target)
        if source != target:
            by_target[target].append(source)

    return LinkGraph(
        nodes=nodes,
        edges=tuple(sorted(edges)),
        dangling=tuple(sorted(dangling)),
        by_source={k: tuple(v) for k, v in by_source.items()},
        by_target={k: tuple(v) for k, v in by_target.items()},
    )


# ---------------------------------------------------------------------------
# Graph view
# ---------------------------------------------------------------------------


def graph_view(
    graph: LinkGraph,
    documents: Iterable[Document],
    *,
    include_tags: bool = False,
    include_folders: bool = False,
) -> "nx.DiGraph":
    """Return a :class:`networkx.DiGraph` over *graph*.

    Document nodes and link edges always appear. Tag nodes (``tags/<tag>``)
    and folder nodes are added on request; a node whose id matches a
    document slug is that document.
    """
    import networkx as nx

    docs = {d.slug: d for d in documents}
    view: nx.DiGraph = nx.DiGraph()
    for slug in graph.nodes:
        doc = docs.get(slug)
        view.add_node(slug, title=doc.title if doc else slug, kind="document")
    for source, target in graph.edges:
        view.add_edge(source, target, kind="link")

    if include_tags:
        for slug in graph.nodes:
            for tag in docs[slug].tags if slug in docs else ():
                node = f"tags{SEP}{tag}"
                if node not in view:
                    view.add_node(node, title=f"#{tag}", kind="tag")
                view.add_edge(slug, node, kind="tag")

    if include_folders:
        for slug in graph.nodes:
            child = slug
            while child:
                parent = folder_of(child)
                if not parent:
                    break
                if parent not in view:
                    view.add_node(parent, title=path_segments(parent)[-1], kind="folder")
                view.add_edge(parent, child, kind="folder")
                child = parent
    return view


def graph_data(view: "nx.DiGraph", *, seed: int = 42) -> dict[str, Any]:
    """Serialisable nodes (with layout positions) and edges for *view*."""
    import networkx as nx

    pos = nx.spring_layout(view, seed=seed, k=2.0) if len(view) else {}
    nodes = [
        {
            "id": node,
            "title": attrs.get("title", node),
            "kind": attrs.get("kind", "document"),
            "degree": int(view.degree(node)),
            "x": round(float(pos[node][0]), 4),
            "y": round(float(pos[node][1]), 4),
        }
        for node, attrs in sorted(view.nodes(data=True))
    ]
    links = [
        {"source": source, "target": target, "kind": attrs.get("kind", "link")}
        for source, target, attrs in sorted(view.edges(data=True))
    ]
    return {"nodes": nodes, "links": links}


def build_graph_spec(
    view: "nx.DiGraph",
    *,
    highlight: str | None = None,
    width: int = 640,
    height: int = 480,
    seed: int = 42,
) -> "alt.LayerChart":
    """Return an Altair chart of *view*.

    Parameters
    ----------
    view:
        Graph returned by :func:`graph_view`.
    highlight:
        Slug rendered in a distinct colour.
    width / height:
        Canvas dimensions in pixels.
    seed:
        Random seed for ``networkx.spring_layout``.
    """
    import altair as alt
    import polars as pl

    data = graph_data(view, seed=seed)
    positions = {n["id"]: (n["x"], n["y"]) for n in data["nodes"]}

    nodes_df = pl.DataFrame(
        [{**n, "highlighted": n["id"] == highlight} for n in data["nodes"]]
        or [{"id": "", "title": "", "kind": "document", "degree": 0, "x": 0.0, "y": 0.0, "highlighted": False}]
    )
    edge_rows = [
        {
            "x": positions[e["source"]][0],
            "y": positions[e["source"]][1],
            "x2": positions[e["target"]][0],
            "y2": positions[e["target"]][1],
            "source": e["source"],
            "target": e["target"],
        }
        for e in data["links"]
    ]

    if edge_rows:
        edge_layer = (
            alt.Chart(pl.DataFrame(edge_rows))
            .mark_rule(color="#888", strokeWidth=1, opacity=0.55)
            .encode(
                x=alt.X("x:Q", axis=None),
                y=alt.Y("y:Q", axis=None),
                x2="x2:Q",
                y2="y2:Q",
                tooltip=[alt.Tooltip("source:N", title="from"), alt.Tooltip("target:N", title="to")],
            )
        )
    else:
        edge_layer = alt.Chart(pl.DataFrame({"x": [0.0], "y": [0.0], "x2": [0.0], "y2": [0.0]})).mark_rule(
            opacity=0
        )

    node_layer = (
        alt.Chart(nodes_df)
        .mark_circle(opacity=0.9)
        .encode(
            x=alt.X("x:Q", axis=None),
            y=alt.Y("y:Q", axis=None),
            size=alt.Size("degree:Q", scale=alt.Scale(range=[80, 400]), legend=None),
            color=alt.condition(
                alt.datum["highlighted"],
                alt.value("#d7827e"),
                alt.value("#286983"),
            ),
            tooltip=[alt.Tooltip("title:N", title="page"), alt.Tooltip("id:N", title="slug")],
        )
    )

    label_layer = (
        alt.Chart(nodes_df)
        .mark_text(dy=-12, fontSize=11)
        .encode(
            x=alt.X("x:Q", axis=None),
            y=alt.Y("y:Q", axis=None),
            text="title:N",
            opacity=alt.condition(alt.datum["highlighted"], alt.value(1.0), alt.value(0.65)),
        )
    )

    return (
        (edge_layer + node_layer + label_layer)
        .properties(width=width, height=height)
        .configure_view(strokeWidth=0)
    )
