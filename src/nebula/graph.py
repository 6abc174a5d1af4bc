"""Reference graph over a note snapshot.

:func:`build_graph` resolves every ``[[marker]]`` in the collection against a
title index and returns the edge list plus a count of dangling references.
The chart helpers at the bottom lay the graph out with :mod:`networkx` and
draw it with :mod:`altair`.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, NamedTuple, Sequence

from nebula.scanner import extract_references, normalize_title

if TYPE_CHECKING:
    import altair as alt
    import networkx as nx

    from nebula.note import Note

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Title resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TitleIndex:
    """Normalized title -> note id.

    When two notes share a normalized title the later one wins.  Notes with a
    blank title are left out, so a blank target never resolves.
    """

    ids: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, notes: Iterable["Note"]) -> "TitleIndex":
        ids: dict[str, str] = {}
        for note in notes:
            key = normalize_title(note.title)
            if key:
                ids[key] = note.id
        return cls(ids)

    def resolve(self, target: str) -> str | None:
        key = normalize_title(target)
        return self.ids.get(key) if key else None

    def __len__(self) -> int:
        return len(self.ids)


def find_title_collisions(notes: Iterable["Note"]) -> dict[str, list[str]]:
    """Normalized titles claimed by more than one note, with the claiming ids."""
    claims: dict[str, list[str]] = {}
    for note in notes:
        key = normalize_title(note.title)
        if key:
            claims.setdefault(key, []).append(note.id)
    return {title: ids for title, ids in claims.items() if len(ids) > 1}


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------


class Edge(NamedTuple):
    source: str
    target: str


@dataclass(frozen=True)
class ReferenceGraph:
    edges: list[Edge]
    #: normalized target title -> number of markers pointing at it
    dangling: dict[str, int]

    @property
    def reference_count(self) -> int:
        return len(self.edges) + sum(self.dangling.values())

    def weighted_edges(self) -> Counter[Edge]:
        return Counter(self.edges)

    def top_dangling(self, limit: int | None = 20) -> list[tuple[str, int]]:
        """Dangling titles by descending count; ties keep first-seen order."""
        ranked = sorted(self.dangling.items(), key=lambda item: -item[1])
        return ranked if limit is None else ranked[:limit]

    def outgoing(self, note_id: str) -> list[str]:
        return [e.target for e in self.edges if e.source == note_id]

    def incoming(self, note_id: str) -> list[str]:
        return [e.source for e in self.edges if e.target == note_id]


def build_graph(notes: Sequence["Note"], titles: TitleIndex | None = None) -> ReferenceGraph:
    """Resolve every reference marker in *notes*.

    Edges follow note order, then marker order inside a note.  Duplicate
    markers produce duplicate edges; self-references are kept.
    """
    titles = titles if titles is not None else TitleIndex.build(notes)
    edges: list[Edge] = []
    dangling: dict[str, int] = {}
    for note in notes:
        for target in extract_references(note.content):
            resolved = titles.resolve(target)
            if resolved is not None:
                edges.append(Edge(note.id, resolved))
            else:
                key = normalize_title(target)
                dangling[key] = dangling.get(key, 0) + 1
    log.debug(
        "Built reference graph: notes=%d edges=%d dangling_titles=%d",
        len(notes),
        len(edges),
        len(dangling),
    )
    return ReferenceGraph(edges=edges, dangling=dangling)


# ---------------------------------------------------------------------------
# Chart
# ---------------------------------------------------------------------------


def to_networkx(notes: Sequence["Note"], graph: ReferenceGraph | None = None) -> "nx.DiGraph":
    """Directed graph with one node per note and ``weight`` = marker count."""
    import networkx as nx

    graph = graph if graph is not None else build_graph(notes)
    G: nx.DiGraph = nx.DiGraph()
    for note in notes:
        G.add_node(note.id, title=note.display_title)
    for edge, count in graph.weighted_edges().items():
        G.add_edge(edge.source, edge.target, weight=count)
    return G


def build_graph_chart(
    notes: Sequence["Note"],
    *,
    graph: ReferenceGraph | None = None,
    highlight: str | None = None,
    width: int = 640,
    height: int = 480,
    seed: int = 42,
) -> "alt.LayerChart":
    """Return an Altair chart of the reference graph.

    Parameters
    ----------
    notes:
        The snapshot to draw.
    graph:
        A graph already built from *notes*; built here when omitted.
    highlight:
        Id of the selected note (drawn in a distinct colour).
    width / height:
        Canvas dimensions in pixels.
    seed:
        Seed for ``networkx.spring_layout`` so the layout is reproducible.
    """
    import altair as alt
    import networkx as nx
    import polars as pl

    G = to_networkx(notes, graph)
    pos: dict[str, Any] = nx.spring_layout(G, seed=seed, k=2.0) if len(G) else {}

    nodes_df = pl.DataFrame(
        [
            {
                "id": node_id,
                "title": G.nodes[node_id]["title"],
                "x": float(pos[node_id][0]),
                "y": float(pos[node_id][1]),
                "degree": int(G.degree(node_id, weight="weight")),
                "highlighted": node_id == highlight,
            }
            for node_id in G.nodes()
        ]
        or [{"id": "", "title": "", "x": 0.0, "y": 0.0, "degree": 0, "highlighted": False}]
    )

    edge_rows: list[dict[str, Any]] = [
        {
            "x": float(pos[src][0]),
            "y": float(pos[src][1]),
            "x2": float(pos[tgt][0]),
            "y2": float(pos[tgt][1]),
            "source": G.nodes[src]["title"],
            "target": G.nodes[tgt]["title"],
            "weight": int(data["weight"]),
        }
        for src, tgt, data in G.edges(data=True)
    ]

    if edge_rows:
        edge_layer = (
            alt.Chart(pl.DataFrame(edge_rows))
            .mark_rule(color="#888", opacity=0.55)
            .encode(
                x=alt.X("x:Q", axis=None),
                y=alt.Y("y:Q", axis=None),
                x2="x2:Q",
                y2="y2:Q",
                strokeWidth=alt.StrokeWidth("weight:Q", scale=alt.Scale(range=[1, 4]), legend=None),
                tooltip=[
                    alt.Tooltip("source:N", title="from"),
                    alt.Tooltip("target:N", title="to"),
                    alt.Tooltip("weight:Q", title="references"),
                ],
            )
        )
    else:
        edge_layer = alt.Chart(
            pl.DataFrame({"x": [0.0], "y": [0.0], "x2": [0.0], "y2": [0.0]})
        ).mark_rule(opacity=0)

    node_layer = (
        alt.Chart(nodes_df)
        .mark_circle(opacity=0.9)
        .encode(
            x=alt.X("x:Q", axis=None),
            y=alt.Y("y:Q", axis=None),
            size=alt.Size("degree:Q", scale=alt.Scale(range=[80, 400]), legend=None),
            color=alt.condition(
                alt.datum["highlighted"],
                alt.value("#7C3AED"),
                alt.value("#4B90D9"),
            ),
            tooltip=[alt.Tooltip("title:N", title="note"), alt.Tooltip("id:N", title="id")],
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
