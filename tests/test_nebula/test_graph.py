"""Unit tests for nebula.graph."""

from datetime import datetime, timezone

import pytest

from nebula.backlinks import backlinks_for
from nebula.graph import (
    Edge,
    TitleIndex,
    build_graph,
    build_graph_chart,
    find_title_collisions,
    to_networkx,
)
from nebula.note import Note
from nebula.scanner import extract_references

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _note(note_id: str, title: str, content: str = "") -> Note:
    return Note.create(title, content, note_id=note_id, now=T0)


# ---------------------------------------------------------------------------
# TitleIndex
# ---------------------------------------------------------------------------


class TestTitleIndex:
    def test_case_and_whitespace_insensitive(self):
        idx = TitleIndex.build([_note("b", "  Beta ")])
        assert idx.resolve("beta") == "b"
        assert idx.resolve(" BETA\t") == "b"

    def test_last_write_wins(self):
        idx = TitleIndex.build([_note("first", "Same"), _note("second", "same")])
        assert idx.resolve("Same") == "second"
        assert len(idx) == 1

    def test_blank_titles_not_indexed(self):
        idx = TitleIndex.build([_note("x", ""), _note("y", "   ")])
        assert len(idx) == 0
        assert idx.resolve("") is None
        assert idx.resolve("  ") is None

    def test_unknown_title(self):
        assert TitleIndex.build([_note("a", "A")]).resolve("B") is None


class TestTitleCollisions:
    def test_reports_shared_titles(self):
        notes = [_note("1", "Plan"), _note("2", " plan "), _note("3", "Other")]
        assert find_title_collisions(notes) == {"plan": ["1", "2"]}

    def test_collection_size_vs_index_size(self):
        notes = [_note("1", "Plan"), _note("2", "PLAN")]
        assert len(TitleIndex.build(notes)) < len(notes)

    def test_no_collisions(self):
        assert find_title_collisions([_note("1", "A"), _note("2", "B")]) == {}


# ---------------------------------------------------------------------------
# build_graph
# ---------------------------------------------------------------------------


class TestBuildGraph:
    def test_single_edge(self):
        notes = [_note("a", "A", "See [[B]]"), _note("b", "B")]
        graph = build_graph(notes)
        assert graph.edges == [Edge("a", "b")]
        assert graph.dangling == {}

    def test_only_dangling(self):
        graph = build_graph([_note("a", "Alpha", "Alpha #work links [[Beta]] and [[beta]]")])
        assert graph.edges == []
        assert graph.dangling == {"beta": 2}

    def test_multiplicity_preserved(self):
        notes = [_note("a", "A", "[[B]] [[b]] [[ B ]]"), _note("b", "B")]
        graph = build_graph(notes)
        assert graph.edges == [Edge("a", "b")] * 3
        assert graph.weighted_edges()[Edge("a", "b")] == 3

    def test_self_reference_kept(self):
        graph = build_graph([_note("a", "A", "I am [[a]]")])
        assert graph.edges == [Edge("a", "a")]

    def test_edge_order_follows_notes_then_markers(self):
        notes = [
            _note("a", "A", "[[C]] [[B]]"),
            _note("b", "B", "[[A]]"),
            _note("c", "C", "[[B]]"),
        ]
        assert build_graph(notes).edges == [
            Edge("a", "c"),
            Edge("a", "b"),
            Edge("b", "a"),
            Edge("c", "b"),
        ]

    def test_blank_reference_is_own_dangling_bucket(self):
        notes = [_note("a", "", "[[ ]] and [[]]"), _note("b", "   ")]
        graph = build_graph(notes)
        assert graph.edges == []
        assert graph.dangling == {"": 2}

    def test_duplicate_titles_resolve_to_last(self):
        notes = [_note("1", "Dup"), _note("2", "dup"), _note("s", "S", "[[DUP]]")]
        assert build_graph(notes).edges == [Edge("s", "2")]

    def test_empty_collection(self):
        graph = build_graph([])
        assert graph.edges == []
        assert graph.dangling == {}
        assert graph.reference_count == 0

    def test_outgoing_and_incoming(self):
        notes = [_note("a", "A", "[[B]] [[C]]"), _note("b", "B", "[[C]]"), _note("c", "C")]
        graph = build_graph(notes)
        assert graph.outgoing("a") == ["b", "c"]
        assert graph.incoming("c") == ["a", "b"]


class TestTopDangling:
    def test_sorted_by_count_then_first_seen(self):
        notes = [_note("a", "A", "[[x]] [[y]] [[y]] [[z]] [[w]] [[w]]")]
        graph = build_graph(notes)
        assert graph.top_dangling() == [("y", 2), ("w", 2), ("x", 1), ("z", 1)]

    def test_limit(self):
        notes = [_note("a", "A", " ".join(f"[[n{i}]]" for i in range(30)))]
        assert len(build_graph(notes).top_dangling(20)) == 20
        assert len(build_graph(notes).top_dangling(None)) == 30


# ---------------------------------------------------------------------------
# Properties over sample collections
# ---------------------------------------------------------------------------

COLLECTIONS = [
    [],
    [_note("a", "A", "See [[B]]"), _note("b", "B")],
    [_note("a", "Alpha", "Alpha #work links [[Beta]] and [[beta]]")],
    [
        _note("a", "Alpha", "[[beta]] [[Gamma]] [[missing]] [[ ]]"),
        _note("b", "Beta", "[[alpha]] [[ALPHA]] [[beta]]"),
        _note("g", "gamma", "```\n[[alpha]]\n```"),
        _note("u", "", "[[Beta]] [[]]"),
    ],
    [
        _note("1", "Dup", "[[dup]]"),
        _note("2", "DUP", "[[x]]"),
        _note("3", "X", "[[Dup]] [[Dup]]"),
    ],
]


@pytest.mark.parametrize("notes", COLLECTIONS)
def test_backlinks_agree_with_edges(notes):
    graph = build_graph(notes)
    edge_set = set(graph.edges)
    for target in notes:
        backlinked = {n.id for n in backlinks_for(target, notes, None)}
        for source in notes:
            if source.id == target.id:
                continue
            assert (source.id in backlinked) == (Edge(source.id, target.id) in edge_set)


@pytest.mark.parametrize("notes", COLLECTIONS)
def test_every_marker_is_an_edge_or_dangling(notes):
    graph = build_graph(notes)
    total = sum(len(extract_references(n.content)) for n in notes)
    assert len(graph.edges) + sum(graph.dangling.values()) == total
    assert graph.reference_count == total
    assert all(count >= 1 for count in graph.dangling.values())


def test_blank_reference_never_resolves_even_with_blank_titled_notes():
    notes = [_note("a", "", "[[ ]]"), _note("b", " ", "[[]]")]
    graph = build_graph(notes)
    assert graph.edges == []
    assert graph.dangling == {"": 2}


# ---------------------------------------------------------------------------
# Chart
# ---------------------------------------------------------------------------


class TestToNetworkx:
    def test_weight_is_reference_count(self):
        notes = [_note("a", "A", "[[B]] [[B]]"), _note("b", "B")]
        G = to_networkx(notes)
        assert set(G.nodes) == {"a", "b"}
        assert G["a"]["b"]["weight"] == 2

    def test_display_title_on_nodes(self):
        G = to_networkx([_note("u", "  ")])
        assert G.nodes["u"]["title"] == "Untitled"


class TestBuildGraphChart:
    def test_returns_altair_chart(self):
        import altair as alt

        notes = [_note("a", "Note A", "[[Note B]]"), _note("b", "Note B", "[[Note A]]")]
        assert isinstance(build_graph_chart(notes), alt.LayerChart)

    def test_chart_json_contains_titles(self):
        notes = [_note("a", "Note A", "[[Note B]]"), _note("b", "Note B")]
        chart_json = build_graph_chart(notes, highlight="a").to_json()
        assert "Note A" in chart_json
        assert "highlighted" in chart_json

    def test_empty_collection_does_not_raise(self):
        build_graph_chart([])

    def test_custom_dimensions(self):
        chart_json = build_graph_chart([_note("a", "A")], width=800, height=400).to_json()
        assert "800" in chart_json
        assert "400" in chart_json
