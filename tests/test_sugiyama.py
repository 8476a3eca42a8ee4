"""Tests for engines/sugiyama.py — the default layered layout engine.

Pipeline phases covered:
  - greedy_fas_ordering / remove_cycles
  - LayerAssignment (minlen + source tightening)
  - insert_dummy_nodes
  - count_crossings / minimise_crossings (weighted barycenter)
  - SugiyamaLayoutEngine.compute_layout (TB + LR, margins, separation)
"""

from __future__ import annotations

import networkx as nx
import pytest

from tierlayout.config import Direction, LayoutConfig
from tierlayout.engines.sugiyama import (
    DUMMY_PREFIX,
    AugmentedGraph,
    LayerAssignment,
    SugiyamaLayoutEngine,
    build_graph,
    count_crossings,
    greedy_fas_ordering,
    insert_dummy_nodes,
    minimise_crossings,
    remove_cycles,
)
from tierlayout.types import SizedNode, WeightedEdge

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_graph(*edges: tuple[str, str], minlen: int = 1, weight: int = 1) -> nx.DiGraph:
    """Build a DiGraph from (src, tgt) pairs with uniform edge attributes."""
    g: nx.DiGraph = nx.DiGraph()
    for src, tgt in edges:
        for node in (src, tgt):
            if node not in g:
                g.add_node(node, width=10.0, height=10.0, registered=True)
        g.add_edge(src, tgt, weight=weight, minlen=minlen)
    return g


def make_augmented_graph(edges: list[tuple[str, str]], layers: dict[str, int]) -> AugmentedGraph:
    """Build a minimal AugmentedGraph from (src, tgt) edges and explicit layers."""
    g: nx.DiGraph = nx.DiGraph()
    for nid in layers:
        g.add_node(nid, width=10.0, height=10.0, registered=True, dummy=False)
    for src, tgt in edges:
        g.add_edge(src, tgt, weight=1, minlen=1)
    layer_count = (max(layers.values()) + 1) if layers else 0
    return AugmentedGraph(graph=g, layers=layers, layer_count=layer_count)


def sized(node_id: str, width: float = 200, height: float = 60) -> SizedNode:
    return SizedNode(id=node_id, width=width, height=height)


def weighted(src: str, tgt: str, weight: int = 3, minlen: int = 1) -> WeightedEdge:
    return WeightedEdge(source=src, target=tgt, weight=weight, minlen=minlen)


# ─── Graph Build Tests ────────────────────────────────────────────────────────


class TestBuildGraph:
    def test_registered_nodes_keep_their_size(self):
        g = build_graph([sized("A", 240, 80)], [])
        assert g.nodes["A"]["width"] == 240
        assert g.nodes["A"]["height"] == 80
        assert g.nodes["A"]["registered"] is True

    def test_unknown_endpoint_becomes_zero_size_node(self):
        g = build_graph([sized("A")], [weighted("A", "ghost")])
        assert g.nodes["ghost"]["registered"] is False
        assert g.nodes["ghost"]["width"] == 0

    def test_parallel_edges_keep_strongest_constraint(self):
        g = build_graph([sized("A"), sized("B")], [weighted("A", "B", 3, 1), weighted("A", "B", 1, 2)])
        assert g.number_of_edges() == 1
        assert g.edges["A", "B"]["weight"] == 3
        assert g.edges["A", "B"]["minlen"] == 2


# ─── Cycle Removal Tests ──────────────────────────────────────────────────────


class TestCycleRemoval:
    def test_dag_has_no_reversed_edges(self):
        """A → B → C (simple DAG) — zero reversed edges."""
        dag, reversed_edges = remove_cycles(make_graph(("A", "B"), ("B", "C")))
        assert reversed_edges == set()
        assert nx.is_directed_acyclic_graph(dag)

    def test_single_cycle_reversed(self):
        """A → B → A (2-cycle) — exactly one edge reversed, result is a DAG."""
        dag, reversed_edges = remove_cycles(make_graph(("A", "B"), ("B", "A")))
        assert len(reversed_edges) == 1
        assert nx.is_directed_acyclic_graph(dag)

    def test_self_loop_removed(self):
        """A → A — counted as reversed and removed from the DAG."""
        dag, reversed_edges = remove_cycles(make_graph(("A", "A")))
        assert reversed_edges == {("A", "A")}
        assert dag.number_of_edges() == 0

    def test_complex_cycle(self):
        """A → B → C → A plus D → B — result must be a DAG."""
        g = make_graph(("A", "B"), ("B", "C"), ("C", "A"), ("D", "B"))
        dag, reversed_edges = remove_cycles(g)
        assert nx.is_directed_acyclic_graph(dag)
        assert len(reversed_edges) >= 1

    def test_reversed_edge_keeps_attributes(self):
        g = make_graph(("A", "B"), ("B", "A"), minlen=2, weight=3)
        dag, _ = remove_cycles(g)
        for _, _, attrs in dag.edges(data=True):
            assert attrs["minlen"] == 2
            assert attrs["weight"] == 3

    def test_empty_graph(self):
        dag, reversed_edges = remove_cycles(nx.DiGraph())
        assert dag.number_of_nodes() == 0
        assert reversed_edges == set()


class TestGreedyFasOrdering:
    def test_chain_ordering(self):
        assert greedy_fas_ordering(make_graph(("A", "B"), ("B", "C"))) == ["A", "B", "C"]

    def test_empty_graph(self):
        assert greedy_fas_ordering(nx.DiGraph()) == []

    def test_all_nodes_present_once(self):
        ordering = greedy_fas_ordering(make_graph(("A", "B"), ("B", "C"), ("C", "A")))
        assert sorted(ordering) == ["A", "B", "C"]

    def test_ordering_is_stable(self):
        g = make_graph(("A", "B"), ("B", "C"), ("C", "A"), ("D", "B"))
        assert greedy_fas_ordering(g) == greedy_fas_ordering(g.copy())


# ─── Layer Assignment Tests ───────────────────────────────────────────────────


class TestLayerAssignment:
    def test_chain(self):
        la = LayerAssignment.assign(make_graph(("A", "B"), ("B", "C")))
        assert la.layers == {"A": 0, "B": 1, "C": 2}
        assert la.layer_count == 3

    def test_minlen_spans_ranks(self):
        la = LayerAssignment.assign(make_graph(("A", "B"), minlen=2))
        assert la.layers["B"] - la.layers["A"] == 2

    def test_source_pulled_down_to_its_child(self):
        """D only feeds C (rank 2), so it sits at rank 1 rather than 0."""
        la = LayerAssignment.assign(make_graph(("A", "B"), ("B", "C"), ("D", "C")))
        assert la.layers["D"] == 1
        assert la.layers["A"] == 0

    def test_isolated_node_at_rank_zero(self):
        g = make_graph(("A", "B"))
        g.add_node("lonely", width=1.0, height=1.0, registered=True)
        assert LayerAssignment.assign(g).layers["lonely"] == 0


# ─── Dummy Node Tests ─────────────────────────────────────────────────────────


class TestInsertDummyNodes:
    def test_adjacent_edge_unchanged(self):
        dag = make_graph(("A", "B"))
        aug = insert_dummy_nodes(dag, LayerAssignment.assign(dag))
        assert aug.dummy_chains == []
        assert aug.graph.has_edge("A", "B")

    def test_long_edge_split_into_adjacent_segments(self):
        dag = make_graph(("A", "B"), minlen=3, weight=3)
        aug = insert_dummy_nodes(dag, LayerAssignment.assign(dag))

        assert len(aug.dummy_chains) == 1
        chain = aug.dummy_chains[0]
        assert len(chain.dummy_ids) == 2
        assert all(d.startswith(DUMMY_PREFIX) for d in chain.dummy_ids)
        for src, tgt, attrs in aug.graph.edges(data=True):
            assert aug.layers[tgt] - aug.layers[src] == 1
            assert attrs["weight"] == 3

    def test_dummies_have_no_size(self):
        dag = make_graph(("A", "B"), minlen=2)
        aug = insert_dummy_nodes(dag, LayerAssignment.assign(dag))
        dummy = aug.dummy_chains[0].dummy_ids[0]
        assert aug.graph.nodes[dummy]["width"] == 0
        assert aug.graph.nodes[dummy]["dummy"] is True


# ─── Crossing Minimization Tests ──────────────────────────────────────────────


class TestCrossings:
    def test_count_single_crossing(self):
        g = make_graph(("A", "D"), ("B", "C"))
        assert count_crossings([["A", "B"], ["C", "D"]], g) == 1

    def test_count_no_crossing(self):
        g = make_graph(("A", "C"), ("B", "D"))
        assert count_crossings([["A", "B"], ["C", "D"]], g) == 0

    def test_minimise_removes_crossing(self):
        aug = make_augmented_graph([("A", "D"), ("B", "C")], {"A": 0, "B": 0, "C": 1, "D": 1})
        ordering = minimise_crossings(aug)
        assert count_crossings(ordering, aug.graph) == 0
        assert sorted(ordering[0]) == ["A", "B"]
        assert sorted(ordering[1]) == ["C", "D"]

    def test_minimise_keeps_every_node(self):
        aug = make_augmented_graph([("A", "C")], {"A": 0, "B": 0, "C": 1})
        ordering = minimise_crossings(aug)
        assert sorted(ordering[0]) == ["A", "B"]
        assert ordering[1] == ["C"]


# ─── Engine Tests ─────────────────────────────────────────────────────────────


class TestSugiyamaLayoutEngine:
    def test_empty_input(self):
        assert SugiyamaLayoutEngine().compute_layout([], [], LayoutConfig()) == {}

    def test_parent_child_top_to_bottom(self):
        """Parent 240x80 over child 200x60 with default spacing and margins."""
        geometry = SugiyamaLayoutEngine().compute_layout(
            [sized("p", 240, 80), sized("c", 200, 60)],
            [weighted("p", "c")],
            LayoutConfig(),
        )
        assert geometry["p"].y == pytest.approx(80)  # margin 40 + half height 40
        assert geometry["c"].y == pytest.approx(270)  # margin 40 + 80 + ranksep 120 + 30
        assert geometry["p"].x == pytest.approx(160)
        assert geometry["c"].x == pytest.approx(160)
        assert (geometry["p"].width, geometry["p"].height) == (240, 80)

    def test_left_to_right_transposes(self):
        geometry = SugiyamaLayoutEngine().compute_layout(
            [sized("p", 240, 80), sized("c", 200, 60)],
            [weighted("p", "c")],
            LayoutConfig(direction=Direction.LR),
        )
        assert geometry["p"].x == pytest.approx(160)
        assert geometry["c"].x == pytest.approx(500)  # 40 + 240 + 120 + 100
        assert geometry["p"].y == pytest.approx(geometry["c"].y)
        assert (geometry["c"].width, geometry["c"].height) == (200, 60)

    def test_siblings_do_not_overlap(self):
        config = LayoutConfig()
        geometry = SugiyamaLayoutEngine().compute_layout(
            [sized("p", 240, 80)] + [sized(f"c{i}") for i in range(4)],
            [weighted("p", f"c{i}") for i in range(4)],
            config,
        )
        children = sorted((geometry[f"c{i}"] for i in range(4)), key=lambda g: g.x)
        assert len({round(c.y, 6) for c in children}) == 1
        for left, right in zip(children, children[1:]):
            assert right.x - left.x >= 200 + config.node_sep - 1e-9

    def test_margins_bound_the_drawing(self):
        config = LayoutConfig(margin_x=15, margin_y=25)
        geometry = SugiyamaLayoutEngine().compute_layout(
            [sized("p", 240, 80), sized("a"), sized("b")],
            [weighted("p", "a"), weighted("p", "b")],
            config,
        )
        assert min(g.x - g.width / 2 for g in geometry.values()) == pytest.approx(15)
        assert min(g.y - g.height / 2 for g in geometry.values()) == pytest.approx(25)

    def test_minlen_two_spans_an_extra_rank(self):
        config = LayoutConfig()
        geometry = SugiyamaLayoutEngine().compute_layout(
            [sized("a", 220, 70), sized("b", 220, 70)],
            [weighted("a", "b", weight=1, minlen=2)],
            config,
        )
        assert geometry["b"].y - geometry["a"].y >= 2 * config.rank_sep

    def test_unregistered_endpoints_not_returned(self):
        geometry = SugiyamaLayoutEngine().compute_layout([sized("a")], [weighted("a", "ghost")], LayoutConfig())
        assert set(geometry) == {"a"}

    def test_cycle_still_positions_every_node(self):
        geometry = SugiyamaLayoutEngine().compute_layout(
            [sized("a"), sized("b")],
            [weighted("a", "b"), weighted("b", "a")],
            LayoutConfig(),
        )
        assert set(geometry) == {"a", "b"}
        assert geometry["a"].y != geometry["b"].y

    def test_deterministic(self):
        nodes = [sized(n) for n in "abcdef"]
        edges = [weighted("a", "b"), weighted("a", "c"), weighted("b", "d"), weighted("c", "e"), weighted("e", "b", 1, 2)]
        first = SugiyamaLayoutEngine().compute_layout(nodes, edges, LayoutConfig())
        second = SugiyamaLayoutEngine().compute_layout(list(nodes), list(edges), LayoutConfig())
        assert first == second
