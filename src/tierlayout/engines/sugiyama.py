"""Sugiyama-style layered layout engine.

Phases:
  1. Graph build    (sized nodes, weighted edges with a minimum rank span)
  2. Cycle removal  (greedy-FAS approach)
  3. Layer assignment (longest path honouring minlen, then source tightening)
  4. Dummy node insertion (one per intermediate layer of a long edge)
  5. Crossing minimization (weighted barycenter heuristic)
  6. Coordinate assignment (center x/y per node)

All iteration follows node insertion order, so identical input gives identical output.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import networkx as nx

from tierlayout.config import Direction, LayoutConfig
from tierlayout.types import NodeGeometry, SizedNode, WeightedEdge

logger = logging.getLogger(__name__)

DUMMY_PREFIX = "__dummy_"
MAX_SWEEPS: int = 24
PLACEMENT_ITERATIONS: int = 4

# ─── Graph Build ──────────────────────────────────────────────────────────────


def _merge_edge(graph: nx.DiGraph, src: str, tgt: str, weight: int, minlen: int) -> None:
    """Add src → tgt, or tighten an existing edge to the stronger constraint."""
    if graph.has_edge(src, tgt):
        attrs = graph.edges[src, tgt]
        attrs["weight"] = max(attrs["weight"], weight)
        attrs["minlen"] = max(attrs["minlen"], minlen)
    else:
        graph.add_edge(src, tgt, weight=weight, minlen=minlen)


def build_graph(nodes: Sequence[SizedNode], edges: Sequence[WeightedEdge]) -> nx.DiGraph:
    """Build the layout DiGraph.

    Edge endpoints that were never registered become zero-size nodes so the edge
    still takes part in ranking. Parallel edges collapse into one edge carrying the
    larger weight and the larger minlen.
    """
    graph: nx.DiGraph = nx.DiGraph()
    for node in nodes:
        graph.add_node(node.id, width=float(node.width), height=float(node.height), registered=True)

    for edge in edges:
        for endpoint in (edge.source, edge.target):
            if endpoint not in graph:
                graph.add_node(endpoint, width=0.0, height=0.0, registered=False)
        _merge_edge(graph, edge.source, edge.target, edge.weight, max(0, edge.minlen))

    return graph


# ─── Cycle Removal (Greedy-FAS) ───────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.DiGraph) -> list[str]:
    """Compute a node ordering using the greedy-FAS heuristic.

    Returns a list of node ids in an ordering that minimizes back-edges.

    Algorithm (Eades, Lin, Smyth 1993):
    - Maintain dynamic in/out degree counters updated as nodes are removed.
    - Repeatedly:
        1. Move all sinks (out_deg == 0) to s2.
        2. Move all sources (in_deg == 0) to s1.
        3. Of remaining nodes in cycles, pick max (out - in) and add to s1.
    - Final ordering: s1 + reversed(s2).
    """
    # dict keeps insertion order, which a set would not.
    active: dict[str, None] = dict.fromkeys(graph.nodes)

    out_deg: dict[str, int] = {node: graph.out_degree(node) for node in graph.nodes}
    in_deg: dict[str, int] = {node: graph.in_degree(node) for node in graph.nodes}

    s1: list[str] = []
    s2: list[str] = []

    def remove(node: str) -> None:
        del active[node]
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        changed = True
        while changed:
            changed = False
            for sink in [n for n in active if out_deg[n] == 0]:
                changed = True
                remove(sink)
                s2.append(sink)

        changed = True
        while changed:
            changed = False
            for source in [n for n in active if in_deg[n] == 0]:
                changed = True
                remove(source)
                s1.append(source)

        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            remove(best)
            s1.append(best)

    s2.reverse()
    s1.extend(s2)
    return s1


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Return a DAG copy of ``graph`` plus the set of edges that were reversed.

    Back-edges (source after target in the greedy-FAS ordering) are reversed and
    keep their weight/minlen. Self-loops are counted as reversed and omitted from
    the DAG entirely.
    """
    if graph.number_of_nodes() == 0:
        return graph.copy(), set()

    position: dict[str, int] = {node: pos for pos, node in enumerate(greedy_fas_ordering(graph))}

    dag: nx.DiGraph = nx.DiGraph()
    for node_id in graph.nodes:
        dag.add_node(node_id, **graph.nodes[node_id])

    reversed_edges: set[tuple[str, str]] = set()
    for src, tgt, attrs in graph.edges(data=True):
        if src == tgt:
            reversed_edges.add((src, tgt))
            continue
        if position[src] > position[tgt]:
            reversed_edges.add((src, tgt))
            _merge_edge(dag, tgt, src, attrs["weight"], attrs["minlen"])
        else:
            _merge_edge(dag, src, tgt, attrs["weight"], attrs["minlen"])

    return dag, reversed_edges


# ─── Layer Assignment ─────────────────────────────────────────────────────────


class LayerAssignment:
    """Result of layer assignment: each node is assigned a layer (rank).

    Layer 0 is the first layer (top for TB, left for LR).

    Attributes:
        layers: Maps node id → layer index.
        layer_count: Total number of layers.
    """

    def __init__(self, layers: dict[str, int], layer_count: int) -> None:
        self.layers = layers
        self.layer_count = layer_count

    @classmethod
    def assign(cls, dag: nx.DiGraph) -> LayerAssignment:
        """Rank every node of a DAG.

        Longest path first: ``rank[v] = max(rank[v], rank[u] + minlen)`` along a
        topological order. Then every source is pulled down to sit ``minlen`` above
        its nearest successor, so a parent is not stranded at rank 0 when its
        children were pushed down by relationship edges.
        """
        order = list(nx.topological_sort(dag))
        layers: dict[str, int] = {node_id: 0 for node_id in dag.nodes}

        for node in order:
            for succ in dag.successors(node):
                needed = layers[node] + dag.edges[node, succ]["minlen"]
                if layers[succ] < needed:
                    layers[succ] = needed

        for node in order:
            if dag.in_degree(node) == 0 and dag.out_degree(node) > 0:
                layers[node] = min(layers[succ] - dag.edges[node, succ]["minlen"] for succ in dag.successors(node))

        if layers:
            low = min(layers.values())
            if low:
                layers = {node_id: rank - low for node_id, rank in layers.items()}

        layer_count = (max(layers.values()) + 1) if layers else 1
        return cls(layers=layers, layer_count=layer_count)


# ─── Dummy Node Insertion ─────────────────────────────────────────────────────


@dataclass
class DummyChain:
    """The dummy nodes standing in for one long edge, ordered source → target."""

    original_src: str
    original_tgt: str
    dummy_ids: list[str]


@dataclass
class AugmentedGraph:
    """A DAG where every edge connects nodes in adjacent layers.

    Layers are compacted so that no layer index is empty.
    """

    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int
    dummy_chains: list[DummyChain] = field(default_factory=list)


def insert_dummy_nodes(dag: nx.DiGraph, la: LayerAssignment) -> AugmentedGraph:
    """Replace each edge spanning k > 1 layers with a chain of k - 1 dummy nodes.

    Dummy nodes are zero-size and every chain segment inherits the edge weight,
    so long heavy edges are straightened as strongly as short ones.
    """
    g: nx.DiGraph = nx.DiGraph()
    for node_id in dag.nodes:
        g.add_node(node_id, dummy=False, **dag.nodes[node_id])

    layers: dict[str, int] = dict(la.layers)
    chains: list[DummyChain] = []

    for src_id, tgt_id, attrs in list(dag.edges(data=True)):
        weight = attrs["weight"]
        span = layers[tgt_id] - layers[src_id]

        if span <= 1:
            _merge_edge(g, src_id, tgt_id, weight, 1)
            continue

        dummy_ids: list[str] = []
        chain_prev = src_id
        for i in range(span - 1):
            dummy_id = f"{DUMMY_PREFIX}{len(chains)}_{i}"
            g.add_node(dummy_id, width=0.0, height=0.0, registered=False, dummy=True)
            layers[dummy_id] = layers[src_id] + i + 1
            dummy_ids.append(dummy_id)
            g.add_edge(chain_prev, dummy_id, weight=weight, minlen=1)
            chain_prev = dummy_id
        g.add_edge(chain_prev, tgt_id, weight=weight, minlen=1)

        chains.append(DummyChain(original_src=src_id, original_tgt=tgt_id, dummy_ids=dummy_ids))

    # Compact: disconnected parts may leave a layer index unused.
    used = sorted(set(layers.values()))
    remap = {old: new for new, old in enumerate(used)}
    layers = {node_id: remap[rank] for node_id, rank in layers.items()}

    return AugmentedGraph(graph=g, layers=layers, layer_count=len(used), dummy_chains=chains)


# ─── Crossing Minimization (Barycenter) ───────────────────────────────────────


def _barycenter(
    node_id: str,
    graph: nx.DiGraph,
    neighbor_pos: dict[str, float],
    direction: str,
    fallback: float,
) -> float:
    """Weighted average position of a node's neighbours in the adjacent layer.

    direction: "incoming" to look at predecessors, "outgoing" for successors.
    Nodes without neighbours keep ``fallback`` (their current position).
    """
    if direction == "incoming":
        pairs = [(nb, graph.edges[nb, node_id]["weight"]) for nb in graph.predecessors(node_id)]
    else:
        pairs = [(nb, graph.edges[node_id, nb]["weight"]) for nb in graph.successors(node_id)]

    total = 0.0
    weights = 0.0
    for nb, weight in pairs:
        if nb in neighbor_pos:
            total += neighbor_pos[nb] * weight
            weights += weight
    if not weights:
        return fallback
    return total / weights


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """Count edge crossings between consecutive layers (inversion count)."""
    total = 0
    for l_idx in range(len(ordering) - 1):
        tgt_pos: dict[str, int] = {nid: i for i, nid in enumerate(ordering[l_idx + 1])}
        edges: list[tuple[int, int]] = []
        for sp, src_id in enumerate(ordering[l_idx]):
            for nb in graph.successors(src_id):
                if nb in tgt_pos:
                    edges.append((sp, tgt_pos[nb]))
        for i in range(len(edges)):
            for j in range(i + 1, len(edges)):
                ei, ej = edges[i], edges[j]
                if (ei[0] < ej[0] and ei[1] > ej[1]) or (ei[0] > ej[0] and ei[1] < ej[1]):
                    total += 1
    return total


def minimise_crossings(aug: AugmentedGraph) -> list[list[str]]:
    """Order each layer to reduce edge crossings.

    Alternating top-down and bottom-up weighted-barycenter sweeps run until the
    crossing count stops improving or ``MAX_SWEEPS`` is hit. The best ordering
    seen is returned.
    """
    ordering: list[list[str]] = [[] for _ in range(aug.layer_count)]
    for node_id in aug.graph.nodes:
        ordering[aug.layers[node_id]].append(node_id)

    best = count_crossings(ordering, aug.graph)
    best_ordering = [list(layer) for layer in ordering]

    for _sweep in range(MAX_SWEEPS):
        if best == 0:
            break

        for layer_idx in range(1, aug.layer_count):
            prev = {nid: float(i) for i, nid in enumerate(ordering[layer_idx - 1])}
            current = {nid: float(i) for i, nid in enumerate(ordering[layer_idx])}
            ordering[layer_idx].sort(
                key=lambda a, p=prev, c=current: _barycenter(a, aug.graph, p, "incoming", c[a])
            )

        for layer_idx in range(aug.layer_count - 2, -1, -1):
            nxt = {nid: float(i) for i, nid in enumerate(ordering[layer_idx + 1])}
            current = {nid: float(i) for i, nid in enumerate(ordering[layer_idx])}
            ordering[layer_idx].sort(
                key=lambda a, n=nxt, c=current: _barycenter(a, aug.graph, n, "outgoing", c[a])
            )

        crossings = count_crossings(ordering, aug.graph)
        if crossings >= best:
            break
        best = crossings
        best_ordering = [list(layer) for layer in ordering]

    logger.debug("Crossing minimisation finished with %d crossing(s)", best)
    return best_ordering


# ─── Coordinate Assignment ────────────────────────────────────────────────────


@dataclass
class PlacedNode:
    """A node with its center in the layout frame (flow axis = y)."""

    id: str
    layer: int
    order: int
    x: float
    y: float
    width: float
    height: float
    dummy: bool = False


def _separation(a: PlacedNode, b: PlacedNode, node_sep: float, edge_sep: float) -> float:
    """Minimum center distance between two neighbours in the same layer."""
    if a.dummy and b.dummy:
        gap = edge_sep
    elif a.dummy or b.dummy:
        gap = (node_sep + edge_sep) / 2
    else:
        gap = node_sep
    return (a.width + b.width) / 2 + gap


def _place_layer(row: list[PlacedNode], desired: list[float], node_sep: float, edge_sep: float) -> None:
    """Move ``row`` as close to ``desired`` as its separations allow.

    A left-to-right pass and a right-to-left pass each give a feasible placement;
    their average is feasible too and does not drift to either side.
    """
    if not row:
        return
    seps = [_separation(row[i - 1], row[i], node_sep, edge_sep) for i in range(1, len(row))]

    push_right = list(desired)
    for i in range(1, len(row)):
        push_right[i] = max(desired[i], push_right[i - 1] + seps[i - 1])

    push_left = list(desired)
    for i in range(len(row) - 2, -1, -1):
        push_left[i] = min(desired[i], push_left[i + 1] - seps[i])

    for i, node in enumerate(row):
        node.x = (push_right[i] + push_left[i]) / 2


def assign_coordinates(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    node_sep: float,
    rank_sep: float,
    edge_sep: float,
) -> dict[str, PlacedNode]:
    """Assign center coordinates to every node in the augmented graph.

    Layers stack along y with ``rank_sep`` between the tallest nodes of adjacent
    layers; nodes of one layer share a center line. Along x, layers start centered
    on a common axis and are then pulled toward the weighted centers of their
    neighbours, top-down and bottom-up. The bounding box is normalized to start
    at (0, 0).
    """
    placed: dict[str, PlacedNode] = {}
    rows: list[list[PlacedNode]] = []

    for layer_idx, layer_nodes in enumerate(ordering):
        row: list[PlacedNode] = []
        for order, node_id in enumerate(layer_nodes):
            attrs = aug.graph.nodes[node_id]
            node = PlacedNode(
                id=node_id,
                layer=layer_idx,
                order=order,
                x=0.0,
                y=0.0,
                width=attrs["width"],
                height=attrs["height"],
                dummy=attrs.get("dummy", False),
            )
            row.append(node)
            placed[node_id] = node
        rows.append(row)

    # Initial placement: pack each layer tightly, centered on x = 0.
    for row in rows:
        _place_layer(row, [0.0] * len(row), node_sep, edge_sep)

    def neighbour_targets(row: list[PlacedNode], direction: str) -> list[float]:
        desired: list[float] = []
        for node in row:
            if direction == "incoming":
                pairs = [(p, aug.graph.edges[p, node.id]["weight"]) for p in aug.graph.predecessors(node.id)]
            else:
                pairs = [(s, aug.graph.edges[node.id, s]["weight"]) for s in aug.graph.successors(node.id)]
            weights = sum(w for _, w in pairs)
            if weights:
                desired.append(sum(placed[nb].x * w for nb, w in pairs) / weights)
            else:
                desired.append(node.x)
        return desired

    for _iteration in range(PLACEMENT_ITERATIONS):
        for row in rows[1:]:
            _place_layer(row, neighbour_targets(row, "incoming"), node_sep, edge_sep)
        for row in reversed(rows[:-1]):
            _place_layer(row, neighbour_targets(row, "outgoing"), node_sep, edge_sep)

    # Stack layers along y.
    y = 0.0
    for row in rows:
        layer_height = max((node.height for node in row), default=0.0)
        for node in row:
            node.y = y + layer_height / 2
        y += layer_height + rank_sep

    if placed:
        min_left = min(node.x - node.width / 2 for node in placed.values())
        min_top = min(node.y - node.height / 2 for node in placed.values())
        for node in placed.values():
            node.x -= min_left
            node.y -= min_top

    return placed


# ─── Engine ───────────────────────────────────────────────────────────────────


class SugiyamaLayoutEngine:
    """Default ``LayoutEngine``: the layered pipeline above on a networkx DiGraph.

    For LR the node width/height are swapped before layout and the axes are
    transposed afterwards, so the pipeline itself only knows about top-to-bottom.
    """

    def compute_layout(
        self,
        nodes: Sequence[SizedNode],
        edges: Sequence[WeightedEdge],
        config: LayoutConfig,
    ) -> dict[str, NodeGeometry]:
        is_lr = config.direction is Direction.LR
        if is_lr:
            nodes = [SizedNode(id=n.id, width=n.height, height=n.width) for n in nodes]

        graph = build_graph(nodes, edges)
        if graph.number_of_nodes() == 0:
            return {}

        dag, reversed_edges = remove_cycles(graph)
        la = LayerAssignment.assign(dag)
        aug = insert_dummy_nodes(dag, la)
        ordering = minimise_crossings(aug)
        placed = assign_coordinates(ordering, aug, config.node_sep, config.rank_sep, config.edge_sep)

        logger.debug(
            "Laid out %d node(s) over %d layer(s); %d edge(s) reversed, %d dummy chain(s)",
            graph.number_of_nodes(),
            aug.layer_count,
            len(reversed_edges),
            len(aug.dummy_chains),
        )

        geometry: dict[str, NodeGeometry] = {}
        for node_id, attrs in graph.nodes(data=True):
            if not attrs["registered"]:
                continue
            node = placed[node_id]
            if is_lr:
                geometry[node_id] = NodeGeometry(
                    x=config.margin_x + node.y,
                    y=config.margin_y + node.x,
                    width=node.height,
                    height=node.width,
                )
            else:
                geometry[node_id] = NodeGeometry(
                    x=config.margin_x + node.x,
                    y=config.margin_y + node.y,
                    width=node.width,
                    height=node.height,
                )
        return geometry
