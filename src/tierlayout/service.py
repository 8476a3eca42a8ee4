"""Layout entry point: Assembly → Layout Invocation → Position Projection."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from tierlayout.assembly import GraphAssembler
from tierlayout.config import (
    CONTAINMENT_MINLEN,
    CONTAINMENT_WEIGHT,
    RELATIONSHIP_MINLEN,
    RELATIONSHIP_WEIGHT,
    LayoutConfig,
    edge_policy,
)
from tierlayout.engines import LayoutEngine, default_engine
from tierlayout.projection import project_positions
from tierlayout.types import (
    AssembledGraph,
    Category,
    CrossTierRelationship,
    Edge,
    EdgeOrigin,
    IntraTierRelationship,
    LeafNode,
    NodeGeometry,
    SizedNode,
    Subcategory,
    TierLayoutResult,
    WeightedEdge,
)

logger = logging.getLogger(__name__)


def size_nodes(graph: AssembledGraph, config: LayoutConfig) -> list[SizedNode]:
    """Register every vertex with its kind's size class."""
    sized: list[SizedNode] = []
    for vertex in graph.vertices:
        width, height = config.size_of(vertex.kind)
        sized.append(SizedNode(id=vertex.id, width=width, height=height))
    return sized


def weigh_edges(graph: AssembledGraph) -> list[WeightedEdge]:
    """Attach weight/minlen: containment edges heavy and short, the rest light and long.

    Synthesized edges are weighed by origin, so a relationship labelled "contains"
    is still a relationship. Caller edges, and any edge without a recorded origin,
    go by label.
    """
    origins = list(graph.edge_origins)
    origins += [EdgeOrigin.CALLER] * (len(graph.edges) - len(origins))
    weighted: list[WeightedEdge] = []
    for edge, origin in zip(graph.edges, origins):
        if origin is EdgeOrigin.CONTAINMENT:
            weight, minlen = CONTAINMENT_WEIGHT, CONTAINMENT_MINLEN
        elif origin is EdgeOrigin.RELATIONSHIP:
            weight, minlen = RELATIONSHIP_WEIGHT, RELATIONSHIP_MINLEN
        else:
            weight, minlen = edge_policy(edge.label)
        weighted.append(WeightedEdge(source=edge.source, target=edge.target, weight=weight, minlen=minlen))
    return weighted


class TierLayoutService:
    """Lays out a category → subcategory → node hierarchy with an injected engine.

    The service holds no per-call state, so one instance may serve concurrent calls
    as long as its engine does the same.
    """

    def __init__(
        self,
        engine: LayoutEngine | None = None,
        config: LayoutConfig | None = None,
        strict_names: bool = True,
    ) -> None:
        self.engine = engine if engine is not None else default_engine()
        self.config = config if config is not None else LayoutConfig()
        self.assembler = GraphAssembler(strict_names=strict_names)

    def layout(
        self,
        nodes: Sequence[LeafNode],
        edges: Sequence[Edge],
        categories: Sequence[Category],
        subcategories: Sequence[Subcategory],
        intra_tier_relationships: Sequence[IntraTierRelationship] = (),
        cross_tier_relationships: Sequence[CrossTierRelationship] = (),
        config: LayoutConfig | None = None,
    ) -> TierLayoutResult:
        config = config if config is not None else self.config

        graph = self.assembler.assemble(
            nodes,
            edges,
            categories,
            subcategories,
            intra_tier_relationships,
            cross_tier_relationships,
        )

        geometry: dict[str, NodeGeometry] = self.engine.compute_layout(
            size_nodes(graph, config),
            weigh_edges(graph),
            config,
        )
        logger.debug(
            "Layout computed for %d vertices and %d edges (%s)",
            len(graph.vertices),
            len(graph.edges),
            config.direction.value,
        )

        return TierLayoutResult(
            nodes=project_positions(nodes, geometry),
            categories=project_positions(categories, geometry),
            subcategories=project_positions(subcategories, geometry),
            edges=graph.edges,
            dropped_relationships=graph.dropped_relationships,
        )


def layout_categories_with_nodes(
    nodes: Sequence[LeafNode],
    edges: Sequence[Edge],
    categories: Sequence[Category],
    subcategories: Sequence[Subcategory],
    intra_tier_relationships: Sequence[IntraTierRelationship] = (),
    cross_tier_relationships: Sequence[CrossTierRelationship] = (),
    config: LayoutConfig | None = None,
    *,
    engine: LayoutEngine | None = None,
    strict_names: bool = True,
) -> TierLayoutResult:
    """Position all three tiers and return them with the complete edge list.

    The call is all-or-nothing: any ``TierLayoutError`` aborts it without a
    partial result. Relationships naming unknown subcategories are not errors;
    they are left out of ``edges`` and listed in ``dropped_relationships``.
    """
    service = TierLayoutService(engine=engine, config=config, strict_names=strict_names)
    return service.layout(
        nodes,
        edges,
        categories,
        subcategories,
        intra_tier_relationships,
        cross_tier_relationships,
    )
