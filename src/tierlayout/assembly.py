"""Graph assembly: merge the three tiers and all edge sources into one graph.

Steps:
  1. Resolve subcategory names to ids (relationships are keyed by name).
  2. Flatten leaf nodes, categories and subcategories into one vertex list.
  3. Synthesize containment edges (category → subcategory → leaf node).
  4. Resolve intra-tier and cross-tier relationships into id-based edges,
     dropping those whose endpoints do not resolve.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from tierlayout.config import CONTAINS_LABEL
from tierlayout.errors import DuplicateSubcategoryNameError
from tierlayout.types import (
    AssembledGraph,
    Category,
    CrossTierRelationship,
    Edge,
    EdgeOrigin,
    IntraTierRelationship,
    LeafNode,
    Relationship,
    Subcategory,
    Vertex,
)

logger = logging.getLogger(__name__)


def category_containment_id(category_id: str, subcategory_id: str) -> str:
    return f"category-{category_id}-to-subcategory-{subcategory_id}"


def subcategory_containment_id(subcategory_id: str, node_id: str) -> str:
    return f"subcategory-{subcategory_id}-to-node-{node_id}"


class GraphAssembler:
    """Builds an ``AssembledGraph`` from the caller's per-tier collections.

    Args:
        strict_names: When true (the default), two subcategories sharing a name raise
            ``DuplicateSubcategoryNameError``. When false, the later subcategory wins
            the name and a warning is logged.
    """

    def __init__(self, strict_names: bool = True) -> None:
        self.strict_names = strict_names

    def resolve_names(self, subcategories: Iterable[Subcategory]) -> dict[str, str]:
        """Map subcategory name → subcategory id."""
        name_to_id: dict[str, str] = {}
        for sub in subcategories:
            existing = name_to_id.get(sub.name)
            if existing is not None and existing != sub.id:
                if self.strict_names:
                    raise DuplicateSubcategoryNameError(sub.name, existing, sub.id)
                logger.warning(
                    "Subcategory name %r is shared by %r and %r; relationships resolve to %r",
                    sub.name,
                    existing,
                    sub.id,
                    sub.id,
                )
            name_to_id[sub.name] = sub.id
        return name_to_id

    def assemble(
        self,
        nodes: Sequence[LeafNode],
        edges: Sequence[Edge],
        categories: Sequence[Category],
        subcategories: Sequence[Subcategory],
        intra_tier_relationships: Sequence[IntraTierRelationship] = (),
        cross_tier_relationships: Sequence[CrossTierRelationship] = (),
    ) -> AssembledGraph:
        name_to_id = self.resolve_names(subcategories)

        vertices: list[Vertex] = [*nodes, *categories, *subcategories]

        all_edges: list[Edge] = list(edges)
        origins: list[EdgeOrigin] = [EdgeOrigin.CALLER] * len(all_edges)
        all_edges.extend(
            Edge(
                id=category_containment_id(sub.category_id, sub.id),
                source=sub.category_id,
                target=sub.id,
                label=CONTAINS_LABEL,
            )
            for sub in subcategories
        )
        all_edges.extend(
            Edge(
                id=subcategory_containment_id(sub.id, node_id),
                source=sub.id,
                target=node_id,
                label=CONTAINS_LABEL,
            )
            for sub in subcategories
            for node_id in sub.node_ids
        )
        origins.extend([EdgeOrigin.CONTAINMENT] * (len(all_edges) - len(origins)))

        dropped: list[Relationship] = []
        for rel in [*intra_tier_relationships, *cross_tier_relationships]:
            source_id = name_to_id.get(rel.from_name)
            target_id = name_to_id.get(rel.to_name)
            # An empty id is as unusable as a missing one.
            if not source_id or not target_id:
                logger.debug(
                    "Dropping %s relationship %r: %r -> %r does not resolve",
                    rel.kind.value,
                    rel.id,
                    rel.from_name,
                    rel.to_name,
                )
                dropped.append(rel)
                continue
            all_edges.append(Edge(id=rel.edge_id, source=source_id, target=target_id, label=rel.label))
            origins.append(EdgeOrigin.RELATIONSHIP)

        if dropped:
            logger.warning("Dropped %d relationship(s) with unresolved subcategory names", len(dropped))

        return AssembledGraph(
            vertices=vertices,
            edges=all_edges,
            edge_origins=origins,
            dropped_relationships=dropped,
        )
