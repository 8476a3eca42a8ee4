"""tierlayout: layered layout for category → subcategory → node hierarchies."""

from __future__ import annotations

from tierlayout.assembly import GraphAssembler
from tierlayout.config import CONTAINS_LABEL, DEFAULT_NODE_SIZES, Direction, LayoutConfig, NodeKind
from tierlayout.engines import LayoutEngine, SugiyamaLayoutEngine, default_engine
from tierlayout.errors import (
    DuplicateSubcategoryNameError,
    InvalidLayoutConfigError,
    MalformedPayloadError,
    MissingLayoutGeometryError,
    TierLayoutError,
)
from tierlayout.service import TierLayoutService, layout_categories_with_nodes
from tierlayout.types import (
    Category,
    CrossTierRelationship,
    Edge,
    EdgeOrigin,
    IntraTierRelationship,
    LeafNode,
    NodeGeometry,
    Position,
    Relationship,
    SizedNode,
    Subcategory,
    TierLayoutResult,
    WeightedEdge,
)

__all__ = [
    "CONTAINS_LABEL",
    "DEFAULT_NODE_SIZES",
    "Category",
    "CrossTierRelationship",
    "Direction",
    "DuplicateSubcategoryNameError",
    "Edge",
    "EdgeOrigin",
    "GraphAssembler",
    "IntraTierRelationship",
    "InvalidLayoutConfigError",
    "LayoutConfig",
    "LayoutEngine",
    "LeafNode",
    "MalformedPayloadError",
    "MissingLayoutGeometryError",
    "NodeGeometry",
    "NodeKind",
    "Position",
    "Relationship",
    "SizedNode",
    "Subcategory",
    "SugiyamaLayoutEngine",
    "TierLayoutError",
    "TierLayoutResult",
    "TierLayoutService",
    "WeightedEdge",
    "default_engine",
    "layout_categories_with_nodes",
]
