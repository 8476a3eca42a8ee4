"""Data model shared by assembly, layout engines and projection.

The three tiers (``Category``, ``Subcategory``, ``LeafNode``) stay distinct in the
public API. Inside assembly they are handled through the ``Vertex`` union, whose
members all expose ``id`` and ``kind``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from tierlayout.config import NodeKind

# ─── Geometry ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Position:
    """Top-left anchor of a node, in the same units as its width/height."""

    x: float
    y: float


@dataclass(frozen=True)
class NodeGeometry:
    """Engine output for one node: center point plus the size it was given."""

    x: float
    y: float
    width: float
    height: float

    def top_left(self) -> Position:
        return Position(x=self.x - self.width / 2, y=self.y - self.height / 2)


# ─── Tiers ────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class LeafNode:
    """A terminal graph element. ``data`` is an opaque caller payload.

    Compares by value but is unhashable, since ``data`` is a mapping.
    """

    id: str
    data: Mapping[str, Any] = field(default_factory=dict)
    position: Position | None = None

    kind: ClassVar[NodeKind] = NodeKind.LEAF


@dataclass(frozen=True)
class Category:
    """Tier 1 grouping. Members are inferred from ``Subcategory.category_id``.

    Unhashable (``data`` is a mapping); index categories by ``id`` instead.
    """

    id: str
    name: str = ""
    data: Mapping[str, Any] = field(default_factory=dict)
    position: Position | None = None

    kind: ClassVar[NodeKind] = NodeKind.CATEGORY


@dataclass(frozen=True)
class Subcategory:
    """Tier 2 grouping: child of one category, parent of ``node_ids`` (in order).

    ``name`` is the key that relationships resolve against. Like the other tiers,
    instances compare by value and are unhashable.
    """

    id: str
    name: str
    category_id: str
    node_ids: tuple[str, ...] = ()
    data: Mapping[str, Any] = field(default_factory=dict)
    position: Position | None = None

    kind: ClassVar[NodeKind] = NodeKind.SUBCATEGORY

    def __post_init__(self) -> None:
        if not isinstance(self.node_ids, tuple):
            object.__setattr__(self, "node_ids", tuple(self.node_ids))


Vertex = Union[LeafNode, Category, Subcategory]


# ─── Relationships and edges ──────────────────────────────────────────────────


class RelationshipKind(Enum):
    INTRA_TIER = "intra-tier"
    CROSS_TIER = "cross-tier"


@dataclass(frozen=True)
class Relationship:
    """A directed semantic link between two subcategories, addressed by name."""

    id: str
    from_name: str
    to_name: str
    label: str = ""

    kind: ClassVar[RelationshipKind]

    @property
    def edge_id(self) -> str:
        # Prefixed by kind so it never collides with containment or caller edge ids.
        return f"{self.kind.value}-rel-{self.id}"


@dataclass(frozen=True)
class IntraTierRelationship(Relationship):
    kind: ClassVar[RelationshipKind] = RelationshipKind.INTRA_TIER


@dataclass(frozen=True)
class CrossTierRelationship(Relationship):
    """Same shape as ``IntraTierRelationship``; marks links across categories."""

    kind: ClassVar[RelationshipKind] = RelationshipKind.CROSS_TIER


class EdgeOrigin(Enum):
    """Where an assembled edge came from; decides how the engine weighs it."""

    CALLER = "caller"
    CONTAINMENT = "containment"
    RELATIONSHIP = "relationship"


@dataclass(frozen=True)
class Edge:
    """A drawable edge as the renderer consumes it. Unhashable: ``data`` is a mapping."""

    id: str
    source: str
    target: str
    label: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)


# ─── Engine input ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SizedNode:
    """A node registered with the layout engine."""

    id: str
    width: float
    height: float


@dataclass(frozen=True)
class WeightedEdge:
    """An edge registered with the layout engine.

    Higher ``weight`` asks the engine to keep the edge short and straight;
    ``minlen`` is the minimum number of ranks the edge must span.
    """

    source: str
    target: str
    weight: int = 1
    minlen: int = 1


# ─── Results ──────────────────────────────────────────────────────────────────


@dataclass
class AssembledGraph:
    """Output of graph assembly: the flattened vertex list plus every edge.

    ``edge_origins`` runs parallel to ``edges``.
    """

    vertices: list[Vertex]
    edges: list[Edge]
    edge_origins: list[EdgeOrigin] = field(default_factory=list)
    dropped_relationships: list[Relationship] = field(default_factory=list)


@dataclass
class TierLayoutResult:
    """Positioned copies of the three input collections plus the full edge list."""

    nodes: list[LeafNode]
    categories: list[Category]
    subcategories: list[Subcategory]
    edges: list[Edge]
    dropped_relationships: list[Relationship] = field(default_factory=list)
