"""Layout configuration: flow direction, spacing, size classes and edge policy."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any

from tierlayout.errors import InvalidLayoutConfigError


class Direction(Enum):
    """Flow axis of the layered layout."""

    TB = "TB"  # top to bottom
    LR = "LR"  # left to right


class NodeKind(Enum):
    """The three tiers of the hierarchy."""

    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    LEAF = "leaf"


# ─── Size classes ─────────────────────────────────────────────────────────────

DEFAULT_NODE_SIZES: dict[NodeKind, tuple[float, float]] = {
    NodeKind.CATEGORY: (240.0, 80.0),
    NodeKind.SUBCATEGORY: (220.0, 70.0),
    NodeKind.LEAF: (200.0, 60.0),
}

# ─── Edge policy ──────────────────────────────────────────────────────────────

CONTAINS_LABEL = "contains"

# Containment edges pull children close to their parents; relationship edges are
# pushed at least one extra rank away from the containment skeleton.
CONTAINMENT_WEIGHT: int = 3
CONTAINMENT_MINLEN: int = 1
RELATIONSHIP_WEIGHT: int = 1
RELATIONSHIP_MINLEN: int = 2


def edge_policy(label: str | None) -> tuple[int, int]:
    """Return ``(weight, minlen)`` for an edge with the given label."""
    if label == CONTAINS_LABEL:
        return CONTAINMENT_WEIGHT, CONTAINMENT_MINLEN
    return RELATIONSHIP_WEIGHT, RELATIONSHIP_MINLEN


# Renderer-side option names → LayoutConfig field names.
_OPTION_ALIASES: dict[str, str] = {
    "rankdir": "direction",
    "nodesep": "node_sep",
    "ranksep": "rank_sep",
    "edgesep": "edge_sep",
    "marginx": "margin_x",
    "marginy": "margin_y",
}


def _node_kind(key: Any) -> NodeKind:
    """Accept a ``NodeKind`` or its value (``"leaf"``...), as JSON options send it."""
    if isinstance(key, NodeKind):
        return key
    try:
        return NodeKind(str(key).lower())
    except ValueError:
        expected = ", ".join(k.value for k in NodeKind)
        raise InvalidLayoutConfigError(
            f"unknown node kind {key!r} in node_sizes; expected one of {expected}"
        ) from None


@dataclass(frozen=True)
class LayoutConfig:
    """Graph-level settings handed to the layout engine.

    All lengths share the unit of the node sizes (pixels for the default sizes).

    Attributes:
        direction: Flow axis, ``Direction.TB`` or ``Direction.LR``.
        node_sep: Minimum gap between neighbouring nodes in the same rank.
        rank_sep: Minimum gap between adjacent ranks.
        edge_sep: Minimum gap between parallel edge routes.
        margin_x: Outer margin on the x axis.
        margin_y: Outer margin on the y axis.
        node_sizes: ``(width, height)`` for each node kind.
    """

    direction: Direction = Direction.TB
    node_sep: float = 60
    rank_sep: float = 120
    edge_sep: float = 20
    margin_x: float = 40
    margin_y: float = 40
    node_sizes: Mapping[NodeKind, tuple[float, float]] = field(default_factory=lambda: dict(DEFAULT_NODE_SIZES))

    def __post_init__(self) -> None:
        if not isinstance(self.direction, Direction):
            try:
                object.__setattr__(self, "direction", Direction(str(self.direction).upper()))
            except ValueError:
                raise InvalidLayoutConfigError(f"unknown direction {self.direction!r}; expected TB or LR") from None

        for name in ("node_sep", "rank_sep", "edge_sep", "margin_x", "margin_y"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidLayoutConfigError(f"{name} must be a number, got {value!r}")
            if value < 0:
                raise InvalidLayoutConfigError(f"{name} must be >= 0, got {value!r}")

        if not isinstance(self.node_sizes, Mapping):
            raise InvalidLayoutConfigError(f"node_sizes must be a mapping, got {type(self.node_sizes).__name__}")
        sizes = dict(DEFAULT_NODE_SIZES)
        for key, size in self.node_sizes.items():
            kind = _node_kind(key)
            try:
                width, height = size
            except (TypeError, ValueError):
                raise InvalidLayoutConfigError(f"{kind.value} size must be (width, height), got {size!r}") from None
            if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in (width, height)):
                raise InvalidLayoutConfigError(f"{kind.value} size must be numeric, got {size!r}")
            if width <= 0 or height <= 0:
                raise InvalidLayoutConfigError(f"size of {kind.value} nodes must be positive, got {width}x{height}")
            sizes[kind] = (width, height)
        object.__setattr__(self, "node_sizes", sizes)

    def size_of(self, kind: NodeKind) -> tuple[float, float]:
        """Return the ``(width, height)`` size class for a node kind."""
        return self.node_sizes[kind]

    def with_options(self, options: Mapping[str, Any]) -> LayoutConfig:
        """Return a copy with the given options applied (field names or renderer aliases)."""
        known = {f.name for f in fields(self)}
        changes: dict[str, Any] = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise InvalidLayoutConfigError(f"unknown layout option {key!r}")
            if value is None:
                continue
            changes[name] = value
        return replace(self, **changes)

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None) -> LayoutConfig:
        """Build a config from defaults plus ``options``.

        Accepts both field names (``node_sep``) and the renderer-side names
        (``nodesep``, ``rankdir``...). Options set to ``None`` keep their default.
        """
        return cls().with_options(options or {})
