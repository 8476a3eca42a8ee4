"""Base layout engine protocol."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from tierlayout.config import LayoutConfig
from tierlayout.types import NodeGeometry, SizedNode, WeightedEdge


class LayoutEngine(Protocol):
    """Protocol that all layered layout engines must implement."""

    def compute_layout(
        self,
        nodes: Sequence[SizedNode],
        edges: Sequence[WeightedEdge],
        config: LayoutConfig,
    ) -> dict[str, NodeGeometry]:
        """Place the nodes and return center point + size per registered node id."""
        ...
