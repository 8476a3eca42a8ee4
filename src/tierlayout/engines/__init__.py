"""Layered layout engines."""

from __future__ import annotations

from tierlayout.engines.base import LayoutEngine
from tierlayout.engines.sugiyama import SugiyamaLayoutEngine


def default_engine() -> LayoutEngine:
    return SugiyamaLayoutEngine()


__all__ = ["LayoutEngine", "SugiyamaLayoutEngine", "default_engine"]
