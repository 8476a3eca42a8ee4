"""Position projection: center-anchored engine geometry → top-left anchored copies."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import TypeVar

from tierlayout.errors import MissingLayoutGeometryError
from tierlayout.types import NodeGeometry, Vertex

V = TypeVar("V", bound=Vertex)


def project_positions(items: Sequence[V], geometry: Mapping[str, NodeGeometry]) -> list[V]:
    """Return copies of ``items`` with ``position`` set from ``geometry``.

    Every other field is carried over untouched. Raises
    ``MissingLayoutGeometryError`` on the first item without geometry, so a
    partially positioned collection is never returned.
    """
    positioned: list[V] = []
    for item in items:
        geom = geometry.get(item.id)
        if geom is None:
            raise MissingLayoutGeometryError(item.id, item.kind.value)
        positioned.append(replace(item, position=geom.top_left()))
    return positioned
