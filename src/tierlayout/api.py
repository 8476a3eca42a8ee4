"""Plain-dict (JSON) adapter for renderer payloads.

Input keys (camelCase, as the frontend sends them)::

    {
      "graphNodes": [{"id": ..., ...}],
      "graphEdges": [{"id": ..., "source": ..., "target": ..., "label": ...}],
      "categories": [{"id": ..., "name": ..., ...}],
      "subcategories": [{"id": ..., "name": ..., "categoryId": ..., "nodeIds": [...]}],
      "intraTierRelationships": [{"id": ..., "fromName": ..., "toName": ..., "label": ...}],
      "crossTierRelationships": [...],
      "options": {"rankdir": "TB", "nodesep": 60, ...}
    }

Nodes, categories, subcategories and caller edges are echoed back with exactly
the keys the caller sent; the positioned objects gain ``"position": {"x", "y"}``
as their last key. Missing optional keys (``name``, ``label``, ``nodeIds``) are
not filled in.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from tierlayout.config import LayoutConfig
from tierlayout.engines import LayoutEngine
from tierlayout.errors import MalformedPayloadError
from tierlayout.service import layout_categories_with_nodes
from tierlayout.types import (
    Category,
    CrossTierRelationship,
    Edge,
    IntraTierRelationship,
    LeafNode,
    Position,
    Relationship,
    Subcategory,
)


def _require(obj: Any, key: str, where: str) -> Any:
    if not isinstance(obj, Mapping):
        raise MalformedPayloadError(f"{where} must be an object, got {type(obj).__name__}")
    if key not in obj:
        raise MalformedPayloadError(f"{where} is missing required key {key!r}")
    return obj[key]


def _list(payload: Mapping[str, Any], key: str) -> list[Any]:
    value = payload.get(key) or []
    if not isinstance(value, list):
        raise MalformedPayloadError(f"{key!r} must be a list, got {type(value).__name__}")
    return value


def _extras(obj: Mapping[str, Any], known: tuple[str, ...]) -> dict[str, Any]:
    return {k: v for k, v in obj.items() if k not in known and k != "position"}


def _position(position: Position | None) -> dict[str, float] | None:
    if position is None:
        return None
    return {"x": position.x, "y": position.y}


# ─── Decoding ─────────────────────────────────────────────────────────────────


def leaf_from_dict(obj: Mapping[str, Any]) -> LeafNode:
    return LeafNode(id=_require(obj, "id", "graph node"), data=_extras(obj, ("id",)))


def edge_from_dict(obj: Mapping[str, Any]) -> Edge:
    known = ("id", "source", "target", "label")
    return Edge(
        id=_require(obj, "id", "edge"),
        source=_require(obj, "source", "edge"),
        target=_require(obj, "target", "edge"),
        label=obj.get("label"),
        data=_extras(obj, known),
    )


def category_from_dict(obj: Mapping[str, Any]) -> Category:
    return Category(
        id=_require(obj, "id", "category"),
        name=obj.get("name", ""),
        data=_extras(obj, ("id", "name")),
    )


def subcategory_from_dict(obj: Mapping[str, Any]) -> Subcategory:
    node_ids = obj.get("nodeIds") or []
    if not isinstance(node_ids, list):
        raise MalformedPayloadError(f"subcategory {obj.get('id')!r}: 'nodeIds' must be a list")
    return Subcategory(
        id=_require(obj, "id", "subcategory"),
        name=_require(obj, "name", "subcategory"),
        category_id=_require(obj, "categoryId", "subcategory"),
        node_ids=tuple(node_ids),
        data=_extras(obj, ("id", "name", "categoryId", "nodeIds")),
    )


def relationship_from_dict(obj: Mapping[str, Any], cls: type[Relationship]) -> Relationship:
    where = f"{cls.kind.value} relationship"
    return cls(
        id=_require(obj, "id", where),
        from_name=_require(obj, "fromName", where),
        to_name=_require(obj, "toName", where),
        label=obj.get("label", ""),
    )


# ─── Encoding ─────────────────────────────────────────────────────────────────


def with_position(original: Mapping[str, Any], position: Position | None) -> dict[str, Any]:
    """Copy the caller's object key for key and append ``position``."""
    out = {k: v for k, v in original.items() if k != "position"}
    out["position"] = _position(position)
    return out


def edge_to_dict(edge: Edge) -> dict[str, Any]:
    return {"id": edge.id, "source": edge.source, "target": edge.target, "label": edge.label, **edge.data}


def relationship_to_dict(rel: Relationship) -> dict[str, Any]:
    return {"id": rel.id, "kind": rel.kind.value, "fromName": rel.from_name, "toName": rel.to_name, "label": rel.label}


# ─── Entry points ─────────────────────────────────────────────────────────────


def layout_payload(
    payload: Mapping[str, Any],
    *,
    engine: LayoutEngine | None = None,
    strict_names: bool = True,
) -> dict[str, Any]:
    """Lay out a renderer payload and return the positioned payload.

    Nodes, categories and subcategories come back as the caller sent them plus
    ``position``. Caller edges come back unchanged, followed by the synthesized
    containment and relationship edges.
    """
    if not isinstance(payload, Mapping):
        raise MalformedPayloadError(f"payload must be an object, got {type(payload).__name__}")

    options = payload.get("options") or {}
    if not isinstance(options, Mapping):
        raise MalformedPayloadError("'options' must be an object")

    raw_nodes = _list(payload, "graphNodes")
    raw_edges = _list(payload, "graphEdges")
    raw_categories = _list(payload, "categories")
    raw_subcategories = _list(payload, "subcategories")

    result = layout_categories_with_nodes(
        [leaf_from_dict(o) for o in raw_nodes],
        [edge_from_dict(o) for o in raw_edges],
        [category_from_dict(o) for o in raw_categories],
        [subcategory_from_dict(o) for o in raw_subcategories],
        [relationship_from_dict(o, IntraTierRelationship) for o in _list(payload, "intraTierRelationships")],
        [relationship_from_dict(o, CrossTierRelationship) for o in _list(payload, "crossTierRelationships")],
        LayoutConfig.from_options(options),
        engine=engine,
        strict_names=strict_names,
    )

    # Assembly keeps caller edges first and in order.
    synthesized = result.edges[len(raw_edges):]
    return {
        "graphNodes": [with_position(o, n.position) for o, n in zip(raw_nodes, result.nodes)],
        "categories": [with_position(o, c.position) for o, c in zip(raw_categories, result.categories)],
        "subcategories": [with_position(o, s.position) for o, s in zip(raw_subcategories, result.subcategories)],
        "edges": [*(dict(o) for o in raw_edges), *(edge_to_dict(e) for e in synthesized)],
        "droppedRelationships": [relationship_to_dict(r) for r in result.dropped_relationships],
    }


def layout_json(text: str, **kwargs: Any) -> str:
    """JSON string in, JSON string out. See ``layout_payload``."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError(f"invalid JSON: {exc}") from exc
    return json.dumps(layout_payload(payload, **kwargs))
