"""Exception hierarchy for tierlayout.

Every error raised by the package derives from ``TierLayoutError`` so callers can
treat a layout call as all-or-nothing with a single ``except`` clause.
"""

from __future__ import annotations


class TierLayoutError(Exception):
    """Base class for all tierlayout errors."""


class DuplicateSubcategoryNameError(TierLayoutError):
    """Two subcategories share a name, so name-keyed relationships are ambiguous."""

    def __init__(self, name: str, first_id: str, second_id: str) -> None:
        self.name = name
        self.first_id = first_id
        self.second_id = second_id
        super().__init__(f"subcategory name {name!r} is used by both {first_id!r} and {second_id!r}")


class MissingLayoutGeometryError(TierLayoutError):
    """The layout engine returned no geometry for a node that must be positioned."""

    def __init__(self, node_id: str, kind: str) -> None:
        self.node_id = node_id
        self.kind = kind
        super().__init__(f"no layout geometry for {kind} node {node_id!r}")


class InvalidLayoutConfigError(TierLayoutError, ValueError):
    """A layout option is unknown or out of range."""


class MalformedPayloadError(TierLayoutError, ValueError):
    """A plain-dict payload is missing required keys or has the wrong shape."""
