from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

NodeId = str
Point2D = Tuple[float, float]


@dataclass(frozen=True)
class Node:
    """Externally supplied node. Identity is ``id``."""

    id: NodeId
    type: str
    detail: str = ""


@dataclass(frozen=True)
class Relationship:
    """Directed, labelled link between two node ids."""

    source: NodeId
    target: NodeId
    type: str = ""


@dataclass
class NodePosition:
    """Snapshot of the simulation state owned for one live node."""

    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    fx: float = 0.0
    fy: float = 0.0

    @property
    def point(self) -> Point2D:
        return (self.x, self.y)


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point2D:
        return ((self.min_x + self.max_x) * 0.5, (self.min_y + self.max_y) * 0.5)


def is_node_id(value: object) -> bool:
    """Return ``True`` when *value* can serve as a node identifier."""

    return isinstance(value, str) and bool(value)


__all__ = [
    "Bounds",
    "Node",
    "NodeId",
    "NodePosition",
    "Point2D",
    "Relationship",
    "is_node_id",
]
