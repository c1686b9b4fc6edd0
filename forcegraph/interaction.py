"""Pointer/wheel state machine driving panning, dragging and hover."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Set, Tuple

from .simulation import SimulationEngine
from .types import NodeId, Point2D, Relationship
from .viewport import Viewport

logger = logging.getLogger(__name__)


class InteractionMode(Enum):
    IDLE = "idle"
    PANNING = "panning"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class PointerEvent:
    """Screen-space pointer event; ``node_id`` is set when it landed on a node."""

    x: float
    y: float
    node_id: Optional[NodeId] = None

    @property
    def point(self) -> Point2D:
        return (self.x, self.y)


@dataclass(frozen=True)
class WheelEvent:
    delta: float
    x: float
    y: float

    @property
    def point(self) -> Point2D:
        return (self.x, self.y)


def connected_ids(hovered: Optional[NodeId], relationships: Iterable[Relationship]) -> Set[NodeId]:
    """The hovered id plus every id directly linked to it."""

    if hovered is None:
        return set()
    connected = {hovered}
    for rel in relationships:
        if rel.source == hovered:
            connected.add(rel.target)
        elif rel.target == hovered:
            connected.add(rel.source)
    return connected


class InteractionController:
    def __init__(self, engine: SimulationEngine, viewport: Viewport) -> None:
        self.engine = engine
        self.viewport = viewport
        self.mode = InteractionMode.IDLE
        self.hovered_id: Optional[NodeId] = None
        # (pointer, pan) at the press that started a pan gesture
        self._press: Optional[Tuple[Point2D, Point2D]] = None

    @property
    def dragged_id(self) -> Optional[NodeId]:
        if self.mode is not InteractionMode.DRAGGING:
            return None
        return self.engine.dragged_id

    @property
    def connected_set(self) -> Set[NodeId]:
        return connected_ids(self.hovered_id, self.engine.relationships)

    def pointer_down(self, event: PointerEvent) -> InteractionMode:
        if self.mode is not InteractionMode.IDLE:
            self._release()
        if event.node_id is not None and self.engine.has_node(event.node_id):
            self.engine.begin_drag(event.node_id, self.viewport.world_from_screen(event.point))
            self.mode = InteractionMode.DRAGGING
            logger.debug("Dragging node %s", event.node_id)
        else:
            self._press = (event.point, self.viewport.pan)
            self.mode = InteractionMode.PANNING
        return self.mode

    def pointer_move(self, event: PointerEvent) -> None:
        if self.mode is InteractionMode.PANNING:
            if self._press is None:
                self.mode = InteractionMode.IDLE
                return
            (press_x, press_y), (pan_x, pan_y) = self._press
            self.viewport.set_pan(pan_x + event.x - press_x, pan_y + event.y - press_y)
        elif self.mode is InteractionMode.DRAGGING:
            if self.engine.dragged_id is None:
                # node vanished in a data refresh mid-drag
                self.mode = InteractionMode.IDLE
                return
            self.engine.drag_to(self.viewport.world_from_screen(event.point))

    def pointer_up(self, event: Optional[PointerEvent] = None) -> None:
        self._release()

    def pointer_leave(self, event: Optional[PointerEvent] = None) -> None:
        self._release()

    def hover_enter(self, node_id: NodeId) -> None:
        self.hovered_id = node_id

    def hover_leave(self, node_id: Optional[NodeId] = None) -> None:
        if node_id is None or node_id == self.hovered_id:
            self.hovered_id = None

    def wheel(self, event: WheelEvent) -> bool:
        """Zoom toward the cursor; the return value asks the host to suppress scrolling."""

        self.viewport.zoom_by_wheel(event.delta, event.point)
        return True

    def _release(self) -> None:
        if self.mode is InteractionMode.DRAGGING:
            self.engine.end_drag()
        self.mode = InteractionMode.IDLE
        self._press = None


__all__ = [
    "InteractionController",
    "InteractionMode",
    "PointerEvent",
    "WheelEvent",
    "connected_ids",
]
