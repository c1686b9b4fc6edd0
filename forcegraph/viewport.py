"""Pan/zoom mapping between screen space and world space."""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional, Tuple

from .config import LayoutConfig, ViewportConfig, get_layout_config, get_viewport_config
from .types import Bounds, Point2D

logger = logging.getLogger(__name__)

ZoomListener = Callable[[float], None]


class Viewport:
    """Screen/world transform ``screen = world * zoom + pan``.

    ``on_zoom_change`` lets an outside owner (toolbar buttons, a zoom label)
    mirror the current scale whichever way it was changed.
    """

    def __init__(
        self,
        config: Optional[ViewportConfig] = None,
        *,
        canvas: Optional[LayoutConfig] = None,
        pan: Point2D = (0.0, 0.0),
        zoom: float = 1.0,
        on_zoom_change: Optional[ZoomListener] = None,
    ) -> None:
        self.config = config if config is not None else get_viewport_config()
        self.config.validate()
        layout = canvas if canvas is not None else get_layout_config()
        self.canvas_size: Tuple[float, float] = (layout.width, layout.height)
        self.pan_x = float(pan[0])
        self.pan_y = float(pan[1])
        self._zoom = self.config.clamp_zoom(zoom)
        self.on_zoom_change = on_zoom_change

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def pan(self) -> Point2D:
        return (self.pan_x, self.pan_y)

    def world_from_screen(self, point: Point2D) -> Point2D:
        return ((point[0] - self.pan_x) / self._zoom, (point[1] - self.pan_y) / self._zoom)

    def screen_from_world(self, point: Point2D) -> Point2D:
        return (point[0] * self._zoom + self.pan_x, point[1] * self._zoom + self.pan_y)

    def scale_length(self, length: float) -> float:
        return length * self._zoom

    def zoom_at(self, screen_point: Point2D, new_zoom: float) -> float:
        """Change zoom keeping the world point under ``screen_point`` in place."""

        clamped = self.config.clamp_zoom(new_zoom)
        if clamped == self._zoom:
            return self._zoom
        world_x, world_y = self.world_from_screen(screen_point)
        self._zoom = clamped
        self.pan_x = screen_point[0] - world_x * clamped
        self.pan_y = screen_point[1] - world_y * clamped
        self._notify()
        return self._zoom

    def zoom_by_wheel(self, delta: float, screen_point: Point2D) -> float:
        """Apply a wheel delta; positive deltas (scrolling down) zoom out."""

        factor = math.exp(-float(delta) * self.config.zoom_sensitivity)
        return self.zoom_at(screen_point, self._zoom * factor)

    def set_zoom(self, value: float, anchor: Optional[Point2D] = None) -> float:
        """External zoom setter; anchored at the canvas center by default."""

        if anchor is None:
            anchor = (self.canvas_size[0] * 0.5, self.canvas_size[1] * 0.5)
        return self.zoom_at(anchor, value)

    def zoom_in(self) -> float:
        return self.set_zoom(self._zoom * self.config.button_zoom_step)

    def zoom_out(self) -> float:
        return self.set_zoom(self._zoom / self.config.button_zoom_step)

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy

    def set_pan(self, x: float, y: float) -> None:
        self.pan_x = float(x)
        self.pan_y = float(y)

    def reset(self) -> None:
        self.pan_x = 0.0
        self.pan_y = 0.0
        if self._zoom != 1.0:
            self._zoom = self.config.clamp_zoom(1.0)
            self._notify()

    def fit_to_bounds(self, bounds: Bounds, padding: float = 40.0) -> float:
        """Zoom and pan so ``bounds`` (world space) fills the canvas."""

        width, height = self.canvas_size
        span_w = max(bounds.width + 2.0 * padding, 1e-9)
        span_h = max(bounds.height + 2.0 * padding, 1e-9)
        previous = self._zoom
        self._zoom = self.config.clamp_zoom(min(width / span_w, height / span_h))
        cx, cy = bounds.center
        self.pan_x = width * 0.5 - cx * self._zoom
        self.pan_y = height * 0.5 - cy * self._zoom
        logger.debug("Fitted viewport to %s: zoom=%.4g pan=(%.4g, %.4g)", bounds, self._zoom, self.pan_x, self.pan_y)
        if self._zoom != previous:
            self._notify()
        return self._zoom

    def _notify(self) -> None:
        if self.on_zoom_change is not None:
            self.on_zoom_change(self._zoom)


__all__ = ["Viewport", "ZoomListener"]
