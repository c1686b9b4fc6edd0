"""Configuration for the layout engine and viewport."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Optional

from .types import Bounds, Point2D


@dataclass
class LayoutConfig:
    """Knobs for the force model and the fixed logical canvas."""

    width: float = 800.0
    height: float = 600.0
    node_width: float = 100.0
    node_height: float = 40.0

    initial_radius: float = 250.0
    initial_jitter: float = 1.0
    random_seed: Optional[int] = 0

    center_strength: float = 0.02
    repulsion_strength: float = 50000.0
    max_repulsion: Optional[float] = 10.0
    # None disables the cutoff: every pair repels.
    repulsion_cutoff: Optional[float] = 400.0
    link_distance: float = 150.0
    link_strength: float = 0.05
    min_separation: float = 60.0
    # upper bound; a pass stops at the first sweep without overlaps
    collision_iterations: int = 200
    damping: float = 0.85
    # per-tick displacement cap; None disables it
    max_speed: Optional[float] = 20.0
    distance_floor: float = 1.0

    frame_interval: float = 1.0 / 60.0

    @property
    def center(self) -> Point2D:
        return (self.width * 0.5, self.height * 0.5)

    def node_bounds(self) -> Bounds:
        """Region in which node centers may lie so each rectangle stays on canvas."""

        half_w = min(self.node_width * 0.5, self.width * 0.5)
        half_h = min(self.node_height * 0.5, self.height * 0.5)
        return Bounds(half_w, half_h, self.width - half_w, self.height - half_h)

    def validate(self) -> None:
        if self.width <= 0.0 or self.height <= 0.0:
            raise ValueError("canvas width and height must be positive")
        if self.node_width <= 0.0 or self.node_height <= 0.0:
            raise ValueError("node width and height must be positive")
        if not 0.0 < self.damping < 1.0:
            raise ValueError(f"damping must lie in (0, 1), got {self.damping}")
        if self.max_speed is not None and self.max_speed <= 0.0:
            raise ValueError("max_speed must be positive or None")
        if self.distance_floor <= 0.0:
            raise ValueError("distance_floor must be positive")
        if self.min_separation < 0.0:
            raise ValueError("min_separation must be non-negative")
        if self.repulsion_cutoff is not None and self.repulsion_cutoff <= 0.0:
            raise ValueError("repulsion_cutoff must be positive or None")
        if self.collision_iterations < 0:
            raise ValueError("collision_iterations must be non-negative")
        if self.frame_interval < 0.0:
            raise ValueError("frame_interval must be non-negative")


@dataclass
class ViewportConfig:
    zoom_min: float = 0.1
    zoom_max: float = 5.0
    zoom_sensitivity: float = 0.0015
    button_zoom_step: float = 1.2

    def validate(self) -> None:
        if self.zoom_min <= 0.0:
            raise ValueError("zoom_min must be positive")
        if self.zoom_min > self.zoom_max:
            raise ValueError(f"zoom_min {self.zoom_min} exceeds zoom_max {self.zoom_max}")
        if self.button_zoom_step <= 1.0:
            raise ValueError("button_zoom_step must be greater than 1")

    def clamp_zoom(self, value: float) -> float:
        return min(self.zoom_max, max(self.zoom_min, float(value)))


_LAYOUT_CONFIG = LayoutConfig()
_VIEWPORT_CONFIG = ViewportConfig()


def get_layout_config() -> LayoutConfig:
    return copy.deepcopy(_LAYOUT_CONFIG)


def set_layout_config(config: LayoutConfig) -> None:
    global _LAYOUT_CONFIG
    config.validate()
    _LAYOUT_CONFIG = copy.deepcopy(config)


def get_viewport_config() -> ViewportConfig:
    return copy.deepcopy(_VIEWPORT_CONFIG)


def set_viewport_config(config: ViewportConfig) -> None:
    global _VIEWPORT_CONFIG
    config.validate()
    _VIEWPORT_CONFIG = copy.deepcopy(config)


__all__ = [
    "LayoutConfig",
    "ViewportConfig",
    "get_layout_config",
    "get_viewport_config",
    "set_layout_config",
    "set_viewport_config",
]
