"""Plane helpers for trimming edges at rectangular node borders."""

from __future__ import annotations

import hashlib
import math
from typing import Tuple

from .types import Bounds, Point2D

_DENOM_EPS = 1e-12


def _vec2(a: Point2D, b: Point2D) -> Point2D:
    return b[0] - a[0], b[1] - a[1]


def midpoint(a: Point2D, b: Point2D) -> Point2D:
    return (a[0] + b[0]) * 0.5, (a[1] + b[1]) * 0.5


def intersect(source: Point2D, target: Point2D, width: float, height: float) -> Point2D:
    """Return where the ray from ``source`` toward ``target`` leaves the node rectangle.

    The rectangle is ``width`` x ``height`` and centred at ``source``.  When the
    slope ``|dy/dx|`` is at most ``height/width`` the ray crosses a vertical
    edge, otherwise a horizontal one.  Coincident centers return ``source``.
    """

    dx, dy = _vec2(source, target)
    if abs(dx) <= _DENOM_EPS and abs(dy) <= _DENOM_EPS:
        return (float(source[0]), float(source[1]))

    half_w = width * 0.5
    half_h = height * 0.5
    # |dy| / |dx| <= half_h / half_w, cross-multiplied so dx == 0 needs no branch
    if abs(dy) * half_w <= abs(dx) * half_h:
        edge_x = math.copysign(half_w, dx)
        return (source[0] + edge_x, source[1] + dy * (half_w / abs(dx)))
    edge_y = math.copysign(half_h, dy)
    return (source[0] + dx * (half_h / abs(dy)), source[1] + edge_y)


def clip_segment(
    source: Point2D, target: Point2D, width: float, height: float
) -> Tuple[Point2D, Point2D]:
    """Trim the center-to-center segment so it runs border to border."""

    start = intersect(source, target, width, height)
    end = intersect(target, source, width, height)
    return start, end


def clamp_point(point: Point2D, bounds: Bounds) -> Point2D:
    x = min(bounds.max_x, max(bounds.min_x, point[0]))
    y = min(bounds.max_y, max(bounds.min_y, point[1]))
    return (x, y)


def separation_direction(key: str) -> Point2D:
    """Deterministic unit vector used to split coincident points.

    Hashing the key keeps the outcome reproducible across runs.
    """

    digest = hashlib.md5(key.encode("utf-8")).hexdigest()
    angle = (int(digest[:8], 16) / 0xFFFFFFFF) * 2.0 * math.pi
    return (math.cos(angle), math.sin(angle))


__all__ = [
    "clamp_point",
    "clip_segment",
    "intersect",
    "midpoint",
    "separation_direction",
]
