import math

import numpy as np
import pytest

from forcegraph.geometry import clip_segment, intersect, midpoint, separation_direction, clamp_point
from forcegraph.types import Bounds


def _on_border(point, center, width, height, tol=1e-9):
    dx = abs(point[0] - center[0])
    dy = abs(point[1] - center[1])
    on_vertical = math.isclose(dx, width / 2, abs_tol=tol) and dy <= height / 2 + tol
    on_horizontal = math.isclose(dy, height / 2, abs_tol=tol) and dx <= width / 2 + tol
    return on_vertical or on_horizontal


def test_intersect_exits_through_side_edges():
    assert intersect((0.0, 0.0), (100.0, 0.0), 100.0, 40.0) == pytest.approx((50.0, 0.0))
    assert intersect((0.0, 0.0), (-100.0, 0.0), 100.0, 40.0) == pytest.approx((-50.0, 0.0))
    # shallow slope still leaves through the right edge
    assert intersect((0.0, 0.0), (100.0, 10.0), 100.0, 40.0) == pytest.approx((50.0, 5.0))


def test_intersect_exits_through_top_and_bottom_edges():
    assert intersect((0.0, 0.0), (0.0, 100.0), 100.0, 40.0) == pytest.approx((0.0, 20.0))
    assert intersect((0.0, 0.0), (0.0, -100.0), 100.0, 40.0) == pytest.approx((0.0, -20.0))
    assert intersect((10.0, 10.0), (20.0, 110.0), 100.0, 40.0) == pytest.approx((12.0, 30.0))


def test_intersect_exact_corner_direction():
    point = intersect((0.0, 0.0), (50.0, 20.0), 100.0, 40.0)
    assert point == pytest.approx((50.0, 20.0))


def test_intersect_degenerate_returns_source():
    assert intersect((3.0, 4.0), (3.0, 4.0), 100.0, 40.0) == (3.0, 4.0)


def test_intersect_lies_on_perimeter_and_on_line():
    rng = np.random.default_rng(7)
    width, height = 120.0, 36.0
    for _ in range(500):
        source = tuple(rng.uniform(-500.0, 500.0, size=2))
        target = tuple(rng.uniform(-500.0, 500.0, size=2))
        if math.hypot(target[0] - source[0], target[1] - source[1]) < 1e-6:
            continue
        point = intersect(source, target, width, height)
        assert _on_border(point, source, width, height, tol=1e-7)

        # same direction as the source -> target line
        vx, vy = target[0] - source[0], target[1] - source[1]
        px, py = point[0] - source[0], point[1] - source[1]
        cross = vx * py - vy * px
        assert abs(cross) <= 1e-6 * max(1.0, math.hypot(vx, vy) * math.hypot(px, py))
        assert vx * px + vy * py > 0.0


def test_clip_segment_trims_both_ends():
    start, end = clip_segment((0.0, 0.0), (300.0, 0.0), 100.0, 40.0)
    assert start == pytest.approx((50.0, 0.0))
    assert end == pytest.approx((250.0, 0.0))


def test_midpoint_and_clamp_point():
    assert midpoint((0.0, 0.0), (10.0, -4.0)) == (5.0, -2.0)
    bounds = Bounds(0.0, 0.0, 10.0, 5.0)
    assert clamp_point((-3.0, 7.0), bounds) == (0.0, 5.0)
    assert clamp_point((4.0, 2.0), bounds) == (4.0, 2.0)


def test_separation_direction_is_deterministic_unit_vector():
    first = separation_direction("A|B")
    second = separation_direction("A|B")
    assert first == second
    assert math.hypot(*first) == pytest.approx(1.0)
    assert separation_direction("A|C") != first
