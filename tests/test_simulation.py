import math
from itertools import combinations

import numpy as np
import pytest
from scipy.spatial.distance import pdist

from forcegraph import LayoutConfig, ManualScheduler, Node, Relationship, SimulationEngine


def _nodes(*ids):
    return [Node(id=node_id, type="concept", detail=f"about {node_id}") for node_id in ids]


def _engine(**overrides):
    return SimulationEngine(LayoutConfig(**overrides), ManualScheduler())


def _dist(engine, a, b):
    pa = engine.position(a)
    pb = engine.position(b)
    return math.hypot(pa.x - pb.x, pa.y - pb.y)


def _run(engine, ticks):
    for _ in range(ticks):
        engine.tick()


def test_initial_placement_is_angular_around_center():
    engine = _engine(initial_jitter=0.0)
    engine.set_data(_nodes("A", "B", "C", "D"))

    assert engine.position("A").point == pytest.approx((400.0, 50.0))
    assert engine.position("B").point == pytest.approx((650.0, 300.0))
    assert engine.position("C").point == pytest.approx((400.0, 550.0))
    assert engine.position("D").point == pytest.approx((150.0, 300.0))
    assert engine.position("A").vx == 0.0


def test_position_keys_match_latest_node_set():
    engine = _engine()
    engine.set_data(_nodes("A", "B", "C"))
    _run(engine, 10)
    kept = {node_id: engine.position(node_id).point for node_id in ("B", "C")}

    engine.set_data(_nodes("B", "C", "D"))

    assert set(engine.positions()) == {"B", "C", "D"}
    assert engine.node_ids == ["B", "C", "D"]
    assert not engine.has_node("A")
    for node_id, point in kept.items():
        assert engine.position(node_id).point == point


def test_duplicate_ids_collapse_to_first_occurrence():
    engine = _engine()
    engine.set_data(
        [Node("A", "person", "first"), Node("B", "place"), Node("A", "event", "second")]
    )
    assert engine.node_ids == ["A", "B"]
    assert engine.nodes[0].detail == "first"


def test_refresh_with_identical_data_does_not_move_nodes():
    nodes = _nodes("A", "B", "C", "D")
    relationships = [Relationship("A", "B", "knows"), Relationship("C", "D", "near")]
    engine = _engine()
    engine.set_data(nodes, relationships)
    _run(engine, 50)
    before = engine.points()

    engine.set_data(list(nodes), list(relationships))

    after = engine.points()
    assert after.keys() == before.keys()
    for node_id in before:
        assert after[node_id] == before[node_id]


def test_initial_positions_seed_only_new_ids():
    engine = _engine()
    engine.set_data(_nodes("A"), initial_positions={"A": (10.0, 20.0)})
    assert engine.position("A").point == (10.0, 20.0)

    engine.set_data(_nodes("A", "B"), initial_positions={"A": (99.0, 99.0), "B": (30.0, 40.0)})
    assert engine.position("A").point == (10.0, 20.0)
    assert engine.position("B").point == (30.0, 40.0)


def test_relationships_with_unknown_ids_are_not_links():
    engine = _engine()
    engine.set_data(
        _nodes("A", "B"),
        [Relationship("A", "B", "x"), Relationship("A", "ghost", "y"), Relationship("B", "B", "self")],
    )
    assert engine.links == [("A", "B")]
    assert len(engine.relationships) == 3
    _run(engine, 5)


def test_empty_data_is_idle():
    engine = _engine()
    engine.set_data([])
    engine.tick()
    assert engine.positions() == {}
    assert engine.bounds() is None
    assert engine.tick_count == 0


def test_unlinked_nodes_converge_toward_center():
    engine = _engine()
    engine.set_data(_nodes("A", "B", "C", "D", "E", "F"))
    center = np.array(engine.center)

    def mean_radius():
        pts = np.array(list(engine.points().values()))
        return float(np.mean(np.hypot(*(pts - center).T)))

    initial = mean_radius()
    _run(engine, 300)
    settled = mean_radius()
    _run(engine, 100)
    later = mean_radius()

    assert settled < initial
    assert later <= settled + 1.0
    bounds = engine.config.node_bounds()
    for x, y in engine.points().values():
        assert bounds.min_x <= x <= bounds.max_x
        assert bounds.min_y <= y <= bounds.max_y
    assert engine.kinetic_energy() < 1e-2


def _assert_separated(engine, tol=1e-6):
    pts = np.array(list(engine.points().values()))
    assert pdist(pts).min() >= engine.config.min_separation - tol
    bounds = engine.config.node_bounds()
    assert pts[:, 0].min() >= bounds.min_x and pts[:, 0].max() <= bounds.max_x
    assert pts[:, 1].min() >= bounds.min_y and pts[:, 1].max() <= bounds.max_y


def test_crowded_initial_placement_falls_back_to_grid():
    engine = _engine()
    engine.set_data(_nodes(*[f"n{i}" for i in range(30)]))
    pts = np.array(list(engine.points().values()))
    # jitter moves each slot by at most 1 per axis
    assert pdist(pts).min() >= engine.config.min_separation
    assert engine.position("n0").point != pytest.approx((400.0, 50.0), abs=2.0)


def test_collision_pass_stays_inside_bounds():
    engine = _engine()
    ids = [f"n{i}" for i in range(6)]
    engine.set_data(_nodes(*ids), initial_positions={node_id: (750.0, 20.0) for node_id in ids})

    assert engine.resolve_collisions() > 0
    _assert_separated(engine)


def test_ticks_keep_min_separation_with_default_config():
    engine = _engine()
    engine.set_data(_nodes(*[f"n{i}" for i in range(80)]))
    _assert_separated(engine, tol=2.0)

    for _ in range(150):
        engine.tick()
        _assert_separated(engine)


def test_ticks_keep_min_separation_with_links():
    ids = [f"n{i}" for i in range(60)]
    relationships = [Relationship(ids[i], ids[(i - 1) // 3], "child_of") for i in range(1, len(ids))]
    engine = _engine()
    engine.set_data(_nodes(*ids), relationships)

    for _ in range(150):
        engine.tick()
        _assert_separated(engine)


def test_ticks_keep_min_separation_for_two_hundred_nodes():
    engine = _engine(min_separation=30.0)
    engine.set_data(_nodes(*[f"n{i}" for i in range(200)]))

    for _ in range(60):
        engine.tick()
        _assert_separated(engine)


def test_velocity_is_lost_against_walls():
    engine = _engine()
    engine.set_data(_nodes("A", "B"), initial_positions={"A": (749.0, 300.0), "B": (689.0, 300.0)})
    engine.tick()
    assert engine.position("A").x == 750.0
    assert engine.position("A").vx == pytest.approx(1.0)


def test_coincident_nodes_are_separated_without_error():
    engine = _engine(min_separation=40.0)
    engine.set_data(_nodes("A", "B"), initial_positions={"A": (300.0, 300.0), "B": (300.0, 300.0)})
    engine.tick()
    assert _dist(engine, "A", "B") >= 40.0 - 1e-9
    for node_id in ("A", "B"):
        pos = engine.position(node_id)
        assert all(math.isfinite(v) for v in (pos.x, pos.y, pos.vx, pos.vy))


def test_boundary_clamp_keeps_rectangles_on_canvas():
    engine = _engine()
    engine.set_data(_nodes("A", "B"), initial_positions={"A": (-500.0, 2000.0), "B": (900.0, -40.0)})
    engine.clamp_to_bounds()
    assert engine.position("A").point == (50.0, 580.0)
    assert engine.position("B").point == (750.0, 20.0)


def test_dragged_node_follows_pointer_exactly():
    nodes = _nodes("A", "B", "C", "D")
    relationships = [Relationship("A", "B", "x"), Relationship("A", "C", "y")]
    engine = _engine()
    engine.set_data(nodes, relationships)
    _run(engine, 20)

    engine.begin_drag("A", (123.5, 321.25))
    for _ in range(10):
        engine.tick()
        pos = engine.position("A")
        assert pos.point == (123.5, 321.25)
        assert (pos.vx, pos.vy, pos.fx, pos.fy) == (0.0, 0.0, 0.0, 0.0)

    # outside the clamp region is still authoritative
    engine.drag_to((-30.0, 700.0))
    engine.tick()
    assert engine.position("A").point == (-30.0, 700.0)

    engine.end_drag()
    engine.tick()
    assert engine.dragged_id is None
    assert engine.position("A").point != (-30.0, 700.0)


def test_dragged_node_is_an_obstacle_for_neighbors():
    engine = _engine(initial_jitter=0.0)
    engine.set_data(_nodes("A", "B"), initial_positions={"A": (100.0, 100.0), "B": (400.0, 500.0)})
    engine.begin_drag("A", (400.0, 520.0))
    b_before = engine.position("B").point

    engine.tick()

    assert engine.position("A").point == (400.0, 520.0)
    assert engine.position("B").point != b_before
    assert _dist(engine, "A", "B") >= engine.config.min_separation - 1e-9


def test_begin_drag_unknown_node_raises():
    engine = _engine()
    engine.set_data(_nodes("A"))
    with pytest.raises(KeyError):
        engine.begin_drag("missing", (0.0, 0.0))
    with pytest.raises(RuntimeError):
        engine.drag_to((1.0, 1.0))


def test_refresh_releases_drag_of_removed_node():
    engine = _engine()
    engine.set_data(_nodes("A", "B"))
    engine.begin_drag("A", (200.0, 200.0))
    engine.set_data(_nodes("B", "C"))
    assert engine.dragged_id is None
    engine.tick()


def test_refresh_keeps_drag_of_surviving_node():
    engine = _engine()
    engine.set_data(_nodes("A", "B"))
    engine.begin_drag("B", (200.0, 210.0))
    engine.set_data(_nodes("C", "B"))
    assert engine.dragged_id == "B"
    engine.tick()
    assert engine.position("B").point == (200.0, 210.0)


def test_linked_pair_settles_near_rest_length_and_unlinked_node_stays_apart():
    engine = _engine()
    engine.set_data(_nodes("A", "B", "C"), [Relationship("A", "B", "related_to")])
    rest = engine.config.link_distance
    min_sep = engine.config.min_separation

    for _ in range(600):
        engine.tick()
        for a, b in combinations("ABC", 2):
            assert _dist(engine, a, b) >= min_sep - 1e-6

    ab = _dist(engine, "A", "B")
    assert 0.8 * rest < ab < 1.3 * rest
    assert ab < _dist(engine, "A", "C")
    assert ab < _dist(engine, "B", "C")


def test_repulsion_without_cutoff_reaches_distant_pairs():
    far = {"A": (60.0, 300.0), "B": (740.0, 300.0)}
    with_cutoff = _engine(center_strength=0.0)
    with_cutoff.set_data(_nodes("A", "B"), initial_positions=far)
    with_cutoff.tick()
    assert with_cutoff.position("A").point == pytest.approx(far["A"])

    unconditional = _engine(center_strength=0.0, repulsion_cutoff=None)
    unconditional.set_data(_nodes("A", "B"), initial_positions=far)
    unconditional.tick()
    assert unconditional.position("A").x < far["A"][0]
    assert unconditional.position("B").x > far["B"][0]


def test_repulsion_is_capped():
    engine = _engine(center_strength=0.0, min_separation=0.0, max_repulsion=2.0, damping=0.5)
    engine.set_data(_nodes("A", "B"), initial_positions={"A": (399.0, 300.0), "B": (401.0, 300.0)})
    engine.tick()
    # (0 + 2.0) * 0.5 per node
    assert engine.position("A").vx == pytest.approx(-1.0)
    assert engine.position("B").vx == pytest.approx(1.0)


def test_invalid_config_is_rejected():
    with pytest.raises(ValueError):
        _engine(damping=1.0)
    with pytest.raises(ValueError):
        _engine(width=0.0)


def test_speed_is_capped_per_tick():
    far = {"A": (50.0, 300.0)}
    capped = _engine(center_strength=1.0)
    capped.set_data(_nodes("A"), initial_positions=far)
    capped.tick()
    assert capped.position("A").point == pytest.approx((70.0, 300.0))
    assert capped.position("A").vx == pytest.approx(20.0)

    free = _engine(center_strength=1.0, max_speed=None)
    free.set_data(_nodes("A"), initial_positions=far)
    free.tick()
    assert free.position("A").x == pytest.approx(50.0 + 350.0 * 0.85)
