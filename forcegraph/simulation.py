"""Force-directed layout simulation.

The engine keeps one row per live node id in a small arena of numpy arrays
(``positions``, ``velocities``, ``forces``) and maps ids to rows through
``index``.  Incoming :class:`~forcegraph.types.Node` and
:class:`~forcegraph.types.Relationship` records are never mutated; refreshing
the data rebuilds the arena while carrying every surviving row over by id.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import cKDTree

from .config import LayoutConfig, get_layout_config
from .geometry import clamp_point, separation_direction
from .logging_utils import apply_debug_logging
from .scheduler import FrameHandle, FrameScheduler, ManualScheduler
from .types import Bounds, Node, NodeId, NodePosition, Point2D, Relationship

logger = logging.getLogger(__name__)

_COINCIDENT_EPS = 1e-9
_SEPARATION_TOL = 1e-9
# corrected pairs land this far past the minimum
_SEPARATION_SLACK = 1e-4

TickListener = Callable[["SimulationEngine"], None]


class SimulationEngine:
    """Owns node positions and advances them one frame at a time."""

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        scheduler: Optional[FrameScheduler] = None,
        *,
        on_tick: Optional[TickListener] = None,
    ) -> None:
        self.config = config if config is not None else get_layout_config()
        self.config.validate()
        self.scheduler: FrameScheduler = scheduler if scheduler is not None else ManualScheduler()
        self.on_tick = on_tick
        self._rng = np.random.default_rng(self.config.random_seed)

        self._nodes: List[Node] = []
        self._relationships: List[Relationship] = []
        self._ids: List[NodeId] = []
        self.index: Dict[NodeId, int] = {}
        self._pos = np.zeros((0, 2), dtype=float)
        self._vel = np.zeros((0, 2), dtype=float)
        self._force = np.zeros((0, 2), dtype=float)
        self._links = np.zeros((0, 2), dtype=int)

        self._dragged: Optional[NodeId] = None
        self._drag_target: Optional[np.ndarray] = None

        self._handle: Optional[FrameHandle] = None
        self._running = False
        self._closed = False
        self.tick_count = 0

    # -- data ------------------------------------------------------------

    def set_data(
        self,
        nodes: Iterable[Node],
        relationships: Iterable[Relationship] = (),
        *,
        initial_positions: Optional[Mapping[NodeId, Point2D]] = None,
    ) -> None:
        """Replace the node and relationship sets, keeping known positions by id.

        ``initial_positions`` seeds ids seen for the first time; it never moves
        a node that already has a position.
        """

        unique: List[Node] = []
        seen = set()
        for node in nodes:
            if node.id in seen:
                continue
            seen.add(node.id)
            unique.append(node)

        count = len(unique)
        positions = np.zeros((count, 2), dtype=float)
        velocities = np.zeros((count, 2), dtype=float)
        fresh: List[int] = []
        for row, node in enumerate(unique):
            old = self.index.get(node.id)
            if old is None:
                fresh.append(row)
            else:
                positions[row] = self._pos[old]
                velocities[row] = self._vel[old]
        if fresh:
            positions[fresh] = self._initial_positions(fresh, count)
            for row in fresh:
                seeded = (initial_positions or {}).get(unique[row].id)
                if seeded is not None:
                    positions[row] = (float(seeded[0]), float(seeded[1]))

        removed = len(self._ids) - (count - len(fresh))
        self._nodes = unique
        self._ids = [node.id for node in unique]
        self.index = {node_id: row for row, node_id in enumerate(self._ids)}
        self._pos = positions
        self._vel = velocities
        self._force = np.zeros((count, 2), dtype=float)

        self._relationships = list(relationships)
        links = []
        dropped = 0
        for rel in self._relationships:
            source = self.index.get(rel.source)
            target = self.index.get(rel.target)
            if source is None or target is None:
                dropped += 1
                continue
            if source != target:
                links.append((source, target))
        self._links = np.asarray(links, dtype=int).reshape(-1, 2)
        if dropped:
            logger.debug("Dropped %d relationship(s) with unknown endpoints", dropped)

        if self._dragged is not None and self._dragged not in self.index:
            logger.debug("Dragged node %s left the data set; releasing drag", self._dragged)
            self.end_drag()
        elif self._dragged is not None:
            self._pin_dragged()

        logger.info(
            "Layout data: %d node(s) (%d new, %d removed), %d link(s)",
            count,
            len(fresh),
            removed,
            len(self._links),
        )

        if count == 0:
            self._cancel()
        else:
            self._ensure_scheduled()

    def _initial_positions(self, rows: Sequence[int], total: int) -> np.ndarray:
        """Slots on a ring around the center, or on a grid once the ring is too crowded.

        The ring holds ``total`` slots while neighbouring slots stay at least
        ``min_separation`` apart; larger sets are laid out row by row over the
        canvas.
        """

        cfg = self.config
        if self._ring_fits(total):
            cx, cy = cfg.center
            step = 2.0 * math.pi / max(total, 1)
            # first slot at the top of the ring
            angles = np.asarray(rows, dtype=float) * step - math.pi / 2.0
            placed = np.column_stack(
                (cx + cfg.initial_radius * np.cos(angles), cy + cfg.initial_radius * np.sin(angles))
            )
        else:
            placed = self._grid_slots(rows, total)
        if cfg.initial_jitter > 0.0:
            placed += self._rng.uniform(-cfg.initial_jitter, cfg.initial_jitter, size=placed.shape)
        bounds = cfg.node_bounds()
        placed[:, 0] = np.clip(placed[:, 0], bounds.min_x, bounds.max_x)
        placed[:, 1] = np.clip(placed[:, 1], bounds.min_y, bounds.max_y)
        return placed

    def _ring_fits(self, total: int) -> bool:
        cfg = self.config
        if total < 2 or cfg.min_separation <= 0.0:
            return True
        chord = 2.0 * cfg.initial_radius * math.sin(math.pi / total)
        return chord >= cfg.min_separation

    def _grid_slots(self, rows: Sequence[int], total: int) -> np.ndarray:
        bounds = self.config.node_bounds()
        width, height = bounds.width, bounds.height
        cols = max(1, math.ceil(math.sqrt(total * width / max(height, 1e-9))))
        lines = max(1, math.ceil(total / cols))
        spacings = [span / (n - 1) for span, n in ((width, cols), (height, lines)) if n > 1]
        spacing = min(spacings) if spacings else 0.0
        cx, cy = bounds.center
        slots = np.asarray(rows, dtype=int)
        col = slots % cols
        line = slots // cols
        return np.column_stack(
            (cx + (col - (cols - 1) * 0.5) * spacing, cy + (line - (lines - 1) * 0.5) * spacing)
        ).astype(float)

    # -- queries ---------------------------------------------------------

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes)

    @property
    def relationships(self) -> List[Relationship]:
        return list(self._relationships)

    @property
    def node_ids(self) -> List[NodeId]:
        return list(self._ids)

    @property
    def links(self) -> List[Tuple[NodeId, NodeId]]:
        """Renderable links as ``(source_id, target_id)`` pairs."""

        return [(self._ids[s], self._ids[t]) for s, t in self._links]

    @property
    def center(self) -> Point2D:
        return self.config.center

    @property
    def dragged_id(self) -> Optional[NodeId]:
        return self._dragged

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self.index

    def position(self, node_id: NodeId) -> NodePosition:
        row = self.index[node_id]
        return NodePosition(
            x=float(self._pos[row, 0]),
            y=float(self._pos[row, 1]),
            vx=float(self._vel[row, 0]),
            vy=float(self._vel[row, 1]),
            fx=float(self._force[row, 0]),
            fy=float(self._force[row, 1]),
        )

    def positions(self) -> Dict[NodeId, NodePosition]:
        return {node_id: self.position(node_id) for node_id in self._ids}

    def points(self) -> Dict[NodeId, Point2D]:
        return {node_id: (float(x), float(y)) for node_id, (x, y) in zip(self._ids, self._pos)}

    def bounds(self) -> Optional[Bounds]:
        if not self._ids:
            return None
        lo = self._pos.min(axis=0)
        hi = self._pos.max(axis=0)
        return Bounds(float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))

    def kinetic_energy(self) -> float:
        return float(np.sum(self._vel * self._vel))

    # -- dragging --------------------------------------------------------

    def begin_drag(self, node_id: NodeId, world_point: Point2D) -> None:
        if node_id not in self.index:
            raise KeyError(f"Unknown node '{node_id}'")
        self._dragged = node_id
        self.drag_to(world_point)

    def drag_to(self, world_point: Point2D) -> None:
        if self._dragged is None:
            raise RuntimeError("drag_to called while no node is being dragged")
        self._drag_target = np.array([float(world_point[0]), float(world_point[1])])
        self._pin_dragged()

    def end_drag(self) -> None:
        self._dragged = None
        self._drag_target = None

    def _drag_row(self) -> Optional[int]:
        if self._dragged is None:
            return None
        return self.index.get(self._dragged)

    def _pin_dragged(self) -> None:
        row = self._drag_row()
        if row is None or self._drag_target is None:
            return
        self._pos[row] = self._drag_target
        self._vel[row] = 0.0
        self._force[row] = 0.0

    # -- physics ---------------------------------------------------------

    def tick(self) -> None:
        """Advance the layout by one complete step."""

        count = len(self._ids)
        if count == 0:
            return
        cfg = self.config
        drag_row = self._drag_row()
        movable = np.ones(count, dtype=bool)
        if drag_row is not None:
            movable[drag_row] = False

        self._force.fill(0.0)
        center = np.asarray(cfg.center, dtype=float)
        self._force[movable] += (center - self._pos[movable]) * cfg.center_strength
        self._apply_repulsion()
        self._apply_links()

        start = self._pos.copy()
        self._vel[movable] = (self._vel[movable] + self._force[movable]) * cfg.damping
        if cfg.max_speed is not None:
            speed = np.hypot(self._vel[:, 0], self._vel[:, 1])
            fast = speed > cfg.max_speed
            if fast.any():
                self._vel[fast] *= (cfg.max_speed / speed[fast])[:, None]
        self._pos[movable] += self._vel[movable]

        self.clamp_to_bounds()
        self.resolve_collisions()
        self._pin_dragged()
        # velocity carries only the displacement that survived walls and collisions
        self._vel[movable] = self._pos[movable] - start[movable]

        self.tick_count += 1
        if self.on_tick is not None:
            self.on_tick(self)

    def _pairs_within(self, radius: Optional[float]) -> np.ndarray:
        count = len(self._ids)
        if count < 2:
            return np.zeros((0, 2), dtype=int)
        if radius is None:
            rows, cols = np.triu_indices(count, k=1)
            return np.column_stack((rows, cols))
        pairs = cKDTree(self._pos).query_pairs(r=radius, output_type="ndarray")
        return np.asarray(pairs, dtype=int).reshape(-1, 2)

    def _pair_key(self, a: int, b: int) -> str:
        return f"{self._ids[a]}|{self._ids[b]}"

    def _unit_vectors(self, delta: np.ndarray, dist: np.ndarray, pairs: np.ndarray) -> np.ndarray:
        unit = np.zeros_like(delta)
        apart = dist > _COINCIDENT_EPS
        unit[apart] = delta[apart] / dist[apart, None]
        for k in np.flatnonzero(~apart):
            unit[k] = separation_direction(self._pair_key(int(pairs[k, 0]), int(pairs[k, 1])))
        return unit

    def _apply_repulsion(self) -> None:
        cfg = self.config
        pairs = self._pairs_within(cfg.repulsion_cutoff)
        if not len(pairs):
            return
        first, second = pairs[:, 0], pairs[:, 1]
        delta = self._pos[first] - self._pos[second]
        dist = np.hypot(delta[:, 0], delta[:, 1])
        unit = self._unit_vectors(delta, dist, pairs)
        dist = np.maximum(dist, cfg.distance_floor)
        magnitude = cfg.repulsion_strength / (dist * dist)
        if cfg.max_repulsion is not None:
            magnitude = np.minimum(magnitude, cfg.max_repulsion)
        push = unit * magnitude[:, None]
        np.add.at(self._force, first, push)
        np.add.at(self._force, second, -push)

    def _apply_links(self) -> None:
        if not len(self._links):
            return
        cfg = self.config
        source, target = self._links[:, 0], self._links[:, 1]
        delta = self._pos[target] - self._pos[source]
        dist = np.hypot(delta[:, 0], delta[:, 1])
        stretch = dist - cfg.link_distance
        taut = stretch > 0.0
        if not taut.any():
            return
        unit = delta[taut] / np.maximum(dist[taut], cfg.distance_floor)[:, None]
        pull = unit * (stretch[taut] * cfg.link_strength)[:, None]
        np.add.at(self._force, source[taut], pull)
        np.add.at(self._force, target[taut], -pull)

    def resolve_collisions(self) -> int:
        """Push apart every pair closer than ``min_separation``.

        Each sweep splits the overlap of a pair between both members along
        their connecting axis.  Moves are clamped to the node bounds, and
        whatever one member cannot take because of a wall goes to the other.
        A dragged node does not move and its partner takes the whole overlap.
        Sweeps repeat until one finds no overlap or ``collision_iterations``
        is spent.  Returns the number of corrections applied.
        """

        cfg = self.config
        min_sep = cfg.min_separation
        if len(self._ids) < 2 or min_sep <= 0.0:
            return 0
        bounds = cfg.node_bounds()
        drag_row = self._drag_row()
        pos = self._pos
        target = min_sep + _SEPARATION_SLACK
        corrections = 0
        settled = False
        for sweep in range(cfg.collision_iterations):
            pairs = self._pairs_within(min_sep)
            if sweep % 2:
                pairs = pairs[::-1]
            applied = 0
            for a, b in pairs:
                a = int(a)
                b = int(b)
                if b == drag_row:
                    a, b = b, a
                dx = pos[b, 0] - pos[a, 0]
                dy = pos[b, 1] - pos[a, 1]
                dist = math.hypot(dx, dy)
                if dist >= min_sep - _SEPARATION_TOL:
                    continue
                if dist <= _COINCIDENT_EPS:
                    ux, uy = separation_direction(self._pair_key(a, b))
                else:
                    ux, uy = dx / dist, dy / dist
                gap = target - dist
                if a == drag_row:
                    self._shift(b, ux, uy, gap, bounds)
                else:
                    moved = self._shift(a, -ux, -uy, gap * 0.5, bounds)
                    moved += self._shift(b, ux, uy, gap - moved, bounds)
                    self._shift(a, -ux, -uy, gap - moved, bounds)
                applied += 1
            corrections += applied
            if not applied:
                settled = True
                break
        if not settled and cfg.collision_iterations:
            logger.debug(
                "Collision pass stopped after %d sweep(s) with overlaps left", cfg.collision_iterations
            )
        return corrections

    def _shift(self, row: int, ux: float, uy: float, amount: float, bounds: Bounds) -> float:
        """Move ``row`` by ``amount`` along ``(ux, uy)`` inside ``bounds``; return the distance gained."""

        if amount <= 0.0:
            return 0.0
        x0 = float(self._pos[row, 0])
        y0 = float(self._pos[row, 1])
        x, y = clamp_point((x0 + ux * amount, y0 + uy * amount), bounds)
        self._pos[row, 0] = x
        self._pos[row, 1] = y
        return (x - x0) * ux + (y - y0) * uy

    def clamp_to_bounds(self) -> None:
        """Keep every node rectangle inside the logical canvas."""

        if not self._ids:
            return
        bounds = self.config.node_bounds()
        drag_row = self._drag_row()
        pinned = None if drag_row is None else self._pos[drag_row].copy()
        np.clip(self._pos[:, 0], bounds.min_x, bounds.max_x, out=self._pos[:, 0])
        np.clip(self._pos[:, 1], bounds.min_y, bounds.max_y, out=self._pos[:, 1])
        if pinned is not None:
            self._pos[drag_row] = pinned

    # -- scheduling ------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def scheduled(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Run :meth:`tick` once per frame until stopped.

        The loop never ends on convergence; it idles only while the node set
        is empty and resumes when data arrives.
        """

        if self._closed:
            raise RuntimeError("SimulationEngine has been closed")
        if not self._running:
            logger.debug("Starting simulation loop")
        self._running = True
        self._ensure_scheduled()

    def stop(self) -> None:
        if self._running:
            logger.debug("Stopping simulation loop after %d tick(s)", self.tick_count)
        self._running = False
        self._cancel()

    def close(self) -> None:
        self.stop()
        self._closed = True

    def __enter__(self) -> "SimulationEngine":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _ensure_scheduled(self) -> None:
        if self._running and self._ids and self._handle is None:
            self._handle = self.scheduler.schedule(self._on_frame)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _on_frame(self) -> None:
        self._handle = None
        if not self._running or not self._ids:
            return
        self.tick()
        self._ensure_scheduled()


apply_debug_logging(
    globals(),
    logger=logger,
    skip={
        "tick",
        "resolve_collisions",
        "clamp_to_bounds",
        "drag_to",
        "position",
        "positions",
        "points",
        "has_node",
        "bounds",
        "kinetic_energy",
    },
)


__all__ = ["SimulationEngine", "TickListener"]
