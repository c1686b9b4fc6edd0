"""Render-ready snapshot of the layout in screen space."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .colors import TypeColorMap
from .geometry import clip_segment, midpoint
from .interaction import connected_ids
from .logging_utils import apply_debug_logging
from .simulation import SimulationEngine
from .types import NodeId, Point2D
from .viewport import Viewport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedNode:
    id: NodeId
    type: str
    detail: str
    x: float
    y: float
    width: float
    height: float
    color: str
    dimmed: bool = False
    highlighted: bool = False


@dataclass(frozen=True)
class RenderedEdge:
    source: NodeId
    target: NodeId
    type: str
    start: Point2D
    end: Point2D
    label_anchor: Point2D
    dimmed: bool = False
    highlighted: bool = False


@dataclass
class Scene:
    nodes: List[RenderedNode] = field(default_factory=list)
    edges: List[RenderedEdge] = field(default_factory=list)
    zoom: float = 1.0
    pan: Point2D = (0.0, 0.0)
    hovered_id: Optional[NodeId] = None

    def node(self, node_id: NodeId) -> RenderedNode:
        for item in self.nodes:
            if item.id == node_id:
                return item
        raise KeyError(node_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "zoom": self.zoom,
            "pan": list(self.pan),
            "hovered": self.hovered_id,
            "nodes": [asdict(item) for item in self.nodes],
            "edges": [
                {
                    **asdict(item),
                    "start": list(item.start),
                    "end": list(item.end),
                    "label_anchor": list(item.label_anchor),
                }
                for item in self.edges
            ],
        }


def build_scene(
    engine: SimulationEngine,
    viewport: Viewport,
    colors: Optional[TypeColorMap] = None,
    hovered_id: Optional[NodeId] = None,
) -> Scene:
    """Project the current layout to screen space.

    Edges are trimmed to the node borders in world space before projecting,
    which is equivalent under a uniform zoom.  Relationships whose endpoints
    are not live nodes are left out.
    """

    if colors is None:
        colors = TypeColorMap()
        colors.update(engine.nodes)
    cfg = engine.config
    points = engine.points()
    if hovered_id is not None and hovered_id not in points:
        hovered_id = None
    focus = connected_ids(hovered_id, engine.relationships)

    width = viewport.scale_length(cfg.node_width)
    height = viewport.scale_length(cfg.node_height)
    nodes: List[RenderedNode] = []
    for node in engine.nodes:
        sx, sy = viewport.screen_from_world(points[node.id])
        nodes.append(
            RenderedNode(
                id=node.id,
                type=node.type,
                detail=node.detail,
                x=sx,
                y=sy,
                width=width,
                height=height,
                color=colors.color_for(node.type),
                dimmed=bool(focus) and node.id not in focus,
                highlighted=node.id == hovered_id,
            )
        )

    edges: List[RenderedEdge] = []
    for rel in engine.relationships:
        source = points.get(rel.source)
        target = points.get(rel.target)
        if source is None or target is None:
            continue
        start, end = clip_segment(source, target, cfg.node_width, cfg.node_height)
        touches = hovered_id is not None and hovered_id in (rel.source, rel.target)
        edges.append(
            RenderedEdge(
                source=rel.source,
                target=rel.target,
                type=rel.type,
                start=viewport.screen_from_world(start),
                end=viewport.screen_from_world(end),
                label_anchor=viewport.screen_from_world(midpoint(source, target)),
                dimmed=hovered_id is not None and not touches,
                highlighted=touches,
            )
        )

    return Scene(nodes=nodes, edges=edges, zoom=viewport.zoom, pan=viewport.pan, hovered_id=hovered_id)


apply_debug_logging(globals(), logger=logger)


__all__ = ["RenderedEdge", "RenderedNode", "Scene", "build_scene"]
