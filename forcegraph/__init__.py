from .types import Bounds, Node, NodePosition, Relationship
from .config import (
    LayoutConfig,
    ViewportConfig,
    get_layout_config,
    get_viewport_config,
    set_layout_config,
    set_viewport_config,
)
from .geometry import clip_segment, intersect, midpoint
from .colors import DEFAULT_PALETTE, TypeColorMap, assign_type_colors
from .scheduler import AsyncioScheduler, FrameScheduler, ManualScheduler
from .simulation import SimulationEngine
from .viewport import Viewport
from .interaction import InteractionController, InteractionMode, PointerEvent, WheelEvent, connected_ids
from .scene import RenderedEdge, RenderedNode, Scene, build_scene
from .loader import GraphDataError, load_graph, parse_graph

__all__ = [
    "Bounds",
    "Node",
    "NodePosition",
    "Relationship",
    "LayoutConfig",
    "ViewportConfig",
    "get_layout_config",
    "get_viewport_config",
    "set_layout_config",
    "set_viewport_config",
    "clip_segment",
    "intersect",
    "midpoint",
    "DEFAULT_PALETTE",
    "TypeColorMap",
    "assign_type_colors",
    "AsyncioScheduler",
    "FrameScheduler",
    "ManualScheduler",
    "SimulationEngine",
    "Viewport",
    "InteractionController",
    "InteractionMode",
    "PointerEvent",
    "WheelEvent",
    "connected_ids",
    "RenderedEdge",
    "RenderedNode",
    "Scene",
    "build_scene",
    "GraphDataError",
    "load_graph",
    "parse_graph",
]
