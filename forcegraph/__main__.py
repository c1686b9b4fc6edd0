import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from forcegraph import (
    LayoutConfig,
    ManualScheduler,
    SimulationEngine,
    TypeColorMap,
    Viewport,
    build_scene,
    get_layout_config,
    load_graph,
)

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _layout_config(args: argparse.Namespace) -> LayoutConfig:
    config = get_layout_config()
    config.random_seed = args.seed
    if args.width is not None:
        config.width = args.width
    if args.height is not None:
        config.height = args.height
    if args.no_cutoff:
        config.repulsion_cutoff = None
    return config


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run a force-directed layout over a node/relationship graph")
    parser.add_argument("path", help="Path to a JSON file with 'nodes' and 'relationships'")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=300,
        help="Number of simulation frames to run (default: 300)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed for initial placement jitter (default: 0)",
    )
    parser.add_argument("--width", type=float, help="Logical canvas width")
    parser.add_argument("--height", type=float, help="Logical canvas height")
    parser.add_argument(
        "--zoom",
        type=float,
        default=1.0,
        help="Viewport zoom used for the scene output (clamped to the zoom range)",
    )
    parser.add_argument(
        "--no-cutoff",
        action="store_true",
        help="Apply repulsion between every pair regardless of distance",
    )
    parser.add_argument(
        "--scene-output-path",
        help="Write the screen-space scene (nodes, clipped edges, colors) as JSON to the given path",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    logger.info("Loading graph from %s", args.path)
    nodes, relationships = load_graph(args.path)

    config = _layout_config(args)
    scheduler = ManualScheduler()
    engine = SimulationEngine(config, scheduler)
    engine.set_data(nodes, relationships)

    with engine:
        frames = scheduler.run_frames(max(args.ticks, 0))
    logger.info("Ran %d frame(s); kinetic energy %.3e", frames, engine.kinetic_energy())

    colors = TypeColorMap()
    colors.update(engine.nodes)
    viewport = Viewport(canvas=config)
    viewport.set_zoom(args.zoom)

    print(f"Nodes: {len(engine.node_ids)}")
    print(f"Links: {len(engine.links)} of {len(relationships)} relationship(s)")
    print("Positions:")
    for node_id, (x, y) in engine.points().items():
        print(f"  {node_id}: ({x:.3f}, {y:.3f})")
    print("Colors:")
    for node_type, color in colors.mapping.items():
        print(f"  {node_type or '(untyped)'}: {color}")

    if args.scene_output_path:
        output_path = Path(args.scene_output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Writing scene to %s", output_path)
        scene = build_scene(engine, viewport, colors)
        output_path.write_text(json.dumps(scene.to_dict(), indent=2), encoding="utf-8")
        print(f"Scene written to {output_path}")


if __name__ == "__main__":
    main(sys.argv[1:])
