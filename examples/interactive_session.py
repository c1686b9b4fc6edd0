"""Example session: run the layout, then drag, pan, zoom and hover like a user would."""

from pathlib import Path

from forcegraph import (
    InteractionController,
    ManualScheduler,
    PointerEvent,
    SimulationEngine,
    TypeColorMap,
    Viewport,
    WheelEvent,
    build_scene,
    get_layout_config,
    load_graph,
)

GRAPH_PATH = Path(__file__).with_name("concept_graph.json")


def main() -> None:
    nodes, relationships = load_graph(GRAPH_PATH)
    config = get_layout_config()
    scheduler = ManualScheduler()
    engine = SimulationEngine(config, scheduler)
    engine.set_data(nodes, relationships)
    engine.start()
    scheduler.run_frames(240)
    print(f"Settled after {engine.tick_count} ticks, kinetic energy {engine.kinetic_energy():.3e}")

    viewport = Viewport(canvas=config, on_zoom_change=lambda z: print(f"  zoom -> {z:.0%}"))
    controller = InteractionController(engine, viewport)

    # Drag "ada" to the upper-left corner and hold it for a while
    ada = viewport.screen_from_world(engine.position("ada").point)
    controller.pointer_down(PointerEvent(*ada, node_id="ada"))
    controller.pointer_move(PointerEvent(150.0, 120.0))
    scheduler.run_frames(60)
    controller.pointer_up()
    print("ada held at", engine.position("ada").point)

    # Pan the background, then zoom toward the cursor
    controller.pointer_down(PointerEvent(400.0, 300.0))
    controller.pointer_move(PointerEvent(460.0, 330.0))
    controller.pointer_up()
    controller.wheel(WheelEvent(-300.0, 460.0, 330.0))
    viewport.zoom_in()

    colors = TypeColorMap()
    colors.update(engine.nodes)
    controller.hover_enter("notes")
    scene = build_scene(engine, viewport, colors, hovered_id=controller.hovered_id)
    print(f"Scene at zoom {scene.zoom:.2f}, pan ({scene.pan[0]:.1f}, {scene.pan[1]:.1f})")
    for item in scene.nodes:
        marker = "*" if item.highlighted else ("." if item.dimmed else " ")
        print(f" {marker} {item.id:<10} {item.type:<9} {item.color} ({item.x:.1f}, {item.y:.1f})")
    for edge in scene.edges:
        print(f"   {edge.source} -[{edge.type}]-> {edge.target}{' (dimmed)' if edge.dimmed else ''}")

    engine.close()


if __name__ == "__main__":
    main()
