import pytest

from forcegraph import DEFAULT_PALETTE, Node, TypeColorMap, assign_type_colors


def _nodes(*types):
    return [Node(id=f"n{i}", type=node_type) for i, node_type in enumerate(types)]


def test_assign_type_colors_follows_first_seen_order():
    mapping = assign_type_colors(_nodes("person", "place", "person", "event"))
    assert list(mapping) == ["person", "place", "event"]
    assert mapping["person"] == DEFAULT_PALETTE[0]
    assert mapping["place"] == DEFAULT_PALETTE[1]
    assert mapping["event"] == DEFAULT_PALETTE[2]


def test_assign_type_colors_wraps_palette():
    palette = ("#000", "#111")
    mapping = assign_type_colors(_nodes("a", "b", "c", "d", "e"), palette)
    assert mapping == {"a": "#000", "b": "#111", "c": "#000", "d": "#111", "e": "#000"}


def test_assign_type_colors_is_deterministic():
    nodes = _nodes("x", "y", "z", "y")
    assert assign_type_colors(nodes) == assign_type_colors(list(nodes))


def test_type_color_map_recomputes_on_update():
    colors = TypeColorMap(("#a", "#b", "#c"))
    colors.update(_nodes("person", "place"))
    assert colors.color_for("place") == "#b"

    colors.update(_nodes("place", "person"))
    assert colors.color_for("place") == "#a"
    assert colors.color_for("person") == "#b"
    assert len(colors) == 2


def test_type_color_map_unknown_type_falls_back_to_first_color():
    colors = TypeColorMap(("#a", "#b"))
    colors.update(_nodes("person"))
    assert colors.color_for("planet") == "#a"
    assert colors.color_for(None) == "#a"


def test_empty_palette_is_rejected():
    with pytest.raises(ValueError):
        TypeColorMap(())
    with pytest.raises(ValueError):
        assign_type_colors(_nodes("a"), ())
