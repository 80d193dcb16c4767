from __future__ import annotations

import pytest

from adapters.layout.assembly import assemble_layout, compute_bounds, path_order_key
from domain.layout_config import LayoutConfig
from domain.models import CareerPath, LayoutNode


def _node(node_id: str, level: int, x: float, y: float, sequence: int | None = None) -> LayoutNode:
    return LayoutNode(
        id=node_id,
        position_id=f"pos-{node_id}",
        career_path_id="eng",
        level=level,
        name=node_id,
        x=x,
        y=y,
        color="#111111",
        sequence_in_path=sequence,
    )


def test_sequenced_nodes_come_before_distance_ordered_ones() -> None:
    nodes = [
        _node("far", 2, 300.0, 0.0),
        _node("near", 2, 100.0, 0.0),
        _node("second", 2, 500.0, 0.0, sequence=2),
        _node("first", 2, 900.0, 0.0, sequence=1),
        _node("root", 1, 900.0, 0.0),
    ]
    assert [node.id for node in sorted(nodes, key=path_order_key)] == [
        "root",
        "first",
        "second",
        "near",
        "far",
    ]


def test_bounds_without_nodes_are_centred_box() -> None:
    bounds = compute_bounds([], 50.0)
    assert (bounds.min_x, bounds.max_x, bounds.min_y, bounds.max_y) == (-50.0, 50.0, -50.0, 50.0)


def test_assemble_layout_uses_path_color_fallback() -> None:
    paths = [CareerPath(id="eng", name="Engineering"), CareerPath(id="idle", name="Idle")]
    nodes = [_node("b", 2, 10.0, 20.0), _node("a", 1, -5.0, 0.0)]

    layout = assemble_layout(nodes, paths, LayoutConfig(padding=10.0).normalized())

    assert [path.id for path in layout.paths] == ["eng"]
    assert layout.paths[0].color == "#cccccc"
    assert layout.paths[0].nodes == ("a", "b")
    assert [node.id for node in layout.nodes] == ["a", "b"]
    assert layout.bounds.to_dict() == pytest.approx(
        {"minX": -15.0, "maxX": 20.0, "minY": -10.0, "maxY": 30.0}
    )
    assert layout.config_used["padding"] == 10.0
