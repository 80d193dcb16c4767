from __future__ import annotations

import math

import pytest

from adapters.layout.constraints import (
    aligned_runs,
    enforce_grid_angles,
    insert_bends,
    ordered_path_ids,
)
from adapters.layout.polar_geometry import bearing, distance, snap_deviation
from domain.layout_config import LayoutConfig
from domain.models import LayoutNode

CONFIG = LayoutConfig().normalized()


def _node(
    node_id: str,
    x: float,
    y: float,
    level: int,
    path_id: str = "eng",
    sequence: int | None = None,
) -> LayoutNode:
    return LayoutNode(
        id=node_id,
        position_id=f"pos-{node_id}",
        career_path_id=path_id,
        level=level,
        name=node_id,
        x=x,
        y=y,
        color="#000000",
        sequence_in_path=sequence,
    )


def _polar(radius: float, angle: float, origin: tuple[float, float] = (0.0, 0.0)) -> tuple[float, float]:
    return (
        origin[0] + radius * math.cos(math.radians(angle)),
        origin[1] + radius * math.sin(math.radians(angle)),
    )


def test_path_order_uses_level_then_sequence() -> None:
    nodes = [
        _node("late", 0, 0, 2, sequence=2),
        _node("early", 0, 0, 2, sequence=1),
        _node("first", 0, 0, 1),
        _node("unsequenced", 0, 0, 2),
        _node("other", 0, 0, 1, path_id="design"),
    ]
    assert ordered_path_ids(nodes) == {
        "design": ["other"],
        "eng": ["first", "early", "late", "unsequenced"],
    }


def test_off_grid_segment_is_rotated_around_previous_node() -> None:
    start = _node("a", 100.0, 0.0, 1)
    end = _node("b", 200.0, 30.0, 2)

    nodes, snapped = enforce_grid_angles([start, end], CONFIG)

    assert snapped == 1
    assert nodes[0] is start
    moved = nodes[1]
    assert distance(100.0, 0.0, moved.x, moved.y) == pytest.approx(math.hypot(100.0, 30.0))
    assert bearing(100.0, 0.0, moved.x, moved.y) == pytest.approx(22.5)


def test_segment_within_tolerance_is_left_alone() -> None:
    x, y = _polar(50.0, 22.8, origin=(10.0, 10.0))
    nodes = [_node("a", 10.0, 10.0, 1), _node("b", x, y, 2)]

    snapped_nodes, snapped = enforce_grid_angles(nodes, CONFIG)

    assert snapped == 0
    assert snapped_nodes == nodes


def test_segment_never_folds_back_over_previous_one() -> None:
    bx, by = _polar(100.0, 22.5)
    nodes = [_node("a", 0.0, 0.0, 1), _node("b", bx, by, 2), _node("c", 0.0, 0.0, 3)]

    snapped_nodes, snapped = enforce_grid_angles(nodes, CONFIG)

    assert snapped == 1
    c = snapped_nodes[2]
    assert bearing(bx, by, c.x, c.y) == pytest.approx(247.5)
    assert distance(bx, by, c.x, c.y) == pytest.approx(100.0)


def test_zero_length_segment_is_untouched() -> None:
    nodes = [_node("a", 5.0, 5.0, 1), _node("b", 5.0, 5.0, 2)]

    snapped_nodes, snapped = enforce_grid_angles(nodes, CONFIG)

    assert snapped == 0
    assert snapped_nodes == nodes


def test_anchored_nodes_stay_fixed() -> None:
    nodes = [
        _node("a", 0.0, 0.0, 1),
        _node("b", 100.0, 10.0, 2),
        _node("c", 200.0, 0.0, 3),
        _node("x", 7.0, 3.0, 1, path_id="other"),
        _node("y", 50.0, 1.0, 2, path_id="other"),
    ]

    snapped_nodes, snapped = enforce_grid_angles(nodes, CONFIG, anchors={"b"}, path_ids={"eng"})

    by_id = {node.id: node for node in snapped_nodes}
    assert snapped == 2
    assert (by_id["b"].x, by_id["b"].y) == (100.0, 10.0)
    for node_id in ("a", "c"):
        heading = bearing(100.0, 10.0, by_id[node_id].x, by_id[node_id].y)
        assert snap_deviation(heading, 8, 22.5) == pytest.approx(0.0, abs=1e-9)
    assert by_id["x"] is nodes[3]
    assert by_id["y"] is nodes[4]


def test_aligned_runs_split_on_turns() -> None:
    straight = [(float(index), 0.0) for index in range(5)]
    turned = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (2.0, 1.0)]

    assert aligned_runs(straight, 5.0) == [(0, 3)]
    assert aligned_runs(turned, 5.0) == [(0, 1), (2, 2)]


def test_long_straight_run_gets_a_bend() -> None:
    points = [_polar(60.0 + 50.0 * index, 22.5) for index in range(6)]
    nodes = [_node(f"n{index}", x, y, index + 1) for index, (x, y) in enumerate(points)]

    bent, bends = insert_bends(nodes, CONFIG)

    assert bends == 1
    moved = [node for node, original in zip(bent, nodes) if node is not original]
    assert [node.id for node in moved] == ["n2"]
    ox, oy = points[2]
    assert distance(ox, oy, moved[0].x, moved[0].y) == pytest.approx(60.0 * 0.2 * 1.1)
    assert bearing(ox, oy, moved[0].x, moved[0].y) == pytest.approx(292.5)


def test_short_paths_are_not_bent() -> None:
    points = [_polar(60.0 + 50.0 * index, 22.5) for index in range(4)]
    nodes = [_node(f"n{index}", x, y, index + 1) for index, (x, y) in enumerate(points)]

    bent, bends = insert_bends(nodes, CONFIG)

    assert bends == 0
    assert bent == nodes


def test_unsequenced_nodes_on_one_level_are_ordered_by_distance() -> None:
    nodes = [
        _node("a-far", 200.0, 0.0, 2),
        _node("b-near", 50.0, 0.0, 2),
        _node("root", 10.0, 0.0, 1),
    ]
    assert ordered_path_ids(nodes) == {"eng": ["root", "b-near", "a-far"]}


def test_segment_into_next_anchor_is_bridged_with_an_elbow() -> None:
    nodes = [
        _node("a", 0.0, 0.0, 1),
        _node("b", 50.0, 40.0, 2),
        _node("c", 100.0, 10.0, 3),
    ]

    snapped_nodes, snapped = enforce_grid_angles(nodes, CONFIG, anchors={"a", "c"})

    a, b, c = snapped_nodes
    assert snapped == 1
    assert (a.x, a.y) == (0.0, 0.0)
    assert (c.x, c.y) == (100.0, 10.0)
    for start, end in ((a, b), (b, c)):
        heading = bearing(start.x, start.y, end.x, end.y)
        assert snap_deviation(heading, 8, 22.5) == pytest.approx(0.0, abs=1e-9)


def test_elbow_keeps_permitted_line_between_anchors_straight() -> None:
    ax, ay = _polar(100.0, 22.5)
    nodes = [
        _node("a", 0.0, 0.0, 1),
        _node("b", 10.0, 30.0, 2),
        _node("c", ax, ay, 3),
    ]

    snapped_nodes, snapped = enforce_grid_angles(nodes, CONFIG, anchors={"a", "c"})

    b = snapped_nodes[1]
    assert snapped == 1
    assert bearing(0.0, 0.0, b.x, b.y) == pytest.approx(22.5)
    assert 25.0 - 1e-9 <= distance(0.0, 0.0, b.x, b.y) <= 75.0 + 1e-9


def test_adjacent_anchors_keep_their_segment() -> None:
    nodes = [_node("a", 0.0, 0.0, 1), _node("b", 100.0, 5.0, 2)]

    snapped_nodes, snapped = enforce_grid_angles(nodes, CONFIG, anchors={"a", "b"})

    assert snapped == 0
    assert snapped_nodes == nodes
