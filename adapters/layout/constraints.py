from __future__ import annotations

import math
from collections.abc import Collection, Sequence
from dataclasses import replace

from adapters.layout.assembly import path_order_key
from adapters.layout.polar_geometry import (
    EPSILON,
    angle_difference,
    bearing,
    distance,
    offset_point,
    perpendicular,
    ranked_compass_angles,
    snap_deviation,
)
from domain.layout_config import LayoutConfig
from domain.models import LayoutNode, Point

BEND_STRENGTH = 0.2
BEND_EXCESS_GROWTH = 0.05

Coords = dict[str, tuple[float, float]]


def ordered_path_ids(nodes: Sequence[LayoutNode]) -> dict[str, list[str]]:
    grouped: dict[str, list[LayoutNode]] = {}
    for node in nodes:
        grouped.setdefault(node.career_path_id, []).append(node)
    return {
        path_id: [node.id for node in sorted(group, key=path_order_key)]
        for path_id, group in sorted(grouped.items())
    }


def _apply_coords(nodes: Sequence[LayoutNode], coords: Coords) -> list[LayoutNode]:
    updated: list[LayoutNode] = []
    for node in nodes:
        x, y = coords[node.id]
        updated.append(node if (x, y) == (node.x, node.y) else replace(node, x=x, y=y))
    return updated


def _snap_segment(
    coords: Coords,
    pivot_id: str,
    moving_id: str,
    other_id: str | None,
    config: LayoutConfig,
) -> bool:
    px, py = coords[pivot_id]
    mx, my = coords[moving_id]
    length = distance(px, py, mx, my)
    if length < EPSILON:
        return False
    current = bearing(px, py, mx, my)
    ranked = ranked_compass_angles(current, config.num_directions, config.angle_offset)
    target = ranked[0]
    if other_id is not None and len(ranked) > 1:
        ox, oy = coords[other_id]
        if distance(px, py, ox, oy) >= EPSILON:
            # The line must not fold straight back over the pivot's other segment.
            fold_back = bearing(px, py, ox, oy)
            if abs(angle_difference(target, fold_back)) <= max(config.snap_tolerance_degrees, 1e-6):
                target = ranked[1]
    if abs(angle_difference(target, current)) <= config.snap_tolerance_degrees:
        return False
    point = offset_point(px, py, target, length)
    coords[moving_id] = (point.x, point.y)
    return True


def _on_grid(ax: float, ay: float, bx: float, by: float, config: LayoutConfig) -> bool:
    if distance(ax, ay, bx, by) < EPSILON:
        return False
    deviation = snap_deviation(bearing(ax, ay, bx, by), config.num_directions, config.angle_offset)
    return deviation <= config.snap_tolerance_degrees


def _elbow_point(
    start: tuple[float, float],
    end: tuple[float, float],
    current: tuple[float, float],
    config: LayoutConfig,
) -> Point | None:
    """Point joining start to end with two permitted bearings, nearest to current."""
    (sx, sy), (ex, ey), (cx, cy) = start, end, current
    dx, dy = ex - sx, ey - sy
    length_sq = dx * dx + dy * dy
    if length_sq < EPSILON * EPSILON:
        return None
    heading = bearing(sx, sy, ex, ey)
    if snap_deviation(heading, config.num_directions, config.angle_offset) <= config.snap_tolerance_degrees:
        # Already a permitted bearing: stay on the straight line, away from both ends.
        t = ((cx - sx) * dx + (cy - sy) * dy) / length_sq
        t = min(max(t, 0.25), 0.75)
        return Point(sx + dx * t, sy + dy * t)

    step = config.angle_step
    offset = config.angle_offset
    lower = offset + math.floor((heading - offset) / step) * step
    upper = lower + step
    lx, ly = math.cos(math.radians(lower)), math.sin(math.radians(lower))
    ux, uy = math.cos(math.radians(upper)), math.sin(math.radians(upper))
    det = lx * uy - ux * ly
    if abs(det) < 1e-6:
        return None
    along_lower = (dx * uy - dy * ux) / det
    along_upper = (lx * dy - ly * dx) / det
    if along_lower < 0 or along_upper < 0:
        return None
    candidates = [
        Point(sx + lx * along_lower, sy + ly * along_lower),
        Point(sx + ux * along_upper, sy + uy * along_upper),
    ]
    return min(candidates, key=lambda point: distance(point.x, point.y, cx, cy))


def _bridge_segment(
    coords: Coords, previous_id: str, moving_id: str, anchor_id: str, config: LayoutConfig
) -> bool:
    """Place the last free node before an anchor so both of its segments are permitted."""
    px, py = coords[previous_id]
    mx, my = coords[moving_id]
    ax, ay = coords[anchor_id]
    if _on_grid(px, py, mx, my, config) and _on_grid(mx, my, ax, ay, config):
        return False
    elbow = _elbow_point((px, py), (ax, ay), (mx, my), config)
    if elbow is None:
        return _snap_segment(coords, anchor_id, moving_id, previous_id, config)
    coords[moving_id] = (elbow.x, elbow.y)
    return True


def _snap_path(
    ordered: list[str], coords: Coords, anchors: Collection[str], config: LayoutConfig
) -> int:
    snapped = 0
    anchor_indexes = [index for index, node_id in enumerate(ordered) if node_id in anchors]
    starts = anchor_indexes or [0]

    first = starts[0]
    for index in range(first - 1, -1, -1):
        other = ordered[index + 2] if index + 2 < len(ordered) else None
        if _snap_segment(coords, ordered[index + 1], ordered[index], other, config):
            snapped += 1

    for position, start in enumerate(starts):
        following = anchor_indexes[position + 1] if position + 1 < len(anchor_indexes) else None
        stop = len(ordered) if following is None else following
        for index in range(start + 1, stop):
            if following is not None and index == following - 1:
                changed = _bridge_segment(
                    coords, ordered[index - 1], ordered[index], ordered[following], config
                )
            else:
                other = ordered[index - 2] if index >= 2 else None
                changed = _snap_segment(coords, ordered[index - 1], ordered[index], other, config)
            if changed:
                snapped += 1
    return snapped


def enforce_grid_angles(
    nodes: Sequence[LayoutNode],
    config: LayoutConfig,
    anchors: Collection[str] = (),
    path_ids: Collection[str] | None = None,
) -> tuple[list[LayoutNode], int]:
    """Rotate nodes so every segment of a path follows a permitted bearing.

    Without anchors each path is walked once from its first node. Anchored
    nodes never move; the walk then runs outward from every anchor instead,
    and the last free node before the next anchor is moved onto an elbow so
    the segment into that anchor is permitted too. Rotations preserve segment
    length; elbows do not. Two adjacent anchors keep whatever segment joins
    them.
    """
    coords: Coords = {node.id: (node.x, node.y) for node in nodes}
    snapped = 0
    for path_id, ordered in ordered_path_ids(nodes).items():
        if path_ids is not None and path_id not in path_ids:
            continue
        snapped += _snap_path(ordered, coords, anchors, config)
    return _apply_coords(nodes, coords), snapped


def aligned_runs(points: Sequence[tuple[float, float]], tolerance_degrees: float) -> list[tuple[int, int]]:
    """Maximal runs of near-collinear segments as inclusive segment index ranges."""
    bearings: list[float | None] = []
    for (ax, ay), (bx, by) in zip(points, points[1:]):
        bearings.append(None if distance(ax, ay, bx, by) < EPSILON else bearing(ax, ay, bx, by))

    runs: list[tuple[int, int]] = []
    start: int | None = None
    for index, current in enumerate(bearings):
        if current is None:
            if start is not None:
                runs.append((start, index - 1))
            start = None
            continue
        if start is None:
            start = index
            continue
        previous = bearings[index - 1]
        if previous is not None and abs(angle_difference(current, previous)) <= tolerance_degrees:
            continue
        runs.append((start, index - 1))
        start = index
    if start is not None:
        runs.append((start, len(bearings) - 1))
    return runs


def insert_bends(nodes: Sequence[LayoutNode], config: LayoutConfig) -> tuple[list[LayoutNode], int]:
    coords: Coords = {node.id: (node.x, node.y) for node in nodes}
    threshold = config.max_consecutive_aligned
    base_offset = config.scaled(config.radius_step) * BEND_STRENGTH
    bends = 0
    if base_offset < EPSILON:
        return list(nodes), bends

    for ordered in ordered_path_ids(nodes).values():
        if len(ordered) < threshold + 2:
            continue
        for _ in range(len(ordered)):
            points = [coords[node_id] for node_id in ordered]
            long_runs = [
                (start, end)
                for start, end in aligned_runs(points, config.collinear_tolerance_degrees)
                if end - start + 1 > threshold
            ]
            if not long_runs:
                break
            for start, end in long_runs:
                excess = end - start + 1 - threshold
                middle = (start + end + 1) // 2
                (ax, ay), (bx, by) = points[middle - 1], points[middle + 1]
                nx, ny = perpendicular(bx - ax, by - ay)
                offset = base_offset * (1 + excess * BEND_EXCESS_GROWTH)
                x, y = coords[ordered[middle]]
                coords[ordered[middle]] = (x + nx * offset, y + ny * offset)
                bends += 1
    return _apply_coords(nodes, coords), bends
