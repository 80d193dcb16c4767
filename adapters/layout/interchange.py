from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass, replace

from adapters.layout.constraints import enforce_grid_angles, ordered_path_ids
from adapters.layout.placement import ideal_polar_position
from adapters.layout.polar_geometry import (
    EPSILON,
    angle_difference,
    circular_mean,
    normalize_angle,
    polar_to_cartesian,
)
from domain.layout_config import LayoutConfig
from domain.models import LayoutNode, LevelInfo, PolarPoint


@dataclass(frozen=True)
class InterchangeOutcome:
    nodes: list[LayoutNode]
    moved: tuple[str, ...]
    snapped_segments: int
    anchors: tuple[str, ...] = ()


def average_polar_position(
    node: LayoutNode,
    path_angles: Mapping[str, float],
    level_info: LevelInfo,
    config: LayoutConfig,
) -> PolarPoint:
    related = node.related_paths or (node.career_path_id,)
    ideals = [
        ideal_polar_position(node.level, path_id, path_angles, level_info, config)
        for path_id in related
    ]
    radius = sum(ideal.radius for ideal in ideals) / len(ideals)
    return PolarPoint(radius=radius, angle_degrees=circular_mean(ideal.angle_degrees for ideal in ideals))


def blend_polar(own: PolarPoint, average: PolarPoint, pull: float) -> PolarPoint:
    radius = own.radius * (1 - pull) + average.radius * pull
    angle = own.angle_degrees + angle_difference(average.angle_degrees, own.angle_degrees) * pull
    return PolarPoint(radius=radius, angle_degrees=normalize_angle(angle))


def resolve_interchanges(
    nodes: Sequence[LayoutNode],
    path_angles: Mapping[str, float],
    level_info: LevelInfo,
    config: LayoutConfig,
    fixed: Collection[str] = (),
) -> InterchangeOutcome:
    """Pull every interchange occurrence toward the average of its paths.

    Each occurrence is blended against its own path, so a position shared by
    three or more paths keeps one node per path. The node is shifted by the
    blend delta, keeping bends and separation applied earlier, and its paths
    are re-snapped around it. An interchange that directly follows another
    anchored one on its path is snapped like any other node instead, so the
    segment between them stays on a permitted bearing. Nodes in ``fixed``
    are never moved by the re-snap.
    """
    pull = config.pull_interchanges
    blended: list[LayoutNode] = []
    moved: list[str] = []
    touched_paths: set[str] = set()
    for node in nodes:
        if not node.is_interchange or pull <= 0:
            blended.append(node)
            continue
        own = ideal_polar_position(node.level, node.career_path_id, path_angles, level_info, config)
        target = blend_polar(own, average_polar_position(node, path_angles, level_info, config), pull)
        start = polar_to_cartesian(own.radius, own.angle_degrees)
        end = polar_to_cartesian(target.radius, target.angle_degrees)
        dx, dy = end.x - start.x, end.y - start.y
        if abs(dx) < EPSILON and abs(dy) < EPSILON:
            blended.append(node)
            continue
        blended.append(replace(node, x=node.x + dx, y=node.y + dy))
        moved.append(node.id)
        touched_paths.add(node.career_path_id)

    if not moved:
        return InterchangeOutcome(nodes=blended, moved=(), snapped_segments=0)
    anchors = _spaced_anchors(blended, set(moved))
    snapped_nodes, snapped = enforce_grid_angles(
        blended, config, anchors=anchors | set(fixed), path_ids=touched_paths
    )
    return InterchangeOutcome(
        nodes=snapped_nodes,
        moved=tuple(moved),
        snapped_segments=snapped,
        anchors=tuple(node_id for node_id in moved if node_id in anchors),
    )


def _spaced_anchors(nodes: Sequence[LayoutNode], candidates: set[str]) -> set[str]:
    anchors: set[str] = set()
    for ordered in ordered_path_ids(nodes).values():
        previous: str | None = None
        for node_id in ordered:
            if node_id in candidates and previous not in anchors:
                anchors.add(node_id)
            previous = node_id
    return anchors
