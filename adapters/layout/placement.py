from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import replace

from adapters.layout.polar_geometry import (
    EPSILON,
    normalize_angle,
    polar_to_cartesian,
)
from domain.layout_config import LayoutConfig
from domain.models import (
    DEFAULT_PATH_COLOR,
    CareerPath,
    LayoutNode,
    LevelInfo,
    PolarPoint,
    Position,
    PositionDetail,
)

WRAP_OFFSET_DEGREES = 5.0
ORIGIN_HASH_MULTIPLIER = 137


def analyze_levels(
    details: Iterable[PositionDetail], mid_level_override: float | None = None
) -> LevelInfo:
    levels = [detail.level for detail in details]
    if not levels:
        return LevelInfo(min_level=1, max_level=1, mid_level=1)
    min_level = min(levels)
    max_level = max(levels)
    mid_level = (min_level + max_level) / 2 if mid_level_override is None else mid_level_override
    return LevelInfo(min_level=min_level, max_level=max_level, mid_level=mid_level)


def assign_path_angles(career_paths: Iterable[CareerPath], config: LayoutConfig) -> dict[str, float]:
    directions = max(config.num_directions, 1)
    angles: dict[str, float] = {}
    for index, path in enumerate(sorted(career_paths, key=lambda item: item.id)):
        wrap_count, slot = divmod(index, directions)
        angle = config.angle_offset + slot * config.angle_step + WRAP_OFFSET_DEGREES * wrap_count
        angles[path.id] = normalize_angle(angle)
    return angles


def map_paths_to_positions(details: Iterable[PositionDetail]) -> dict[str, tuple[str, ...]]:
    paths_by_position: dict[str, set[str]] = {}
    for detail in details:
        paths_by_position.setdefault(detail.position_id, set()).add(detail.career_path_id)
    return {position_id: tuple(sorted(ids)) for position_id, ids in paths_by_position.items()}


def level_radius(level: float, level_info: LevelInfo, config: LayoutConfig) -> float:
    radius = config.mid_level_radius + abs(level - level_info.mid_level) * config.radius_step
    radius = max(radius, config.min_radius)
    if math.isclose(level, level_info.mid_level):
        radius *= config.mid_level_pull
    return config.scaled(radius)


def ideal_polar_position(
    level: float,
    career_path_id: str,
    path_angles: Mapping[str, float],
    level_info: LevelInfo,
    config: LayoutConfig,
) -> PolarPoint:
    return PolarPoint(
        radius=level_radius(level, level_info, config),
        angle_degrees=path_angles.get(career_path_id, 0.0),
    )


def place_nodes(
    details: Sequence[PositionDetail],
    positions_by_id: Mapping[str, Position],
    paths_by_id: Mapping[str, CareerPath],
    path_angles: Mapping[str, float],
    level_info: LevelInfo,
    config: LayoutConfig,
    radius_for_level: Callable[[int], float] | None = None,
) -> list[LayoutNode]:
    paths_by_position = map_paths_to_positions(details)
    nodes: list[LayoutNode] = []
    for detail in details:
        if radius_for_level is None:
            ideal = ideal_polar_position(
                detail.level, detail.career_path_id, path_angles, level_info, config
            )
        else:
            ideal = PolarPoint(
                radius=radius_for_level(detail.level),
                angle_degrees=path_angles.get(detail.career_path_id, 0.0),
            )
        point = polar_to_cartesian(ideal.radius, ideal.angle_degrees)
        related = paths_by_position.get(detail.position_id, (detail.career_path_id,))
        is_interchange = len(related) > 1
        nodes.append(
            LayoutNode(
                id=detail.id,
                position_id=detail.position_id,
                career_path_id=detail.career_path_id,
                level=detail.level,
                name=positions_by_id[detail.position_id].name,
                x=point.x,
                y=point.y,
                color=paths_by_id[detail.career_path_id].color or DEFAULT_PATH_COLOR,
                is_interchange=is_interchange,
                related_paths=related if is_interchange else None,
                sequence_in_path=detail.sequence_in_path,
            )
        )
    return nodes


def origin_hash_angle(node_id: str) -> float:
    return float(sum(ord(char) for char in node_id) * ORIGIN_HASH_MULTIPLIER % 360)


def guard_origin(nodes: Sequence[LayoutNode], config: LayoutConfig) -> tuple[list[LayoutNode], int]:
    min_radius = config.scaled(config.min_radius)
    guarded: list[LayoutNode] = []
    relocated = 0
    for node in nodes:
        if math.hypot(node.x, node.y) < min_radius - EPSILON:
            point = polar_to_cartesian(min_radius, origin_hash_angle(node.id))
            guarded.append(replace(node, x=point.x, y=point.y))
            relocated += 1
        else:
            guarded.append(node)
    return guarded, relocated
