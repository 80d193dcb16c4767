from __future__ import annotations

import math
from collections.abc import Sequence

from domain.layout_config import LayoutConfig
from domain.models import (
    DEFAULT_PATH_COLOR,
    FALLBACK_BOUNDS,
    CareerPath,
    LayoutBounds,
    LayoutData,
    LayoutNode,
    LayoutPath,
)


def path_order_key(node: LayoutNode) -> tuple[float, int, float, float, str]:
    sequence = node.sequence_in_path
    if sequence is not None:
        return (node.level, 0, sequence, 0.0, node.id)
    return (node.level, 1, 0.0, math.hypot(node.x, node.y), node.id)


def compute_bounds(nodes: Sequence[LayoutNode], padding: float) -> LayoutBounds:
    if not nodes:
        return LayoutBounds(min_x=-padding, max_x=padding, min_y=-padding, max_y=padding)
    xs = [node.x for node in nodes]
    ys = [node.y for node in nodes]
    return LayoutBounds(
        min_x=min(xs) - padding,
        max_x=max(xs) + padding,
        min_y=min(ys) - padding,
        max_y=max(ys) + padding,
    )


def assemble_layout(
    nodes: Sequence[LayoutNode],
    career_paths: Sequence[CareerPath],
    config: LayoutConfig,
) -> LayoutData:
    grouped: dict[str, list[LayoutNode]] = {}
    for node in nodes:
        grouped.setdefault(node.career_path_id, []).append(node)

    ordered_nodes: list[LayoutNode] = []
    paths: list[LayoutPath] = []
    for career_path in sorted(career_paths, key=lambda item: item.id):
        members = sorted(grouped.get(career_path.id, []), key=path_order_key)
        if not members:
            continue
        ordered_nodes.extend(members)
        paths.append(
            LayoutPath(
                id=career_path.id,
                name=career_path.name,
                color=career_path.color or DEFAULT_PATH_COLOR,
                nodes=tuple(member.id for member in members),
            )
        )

    return LayoutData(
        nodes=ordered_nodes,
        nodes_by_id={node.id: node for node in ordered_nodes},
        paths=paths,
        paths_by_id={path.id: path for path in paths},
        bounds=compute_bounds(ordered_nodes, config.scaled(config.padding)),
        config_used=config.to_dict(),
    )


def fallback_layout(config: LayoutConfig) -> LayoutData:
    return LayoutData(
        nodes=[],
        nodes_by_id={},
        paths=[],
        paths_by_id={},
        bounds=FALLBACK_BOUNDS,
        config_used=config.to_dict(),
    )
