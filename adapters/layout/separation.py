from __future__ import annotations

import math
from collections.abc import Collection, Sequence
from dataclasses import dataclass, replace

from adapters.layout.constraints import enforce_grid_angles
from adapters.layout.polar_geometry import EPSILON
from domain.layout_config import LayoutConfig
from domain.models import LayoutNode
from domain.ports.layout import RandomSource

SEPARATION_SLACK = 1e-6


@dataclass(frozen=True)
class SeparationOutcome:
    nodes: list[LayoutNode]
    iterations: int
    converged: bool
    snapped_segments: int = 0


def resolve_separation(
    nodes: Sequence[LayoutNode],
    config: LayoutConfig,
    random_source: RandomSource,
    pinned: Collection[str] = (),
) -> SeparationOutcome:
    """Push apart node pairs closer than the minimum separation.

    Relaxation is Gauss-Seidel style: every push is visible to the pairs that
    follow it in the same pass. A pinned node never moves, so its partner
    takes the whole push; two pinned nodes are left as they are. Dense
    clusters may still overlap when the iteration cap is reached; the outcome
    reports that as not converged.
    """
    min_separation = config.scaled(config.min_separation)
    xs = [node.x for node in nodes]
    ys = [node.y for node in nodes]
    fixed = [node.id in pinned for node in nodes]
    if len(nodes) < 2 or min_separation <= 0:
        return SeparationOutcome(nodes=list(nodes), iterations=0, converged=True)

    iterations = 0
    for _ in range(config.max_iterations):
        iterations += 1
        if not _relax(xs, ys, fixed, min_separation, random_source):
            break

    return SeparationOutcome(
        nodes=_with_coords(nodes, xs, ys),
        iterations=iterations,
        converged=_is_separated(xs, ys, min_separation),
    )


def settle_layout(
    nodes: Sequence[LayoutNode],
    config: LayoutConfig,
    random_source: RandomSource,
    anchors: Collection[str] = (),
    pinned: Collection[str] = (),
) -> SeparationOutcome:
    """Alternate grid snapping and single relaxation passes on final coordinates.

    Every round snaps all paths around ``anchors`` first and stops as soon as
    the snapped layout is separated, so a converged outcome satisfies both.
    When the cap is reached the coordinates are snapped once more and the
    outcome reports whether they happen to be separated.
    """
    min_separation = config.scaled(config.min_separation)
    current, snapped = enforce_grid_angles(nodes, config, anchors=anchors)
    if len(current) < 2 or min_separation <= 0:
        return SeparationOutcome(nodes=current, iterations=0, converged=True, snapped_segments=snapped)

    fixed = [node.id in pinned for node in current]
    iterations = 0
    for _ in range(config.max_iterations):
        xs = [node.x for node in current]
        ys = [node.y for node in current]
        if _is_separated(xs, ys, min_separation):
            return SeparationOutcome(
                nodes=current, iterations=iterations, converged=True, snapped_segments=snapped
            )
        iterations += 1
        _relax(xs, ys, fixed, min_separation, random_source)
        current, count = enforce_grid_angles(_with_coords(current, xs, ys), config, anchors=anchors)
        snapped += count

    xs = [node.x for node in current]
    ys = [node.y for node in current]
    return SeparationOutcome(
        nodes=current,
        iterations=iterations,
        converged=_is_separated(xs, ys, min_separation),
        snapped_segments=snapped,
    )


def _relax(
    xs: list[float],
    ys: list[float],
    fixed: list[bool],
    min_separation: float,
    random_source: RandomSource,
) -> bool:
    moved = False
    count = len(xs)
    for i in range(count):
        for j in range(i + 1, count):
            if fixed[i] and fixed[j]:
                continue
            dx = xs[j] - xs[i]
            dy = ys[j] - ys[i]
            gap = math.hypot(dx, dy)
            if gap >= min_separation - SEPARATION_SLACK:
                continue
            if gap < EPSILON:
                angle = random_source.random() * 2 * math.pi
                ux, uy = math.cos(angle), math.sin(angle)
                overlap = min_separation
            else:
                ux, uy = dx / gap, dy / gap
                overlap = min_separation - gap
            share_i = 0.0 if fixed[i] else (1.0 if fixed[j] else 0.5)
            share_j = 1.0 - share_i
            xs[i] -= ux * overlap * share_i
            ys[i] -= uy * overlap * share_i
            xs[j] += ux * overlap * share_j
            ys[j] += uy * overlap * share_j
            moved = True
    return moved


def _with_coords(nodes: Sequence[LayoutNode], xs: list[float], ys: list[float]) -> list[LayoutNode]:
    return [
        node if (xs[index], ys[index]) == (node.x, node.y) else replace(node, x=xs[index], y=ys[index])
        for index, node in enumerate(nodes)
    ]


def _is_separated(xs: list[float], ys: list[float], min_separation: float) -> bool:
    for i in range(len(xs)):
        for j in range(i + 1, len(xs)):
            if math.hypot(xs[j] - xs[i], ys[j] - ys[i]) < min_separation - SEPARATION_SLACK:
                return False
    return True
