from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from domain.layout_config import LayoutConfig
from domain.models import LayoutData, Point

RouteStyle = Literal["orthogonal", "octilinear"]
ROUTE_STYLES: tuple[str, ...] = ("orthogonal", "octilinear")

_LEG_DIRECTIONS = 8
_EPSILON = 1e-9
DEFAULT_JOG_SIZE = 12.0


@dataclass(frozen=True)
class RouteConfig:
    num_directions: int = 8
    angle_offset_degrees: float = 22.5
    style: RouteStyle = "orthogonal"
    min_segment_length: float = 5.0
    jog_size: float = DEFAULT_JOG_SIZE
    max_same_direction: int = 2
    alignment_tolerance_degrees: float = 1.0

    @classmethod
    def from_layout_config(cls, config: LayoutConfig, style: RouteStyle = "orthogonal") -> RouteConfig:
        return cls(
            num_directions=max(config.num_directions, 1),
            angle_offset_degrees=config.angle_offset,
            style=style,
            jog_size=DEFAULT_JOG_SIZE * config.global_scale,
        )


class MetroLineRouter:
    """Turn ordered path nodes into drawable waypoints.

    Hops on a permitted bearing are kept straight; every other hop gets one
    elbow. A run of legs heading the same way is broken by a small
    perpendicular jog so long lines stay readable. Node coordinates are never
    changed, only waypoints are added between them.
    """

    def __init__(self, config: RouteConfig | None = None) -> None:
        self.config = config or RouteConfig()
        if self.config.style not in ROUTE_STYLES:
            msg = f"Unknown route style: {self.config.style}"
            raise ValueError(msg)

    def route(self, points: Sequence[Point]) -> list[Point]:
        if len(points) < 2:
            return list(points)
        waypoints: list[Point] = [points[0]]
        for start, end in zip(points, points[1:]):
            waypoints.extend(self._hop(start, end))
        return self._break_straight_runs(waypoints)

    def route_layout(self, layout: LayoutData) -> dict[str, list[Point]]:
        routes: dict[str, list[Point]] = {}
        for path in layout.paths:
            points = [
                Point(layout.nodes_by_id[node_id].x, layout.nodes_by_id[node_id].y)
                for node_id in path.nodes
                if node_id in layout.nodes_by_id
            ]
            routes[path.id] = self.route(points)
        return routes

    def _hop(self, start: Point, end: Point) -> list[Point]:
        dx = end.x - start.x
        dy = end.y - start.y
        if math.hypot(dx, dy) < self.config.min_segment_length or self._is_aligned(dx, dy):
            return [end]
        elbow = None
        if self.config.style == "octilinear":
            elbow = self._octilinear_elbow(start, dx, dy)
        if elbow is None:
            elbow = Point(start.x, end.y) if abs(dy) > abs(dx) else Point(end.x, start.y)
        return [elbow, end]

    def _permitted_step(self) -> float:
        return 360.0 / max(self.config.num_directions, 1)

    def _is_aligned(self, dx: float, dy: float) -> bool:
        heading = _bearing(dx, dy)
        tolerance = self.config.alignment_tolerance_degrees
        step = self._permitted_step()
        if _deviation(heading, self.config.angle_offset_degrees, step) <= tolerance:
            return True
        # Orthogonal elbows produce axis legs, so those count as aligned too.
        return self.config.style == "orthogonal" and _deviation(heading, 0.0, 90.0) <= tolerance

    def _octilinear_elbow(self, start: Point, dx: float, dy: float) -> Point | None:
        step = self._permitted_step()
        offset = self.config.angle_offset_degrees
        lower = offset + math.floor((_bearing(dx, dy) - offset) / step) * step
        upper = lower + step
        lx, ly = math.cos(math.radians(lower)), math.sin(math.radians(lower))
        ux, uy = math.cos(math.radians(upper)), math.sin(math.radians(upper))
        det = lx * uy - ux * ly
        if abs(det) < 1e-6:
            return None
        along_lower = (dx * uy - dy * ux) / det
        along_upper = (lx * dy - ly * dx) / det
        if along_lower >= along_upper:
            return Point(start.x + lx * along_lower, start.y + ly * along_lower)
        return Point(start.x + ux * along_upper, start.y + uy * along_upper)

    def _break_straight_runs(self, waypoints: list[Point]) -> list[Point]:
        limit = self.config.max_same_direction
        jog = self.config.jog_size
        if limit < 1 or jog <= 0:
            return waypoints

        result: list[Point] = [waypoints[0]]
        previous_direction: int | None = None
        run = 0
        for target in waypoints[1:]:
            origin = result[-1]
            dx = target.x - origin.x
            dy = target.y - origin.y
            length = math.hypot(dx, dy)
            if length < _EPSILON:
                continue
            direction = _leg_direction(dx, dy)
            run = run + 1 if direction == previous_direction else 1
            previous_direction = direction
            if run <= limit:
                result.append(target)
                continue
            nx, ny = dy / length, -dx / length
            result.append(Point(origin.x + nx * jog, origin.y + ny * jog))
            result.append(Point(target.x + nx * jog, target.y + ny * jog))
            result.append(target)
            previous_direction = None
            run = 0
        return result


def to_svg_path_data(points: Sequence[Point]) -> str:
    if not points:
        return ""
    head, *rest = points
    commands = [f"M {_format(head.x)} {_format(head.y)}"]
    commands.extend(f"L {_format(point.x)} {_format(point.y)}" for point in rest)
    return " ".join(commands)


def _format(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in {"-0", ""} else text


def _bearing(dx: float, dy: float) -> float:
    return math.degrees(math.atan2(dy, dx)) % 360.0


def _deviation(heading: float, offset: float, step: float) -> float:
    remainder = (heading - offset) % step
    return min(remainder, step - remainder)


def _leg_direction(dx: float, dy: float) -> int:
    return round(_bearing(dx, dy) / (360.0 / _LEG_DIRECTIONS)) % _LEG_DIRECTIONS
