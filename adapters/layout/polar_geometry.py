from __future__ import annotations

import math
from collections.abc import Iterable

from domain.models import Point, PolarPoint

EPSILON = 1e-9


def normalize_angle(angle_degrees: float) -> float:
    normalized = angle_degrees % 360.0
    # -1e-17 % 360 rounds to 360.0
    return 0.0 if normalized >= 360.0 else normalized


def angle_difference(target_degrees: float, source_degrees: float) -> float:
    """Signed shortest rotation from source to target, in [-180, 180)."""
    return (target_degrees - source_degrees + 180.0) % 360.0 - 180.0


def polar_to_cartesian(radius: float, angle_degrees: float) -> Point:
    angle = math.radians(angle_degrees)
    return Point(radius * math.cos(angle), radius * math.sin(angle))


def cartesian_to_polar(x: float, y: float) -> PolarPoint:
    return PolarPoint(math.hypot(x, y), normalize_angle(math.degrees(math.atan2(y, x))))


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(bx - ax, by - ay)


def bearing(ax: float, ay: float, bx: float, by: float) -> float:
    return normalize_angle(math.degrees(math.atan2(by - ay, bx - ax)))


def offset_point(x: float, y: float, bearing_degrees: float, length: float) -> Point:
    angle = math.radians(bearing_degrees)
    return Point(x + length * math.cos(angle), y + length * math.sin(angle))


def snap_angle(angle_degrees: float, num_directions: int, offset_degrees: float) -> float:
    step = 360.0 / max(num_directions, 1)
    index = math.floor((angle_degrees - offset_degrees) / step + 0.5)
    return normalize_angle(index * step + offset_degrees)


def snap_deviation(angle_degrees: float, num_directions: int, offset_degrees: float) -> float:
    snapped = snap_angle(angle_degrees, num_directions, offset_degrees)
    return abs(angle_difference(snapped, angle_degrees))


def compass_angles(num_directions: int, offset_degrees: float) -> list[float]:
    count = max(num_directions, 1)
    step = 360.0 / count
    return [normalize_angle(offset_degrees + index * step) for index in range(count)]


def ranked_compass_angles(
    angle_degrees: float, num_directions: int, offset_degrees: float
) -> list[float]:
    """Permitted bearings ordered by closeness; ties prefer counter-clockwise."""

    def rank(candidate: float) -> tuple[float, int]:
        deviation = angle_difference(candidate, angle_degrees)
        return (round(abs(deviation), 9), 0 if deviation > 0 else 1)

    return sorted(compass_angles(num_directions, offset_degrees), key=rank)


def circular_mean(angles_degrees: Iterable[float]) -> float:
    sin_sum = 0.0
    cos_sum = 0.0
    for angle in angles_degrees:
        radians = math.radians(angle)
        sin_sum += math.sin(radians)
        cos_sum += math.cos(radians)
    return normalize_angle(math.degrees(math.atan2(sin_sum, cos_sum)))


def perpendicular(dx: float, dy: float) -> tuple[float, float]:
    """Unit vector of (dx, dy) rotated by -90 degrees."""
    length = math.hypot(dx, dy)
    if length < EPSILON:
        return (0.0, -1.0)
    return (dy / length, -dx / length)
