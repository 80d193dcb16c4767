from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields, replace
from typing import Any

logger = logging.getLogger(__name__)

MIN_DIRECTIONS = 1


@dataclass(frozen=True)
class LayoutConfig:
    mid_level_radius: float = 100.0
    radius_step: float = 60.0
    min_radius: float = 40.0
    num_directions: int = 8
    # None means half an angle step, so no path runs along an axis.
    angle_offset_degrees: float | None = None
    pull_interchanges: float = 0.3
    max_consecutive_aligned: int = 3
    min_separation: float = 30.0
    max_iterations: int = 50
    padding: float = 50.0
    global_scale: float = 1.0
    mid_level_pull: float = 0.7
    mid_level_override: float | None = None
    snap_tolerance_degrees: float = 1.0
    collinear_tolerance_degrees: float = 5.0

    @property
    def angle_step(self) -> float:
        return 360.0 / max(self.num_directions, MIN_DIRECTIONS)

    @property
    def angle_offset(self) -> float:
        if self.angle_offset_degrees is None:
            return self.angle_step / 2
        return self.angle_offset_degrees

    def scaled(self, value: float) -> float:
        return value * self.global_scale

    def normalized(self) -> LayoutConfig:
        """Return a copy with every value clamped into its safe range.

        The angle offset is resolved as well, so the result can be reported as
        the configuration that was actually used.
        """
        updates: dict[str, Any] = {}

        def clamp(name: str, value: Any) -> None:
            current = getattr(self, name)
            if value != current:
                logger.warning("Layout config %s=%r is out of range, using %r", name, current, value)
                updates[name] = value

        clamp("num_directions", max(int(self.num_directions), MIN_DIRECTIONS))
        clamp("mid_level_radius", max(self.mid_level_radius, 0.0))
        clamp("radius_step", max(self.radius_step, 0.0))
        clamp("min_radius", max(self.min_radius, 0.0))
        clamp("pull_interchanges", min(max(self.pull_interchanges, 0.0), 1.0))
        clamp("max_consecutive_aligned", max(int(self.max_consecutive_aligned), 1))
        clamp("min_separation", max(self.min_separation, 0.0))
        clamp("max_iterations", max(int(self.max_iterations), 0))
        clamp("padding", max(self.padding, 0.0))
        clamp("global_scale", self.global_scale if self.global_scale > 0 else 1.0)
        clamp("mid_level_pull", max(self.mid_level_pull, 0.0))
        clamp("snap_tolerance_degrees", max(self.snap_tolerance_degrees, 0.0))
        clamp("collinear_tolerance_degrees", max(self.collinear_tolerance_degrees, 0.0))

        normalized = replace(self, **updates)
        if normalized.angle_offset_degrees is None:
            normalized = replace(normalized, angle_offset_degrees=normalized.angle_offset)
        return normalized

    def to_dict(self) -> dict[str, Any]:
        return {_camel(key): value for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LayoutConfig:
        """Inverse of ``to_dict``; unknown keys are ignored."""
        values = {}
        for item in fields(cls):
            key = _camel(item.name)
            if key in data:
                values[item.name] = data[key]
        return cls(**values)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
