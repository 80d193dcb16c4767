from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, Field, field_validator

DEFAULT_PATH_COLOR = "#cccccc"


class CareerPath(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    color: Optional[str] = None
    description: Optional[str] = None


class Position(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    description: Optional[str] = None


class PositionDetail(BaseModel):
    id: str = Field(..., min_length=1)
    position_id: str
    career_path_id: str
    level: int = Field(..., ge=1)
    sequence_in_path: Optional[int] = None


class CareerMapDocument(BaseModel):
    career_paths: List[CareerPath] = Field(default_factory=list)
    positions: List[Position] = Field(default_factory=list)
    position_details: List[PositionDetail] = Field(default_factory=list)

    @field_validator("career_paths", mode="after")
    @classmethod
    def ensure_unique_path_ids(cls, career_paths: List[CareerPath]) -> List[CareerPath]:
        seen: Set[str] = set()
        for path in career_paths:
            if path.id in seen:
                msg = f"Duplicate career path id found: {path.id}"
                raise ValueError(msg)
            seen.add(path.id)
        return career_paths

    def is_empty(self) -> bool:
        return not (self.career_paths and self.positions and self.position_details)


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class PolarPoint:
    radius: float
    angle_degrees: float


@dataclass(frozen=True)
class LevelInfo:
    min_level: float
    max_level: float
    mid_level: float


@dataclass(frozen=True)
class LayoutNode:
    id: str
    position_id: str
    career_path_id: str
    level: int
    name: str
    x: float
    y: float
    color: str
    is_interchange: bool = False
    related_paths: tuple[str, ...] | None = None
    sequence_in_path: int | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "positionId": self.position_id,
            "careerPathId": self.career_path_id,
            "level": self.level,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "color": self.color,
            "isInterchange": self.is_interchange,
        }
        if self.related_paths is not None:
            payload["relatedPaths"] = list(self.related_paths)
        if self.sequence_in_path is not None:
            payload["sequence_in_path"] = self.sequence_in_path
        return payload


@dataclass(frozen=True)
class LayoutPath:
    id: str
    name: str
    color: str
    nodes: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color, "nodes": list(self.nodes)}


@dataclass(frozen=True)
class LayoutBounds:
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def to_dict(self) -> dict[str, float]:
        return {"minX": self.min_x, "maxX": self.max_x, "minY": self.min_y, "maxY": self.max_y}


FALLBACK_BOUNDS = LayoutBounds(min_x=-100.0, max_x=100.0, min_y=-100.0, max_y=100.0)


@dataclass(frozen=True)
class LayoutData:
    nodes: List[LayoutNode]
    nodes_by_id: Dict[str, LayoutNode]
    paths: List[LayoutPath]
    paths_by_id: Dict[str, LayoutPath]
    bounds: LayoutBounds
    config_used: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "nodesById": {node_id: node.to_dict() for node_id, node in self.nodes_by_id.items()},
            "paths": [path.to_dict() for path in self.paths],
            "pathsById": {path_id: path.to_dict() for path_id, path in self.paths_by_id.items()},
            "bounds": self.bounds.to_dict(),
            "configUsed": dict(self.config_used),
        }


@dataclass(frozen=True)
class TraceEvent:
    stage: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"stage": self.stage, "message": self.message, "data": dict(self.data)}


@dataclass(frozen=True)
class LayoutStats:
    skipped_details: tuple[str, ...] = ()
    origin_relocations: int = 0
    snapped_segments: int = 0
    bends_inserted: int = 0
    separation_iterations: int = 0
    separation_converged: bool = True
    interchange_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "skippedDetails": list(self.skipped_details),
            "originRelocations": self.origin_relocations,
            "snappedSegments": self.snapped_segments,
            "bendsInserted": self.bends_inserted,
            "separationIterations": self.separation_iterations,
            "separationConverged": self.separation_converged,
            "interchangeCount": self.interchange_count,
        }


@dataclass(frozen=True)
class LayoutResult:
    layout: LayoutData
    stats: LayoutStats
    trace: tuple[TraceEvent, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "layout": self.layout.to_dict(),
            "stats": self.stats.to_dict(),
        }
        if self.trace is not None:
            payload["trace"] = [event.to_dict() for event in self.trace]
        return payload


@dataclass(frozen=True)
class MetroMap:
    result: LayoutResult
    routes: dict[str, List[Point]] | None = None

    @property
    def layout(self) -> LayoutData:
        return self.result.layout

    def to_dict(self) -> dict[str, Any]:
        payload = self.result.to_dict()
        if self.routes is not None:
            payload["routes"] = {
                path_id: [point.to_dict() for point in points]
                for path_id, points in self.routes.items()
            }
        return payload
