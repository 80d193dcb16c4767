from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.layout_config import LayoutConfig
from domain.models import CareerPath, LayoutData, LayoutResult, Position, PositionDetail


class RandomSource(Protocol):
    def random(self) -> float: ...


class LayoutEngine(Protocol):
    name: str

    def compute(
        self,
        career_paths: Sequence[CareerPath],
        positions: Sequence[Position],
        details: Sequence[PositionDetail],
        config: LayoutConfig | None = None,
    ) -> LayoutData: ...

    def run(
        self,
        career_paths: Sequence[CareerPath],
        positions: Sequence[Position],
        details: Sequence[PositionDetail],
        config: LayoutConfig | None = None,
        *,
        collect_trace: bool = False,
    ) -> LayoutResult: ...
