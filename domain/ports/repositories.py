from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

from domain.models import CareerMapDocument


class CareerMapRepository(Protocol):
    def load(self, path: Path) -> CareerMapDocument: ...

    def load_all_with_paths(self, directory: Path) -> Sequence[tuple[Path, CareerMapDocument]]: ...


class LayoutRepository(Protocol):
    def save(self, payload: Mapping[str, Any], path: Path) -> None: ...
