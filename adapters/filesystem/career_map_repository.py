from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, List

from filelock import FileLock

from adapters.filesystem.json_utils import load_json, write_json_atomic
from domain.models import CareerMapDocument
from domain.ports.repositories import CareerMapRepository, LayoutRepository


class FileSystemCareerMapRepository(CareerMapRepository):
    def load(self, path: Path) -> CareerMapDocument:
        return CareerMapDocument.model_validate(load_json(path))

    def load_all(self, directory: Path) -> List[CareerMapDocument]:
        return [document for _, document in self.load_all_with_paths(directory)]

    def load_all_with_paths(self, directory: Path) -> List[tuple[Path, CareerMapDocument]]:
        return [(path, self.load(path)) for path in sorted(self._iter_paths(directory))]

    def _iter_paths(self, directory: Path) -> Iterable[Path]:
        for path in directory.glob("*.json"):
            if path.is_file():
                yield path


class FileSystemLayoutRepository(LayoutRepository):
    def save(self, payload: Mapping[str, Any], path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = path.with_suffix(f"{path.suffix}.lock")
        with FileLock(str(lock_path)):
            write_json_atomic(path, dict(payload))
