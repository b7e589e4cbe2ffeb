from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import orjson
from filelock import FileLock

from domain.models import SceneDocument


def _lock_for(path: Path) -> FileLock:
    return FileLock(str(path.with_suffix(f"{path.suffix}.lock")))


def _write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    tmp_path.write_bytes(data)
    tmp_path.replace(path)


class FileSystemSceneRepository:
    def load(self, path: Path) -> dict[str, Any]:
        data = orjson.loads(path.read_bytes())
        return data if isinstance(data, dict) else {}

    def save(self, document: SceneDocument | Mapping[str, Any], path: Path) -> None:
        payload = document.to_dict() if isinstance(document, SceneDocument) else dict(document)
        data = orjson.dumps(payload, option=orjson.OPT_INDENT_2)
        with _lock_for(path):
            _write_atomic(path, data)

    def save_svg(self, svg: str, path: Path) -> None:
        with _lock_for(path):
            _write_atomic(path, svg.encode("utf-8"))
