"""Persistence backends for cache snapshots."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreStat:
    modified: float
    size: int


class SnapshotStore:
    """Abstract keyed storage for JSON snapshots."""

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def write(self, key: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    def stat(self, key: str) -> Optional[StoreStat]:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError


class FileSnapshotStore(SnapshotStore):
    """JSON files under a directory, one ``{key}.json`` per snapshot."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(key)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            # ValueError covers JSONDecodeError and UnicodeDecodeError.
            LOGGER.warning("Could not read cache file %s: %s", path, exc)
            return None
        if not isinstance(data, dict):
            LOGGER.warning("Cache file %s does not contain an object", path)
            return None
        return data

    def write(self, key: str, payload: Dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def stat(self, key: str) -> Optional[StoreStat]:
        try:
            info = self.path_for(key).stat()
        except OSError:
            return None
        return StoreStat(modified=info.st_mtime, size=info.st_size)

    def delete(self, key: str) -> bool:
        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            return False
        return True


__all__ = ["FileSnapshotStore", "SnapshotStore", "StoreStat"]
