"""
JSON file graph store.

The whole graph is one JSON document. Writes go to a temporary file in the
same directory and are moved into place with os.replace, so readers see
either the old or the new snapshot, never a partial one.

The version check, write and replace run under a lock on a sidecar
`<name>.lock` file, so store instances in other threads or processes cannot
both commit against the same version.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from filelock import FileLock, Timeout

from ..errors import StoreReadFailed, StoreWriteFailed, VersionConflict
from ..models import KnowledgeGraph
from .base import GraphStore


class JsonFileGraphStore(GraphStore):
    """Snapshot store backed by a single JSON file"""

    name = "json"

    def __init__(self, path: Union[str, Path], lock_timeout: float = 30.0):
        super().__init__()
        self.path = Path(path)
        self.lock_path = self.path.with_name(f"{self.path.name}.lock")
        self.lock_timeout = lock_timeout
        self._file_lock = FileLock(str(self.lock_path), timeout=lock_timeout)

    def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        super().open()

    def _read(self) -> Optional[KnowledgeGraph]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return KnowledgeGraph.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StoreReadFailed(f"{self.path}: {e}") from e

    def _stored_version(self) -> int:
        try:
            graph = self._read()
        except StoreReadFailed:
            # corrupt file is overwritten as if empty
            return 0
        return graph.version if graph else 0

    def _write(self, graph: KnowledgeGraph, expected_version: Optional[int]) -> int:
        try:
            with self._file_lock:
                return self._write_locked(graph, expected_version)
        except Timeout as e:
            raise StoreWriteFailed(
                f"{self.path}: could not lock {self.lock_path} within {self.lock_timeout}s"
            ) from e

    def _write_locked(self, graph: KnowledgeGraph, expected_version: Optional[int]) -> int:
        current = self._stored_version()
        if expected_version is not None and expected_version != current:
            raise VersionConflict(expected_version, current)

        version = current + 1
        payload = graph.to_dict()
        payload["version"] = version

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreWriteFailed(f"{self.path}: {e}") from e
        return version
