"""
In-memory graph store.

Reference implementation of GraphStore, used by tests and the `memory`
storage backend. Snapshots are deep-copied on the way in and out so callers
never share state with the store.
"""

import threading
from typing import Optional

from ..errors import VersionConflict
from ..models import KnowledgeGraph
from .base import GraphStore


class InMemoryGraphStore(GraphStore):
    """Process-local snapshot store"""

    name = "memory"

    def __init__(self, graph: Optional[KnowledgeGraph] = None):
        super().__init__()
        self._lock = threading.Lock()
        self._snapshot: Optional[KnowledgeGraph] = graph.copy() if graph else None
        self._version = graph.version if graph else 0

    def _read(self) -> Optional[KnowledgeGraph]:
        with self._lock:
            if self._snapshot is None:
                return None
            graph = self._snapshot.copy()
            graph.version = self._version
            return graph

    def _write(self, graph: KnowledgeGraph, expected_version: Optional[int]) -> int:
        with self._lock:
            if expected_version is not None and expected_version != self._version:
                raise VersionConflict(expected_version, self._version)
            self._version += 1
            self._snapshot = graph.copy()
            return self._version
