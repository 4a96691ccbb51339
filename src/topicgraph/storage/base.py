"""
GraphStore - Abstract interface for persisting the knowledge graph

The graph is read and written as a single snapshot. Every snapshot carries a
version number; a write that names an expected version is rejected when the
stored snapshot has moved on, so concurrent writers cannot silently overwrite
each other.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..errors import StoreReadFailed, StoreWriteFailed
from ..models import KnowledgeGraph

logger = logging.getLogger(__name__)


class GraphStore(ABC):
    """
    Abstract base class for graph snapshot stores.

    Subclasses implement `_read()` and `_write()`. `load()` and `save()` wrap
    them with the recovery and error policy shared by every backend:
    - an unreadable snapshot loads as an empty graph (logged, not raised)
    - a failed write raises StoreWriteFailed and leaves the old snapshot
    """

    name = "base"

    def __init__(self):
        self._opened = False

    def open(self) -> None:
        """Acquire backend resources. Called once before first use."""
        self._opened = True

    def close(self) -> None:
        """Release backend resources."""
        self._opened = False

    @property
    def is_open(self) -> bool:
        return self._opened

    def __enter__(self) -> "GraphStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _ensure_open(self) -> None:
        if not self._opened:
            self.open()

    @abstractmethod
    def _read(self) -> Optional[KnowledgeGraph]:
        """
        Read the current snapshot.

        Returns:
            The stored graph, or None if nothing has been written yet

        Raises:
            StoreReadFailed: If the snapshot is corrupt or unavailable
        """

    @abstractmethod
    def _write(self, graph: KnowledgeGraph, expected_version: Optional[int]) -> int:
        """
        Replace the snapshot atomically.

        Returns:
            The new version number

        Raises:
            VersionConflict: If expected_version does not match the stored version
            StoreWriteFailed: On any other failure
        """

    def load(self) -> KnowledgeGraph:
        """
        Load the full graph.

        Returns:
            The stored graph; an empty graph if none exists or it cannot be read
        """
        self._ensure_open()
        try:
            graph = self._read()
        except StoreReadFailed as e:
            logger.warning(f"[{self.name}] Failed to load graph, using empty graph: {e}")
            return KnowledgeGraph()

        if graph is None:
            return KnowledgeGraph()

        pruned = graph.prune_dangling_links()
        if pruned:
            logger.warning(f"[{self.name}] Pruned {pruned} dangling links on load")
        return graph

    def save(self, graph: KnowledgeGraph, expected_version: Optional[int] = None) -> int:
        """
        Persist the full graph, replacing prior contents.

        Args:
            graph: Graph to write
            expected_version: Version the caller loaded; None skips the check

        Returns:
            The new snapshot version (also stamped onto `graph.version`)
        """
        self._ensure_open()
        try:
            version = self._write(graph, expected_version)
        except StoreWriteFailed:
            raise
        except Exception as e:
            raise StoreWriteFailed(f"[{self.name}] Failed to save graph: {e}") from e

        graph.version = version
        logger.debug(
            f"[{self.name}] Graph saved: {len(graph.nodes)} nodes, "
            f"{len(graph.links)} links (version {version})"
        )
        return version

    def clear(self) -> int:
        """Replace the stored graph with an empty one."""
        return self.save(KnowledgeGraph())
