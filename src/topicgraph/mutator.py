"""
Invariant-preserving graph mutations.

Every mutation is a full read-modify-write of the stored snapshot:
- add_node: create a node and its similarity links
- delete_node: remove a node and every link touching it
- clear: drop everything

Writes carry the version that was loaded. If another writer got there first
the store raises VersionConflict and the whole operation is redone against
the fresh snapshot.
"""

import logging
import threading
import uuid
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .errors import DimensionMismatch, VersionConflict
from .event_bus import EventBus, get_event_bus
from .events import GraphClearedEvent, NodeAddedEvent, NodeDeletedEvent
from .linker import SimilarityLinker
from .models import GraphLink, GraphNode, KnowledgeGraph
from .storage.base import GraphStore
from .vector_math import is_finite_vector, to_float_list

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GraphMutator:
    """
    Owns all writes to a GraphStore.

    A lock serializes mutations in this process; the store version guards
    against writers in other processes.
    """

    def __init__(self,
                 store: GraphStore,
                 linker: Optional[SimilarityLinker] = None,
                 dimension: Optional[int] = None,
                 max_retries: int = 3,
                 event_bus: Optional[EventBus] = None):
        """
        Args:
            store: Snapshot store
            linker: Similarity linker (default threshold 0.8)
            dimension: Required embedding dimension; if None the first node sets it
            max_retries: Version conflict retries before giving up
            event_bus: Change notification bus (defaults to the global bus)
        """
        self.store = store
        self.linker = linker or SimilarityLinker()
        self.dimension = dimension
        self.max_retries = max_retries
        self.event_bus = event_bus or get_event_bus()
        self._lock = threading.Lock()

    def _with_retry(self, operation: Callable[[KnowledgeGraph], Tuple[bool, T]]) -> T:
        """
        Run load -> operation -> save under the lock, retrying on version conflicts.

        `operation` mutates the loaded graph in place and returns
        (changed, result). Nothing is written when changed is False.
        """
        with self._lock:
            attempt = 0
            while True:
                graph = self.store.load()
                changed, result = operation(graph)
                if not changed:
                    return result
                try:
                    self.store.save(graph, expected_version=graph.version)
                    return result
                except VersionConflict as e:
                    if attempt >= self.max_retries:
                        logger.error(f"Giving up after {attempt + 1} attempts: {e}")
                        raise
                    attempt += 1
                    logger.warning(f"{e}; retrying ({attempt}/{self.max_retries})")

    def _validate_embedding(self, embedding: Sequence[float], graph: KnowledgeGraph) -> List[float]:
        if len(embedding) == 0:
            raise DimensionMismatch("Embedding must not be empty")
        if not is_finite_vector(embedding):
            raise ValueError("Embedding must contain only finite numbers")

        expected = self.dimension or graph.dimension
        if expected is not None and len(embedding) != expected:
            raise DimensionMismatch(
                f"Embedding has dimension {len(embedding)}, graph requires {expected}"
            )
        return to_float_list(embedding)

    def add_node(self,
                 label: str,
                 embedding: Sequence[float],
                 session_id: str,
                 message_count: int = 1) -> Tuple[GraphNode, List[GraphLink]]:
        """
        Add a topic node and link it to every similar existing node.

        Args:
            label: Topic label
            embedding: Label embedding
            session_id: Originating session
            message_count: Transcript size, for display sizing

        Returns:
            (new node, links created)

        Raises:
            DimensionMismatch: Embedding empty or of the wrong dimension
            StoreWriteFailed: Snapshot could not be written; nothing changed
        """
        if not label or not label.strip():
            raise ValueError("label must not be empty")
        if message_count < 1:
            raise ValueError("message_count must be >= 1")

        node_id = str(uuid.uuid4())

        def operation(graph: KnowledgeGraph):
            vector = self._validate_embedding(embedding, graph)
            node = GraphNode(
                id=node_id,
                label=label.strip(),
                embedding=vector,
                session_id=session_id,
                message_count=message_count,
            )
            links = self.linker.propose_links(node.id, vector, graph.nodes)
            graph.nodes.append(node)
            graph.links.extend(links)
            return True, (node, links, graph)

        node, links, graph = self._with_retry(operation)

        logger.info(
            f"Node added: {node.id} -> {node.label!r} with {len(links)} links "
            f"(graph: {len(graph.nodes)} nodes, {len(graph.links)} links)"
        )
        self.event_bus.publish(NodeAddedEvent(
            node_id=node.id,
            label=node.label,
            session_id=node.session_id,
            link_targets=[link.target for link in links],
            version=graph.version,
        ))
        return node, links

    def delete_node(self, node_id: str) -> bool:
        """
        Delete a node and every link that references it.

        Deleting an absent id is a no-op.

        Returns:
            True if a node was removed
        """
        def operation(graph: KnowledgeGraph):
            node = graph.get_node(node_id)
            if node is None:
                return False, (False, 0, graph)
            graph.nodes.remove(node)
            before = len(graph.links)
            graph.links = [link for link in graph.links if not link.touches(node_id)]
            return True, (True, before - len(graph.links), graph)

        removed, removed_links, graph = self._with_retry(operation)

        if not removed:
            logger.debug(f"Delete skipped, node not found: {node_id}")
            return False

        logger.info(f"Node deleted: {node_id} ({removed_links} links removed)")
        self.event_bus.publish(NodeDeletedEvent(
            node_id=node_id,
            removed_links=removed_links,
            version=graph.version,
        ))
        return True

    def clear(self) -> None:
        """Replace the graph with an empty one. Irreversible."""
        with self._lock:
            version = self.store.clear()
        logger.info("Graph cleared")
        self.event_bus.publish(GraphClearedEvent(version=version))
