"""
Session pipeline: transcript -> topic label -> embedding -> graph node.

Both model calls happen before the graph is touched, so a failed extraction
or embedding leaves the stored graph exactly as it was.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import UNDETERMINED_POLICIES
from .embeddings import BaseEmbedder
from .errors import EmbeddingFailed, ExtractionFailed
from .extraction import TopicExtractor, Turn
from .models import GraphLink, GraphNode
from .mutator import GraphMutator

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of ingesting one session"""
    session_id: str
    label: str
    node: Optional[GraphNode] = None
    links: List[GraphLink] = field(default_factory=list)
    skipped: bool = False
    reason: Optional[str] = None


class SessionPipeline:
    """
    Distills completed sessions into graph nodes.

    undetermined_policy decides what happens when the extractor returns its
    sentinel label: "skip" creates nothing, "create" adds the node anyway.
    """

    def __init__(self,
                 extractor: TopicExtractor,
                 embedder: BaseEmbedder,
                 mutator: GraphMutator,
                 undetermined_policy: str = "skip"):
        if undetermined_policy not in UNDETERMINED_POLICIES:
            raise ValueError(
                f"Invalid undetermined_policy: {undetermined_policy}. "
                f"Must be one of: {UNDETERMINED_POLICIES}"
            )
        self.extractor = extractor
        self.embedder = embedder
        self.mutator = mutator
        self.undetermined_policy = undetermined_policy

    def ingest(self,
               turns: Sequence[Turn],
               session_id: str,
               message_count: Optional[int] = None) -> IngestResult:
        """
        Create a node for a session.

        Args:
            turns: Ordered (role, content) transcript turns
            session_id: Session identifier
            message_count: Defaults to the number of turns

        Returns:
            IngestResult with the node and links, or skipped=True

        Raises:
            ExtractionFailed: Label could not be produced; graph unchanged
            EmbeddingFailed: Vector could not be produced; graph unchanged
        """
        label = self.extractor.extract(turns)

        if self.extractor.is_undetermined(label) and self.undetermined_policy == "skip":
            logger.info(f"Session {session_id} has no topic yet, node not created")
            return IngestResult(session_id=session_id, label=label, skipped=True,
                                reason="undetermined topic")

        embedding = self.embedder.embed(label)
        node, links = self.mutator.add_node(
            label,
            embedding,
            session_id,
            message_count=max(1, message_count or len(turns)),
        )
        return IngestResult(session_id=session_id, label=label, node=node, links=links)

    def backfill(self, sessions: Iterable[Tuple[str, Sequence[Turn]]]) -> int:
        """
        Create nodes for sessions that do not have one yet.

        Sessions that fail extraction or embedding are logged and skipped.

        Args:
            sessions: (session_id, turns) pairs

        Returns:
            Number of nodes created
        """
        existing = {n.session_id for n in self.mutator.store.load().nodes}
        created = 0

        for session_id, turns in sessions:
            if session_id in existing or not turns:
                continue
            logger.info(f"Missing node for session: {session_id}")
            try:
                result = self.ingest(turns, session_id)
            except (ExtractionFailed, EmbeddingFailed) as e:
                logger.error(f"Failed to backfill node for {session_id}: {e}")
                continue
            if result.node is not None:
                existing.add(session_id)
                created += 1

        logger.info(f"Backfill complete: {created} nodes created")
        return created
