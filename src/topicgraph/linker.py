"""
Similarity linking for new topic nodes.

Scores a candidate embedding against every existing node with a linear scan
and proposes a link for each node at or above the threshold.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_SIMILARITY_THRESHOLD
from .models import GraphLink, GraphNode
from .vector_math import cosine_similarity

logger = logging.getLogger(__name__)


def _validate_threshold(threshold: float) -> float:
    threshold = float(threshold)
    if not -1.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be between -1.0 and 1.0, got {threshold}")
    return threshold


class SimilarityLinker:
    """
    Threshold-based linker.

    O(n*D) per candidate. Fan-out is unbounded: a candidate links to every
    node that clears the threshold, in scan order.
    """

    def __init__(self, threshold: float = DEFAULT_SIMILARITY_THRESHOLD):
        self.threshold = _validate_threshold(threshold)

    def score(self,
              candidate_embedding: Sequence[float],
              existing_nodes: Iterable[GraphNode],
              candidate_id: Optional[str] = None) -> List[Tuple[GraphNode, float]]:
        """
        Similarity of the candidate against every existing node.

        Returns:
            (node, similarity) pairs in scan order, skipping candidate_id

        Raises:
            DimensionMismatch: If a node's embedding differs in length
        """
        scores = []
        for node in existing_nodes:
            if node.id == candidate_id:
                continue
            sim = cosine_similarity(candidate_embedding, node.embedding)
            logger.debug(f"Similarity calculated: {node.label!r} = {sim:.4f}")
            scores.append((node, sim))
        return scores

    def propose_links(self,
                      candidate_id: str,
                      candidate_embedding: Sequence[float],
                      existing_nodes: Iterable[GraphNode],
                      threshold: Optional[float] = None) -> List[GraphLink]:
        """
        Propose links from a candidate to every sufficiently similar node.

        Args:
            candidate_id: Id of the node being added
            candidate_embedding: Its embedding
            existing_nodes: Nodes already in the graph
            threshold: Override for this call (defaults to self.threshold)

        Returns:
            Links {source: candidate_id, target: node.id, similarity}
        """
        cutoff = self.threshold if threshold is None else _validate_threshold(threshold)

        links = []
        for node, sim in self.score(candidate_embedding, existing_nodes, candidate_id):
            if sim >= cutoff:
                links.append(GraphLink(source=candidate_id, target=node.id, similarity=sim))
                logger.debug(f"Link proposed: {candidate_id} -> {node.id} ({sim:.4f})")
        return links
