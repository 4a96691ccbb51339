"""
Data models for the knowledge graph.

This module contains the dataclasses representing topic nodes, similarity
links, and the persisted graph aggregate.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set


@dataclass
class GraphNode:
    """A topic node distilled from one study session."""
    id: str  # UUID
    label: str
    embedding: List[float]
    session_id: str
    message_count: int = 1  # display sizing only
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.now()
        if self.message_count < 1:
            raise ValueError("message_count must be >= 1")

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "label": self.label,
            "embedding": list(self.embedding),
            "session_id": self.session_id,
            "message_count": self.message_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphNode":
        created_at = data.get("created_at")
        return cls(
            id=str(data["id"]),
            label=str(data["label"]),
            embedding=[float(x) for x in data["embedding"]],
            session_id=str(data["session_id"]),
            message_count=int(data.get("message_count", 1)),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )


@dataclass
class GraphLink:
    """A similarity link between two topic nodes."""
    source: str
    target: str
    similarity: float  # cosine similarity at creation, -1.0 to 1.0

    def __post_init__(self):
        if self.source == self.target:
            raise ValueError(f"Self-link not allowed: {self.source}")
        if not -1.0 <= self.similarity <= 1.0:
            raise ValueError(f"similarity must be between -1.0 and 1.0, got {self.similarity}")

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def other(self, node_id: str) -> str:
        """Return the endpoint opposite node_id."""
        return self.target if self.source == node_id else self.source

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "similarity": self.similarity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphLink":
        return cls(
            source=str(data["source"]),
            target=str(data["target"]),
            similarity=float(data["similarity"]),
        )


@dataclass
class KnowledgeGraph:
    """
    The persisted graph aggregate.

    Nodes keep insertion order. `version` stamps the snapshot a graph was
    loaded from and is not part of equality.
    """
    nodes: List[GraphNode] = field(default_factory=list)
    links: List[GraphLink] = field(default_factory=list)
    version: int = field(default=0, compare=False)

    @property
    def dimension(self) -> Optional[int]:
        """Embedding dimension established by the first node, or None if empty."""
        if not self.nodes:
            return None
        return self.nodes[0].dimension

    def is_empty(self) -> bool:
        return not self.nodes and not self.links

    def node_ids(self) -> Set[str]:
        return {n.id for n in self.nodes}

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def prune_dangling_links(self) -> int:
        """
        Drop links whose endpoints are missing from the node set.

        Returns:
            Number of links removed
        """
        ids = self.node_ids()
        kept = [link for link in self.links if link.source in ids and link.target in ids]
        removed = len(self.links) - len(kept)
        self.links = kept
        return removed

    def copy(self) -> "KnowledgeGraph":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [link.to_dict() for link in self.links],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnowledgeGraph":
        if not isinstance(data, dict):
            raise ValueError(f"Expected graph object, got {type(data).__name__}")
        nodes = _object_list(data, "nodes")
        links = _object_list(data, "links")
        return cls(
            nodes=[GraphNode.from_dict(n) for n in nodes],
            links=[GraphLink.from_dict(link) for link in links],
            version=int(data.get("version", 0)),
        )


def _object_list(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """Return data[key] as a list of dicts; ValueError if it is anything else."""
    items = data.get(key, [])
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise ValueError(f"'{key}' must be a list of objects")
    return items
