"""
Event type definitions for graph change notification.

This module defines typed events emitted after a graph mutation is persisted:
- NodeAddedEvent: When a node (and its derived links) is written
- NodeDeletedEvent: When a node and its incident links are removed
- GraphClearedEvent: When the whole graph is dropped

Observers use these to know a refresh is needed. They are not required for
correctness.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class NodeAddedEvent:
    """Event emitted when a node is added to the graph."""
    node_id: str
    label: str
    session_id: str
    link_targets: List[str] = field(default_factory=list)
    version: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "graph.node_added"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "node_id": self.node_id,
            "label": self.label,
            "session_id": self.session_id,
            "link_targets": list(self.link_targets),
            "version": self.version,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class NodeDeletedEvent:
    """Event emitted when a node is deleted."""
    node_id: str
    removed_links: int = 0
    version: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "graph.node_deleted"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type,
            "node_id": self.node_id,
            "removed_links": self.removed_links,
            "version": self.version,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass
class GraphClearedEvent:
    """Event emitted when the graph is cleared."""
    version: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)
    event_type: str = "graph.cleared"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "version": self.version,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
