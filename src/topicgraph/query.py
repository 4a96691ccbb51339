"""
Read-only graph queries.

Each call loads the latest persisted snapshot; results are plain lists, not
live views.
"""

from typing import Any, Dict, List, Optional, Tuple

from .models import GraphLink, GraphNode
from .storage.base import GraphStore


class GraphQuery:
    """Lookups over the stored knowledge graph"""

    def __init__(self, store: GraphStore):
        self.store = store

    def get_by_id(self, node_id: str) -> Optional[GraphNode]:
        """Return the node with node_id, or None if not found."""
        return self.store.load().get_node(node_id)

    def list_all(self) -> List[GraphNode]:
        """All nodes in insertion order."""
        return list(self.store.load().nodes)

    def list_links(self) -> List[GraphLink]:
        return list(self.store.load().links)

    def find_by_session(self, session_id: str) -> List[GraphNode]:
        """Nodes created from a session (normally zero or one)."""
        return [n for n in self.store.load().nodes if n.session_id == session_id]

    def neighbors(self, node_id: str) -> List[Tuple[GraphNode, float]]:
        """
        Nodes linked to node_id with the link similarity, strongest first.

        Returns an empty list for an unknown id.
        """
        graph = self.store.load()
        if graph.get_node(node_id) is None:
            return []

        by_id = {n.id: n for n in graph.nodes}
        result = [
            (by_id[link.other(node_id)], link.similarity)
            for link in graph.links
            if link.touches(node_id)
        ]
        result.sort(key=lambda x: x[1], reverse=True)
        return result

    def stats(self) -> Dict[str, Any]:
        """Summary counts for the current snapshot."""
        graph = self.store.load()
        node_count = len(graph.nodes)
        link_count = len(graph.links)
        return {
            "nodes": node_count,
            "links": link_count,
            "dimension": graph.dimension,
            "version": graph.version,
            "average_degree": round(2 * link_count / node_count, 3) if node_count else 0.0,
            "isolated_nodes": len(graph.node_ids() - {
                endpoint for link in graph.links for endpoint in (link.source, link.target)
            }),
        }

    def to_display_data(self) -> Dict[str, List[Dict[str, Any]]]:
        """
        Nodes and links without embeddings, for a visualization layer.

        message_count is included so views can size nodes.
        """
        graph = self.store.load()
        return {
            "nodes": [
                {
                    "id": n.id,
                    "label": n.label,
                    "session_id": n.session_id,
                    "message_count": n.message_count,
                }
                for n in graph.nodes
            ],
            "links": [
                {"source": link.source, "target": link.target, "similarity": link.similarity}
                for link in graph.links
            ],
        }
