"""
topicgraph - personal knowledge graph from study sessions

Each session is distilled into a topic label and an embedding; similar topics
are linked into a browsable map.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .errors import (
    TopicGraphError,
    DimensionMismatch,
    ExtractionFailed,
    EmbeddingFailed,
    StoreError,
    StoreReadFailed,
    StoreWriteFailed,
    VersionConflict,
)
from .models import GraphNode, GraphLink, KnowledgeGraph
from .vector_math import cosine_similarity
from .linker import SimilarityLinker
from .mutator import GraphMutator
from .query import GraphQuery
from .storage import GraphStore, InMemoryGraphStore, JsonFileGraphStore, SQLiteGraphStore, create_store
from .extraction import TopicExtractor, UNDETERMINED_LABEL, is_undetermined
from .embeddings import OllamaEmbedder, OpenAIEmbedder, create_embedder
from .pipeline import SessionPipeline, IngestResult
from .event_bus import EventBus, get_event_bus
from .config import GraphConfig, load_config

__all__ = [
    "TopicGraphError",
    "DimensionMismatch",
    "ExtractionFailed",
    "EmbeddingFailed",
    "StoreError",
    "StoreReadFailed",
    "StoreWriteFailed",
    "VersionConflict",
    "GraphNode",
    "GraphLink",
    "KnowledgeGraph",
    "cosine_similarity",
    "SimilarityLinker",
    "GraphMutator",
    "GraphQuery",
    "GraphStore",
    "InMemoryGraphStore",
    "JsonFileGraphStore",
    "SQLiteGraphStore",
    "create_store",
    "TopicExtractor",
    "UNDETERMINED_LABEL",
    "is_undetermined",
    "OllamaEmbedder",
    "OpenAIEmbedder",
    "create_embedder",
    "SessionPipeline",
    "IngestResult",
    "EventBus",
    "get_event_bus",
    "GraphConfig",
    "load_config",
]
