"""
Exception hierarchy for topicgraph.

All errors raised by the graph pipeline derive from TopicGraphError so callers
can catch the whole family in one place.
"""


class TopicGraphError(Exception):
    """Base exception for topicgraph errors"""
    pass


class DimensionMismatch(TopicGraphError, ValueError):
    """Vectors of unequal length were compared, or an embedding does not
    match the dimension established by a graph."""
    pass


class ExtractionFailed(TopicGraphError):
    """Topic label extraction failed"""
    pass


class EmbeddingFailed(TopicGraphError):
    """Embedding generation failed or returned an unusable vector"""
    pass


class StoreError(TopicGraphError):
    """Base exception for graph store errors"""
    pass


class StoreReadFailed(StoreError):
    """Persisted snapshot is corrupt or unavailable"""
    pass


class StoreWriteFailed(StoreError):
    """Snapshot could not be written; the mutation was not applied"""
    pass


class VersionConflict(StoreWriteFailed):
    """Stored snapshot changed since it was loaded"""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Graph version conflict: expected {expected}, store has {actual}"
        )
