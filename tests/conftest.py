"""Pytest fixtures for topicgraph tests"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from topicgraph.event_bus import EventBus, reset_event_bus
from topicgraph.linker import SimilarityLinker
from topicgraph.mutator import GraphMutator
from topicgraph.query import GraphQuery
from topicgraph.storage import InMemoryGraphStore


@pytest.fixture(autouse=True)
def fresh_global_bus():
    """Keep the global event bus from leaking subscribers between tests."""
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def store():
    store = InMemoryGraphStore()
    store.open()
    yield store
    store.close()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def mutator(store, bus):
    return GraphMutator(store, linker=SimilarityLinker(threshold=0.8), event_bus=bus)


@pytest.fixture
def query(store):
    return GraphQuery(store)


@pytest.fixture
def events(bus):
    """List that collects every event published on the test bus."""
    received = []
    bus.subscribe('*', received.append)
    return received


class FakeExtractor:
    """Extractor stub returning labels from a dict keyed by first user message."""

    def __init__(self, labels=None, default="Undetermined Subject", error=None):
        self.labels = labels or {}
        self.default = default
        self.error = error
        self.calls = 0

    def extract(self, turns):
        self.calls += 1
        if self.error:
            raise self.error
        first = turns[0][1] if isinstance(turns[0], tuple) else turns[0]["content"]
        return self.labels.get(first, self.default)

    def is_undetermined(self, label):
        return label.casefold() == "undetermined subject"


class FakeEmbedder:
    """Embedder stub returning fixed vectors per label."""

    def __init__(self, vectors=None, error=None):
        self.vectors = vectors or {}
        self.error = error
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        if self.error:
            raise self.error
        return list(self.vectors.get(text, [0.0, 0.0, 1.0]))


@pytest.fixture
def fake_extractor():
    return FakeExtractor


@pytest.fixture
def fake_embedder():
    return FakeEmbedder
