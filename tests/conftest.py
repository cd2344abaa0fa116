"""
Shared fixtures: every test gets its own SQLite file and matcher snapshot path.
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from nash.core.knowledge import KnowledgeStore
from nash.core.services import build_services
from nash.matcher.embeddings import HashedBagOfWordsEmbedding
from nash.matcher.trainer import TrainableMatcher


class FakeClock:
    """Settable UTC clock for expiry tests."""

    def __init__(self, now: datetime = None):
        self.now = now or datetime(2026, 10, 17, 12, 0, 0, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self.now

    def advance(self, **kwargs):
        with self._lock:
            self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "nash.db")


@pytest.fixture
def model_path(tmp_path):
    return str(tmp_path / "model.pkl")


@pytest.fixture
def knowledge(db_path):
    store = KnowledgeStore(db_path)
    store.initialize()
    return store


@pytest.fixture
def matcher():
    return TrainableMatcher(
        embedding_provider=HashedBagOfWordsEmbedding(2048),
        languages=("en", "tl", "es", "fr"),
        threshold=0.8
    )


@pytest.fixture
def services(db_path, model_path, matcher):
    return build_services(db_path=db_path, model_path=model_path, matcher=matcher)
