import random

import pytest
from fastapi.testclient import TestClient

from vocabquiz.config import settings
from vocabquiz.models import VocabularyWord
from vocabquiz.vocabulary import VocabularyManager


class NoShuffleRandom(random.Random):
    """Leaves every sequence in its original order."""

    def shuffle(self, x, *args, **kwargs):
        pass


class ReverseRandom(random.Random):
    def shuffle(self, x, *args, **kwargs):
        x.reverse()


WORDS = [
    ("Abundant", "Present in great quantity"),
    ("Benevolent", "Well-meaning and kindly"),
    ("Candid", "Truthful and straightforward"),
    ("Diligent", "Having care in one's work"),
    ("Eloquent", "Fluent and persuasive in speaking"),
]


@pytest.fixture
def fixed_rng():
    return NoShuffleRandom()


@pytest.fixture
def reverse_rng():
    return ReverseRandom()


@pytest.fixture
def words():
    return [VocabularyWord(word=w, definition=d) for w, d in WORDS]


@pytest.fixture
def manager(tmp_path):
    m = VocabularyManager(str(tmp_path / "vocabulary"))
    m.load_all()
    return m


@pytest.fixture
def registry():
    return {}


@pytest.fixture
def client(manager, registry, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "LOG_DIR", str(tmp_path / "log"))
    from vocabquiz import router as router_mod
    from vocabquiz.app import create_app

    app = create_app()
    app.dependency_overrides[router_mod.get_vocab_manager] = lambda: manager
    app.dependency_overrides[router_mod.get_session_registry] = lambda: registry
    return TestClient(app)
