import os
import random
import tempfile

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="sentence-studio-logs-"))
os.environ.setdefault("JWT_SECRET_KEY", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret")
os.environ.setdefault("START_BACKGROUND_WORKER", "false")
os.environ.setdefault("SEED_PRESET_CATEGORIES", "false")

import pytest
from fastapi.testclient import TestClient

from sentence_studio.auth.token_handler import TokenHandler
from sentence_studio.database.setup import get_db
from sentence_studio.main import app
from sentence_studio.services.practice_selector import EligibleFilter


class FakeResult:
    def __init__(self, value=None, rows=None):
        self.value = value
        self.rows = rows if rows is not None else ([] if value is None else [value])

    def scalar_one_or_none(self):
        return self.value

    def scalar(self):
        return self.value

    def scalars(self):
        return self

    def all(self):
        return self.rows

    def first(self):
        return self.rows[0] if self.rows else None


class FakeSession:
    """Stands in for AsyncSession; execute() hands out queued results in order."""

    def __init__(self, objects=None, results=None):
        self.objects = objects or {}
        self.results = list(results or [])
        self.added = []
        self.executed = []
        self.commits = 0
        self.rollbacks = 0

    async def get(self, model, key):
        return self.objects.get((model, key))

    async def execute(self, statement, *args, **kwargs):
        self.executed.append((statement, args))
        return self.results.pop(0) if self.results else FakeResult()

    async def scalar(self, statement):
        return (await self.execute(statement)).scalar()

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1

    async def refresh(self, obj):
        if getattr(obj, "id", None) is None:
            obj.id = len(self.added)

    async def close(self):
        pass


class FakeSentenceSource:
    """
    In-memory candidate source. Each sentence is a dict with id, user_id,
    is_shared, has_audio and category_deleted; practice counts map id -> n.
    """

    def __init__(self, sentences, counts=None, seed=7, fail=False):
        self.sentences = sentences
        self.counts = counts or {}
        self.rng = random.Random(seed)
        self.fail = fail
        self.calls = []

    async def practice_counts(self, user_id):
        if self.fail:
            raise RuntimeError("database unavailable")
        return dict(self.counts)

    async def find_eligible_sentences(self, criteria: EligibleFilter):
        self.calls.append(criteria)
        rows = [
            s for s in self.sentences
            if (s["is_shared"] or s["user_id"] == criteria.user_id)
            and s["has_audio"]
            and not s["category_deleted"]
            and (criteria.include_ids is None or s["id"] in criteria.include_ids)
            and s["id"] not in criteria.exclude_ids
        ]
        self.rng.shuffle(rows)
        return [
            {
                "id": s["id"],
                "english_text": f"Sentence {s['id']}",
                "chinese_text": None,
                "difficulty": "medium",
                "audio_url": f"https://cdn.example.com/tts/{s['id']}.mp3",
                "category": {"id": 1, "name": "Daily Conversation", "color": "#3b82f6"},
            }
            for s in rows[:criteria.limit]
        ]


def make_sentence(sentence_id, user_id=99, is_shared=True, has_audio=True, category_deleted=False):
    return {
        "id": sentence_id,
        "user_id": user_id,
        "is_shared": is_shared,
        "has_audio": has_audio,
        "category_deleted": category_deleted,
    }


@pytest.fixture
def fake_session_factory():
    return FakeSession


@pytest.fixture
def fake_result():
    return FakeResult


@pytest.fixture
def source_factory():
    return FakeSentenceSource


@pytest.fixture
def sentence_factory():
    return make_sentence


@pytest.fixture
def user_info():
    return {"sub": "1", "role": "user"}


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(user_info, session):
    async def override_db():
        yield session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[TokenHandler.verify_access_token] = lambda: user_info
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(session):
    async def override_db():
        yield session

    app.dependency_overrides[get_db] = override_db
    yield TestClient(app)
    app.dependency_overrides.clear()
