"""
Shared fixtures: in-memory database, fake clocks and a scripted LLM provider.
"""
import json
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyforge.db.base import Base
from studyforge.db.models.subscription import UserSubscription
from studyforge.llm.provider import LLMProvider, LLMResponse


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

NOW = datetime(2026, 1, 15, 12, 0, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


class ScriptedProvider(LLMProvider):
    """LLM provider that replays queued outputs; exceptions in the queue are raised."""

    name = "scripted"

    def __init__(self, outputs=None):
        self.outputs = list(outputs or [])
        self.calls = []

    def generate_text(self, prompt, temperature=0.7, max_tokens=None):
        self.calls.append({"prompt": prompt, "temperature": temperature, "max_tokens": max_tokens})
        if not self.outputs:
            raise AssertionError("ScriptedProvider called more times than scripted")
        output = self.outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return LLMResponse(content=output, model="scripted")


def quiz_json(count=2, question="What is 2 + 2?"):
    return json.dumps([
        {
            "id": i + 1,
            "question": question,
            "options": ["A) 3", "B) 4", "C) 5", "D) 22"],
            "correctAnswer": "B",
            "explanation": "Two plus two is four.",
        }
        for i in range(count)
    ])


def flashcard_json(count=2, front="Mitochondria"):
    return json.dumps([
        {"id": i + 1, "front": front, "back": "Powerhouse of the cell"}
        for i in range(count)
    ])


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def make_subscription(db):
    """Insert a subscription row directly."""
    def _make(user_id="user-1", plan_type="free", limits=(5, 5, 20), used=(0, 0, 0), usage_reset_date=None):
        sub = UserSubscription(
            user_id=user_id,
            plan_type=plan_type,
            quiz_limit=limits[0],
            flashcard_limit=limits[1],
            tutor_messages_limit=limits[2],
            quizzes_used=used[0],
            flashcards_used=used[1],
            tutor_messages_used=used[2],
            usage_reset_date=usage_reset_date or datetime(2026, 2, 1),
        )
        db.add(sub)
        db.commit()
        db.refresh(sub)
        return sub
    return _make


@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def sleeps():
    """Records retry delays instead of sleeping."""
    return []


@pytest.fixture
def provider():
    """Scripted LLM provider; append outputs to provider.outputs."""
    return ScriptedProvider()


@pytest.fixture
def quiz_payload():
    return quiz_json


@pytest.fixture
def flashcard_payload():
    return flashcard_json
