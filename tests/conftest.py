"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from medq_engine.core.models import Attempt, Explanation, Question  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Drop cached settings so MEDQ_* env changes in a test take effect."""
    from medq_engine.config import get_settings

    for name in ("MEDQ_DESIRED_RETENTION", "MEDQ_LOG_LEVEL", "MEDQ_RANDOM_SEED"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """Fixed reference clock."""
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def rng():
    """Seeded random source for reproducible shuffles."""
    return random.Random(1234)


def build_question(
    qid,
    difficulty=3,
    tags=("general",),
    stem=None,
    section_id=None,
    options=("A", "B", "C", "D"),
    explanation=None,
    citations=(),
    times_answered=0,
):
    """Build a Question with sensible defaults."""
    return Question(
        id=qid,
        stem=stem if stem is not None else f"Vignette {qid}alpha {qid}beta {qid}gamma {qid}delta",
        options=tuple(options),
        correct_index=0,
        difficulty=difficulty,
        topic_tags=tuple(tags),
        explanation=explanation or Explanation(),
        citations=tuple(citations),
        section_id=section_id,
        times_answered=times_answered,
    )


@pytest.fixture
def make_question():
    """Factory for test questions."""
    return build_question


@pytest.fixture
def sample_questions():
    """Two-topic question bank: cardiology (hard) and pharmacology."""
    cardio = [
        build_question(f"c{i}", difficulty=5, tags=("cardiology",), section_id="s-cardio")
        for i in range(10)
    ]
    pharm = [
        build_question(f"p{i}", difficulty=3, tags=("pharmacology",), section_id="s-pharm")
        for i in range(10)
    ]
    return cardio + pharm


@pytest.fixture
def question_index(sample_questions):
    return {q.id: q for q in sample_questions}


@pytest.fixture
def sample_attempts(now):
    """Cardiology 3/10 correct and slow; pharmacology 9/10 correct and quick."""
    yesterday = now - timedelta(days=1)
    attempts = [
        Attempt(question_id=f"c{i}", correct=i < 3, time_spent_sec=150, created_at=yesterday)
        for i in range(10)
    ]
    attempts += [
        Attempt(question_id=f"p{i}", correct=i < 9, time_spent_sec=30, created_at=now)
        for i in range(10)
    ]
    return attempts
