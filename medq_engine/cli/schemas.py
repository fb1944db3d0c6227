"""
Input snapshot schemas for the medq CLI.

The learning core assumes validated shapes; these Pydantic models are the
validation layer for JSON snapshots exported from storage. Field names
follow the storage documents (camelCase), snake_case is accepted too.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, TypeVar

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from medq_engine.core.errors import InputFileError
from medq_engine.core.models import Attempt, Card, CardState, Explanation, Question, StudyTask
from medq_engine.core.utils import as_utc

T = TypeVar("T")


class SnapshotModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ========================================
# Snapshot Models
# ========================================


class CardIn(SnapshotModel):
    """A stored review card."""

    state: CardState = CardState.NEW
    stability: float = 0.0
    difficulty: float = 0.0
    reps: int = Field(default=0, ge=0)
    lapses: int = Field(default=0, ge=0)
    interval: int = Field(default=0, ge=0)
    last_review: Optional[datetime] = None
    next_review: Optional[datetime] = None
    section_id: Optional[str] = None
    course_id: Optional[str] = None

    def to_card(self) -> Card:
        data = self.model_dump()
        data["last_review"] = as_utc(data["last_review"])
        data["next_review"] = as_utc(data["next_review"])
        return Card(**data)


class AttemptIn(SnapshotModel):
    """A stored answer attempt."""

    question_id: str
    correct: bool
    course_id: Optional[str] = None
    time_spent_sec: int = Field(default=0, ge=0)
    confidence: Optional[int] = Field(default=None, ge=1, le=5)
    created_at: Optional[datetime] = None

    def to_attempt(self) -> Attempt:
        data = self.model_dump()
        data["created_at"] = as_utc(data["created_at"])
        return Attempt(**data)


class ExplanationIn(SnapshotModel):
    correct_why: str = ""
    why_others_wrong: List[str] = Field(default_factory=list)
    key_takeaway: str = ""


class SourceRefIn(SnapshotModel):
    section_id: Optional[str] = None


class QuestionStatsIn(SnapshotModel):
    times_answered: int = Field(default=0, ge=0)


class QuestionIn(SnapshotModel):
    """A stored course question."""

    id: str
    stem: str = ""
    options: List[str] = Field(default_factory=list)
    correct_index: int = 0
    difficulty: int = Field(default=3, ge=1, le=5)
    topic_tags: List[str] = Field(default_factory=list)
    explanation: ExplanationIn = Field(default_factory=ExplanationIn)
    citations: List[Any] = Field(default_factory=list)
    section_id: Optional[str] = None
    times_answered: Optional[int] = Field(default=None, ge=0)
    source_ref: Optional[SourceRefIn] = None
    stats: Optional[QuestionStatsIn] = None

    def to_question(self) -> Question:
        return Question(
            id=self.id,
            stem=self.stem,
            options=tuple(self.options),
            correct_index=self.correct_index,
            difficulty=self.difficulty,
            topic_tags=tuple(self.topic_tags),
            explanation=Explanation(
                correct_why=self.explanation.correct_why.strip(),
                why_others_wrong=tuple(self.explanation.why_others_wrong),
                key_takeaway=self.explanation.key_takeaway.strip(),
            ),
            citations=tuple(self.citations),
            section_id=self.section_id or (self.source_ref.section_id if self.source_ref else None),
            times_answered=(
                self.times_answered
                if self.times_answered is not None
                else (self.stats.times_answered if self.stats else 0)
            ),
        )


class StudyTaskIn(SnapshotModel):
    status: str
    actual_minutes: Optional[int] = Field(default=None, ge=0)
    est_minutes: Optional[int] = Field(default=None, ge=0)

    def to_task(self) -> StudyTask:
        return StudyTask(**self.model_dump())


# ========================================
# Loading
# ========================================


def read_json(path: Path) -> Any:
    """Read a JSON file, raising InputFileError on I/O or syntax errors."""
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise InputFileError(str(path), f"cannot read file ({e.strerror or e})") from e
    except json.JSONDecodeError as e:
        raise InputFileError(str(path), f"invalid JSON at line {e.lineno}: {e.msg}") from e


def load_snapshot(path: Path, model: type[T]) -> T:
    """Validate a JSON object against a snapshot model."""
    return _validate(path, TypeAdapter(model))


def load_snapshot_list(path: Path, model: type[T]) -> list[T]:
    """Validate a JSON array (of model objects) against a snapshot model."""
    return _validate(path, TypeAdapter(List[model]))


def _validate(path: Path, adapter: TypeAdapter) -> Any:
    data = read_json(path)
    try:
        return adapter.validate_python(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        logger.debug(f"Validation failed for {path}: {e}")
        raise InputFileError(
            str(path),
            f"{e.error_count()} validation error(s); first at '{location}': {first['msg']}",
        ) from e
