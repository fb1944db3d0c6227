"""
Core Data Model.

Shared data shapes for the adaptive learning engine. Every component
works on these plain dataclasses; none of them knows about storage.

Design:
- CardState / Grade: memory-model enums for FSRS review cards
- Card: one per learner x topic unit, mutated only by the card scheduler
- Attempt / Question / StudyTask: read-only snapshots handed in by the caller
- WeakTopic / WeaknessTopic / WeaknessProfile: derived, never persisted here
- RecommendationAction / RecommendationPlan: remediation output
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any


class CardState(str, Enum):
    """Lifecycle of a review card: New -> Learning -> Review <-> Relearning."""

    NEW = "New"
    LEARNING = "Learning"
    REVIEW = "Review"
    RELEARNING = "Relearning"


class Grade(IntEnum):
    """FSRS review grade."""

    AGAIN = 1  # Failed recall
    HARD = 2  # Recalled with serious effort
    GOOD = 3  # Recalled with normal effort
    EASY = 4  # Recalled effortlessly

    @property
    def display_name(self) -> str:
        return self.name.title()


class Severity(str, Enum):
    """How urgently a topic needs remediation."""

    STRONG = "STRONG"
    REINFORCE = "REINFORCE"
    CRITICAL = "CRITICAL"

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            Severity.STRONG: "green",
            Severity.REINFORCE: "yellow",
            Severity.CRITICAL: "red",
        }[self]


# =============================================================================
# Review cards
# =============================================================================


@dataclass
class Card:
    """Spaced-repetition memory state for one learner x topic unit."""

    state: CardState = CardState.NEW
    stability: float = 0.0  # Days until recall drops to ~90%
    difficulty: float = 0.0  # 1 (easy) .. 10 (hard); 0 while New
    reps: int = 0
    lapses: int = 0
    interval: int = 0  # Days
    last_review: datetime | None = None
    next_review: datetime | None = None
    section_id: str | None = None
    course_id: str | None = None

    @classmethod
    def blank(cls, section_id: str | None = None, course_id: str | None = None) -> Card:
        """Create the unreviewed card for a topic unit."""
        return cls(section_id=section_id, course_id=course_id)

    @property
    def is_new(self) -> bool:
        return self.state == CardState.NEW or self.reps == 0

    def evolve(self, **changes: Any) -> Card:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "stability": self.stability,
            "difficulty": self.difficulty,
            "reps": self.reps,
            "lapses": self.lapses,
            "interval": self.interval,
            "lastReview": self.last_review.isoformat() if self.last_review else None,
            "nextReview": self.next_review.isoformat() if self.next_review else None,
            "sectionId": self.section_id,
            "courseId": self.course_id,
        }


# =============================================================================
# Input snapshots
# =============================================================================


@dataclass(frozen=True)
class Attempt:
    """A single answered question. Append-only once written."""

    question_id: str
    correct: bool
    course_id: str | None = None
    time_spent_sec: int = 0
    confidence: int | None = None  # 1-5, None when not reported
    created_at: datetime | None = None


@dataclass(frozen=True)
class Explanation:
    """Rationale attached to a generated question."""

    correct_why: str = ""
    why_others_wrong: tuple[str, ...] = ()
    key_takeaway: str = ""


@dataclass(frozen=True)
class Question:
    """A course question, referenced (not owned) by attempts."""

    id: str
    stem: str = ""
    options: tuple[str, ...] = ()
    correct_index: int = 0
    difficulty: int = 3  # 1-5
    topic_tags: tuple[str, ...] = ()
    explanation: Explanation = field(default_factory=Explanation)
    citations: tuple[Any, ...] = ()
    section_id: str | None = None
    times_answered: int = 0

    @property
    def primary_tag(self) -> str | None:
        return self.topic_tags[0] if self.topic_tags else None


@dataclass(frozen=True)
class StudyTask:
    """A scheduled study-plan task; only its status and minutes matter here."""

    status: str
    actual_minutes: int | None = None
    est_minutes: int | None = None


# =============================================================================
# Course-level weakness (WeaknessAnalyzer)
# =============================================================================


@dataclass
class TopicStats:
    """Running totals for one topic tag."""

    total_attempts: int = 0
    wrong_attempts: int = 0
    total_time_sec: float = 0.0
    last_attempt_date: datetime | None = None

    @property
    def avg_time_sec(self) -> float:
        if self.total_attempts <= 0:
            return 0.0
        return self.total_time_sec / self.total_attempts

    @property
    def accuracy(self) -> float:
        if self.total_attempts <= 0:
            return 0.0
        return (self.total_attempts - self.wrong_attempts) / self.total_attempts


@dataclass(frozen=True)
class WeakTopic:
    """A ranked topic in the course weakness list."""

    tag: str
    weakness_score: float
    accuracy: float

    def to_dict(self) -> dict[str, Any]:
        return {"tag": self.tag, "weaknessScore": self.weakness_score, "accuracy": self.accuracy}


@dataclass(frozen=True)
class OverallAccuracy:
    total_answered: int
    total_correct: int
    overall_accuracy: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalAnswered": self.total_answered,
            "totalCorrect": self.total_correct,
            "overallAccuracy": self.overall_accuracy,
        }


@dataclass(frozen=True)
class CompletionStats:
    total_study_minutes: int
    completed_tasks: int
    total_tasks: int
    completion_percent: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalStudyMinutes": self.total_study_minutes,
            "completedTasks": self.completed_tasks,
            "totalTasks": self.total_tasks,
            "completionPercent": self.completion_percent,
        }


# =============================================================================
# Assessment levels and session profiles
# =============================================================================


@dataclass(frozen=True)
class AssessmentLevelProfile:
    """Static description of a training level's target difficulty and pace."""

    id: str
    label: str
    description: str
    min_difficulty: int
    max_difficulty: int
    target_time_sec: int
    recommended_daily_minutes: int

    @property
    def midpoint(self) -> float:
        return (self.min_difficulty + self.max_difficulty) / 2

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "minDifficulty": self.min_difficulty,
            "maxDifficulty": self.max_difficulty,
            "targetTimeSec": self.target_time_sec,
            "recommendedDailyMinutes": self.recommended_daily_minutes,
        }


@dataclass(frozen=True)
class WeaknessTopic:
    """Per-topic breakdown of one assessment session."""

    tag: str
    attempts: int
    accuracy: float  # 0-1
    avg_time_sec: int
    avg_confidence: float | None
    weakness_score: float  # 0-1
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "tag": self.tag,
            "attempts": self.attempts,
            "accuracy": self.accuracy,
            "avgTimeSec": self.avg_time_sec,
            "avgConfidence": self.avg_confidence,
            "weaknessScore": self.weakness_score,
            "severity": self.severity.value,
        }


@dataclass
class WeaknessProfile:
    """Session-level weakness profile consumed by the recommendation plan."""

    level: str
    target_time_sec: int
    recommended_daily_minutes: int
    answered_count: int = 0
    overall_accuracy: float = 0.0  # 0-1
    avg_time_sec: int = 0
    readiness_score: int = 0  # 0-100
    topic_breakdown: list[WeaknessTopic] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "targetTimeSec": self.target_time_sec,
            "recommendedDailyMinutes": self.recommended_daily_minutes,
            "answeredCount": self.answered_count,
            "overallAccuracy": self.overall_accuracy,
            "avgTimeSec": self.avg_time_sec,
            "readinessScore": self.readiness_score,
            "topicBreakdown": [topic.to_dict() for topic in self.topic_breakdown],
        }


@dataclass
class RecommendationAction:
    title: str
    focus_tag: str
    rationale: str
    recommended_minutes: int
    drills: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {
            "title": data["title"],
            "focusTag": data["focus_tag"],
            "rationale": data["rationale"],
            "recommendedMinutes": data["recommended_minutes"],
            "drills": data["drills"],
        }


@dataclass
class RecommendationPlan:
    """Prioritized remediation plan built from a weakness profile."""

    summary: str
    priority_topics: list[str] = field(default_factory=list)
    actions: list[RecommendationAction] = field(default_factory=list)
    exam_tips: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "priorityTopics": list(self.priority_topics),
            "actions": [action.to_dict() for action in self.actions],
            "examTips": list(self.exam_tips),
        }
