"""
Core Module.

Shared data shapes, numeric helpers and edge exceptions used by every
learning component.
"""

from medq_engine.core.errors import InputFileError, MedqError
from medq_engine.core.models import (
    AssessmentLevelProfile,
    Attempt,
    Card,
    CardState,
    CompletionStats,
    Explanation,
    Grade,
    OverallAccuracy,
    Question,
    RecommendationAction,
    RecommendationPlan,
    Severity,
    StudyTask,
    TopicStats,
    WeaknessProfile,
    WeaknessTopic,
    WeakTopic,
)

__all__ = [
    # Enums
    "CardState",
    "Grade",
    "Severity",
    # Inputs
    "Attempt",
    "Card",
    "Explanation",
    "Question",
    "StudyTask",
    # Derived
    "AssessmentLevelProfile",
    "CompletionStats",
    "OverallAccuracy",
    "RecommendationAction",
    "RecommendationPlan",
    "TopicStats",
    "WeaknessProfile",
    "WeaknessTopic",
    "WeakTopic",
    # Errors
    "InputFileError",
    "MedqError",
]
