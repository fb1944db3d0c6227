"""
Study Module for the MedQ Adaptive Learning Engine.

Provides the pure learning components:
- Card scheduling (FSRS v5 memory model)
- Course weakness ranking
- Assessment question selection
- Session weakness profiles and remediation plans
"""

from medq_engine.study.assessment_catalog import (
    ASSESSMENT_LEVELS,
    TOPIC_LIBRARY,
    get_assessment_level,
    normalize_assessment_level,
    normalize_topic_tag,
)
from medq_engine.study.assessment_selector import select_assessment_questions
from medq_engine.study.card_scheduler import (
    FSRS_WEIGHTS,
    CardScheduler,
    grade_from_performance,
    next_interval,
    retrievability,
    review_card,
)
from medq_engine.study.question_selection import weighted_select
from medq_engine.study.recommendation import (
    build_recommendation_plan,
    compute_weakness_profile,
)
from medq_engine.study.weakness_analyzer import (
    accumulate_topic_stats,
    compute_completion_stats,
    compute_overall_accuracy,
    rank_weak_topics,
)
from medq_engine.study.weakness_scoring import CourseWeaknessScore, SessionWeaknessScore

__all__ = [
    # Scheduler
    "FSRS_WEIGHTS",
    "CardScheduler",
    "grade_from_performance",
    "next_interval",
    "retrievability",
    "review_card",
    # Weakness
    "CourseWeaknessScore",
    "SessionWeaknessScore",
    "accumulate_topic_stats",
    "compute_completion_stats",
    "compute_overall_accuracy",
    "rank_weak_topics",
    # Assessment
    "ASSESSMENT_LEVELS",
    "TOPIC_LIBRARY",
    "get_assessment_level",
    "normalize_assessment_level",
    "normalize_topic_tag",
    "select_assessment_questions",
    "weighted_select",
    # Recommendations
    "build_recommendation_plan",
    "compute_weakness_profile",
]
