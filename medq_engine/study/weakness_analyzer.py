"""
Weakness Analyzer for Course History.

Aggregates a learner's answer history into per-topic statistics and a
ranked list of weak topics:

    score = 0.6 * errorRate + 0.3 * recencyPenalty + 0.1 * speedPenalty

Also folds overall accuracy and study-plan completion, which feed the
same course stats object downstream. Pure functions; empty input gives
zero-valued output.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping

from loguru import logger

from medq_engine.core.models import (
    Attempt,
    CompletionStats,
    OverallAccuracy,
    Question,
    StudyTask,
    TopicStats,
    WeakTopic,
)
from medq_engine.core.utils import SECONDS_PER_DAY, as_utc
from medq_engine.study.weakness_scoring import CourseWeaknessScore

WEAK_TOPICS_LIMIT = 5
DEFAULT_EXPECTED_TIME_SEC = 60.0
NEVER_REVIEWED_DAYS = 14

TASK_DONE = "DONE"


def accumulate_topic_stats(
    attempts: Iterable[Attempt],
    question_index: Mapping[str, Question],
) -> dict[str, TopicStats]:
    """
    Accumulate per-topic statistics from attempts and their questions.

    Each attempt counts towards every topic tag of its question. Attempts
    whose question is unknown, and questions without tags, are skipped.
    Naive timestamps are read as UTC.

    Args:
        attempts: Answer history
        question_index: questionId -> Question

    Returns:
        Dict of tag -> TopicStats
    """
    topic_map: dict[str, TopicStats] = {}
    skipped = 0

    for attempt in attempts:
        question = question_index.get(attempt.question_id)
        if question is None:
            skipped += 1
            continue

        for tag in question.topic_tags:
            stats = topic_map.setdefault(tag, TopicStats())
            stats.total_attempts += 1
            if not attempt.correct:
                stats.wrong_attempts += 1
            stats.total_time_sec += max(0, attempt.time_spent_sec or 0)

            created_at = as_utc(attempt.created_at)
            if created_at is not None and (
                stats.last_attempt_date is None or created_at > stats.last_attempt_date
            ):
                stats.last_attempt_date = created_at

    if skipped:
        logger.debug(f"Skipped {skipped} attempts with no matching question")

    return topic_map


def _days_between(now: datetime, then: datetime) -> int:
    return int((as_utc(now) - as_utc(then)).total_seconds() // SECONDS_PER_DAY)


def rank_weak_topics(
    topic_stats: Mapping[str, TopicStats],
    now: datetime,
    limit: int = WEAK_TOPICS_LIMIT,
    strategy: CourseWeaknessScore | None = None,
) -> list[WeakTopic]:
    """
    Rank topics by weakness score and return the weakest ``limit``.

    Args:
        topic_stats: Output of accumulate_topic_stats
        now: Reference time for recency (naive means UTC)
        limit: Maximum number of topics returned
        strategy: Scoring weights (defaults to CourseWeaknessScore())

    Returns:
        WeakTopic list sorted by weakness score, highest first
    """
    if limit <= 0:
        return []

    strategy = strategy or CourseWeaknessScore(expected_time_sec=DEFAULT_EXPECTED_TIME_SEC)
    results: list[WeakTopic] = []

    for tag, stats in topic_stats.items():
        if stats.last_attempt_date is not None:
            days_since = _days_between(now, stats.last_attempt_date)
        else:
            days_since = NEVER_REVIEWED_DAYS

        weakness_score = strategy.score(
            wrong_attempts=stats.wrong_attempts,
            total_attempts=stats.total_attempts,
            days_since_last_review=days_since,
            avg_time_per_question=stats.avg_time_sec,
        )
        results.append(WeakTopic(tag=tag, weakness_score=weakness_score, accuracy=stats.accuracy))

    results.sort(key=lambda topic: topic.weakness_score, reverse=True)
    return results[:limit]


def compute_overall_accuracy(attempts: Iterable[Attempt]) -> OverallAccuracy:
    """Count answers and the fraction answered correctly."""
    attempts = list(attempts)
    total_answered = len(attempts)
    total_correct = sum(1 for attempt in attempts if attempt.correct)
    overall = total_correct / total_answered if total_answered > 0 else 0.0
    return OverallAccuracy(
        total_answered=total_answered,
        total_correct=total_correct,
        overall_accuracy=overall,
    )


def compute_completion_stats(tasks: Iterable[StudyTask]) -> CompletionStats:
    """
    Study minutes and completion rate from study-plan tasks.

    Only DONE tasks count; their minutes are the actual minutes, falling
    back to the estimate.
    """
    tasks = list(tasks)
    total_minutes = 0
    completed = 0

    for task in tasks:
        if task.status == TASK_DONE:
            total_minutes += task.actual_minutes or task.est_minutes or 0
            completed += 1

    return CompletionStats(
        total_study_minutes=total_minutes,
        completed_tasks=completed,
        total_tasks=len(tasks),
        completion_percent=completed / len(tasks) if tasks else 0.0,
    )
