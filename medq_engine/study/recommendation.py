"""
Recommendation Synthesizer: Session Weakness Profile -> Remediation Plan.

Two steps:
1. compute_weakness_profile folds one assessment session into per-topic
   weakness (SessionWeaknessScore) and a 0-100 readiness score.
2. build_recommendation_plan turns that profile into focus topics,
   study minutes and drills.

Readiness:
    readiness = round(100 * (0.7 * accuracy + 0.3 * (1 - meanWeakness)))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from loguru import logger

from medq_engine.core.models import (
    AssessmentLevelProfile,
    Attempt,
    Question,
    RecommendationAction,
    RecommendationPlan,
    Severity,
    WeaknessProfile,
    WeaknessTopic,
)
from medq_engine.core.utils import clamp, clamp_int
from medq_engine.study.assessment_catalog import get_assessment_level, normalize_topic_tag
from medq_engine.study.assessment_selector import question_focus_tag
from medq_engine.study.weakness_scoring import SessionWeaknessScore, severity_for

MAX_PRIORITY_TOPICS = 4
MIN_RECOMMENDED_MINUTES = 25
CRITICAL_MINUTES_MULTIPLIER = 1.2
MAX_TIME_SPENT_SEC = 3600


@dataclass
class _TopicAccumulator:
    tag: str
    attempts: int = 0
    correct: int = 0
    total_time_sec: int = 0
    confidence_sum: int = 0
    confidence_count: int = 0
    weighted_miss: float = 0.0


def _percent(fraction: float) -> str:
    return f"{round(fraction * 100, 1):g}%"


def compute_weakness_profile(
    responses: Iterable[Attempt],
    question_index: Mapping[str, Question],
    level: str | AssessmentLevelProfile | None,
    focus_topic_tag: str | None = None,
    strategy: SessionWeaknessScore | None = None,
) -> WeaknessProfile:
    """
    Build the session weakness profile.

    Args:
        responses: Answers given in the session
        question_index: questionId -> Question
        level: Level id/alias or profile (sets target time and daily minutes)
        focus_topic_tag: Session focus; questions are bucketed by subtopic
        strategy: Score weights (defaults to SessionWeaknessScore())

    Returns:
        WeaknessProfile with topics sorted weakest first
    """
    profile = get_assessment_level(level)
    focus = normalize_topic_tag(focus_topic_tag)
    strategy = strategy or SessionWeaknessScore()
    topics: dict[str, _TopicAccumulator] = {}

    responses = list(responses)
    total_correct = 0
    total_time = 0

    for response in responses:
        question = question_index.get(response.question_id)
        if question is None:
            continue

        time_spent = clamp_int(
            response.time_spent_sec or profile.target_time_sec, 0, MAX_TIME_SPENT_SEC
        )
        confidence = (
            None if response.confidence is None else clamp_int(response.confidence, 1, 5)
        )
        correct = response.correct is True
        if correct:
            total_correct += 1
        total_time += time_spent

        tag = question_focus_tag(question, focus)
        topic = topics.setdefault(tag, _TopicAccumulator(tag=tag))
        topic.attempts += 1
        topic.total_time_sec += time_spent
        if correct:
            topic.correct += 1
        else:
            topic.weighted_miss += clamp(question.difficulty or 3, 1, 5) / 5
        if confidence is not None:
            topic.confidence_sum += confidence
            topic.confidence_count += 1

    breakdown: list[WeaknessTopic] = []
    for topic in topics.values():
        accuracy = topic.correct / topic.attempts if topic.attempts else 0.0
        avg_time = topic.total_time_sec / topic.attempts if topic.attempts else 0.0
        avg_confidence = (
            topic.confidence_sum / topic.confidence_count if topic.confidence_count else None
        )
        score = strategy.score(
            accuracy=accuracy,
            avg_time_sec=avg_time,
            target_time_sec=profile.target_time_sec,
            avg_confidence=avg_confidence,
            weighted_miss=topic.weighted_miss,
            attempts=topic.attempts,
        )
        breakdown.append(
            WeaknessTopic(
                tag=topic.tag,
                attempts=topic.attempts,
                accuracy=round(accuracy, 3),
                avg_time_sec=round(avg_time),
                avg_confidence=None if avg_confidence is None else round(avg_confidence, 2),
                weakness_score=score,
                severity=severity_for(score),
            )
        )

    breakdown.sort(key=lambda t: t.weakness_score, reverse=True)

    answered = len(responses)
    overall_accuracy = total_correct / answered if answered else 0.0
    avg_time_sec = total_time / answered if answered else 0.0
    mean_weakness = (
        sum(t.weakness_score for t in breakdown) / len(breakdown) if breakdown else 1.0
    )
    readiness = int(clamp(round((overall_accuracy * 0.7 + (1 - mean_weakness) * 0.3) * 100), 0, 100))

    return WeaknessProfile(
        level=profile.id,
        target_time_sec=profile.target_time_sec,
        recommended_daily_minutes=profile.recommended_daily_minutes,
        answered_count=answered,
        overall_accuracy=round(overall_accuracy, 3),
        avg_time_sec=round(avg_time_sec),
        readiness_score=readiness,
        topic_breakdown=breakdown,
    )


def recommended_minutes(topic: WeaknessTopic, recommended_daily_minutes: int) -> int:
    """Daily minutes for a weak topic; CRITICAL topics get 20% more, never under 25."""
    multiplier = CRITICAL_MINUTES_MULTIPLIER if topic.severity == Severity.CRITICAL else 1.0
    minutes = (recommended_daily_minutes * 0.4 + topic.weakness_score * 30) * multiplier
    return round(max(MIN_RECOMMENDED_MINUTES, minutes))


def _drills(topic: WeaknessTopic, profile: WeaknessProfile, minutes: int) -> list[str]:
    accuracy = _percent(topic.accuracy)
    drills: list[str] = []

    if topic.accuracy < 0.40:
        drills.append(
            f"Your {topic.tag} accuracy is {accuracy}. Revisit the core concepts before "
            "quizzing and focus on understanding mechanisms, not memorizing answers."
        )
    elif topic.accuracy < 0.60:
        drills.append(
            f"At {accuracy} accuracy in {topic.tag}, you're close. Do a focused 15-question "
            "quiz on this topic and review each wrong answer in detail."
        )
    else:
        drills.append(
            f"{topic.tag} is at {accuracy}. Strengthen it with a timed quiz "
            f"({profile.target_time_sec}s per question) focusing on the subtopics you missed."
        )

    if topic.avg_time_sec >= profile.target_time_sec * 1.5:
        drills.append(
            f"You're averaging {topic.avg_time_sec}s per question vs the "
            f"{profile.target_time_sec}s target. Practice under timed conditions to build speed."
        )

    if topic.severity == Severity.CRITICAL:
        drills.append(
            f"This is a critical gap. Dedicate {minutes} minutes daily to {topic.tag} until "
            "accuracy exceeds 70%. Retest after 48 hours."
        )
    else:
        drills.append(
            f"Schedule a {topic.tag} review session, then retest in 2-3 days to confirm retention."
        )

    return drills


def _rationale(topic: WeaknessTopic, profile: WeaknessProfile) -> str:
    plural = "" if topic.attempts == 1 else "s"
    text = f"{_percent(topic.accuracy)} accuracy across {topic.attempts} question{plural}"
    if topic.avg_time_sec > profile.target_time_sec:
        text += f", avg {topic.avg_time_sec}s (target: {profile.target_time_sec}s)"
    return text + "."


def _maintenance_plan(profile: WeaknessProfile) -> RecommendationPlan:
    return RecommendationPlan(
        summary=(
            "Performance is stable across this topic. "
            "Keep momentum with mixed, timed practice."
        ),
        priority_topics=[],
        actions=[
            RecommendationAction(
                title="Maintain exam stamina",
                focus_tag="mixed-review",
                rationale="No critical weakness clusters detected.",
                recommended_minutes=round(profile.recommended_daily_minutes * 0.75),
                drills=[
                    "Run one timed mixed set every 2 days.",
                    "Review all incorrect items and rewrite key takeaways.",
                    "Re-assess the same topic in 5-7 days.",
                ],
            )
        ],
        exam_tips=[
            "Prioritize timing discipline: do not spend >2x target time on one item.",
            "Keep a one-page error log and revisit before each test.",
        ],
    )


def build_recommendation_plan(profile: WeaknessProfile) -> RecommendationPlan:
    """
    Turn a weakness profile into a prioritized remediation plan.

    Takes up to 4 of the weakest non-STRONG topics; when there are none a
    generic maintenance plan is returned.
    """
    weak_topics = sorted(
        (t for t in profile.topic_breakdown if t.severity != Severity.STRONG),
        key=lambda t: t.weakness_score,
        reverse=True,
    )[:MAX_PRIORITY_TOPICS]

    if not weak_topics:
        return _maintenance_plan(profile)

    actions: list[RecommendationAction] = []
    for topic in weak_topics:
        minutes = recommended_minutes(topic, profile.recommended_daily_minutes)
        title = f"Fix: {topic.tag}" if topic.severity == Severity.CRITICAL else f"Strengthen: {topic.tag}"
        actions.append(
            RecommendationAction(
                title=title,
                focus_tag=topic.tag,
                rationale=_rationale(topic, profile),
                recommended_minutes=minutes,
                drills=_drills(topic, profile, minutes),
            )
        )

    top_tag = weak_topics[0].tag
    plural = "" if len(weak_topics) == 1 else "s"
    logger.debug(f"Built plan with {len(actions)} actions, led by {top_tag}")

    return RecommendationPlan(
        summary=(
            f"{len(weak_topics)} weak area{plural} found. Focus on {top_tag} first, "
            "it has the biggest impact on your readiness score."
        ),
        priority_topics=[t.tag for t in weak_topics],
        actions=actions,
        exam_tips=[
            f"Start each study session with {top_tag} while your focus is sharpest.",
            "For questions you got wrong, write one sentence explaining why the correct answer is right.",
            f"Aim for {profile.target_time_sec}s per question, being too slow costs marks in real exams.",
        ],
    )
