"""
Weakness Scoring Strategies.

Two weighted weakness formulas exist side by side:

- CourseWeaknessScore: 3 terms (error rate, recency, speed) over course
  history. Feeds the ranked weak-topic list.
- SessionWeaknessScore: 4 terms (error rate, slowness, confidence,
  missed difficulty) over one assessment session. Feeds the
  recommendation plan and carries a severity.

They share inputs but produce numerically different values; neither is
a drop-in replacement for the other.
"""

from __future__ import annotations

from dataclasses import dataclass

from medq_engine.core.models import Severity
from medq_engine.core.utils import clamp

# Severity thresholds on the session score
CRITICAL_THRESHOLD = 0.65
REINFORCE_THRESHOLD = 0.45

# Confidence penalty used when the learner never reported confidence
MISSING_CONFIDENCE_PENALTY = 0.45


@dataclass(frozen=True)
class CourseWeaknessScore:
    """
    score = 0.6 * errorRate + 0.3 * recencyPenalty + 0.1 * speedPenalty
    """

    error_weight: float = 0.6
    recency_weight: float = 0.3
    speed_weight: float = 0.1
    recency_window_days: float = 14.0
    expected_time_sec: float = 60.0

    def score(
        self,
        wrong_attempts: int,
        total_attempts: int,
        days_since_last_review: float | None = None,
        avg_time_per_question: float = 0.0,
    ) -> float:
        """
        Compute the course weakness score (0-1).

        Args:
            wrong_attempts: Incorrect answers on the topic
            total_attempts: All answers on the topic; 0 means unknown (error rate 0.5)
            days_since_last_review: None when never reviewed (full recency penalty)
            avg_time_per_question: Average seconds spent per answer
        """
        error_rate = wrong_attempts / total_attempts if total_attempts > 0 else 0.5
        if days_since_last_review is None:
            days_since_last_review = self.recency_window_days
        recency_penalty = clamp(days_since_last_review / self.recency_window_days, 0.0, 1.0)
        speed_penalty = clamp(avg_time_per_question / self.expected_time_sec, 0.0, 1.0)

        return (
            self.error_weight * clamp(error_rate, 0.0, 1.0)
            + self.recency_weight * recency_penalty
            + self.speed_weight * speed_penalty
        )


@dataclass(frozen=True)
class SessionWeaknessScore:
    """
    score = 0.55 * errorRate + 0.2 * slowPenalty
          + 0.15 * confidencePenalty + 0.1 * difficultyPenalty
    """

    error_weight: float = 0.55
    slow_weight: float = 0.2
    confidence_weight: float = 0.15
    difficulty_weight: float = 0.1

    @staticmethod
    def slow_penalty(avg_time_sec: float, target_time_sec: float) -> float:
        """0 at or under target, 1 at twice the target or slower."""
        if target_time_sec <= 0:
            return 0.0
        return clamp(avg_time_sec / target_time_sec - 1, 0.0, 1.0)

    @staticmethod
    def confidence_penalty(avg_confidence: float | None) -> float:
        if avg_confidence is None:
            return MISSING_CONFIDENCE_PENALTY
        return clamp((3.5 - avg_confidence) / 2.5, 0.0, 1.0)

    @staticmethod
    def difficulty_penalty(weighted_miss: float, attempts: int) -> float:
        if attempts <= 0:
            return 0.0
        return min(1.0, weighted_miss / attempts)

    def score(
        self,
        accuracy: float,
        avg_time_sec: float,
        target_time_sec: float,
        avg_confidence: float | None,
        weighted_miss: float,
        attempts: int,
    ) -> float:
        """Compute the session weakness score, rounded to 3 decimals."""
        error_rate = 1 - clamp(accuracy, 0.0, 1.0)
        value = (
            self.error_weight * error_rate
            + self.slow_weight * self.slow_penalty(avg_time_sec, target_time_sec)
            + self.confidence_weight * self.confidence_penalty(avg_confidence)
            + self.difficulty_weight * self.difficulty_penalty(weighted_miss, attempts)
        )
        return round(value, 3)


def severity_for(score: float) -> Severity:
    """Bucket a session weakness score into a severity."""
    if score >= CRITICAL_THRESHOLD:
        return Severity.CRITICAL
    if score >= REINFORCE_THRESHOLD:
        return Severity.REINFORCE
    return Severity.STRONG
