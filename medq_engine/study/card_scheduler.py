"""
Card Scheduler - FSRS Memory Model for Topic Review Cards.

Implements the FSRS v5 (Free Spaced Repetition Scheduler) memory model:
1. Power-law forgetting curve  R(t, S) = (1 + t / (9S))^-1
2. Optimal interval            I = S * 9 * (1/r - 1)
3. Asymmetric stability update (recall grows S, a lapse shrinks it)
4. Mean-reverting difficulty   D' = w7 * D0(Good) + (1 - w7) * (D - w6 * (g - 3))

Every function is a pure transformation: the caller passes the clock
(``now``) and elapsed days, and numeric results are clamped instead of
raising.

Based on the open-source FSRS algorithm by Jarrett Ye.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Sequence

from loguru import logger

from medq_engine.core.models import Card, CardState, Grade
from medq_engine.core.utils import clamp, finite_or

# =============================================================================
# FSRS v5 CONSTANTS
# =============================================================================

# Published FSRS v5 defaults (19 parameters)
FSRS_WEIGHTS: tuple[float, ...] = (
    0.4072, 1.1829, 3.1262, 15.4722,  # w0-w3: initial stability per grade
    7.2102, 0.5316, 1.0651,           # w4-w6: difficulty base, grade scaling, update rate
    0.0589,                           # w7: mean reversion
    1.5330, 0.1544, 1.0070,           # w8-w10: recall stability factors
    1.9395, 0.1100, 0.2970, 2.2693,   # w11-w14: forget stability factors
    0.2315, 2.9898,                   # w15: hard penalty, w16: easy bonus
    0.5163, 0.6571,                   # w17-w18: short-term stability
)

MIN_STABILITY = 0.1
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
DEFAULT_DESIRED_RETENTION = 0.90
DEFAULT_MIN_INTERVAL = 1
DEFAULT_MAX_INTERVAL = 365


def _grade(grade: float) -> Grade:
    return Grade(int(clamp(round(finite_or(grade, Grade.AGAIN)), 1, 4)))


# =============================================================================
# Forgetting curve
# =============================================================================


def retrievability(elapsed_days: float, stability: float) -> float:
    """
    Probability of recall after ``elapsed_days`` with stability ``stability``.

    Returns:
        Recall probability in [0, 1]; 0 for an unset stability, 1 at t <= 0.
    """
    if not stability or stability <= 0 or not math.isfinite(stability):
        return 0.0
    if not elapsed_days or elapsed_days <= 0:
        return 1.0
    return math.pow(1 + elapsed_days / (9 * stability), -1)


def next_interval(
    stability: float,
    desired_retention: float = DEFAULT_DESIRED_RETENTION,
    min_interval: int = DEFAULT_MIN_INTERVAL,
    max_interval: int = DEFAULT_MAX_INTERVAL,
) -> int:
    """
    Optimal interval (days) for a target retention.

    Inverse of the forgetting curve, rounded and clamped to the bounds.
    Degenerate input (unset stability, retention outside (0, 1)) yields
    ``min_interval``.
    """
    if (
        stability is None
        or not math.isfinite(stability)
        or stability <= 0
        or not 0 < desired_retention < 1
    ):
        return int(min_interval)
    interval = stability * 9 * (1 / desired_retention - 1)
    return int(clamp(round(interval), min_interval, max_interval))


# =============================================================================
# Stability and difficulty updates
# =============================================================================


def init_stability(grade: int, w: Sequence[float] = FSRS_WEIGHTS) -> float:
    """Initial stability S0 from the first-review grade (w0-w3)."""
    g = _grade(grade)
    return max(MIN_STABILITY, w[g - 1])


def init_difficulty(grade: int, w: Sequence[float] = FSRS_WEIGHTS) -> float:
    """Initial difficulty D0 = w4 - exp(w5 * (grade - 1)) + 1, clamped to [1, 10]."""
    g = _grade(grade)
    d = w[4] - math.exp(w[5] * (g - 1)) + 1
    return clamp(d, MIN_DIFFICULTY, MAX_DIFFICULTY)


def next_difficulty(d: float, grade: int, w: Sequence[float] = FSRS_WEIGHTS) -> float:
    """Mean-reverting difficulty update anchored on the Good-grade D0."""
    g = _grade(grade)
    anchor = init_difficulty(Grade.GOOD, w)
    d_prime = w[7] * anchor + (1 - w[7]) * (d - w[6] * (g - 3))
    return clamp(d_prime, MIN_DIFFICULTY, MAX_DIFFICULTY)


def recall_stability(
    d: float, s: float, r: float, grade: int, w: Sequence[float] = FSRS_WEIGHTS
) -> float:
    """
    Stability after a successful recall (Hard, Good or Easy).

    S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1) * hard * easy)
    """
    g = _grade(grade)
    hard_penalty = w[15] if g == Grade.HARD else 1.0
    easy_bonus = w[16] if g == Grade.EASY else 1.0

    new_s = s * (
        1
        + math.exp(w[8])
        * (11 - d)
        * math.pow(s, -w[9])
        * (math.exp(w[10] * (1 - r)) - 1)
        * hard_penalty
        * easy_bonus
    )

    return max(MIN_STABILITY, finite_or(new_s, s))


def forget_stability(d: float, s: float, r: float, w: Sequence[float] = FSRS_WEIGHTS) -> float:
    """
    Stability after a lapse (grade Again).

    S' = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R)), never above S.
    """
    new_s = (
        w[11]
        * math.pow(d, -w[12])
        * (math.pow(s + 1, w[13]) - 1)
        * math.exp(w[14] * (1 - r))
    )
    return clamp(finite_or(new_s, MIN_STABILITY), MIN_STABILITY, s)


# =============================================================================
# Reviews
# =============================================================================


def review_card(
    card: Card,
    grade: int,
    elapsed_days: float,
    desired_retention: float = DEFAULT_DESIRED_RETENTION,
    min_interval: int = DEFAULT_MIN_INTERVAL,
    max_interval: int = DEFAULT_MAX_INTERVAL,
    *,
    now: datetime,
    weights: Sequence[float] = FSRS_WEIGHTS,
) -> Card:
    """
    Process a single review and return the updated card.

    Args:
        card: Current card state (left untouched)
        grade: FSRS grade 1-4; rounded and clamped
        elapsed_days: Days since the last review (ignored for new cards)
        desired_retention: Target recall probability, e.g. 0.9
        min_interval: Interval floor in days
        max_interval: Interval ceiling in days
        now: Review timestamp; ``next_review`` is ``now + interval`` days
        weights: FSRS parameter vector

    Returns:
        New Card with updated state, stability, difficulty, counters and dates
    """
    g = _grade(grade)
    w = weights

    if card.is_new:
        stability = init_stability(g, w)
        difficulty = init_difficulty(g, w)
        state = CardState.LEARNING if g == Grade.AGAIN else CardState.REVIEW
        reps = 1
        lapses = 1 if g == Grade.AGAIN else 0
    else:
        # Repair degenerate stored state before applying the update
        prev_s = max(MIN_STABILITY, finite_or(card.stability, MIN_STABILITY))
        prev_d = clamp(finite_or(card.difficulty, MIN_DIFFICULTY), MIN_DIFFICULTY, MAX_DIFFICULTY)
        r = retrievability(max(0.0, finite_or(elapsed_days, 0.0)), prev_s)

        if g == Grade.AGAIN:
            stability = forget_stability(prev_d, prev_s, r, w)
            state = CardState.RELEARNING
            lapses = card.lapses + 1
            logger.debug(
                f"Lapse: stability {prev_s:.2f} -> {stability:.2f} (R={r:.3f}, lapses={lapses})"
            )
        else:
            stability = recall_stability(prev_d, prev_s, r, g, w)
            state = CardState.REVIEW
            lapses = card.lapses

        difficulty = next_difficulty(prev_d, g, w)
        reps = card.reps + 1

    interval = next_interval(stability, desired_retention, min_interval, max_interval)

    return card.evolve(
        state=state,
        stability=stability,
        difficulty=difficulty,
        reps=reps,
        lapses=lapses,
        interval=interval,
        last_review=now,
        next_review=now + timedelta(days=interval),
    )


def grade_from_performance(
    accuracy: float, avg_time_sec: float, avg_confidence: float
) -> Grade:
    """
    Map quiz performance to an FSRS grade.

    | Grade | Condition                                                |
    |-------|----------------------------------------------------------|
    | Again | accuracy < 0.40                                          |
    | Easy  | accuracy > 0.90 and 0 < avg time < 30s and confidence >= 4 |
    | Hard  | accuracy < 0.65, or avg time > 90s with accuracy < 0.80  |
    | Good  | everything else                                          |

    Args:
        accuracy: Fraction correct (0-1)
        avg_time_sec: Average seconds per question
        avg_confidence: Average confidence 1-5 (0 when not available)
    """
    acc = clamp(finite_or(accuracy or 0.0, 0.0), 0.0, 1.0)
    time_sec = max(0.0, finite_or(avg_time_sec or 0.0, 0.0))
    confidence = clamp(finite_or(avg_confidence or 0.0, 0.0), 0.0, 5.0)

    if acc < 0.40:
        return Grade.AGAIN
    if acc > 0.90 and 0 < time_sec < 30 and confidence >= 4:
        return Grade.EASY
    if acc < 0.65 or (time_sec > 90 and acc < 0.80):
        return Grade.HARD
    return Grade.GOOD


def _or_setting(value, name: str):
    if value is not None:
        return value
    from medq_engine.config import get_settings

    return getattr(get_settings(), name)


class CardScheduler:
    """
    FSRS scheduler bound to a parameter vector and retention policy.

    Wraps the module-level functions so callers can configure weights,
    desired retention and interval bounds once (defaults come from
    settings).
    """

    def __init__(
        self,
        weights: Sequence[float] | None = None,
        desired_retention: float | None = None,
        min_interval: int | None = None,
        max_interval: int | None = None,
    ):
        desired_retention = _or_setting(desired_retention, "desired_retention")
        min_interval = _or_setting(min_interval, "min_interval_days")
        max_interval = _or_setting(max_interval, "max_interval_days")

        self.w = tuple(weights) if weights is not None else FSRS_WEIGHTS
        if len(self.w) < 17:
            logger.warning(f"FSRS weight vector has {len(self.w)} entries; falling back to defaults")
            self.w = FSRS_WEIGHTS
        self.desired_retention = desired_retention
        self.min_interval = min_interval
        self.max_interval = max_interval

    def retrievability(self, elapsed_days: float, stability: float) -> float:
        return retrievability(elapsed_days, stability)

    def next_interval(self, stability: float) -> int:
        return next_interval(stability, self.desired_retention, self.min_interval, self.max_interval)

    def grade_from_performance(
        self, accuracy: float, avg_time_sec: float, avg_confidence: float
    ) -> Grade:
        return grade_from_performance(accuracy, avg_time_sec, avg_confidence)

    def review(self, card: Card, grade: int, elapsed_days: float, now: datetime) -> Card:
        """Process a review with this scheduler's configuration."""
        return review_card(
            card,
            grade,
            elapsed_days,
            self.desired_retention,
            self.min_interval,
            self.max_interval,
            now=now,
            weights=self.w,
        )
