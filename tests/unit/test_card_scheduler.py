"""
Unit tests for the FSRS card scheduler.

Covers the forgetting curve, interval derivation, first and subsequent
reviews, grade mapping and repair of degenerate stored cards.
"""

import math
from datetime import timedelta

import pytest

from medq_engine.core.models import Card, CardState, Grade
from medq_engine.study.card_scheduler import (
    FSRS_WEIGHTS,
    CardScheduler,
    forget_stability,
    grade_from_performance,
    init_difficulty,
    init_stability,
    next_difficulty,
    next_interval,
    recall_stability,
    retrievability,
    review_card,
)


def _reviewed_card(stability=10.0, difficulty=5.0, reps=3, lapses=0):
    return Card(
        state=CardState.REVIEW,
        stability=stability,
        difficulty=difficulty,
        reps=reps,
        lapses=lapses,
        interval=int(stability),
    )


class TestRetrievability:
    def test_full_recall_at_time_zero(self):
        assert retrievability(0, 5.0) == 1.0

    def test_negative_elapsed_treated_as_zero(self):
        assert retrievability(-3, 5.0) == 1.0

    def test_ninety_percent_after_one_stability(self):
        # (1 + S / 9S)^-1 = 0.9
        assert retrievability(10, 10) == pytest.approx(0.9)

    def test_half_life_at_nine_stabilities(self):
        assert retrievability(90, 10) == pytest.approx(0.5)

    def test_unset_stability_gives_zero(self):
        assert retrievability(5, 0) == 0.0
        assert retrievability(5, -1) == 0.0

    def test_decreases_with_time(self):
        values = [retrievability(t, 4.0) for t in (1, 5, 20, 100)]
        assert values == sorted(values, reverse=True)
        assert all(0 <= v <= 1 for v in values)


class TestNextInterval:
    def test_interval_equals_stability_at_ninety_percent(self):
        assert next_interval(10.0, 0.9) == 10

    def test_lower_retention_gives_longer_interval(self):
        assert next_interval(10.0, 0.8) > next_interval(10.0, 0.9)

    def test_clamped_to_max(self):
        assert next_interval(10_000.0, 0.9) == 365
        assert next_interval(10_000.0, 0.9, max_interval=100) == 100

    def test_clamped_to_min(self):
        assert next_interval(0.01, 0.9) == 1
        assert next_interval(0.01, 0.9, min_interval=3) == 3

    @pytest.mark.parametrize("stability", [0, -2.0, float("nan"), float("inf"), None])
    def test_degenerate_stability_returns_min(self, stability):
        assert next_interval(stability, 0.9) == 1

    @pytest.mark.parametrize("retention", [0, 1, 1.5, -0.1])
    def test_retention_outside_open_interval_returns_min(self, retention):
        assert next_interval(10.0, retention) == 1


class TestInitialState:
    def test_initial_stability_per_grade(self):
        assert init_stability(Grade.AGAIN) == pytest.approx(0.4072)
        assert init_stability(Grade.HARD) == pytest.approx(1.1829)
        assert init_stability(Grade.GOOD) == pytest.approx(3.1262)
        assert init_stability(Grade.EASY) == pytest.approx(15.4722)

    def test_initial_stability_has_floor(self):
        weights = (0.01,) + FSRS_WEIGHTS[1:]
        assert init_stability(Grade.AGAIN, weights) == 0.1

    def test_initial_difficulty_formula(self):
        expected = 7.2102 - math.exp(0.5316 * 2) + 1
        assert init_difficulty(Grade.GOOD) == pytest.approx(expected)

    def test_initial_difficulty_decreases_with_grade(self):
        values = [init_difficulty(g) for g in Grade]
        assert values == sorted(values, reverse=True)
        assert all(1 <= v <= 10 for v in values)


class TestStabilityUpdates:
    def test_recall_grows_stability(self):
        r = retrievability(10, 10)
        assert recall_stability(5.0, 10.0, r, Grade.GOOD) > 10.0

    def test_easy_grows_more_than_hard(self):
        r = retrievability(10, 10)
        hard = recall_stability(5.0, 10.0, r, Grade.HARD)
        good = recall_stability(5.0, 10.0, r, Grade.GOOD)
        easy = recall_stability(5.0, 10.0, r, Grade.EASY)
        assert hard < good < easy

    def test_forget_never_exceeds_previous_stability(self):
        for s in (0.5, 3.0, 30.0, 300.0):
            new_s = forget_stability(5.0, s, retrievability(s, s))
            assert 0.1 <= new_s <= s

    def test_difficulty_moves_with_grade(self):
        assert next_difficulty(5.0, Grade.AGAIN) > next_difficulty(5.0, Grade.GOOD)
        assert next_difficulty(5.0, Grade.EASY) < next_difficulty(5.0, Grade.GOOD)

    def test_difficulty_stays_in_range(self):
        assert next_difficulty(10.0, Grade.AGAIN) <= 10.0
        assert next_difficulty(1.0, Grade.EASY) >= 1.0


class TestReviewNewCard:
    def test_good_first_review(self, now):
        updated = review_card(Card.blank(), Grade.GOOD, 0, now=now)

        assert updated.state == CardState.REVIEW
        assert updated.stability == pytest.approx(3.1262)
        assert updated.interval == 3
        assert updated.reps == 1
        assert updated.lapses == 0
        assert updated.last_review == now
        assert updated.next_review == now + timedelta(days=3)

    def test_again_first_review_enters_learning(self, now):
        updated = review_card(Card.blank(), Grade.AGAIN, 0, now=now)

        assert updated.state == CardState.LEARNING
        assert updated.stability == pytest.approx(0.4072)
        assert updated.interval == 1
        assert updated.reps == 1
        assert updated.lapses == 1

    def test_easy_first_review(self, now):
        updated = review_card(Card.blank(), Grade.EASY, 0, now=now)
        assert updated.state == CardState.REVIEW
        assert updated.interval == 15

    def test_input_card_untouched(self, now):
        card = Card.blank(section_id="sec-1", course_id="course-1")
        updated = review_card(card, Grade.GOOD, 0, now=now)

        assert card.state == CardState.NEW
        assert card.reps == 0
        assert updated.section_id == "sec-1"
        assert updated.course_id == "course-1"

    def test_out_of_range_grades_are_clamped(self, now):
        assert review_card(Card.blank(), 9, 0, now=now).stability == pytest.approx(15.4722)
        assert review_card(Card.blank(), 0, 0, now=now).state == CardState.LEARNING


class TestReviewExistingCard:
    def test_good_review_extends_interval(self, now):
        card = _reviewed_card(stability=10.0)
        updated = review_card(card, Grade.GOOD, 10, now=now)

        assert updated.state == CardState.REVIEW
        assert updated.stability > card.stability
        assert updated.interval > card.interval
        assert updated.reps == 4
        assert updated.lapses == 0

    def test_lapse_enters_relearning(self, now):
        card = _reviewed_card(stability=10.0, lapses=2)
        updated = review_card(card, Grade.AGAIN, 10, now=now)

        assert updated.state == CardState.RELEARNING
        assert updated.lapses == 3
        assert updated.stability <= card.stability
        assert updated.difficulty > card.difficulty

    def test_next_review_matches_interval(self, now):
        updated = review_card(_reviewed_card(), Grade.HARD, 7, now=now)
        assert updated.next_review == now + timedelta(days=updated.interval)

    def test_interval_respects_bounds(self, now):
        card = _reviewed_card(stability=400.0)
        updated = review_card(card, Grade.EASY, 400, max_interval=30, now=now)
        assert updated.interval == 30

    def test_degenerate_stored_state_is_repaired(self, now):
        card = Card(state=CardState.REVIEW, stability=float("nan"), difficulty=0.0, reps=2)
        updated = review_card(card, Grade.GOOD, 3, now=now)

        assert math.isfinite(updated.stability)
        assert updated.stability >= 0.1
        assert 1.0 <= updated.difficulty <= 10.0
        assert updated.interval >= 1


class TestGradeFromPerformance:
    @pytest.mark.parametrize(
        "accuracy,avg_time,confidence,expected",
        [
            (0.30, 40, 3, Grade.AGAIN),
            (0.39, 10, 5, Grade.AGAIN),
            (0.95, 20, 4.5, Grade.EASY),
            (0.95, 0, 5, Grade.GOOD),  # no timing data, never Easy
            (0.95, 20, 3, Grade.GOOD),
            (0.60, 50, 3, Grade.HARD),
            (0.75, 100, 3, Grade.HARD),
            (0.85, 100, 3, Grade.GOOD),
            (0.75, 60, 0, Grade.GOOD),
        ],
    )
    def test_rule_table(self, accuracy, avg_time, confidence, expected):
        assert grade_from_performance(accuracy, avg_time, confidence) == expected

    def test_nan_accuracy_is_again(self):
        assert grade_from_performance(float("nan"), 30, 3) == Grade.AGAIN


class TestCardScheduler:
    def test_defaults_come_from_settings(self, monkeypatch):
        monkeypatch.setenv("MEDQ_DESIRED_RETENTION", "0.8")
        scheduler = CardScheduler()

        assert scheduler.desired_retention == 0.8
        assert scheduler.min_interval == 1
        assert scheduler.max_interval == 365

    def test_short_weight_vector_falls_back(self):
        scheduler = CardScheduler(weights=[1.0, 2.0], desired_retention=0.9, min_interval=1, max_interval=365)
        assert scheduler.w == FSRS_WEIGHTS

    def test_review_uses_configured_retention(self, now):
        card = _reviewed_card(stability=10.0)
        strict = CardScheduler(desired_retention=0.95, min_interval=1, max_interval=365)
        relaxed = CardScheduler(desired_retention=0.80, min_interval=1, max_interval=365)

        assert strict.review(card, Grade.GOOD, 10, now).interval < relaxed.review(card, Grade.GOOD, 10, now).interval

    def test_next_interval_wrapper(self):
        scheduler = CardScheduler(desired_retention=0.9, min_interval=1, max_interval=365)
        assert scheduler.next_interval(10.0) == 10

    def test_interval_non_decreasing_in_stability(self):
        intervals = [next_interval(s / 4, 0.9) for s in range(1, 2000)]
        assert intervals == sorted(intervals)
