"""
Unit tests for weakness-weighted quiz sampling.
"""

import random

import pytest

from medq_engine.study.question_selection import question_weight, weighted_select


@pytest.fixture
def quiz_pool(make_question):
    return [
        make_question("q1", tags=("cardio",), times_answered=5),
        make_question("q2", tags=("neuro",), times_answered=3),
        make_question("q3", tags=("cardio",), times_answered=0),
        make_question("q4", tags=("renal",), times_answered=1),
    ]


class TestQuestionWeight:
    def test_weight_components(self, quiz_pool):
        q1, q2, q3, _ = quiz_pool
        weaknesses = {"cardio": 0.8}

        assert question_weight(q1, weaknesses) == pytest.approx(0.8)
        assert question_weight(q3, weaknesses) == pytest.approx(1.2)  # never answered
        assert question_weight(q2, weaknesses) == pytest.approx(0.5)  # unknown topic
        assert question_weight(q1, weaknesses, {"q1"}) == pytest.approx(0.08)

    def test_untagged_uses_unknown_bucket(self, make_question):
        q = make_question("q9", tags=(), times_answered=2)
        assert question_weight(q, {"unknown": 0.9}) == pytest.approx(0.9)


class TestWeightedSelect:
    def test_requested_count(self, quiz_pool, rng):
        selected = weighted_select(quiz_pool, {"cardio": 0.8, "neuro": 0.5, "renal": 0.3}, 2, rng=rng)
        assert len(selected) == 2
        assert len({q.id for q in selected}) == 2

    def test_all_when_count_exceeds_pool(self, quiz_pool, rng):
        selected = weighted_select(quiz_pool, {"cardio": 0.5}, 10, rng=rng)
        assert sorted(q.id for q in selected) == ["q1", "q2", "q3", "q4"]

    def test_recently_answered_picked_less(self, quiz_pool):
        weaknesses = {"cardio": 0.5, "neuro": 0.5, "renal": 0.5}
        first_picks = [
            weighted_select(quiz_pool, weaknesses, 1, {"q1", "q2"}, rng=random.Random(seed))[0].id
            for seed in range(300)
        ]
        assert first_picks.count("q1") < first_picks.count("q4")
        assert first_picks.count("q2") < first_picks.count("q4")

    def test_zero_weights_fall_back_to_uniform(self, quiz_pool, rng):
        selected = weighted_select(quiz_pool, {"cardio": -1, "neuro": -1, "renal": -1}, 2, rng=rng)
        assert len(selected) == 2

    def test_empty_pool(self, rng):
        assert weighted_select([], {}, 5, rng=rng) == []
