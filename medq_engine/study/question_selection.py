"""
Weakness-weighted question sampling for mixed quizzes.

Biases a random quiz towards weak topics:

    weight = topicWeakness * recencyCooldown * neverAnsweredBoost

Questions answered recently are cooled down to a tenth of their weight and
never-answered questions get a 1.5x boost. Sampling is without replacement.
"""

from __future__ import annotations

import random
from typing import Collection, Iterable, Mapping

from medq_engine.core.models import Question

DEFAULT_TOPIC_WEAKNESS = 0.5
RECENT_COOLDOWN = 0.1
NEVER_ANSWERED_BOOST = 1.5
UNKNOWN_TAG = "unknown"


def question_weight(
    question: Question,
    topic_weaknesses: Mapping[str, float],
    recently_answered: Collection[str] = (),
) -> float:
    tag = question.primary_tag or UNKNOWN_TAG
    weakness = topic_weaknesses.get(tag) or DEFAULT_TOPIC_WEAKNESS
    cooldown = RECENT_COOLDOWN if question.id in recently_answered else 1.0
    boost = NEVER_ANSWERED_BOOST if question.times_answered == 0 else 1.0
    return max(0.0, weakness * cooldown * boost)


def weighted_select(
    questions: Iterable[Question],
    topic_weaknesses: Mapping[str, float],
    count: int,
    recently_answered: Collection[str] = (),
    rng: random.Random | None = None,
) -> list[Question]:
    """
    Weighted random sampling without replacement.

    Args:
        questions: Candidate questions
        topic_weaknesses: Primary topic tag -> weakness score
        count: Number of questions to draw
        recently_answered: Ids answered in the last 24h
        rng: Random source

    Returns:
        Up to ``count`` distinct questions
    """
    rng = rng or random.Random()
    recent = set(recently_answered)
    pool = [(q, question_weight(q, topic_weaknesses, recent)) for q in questions]
    selected: list[Question] = []

    while len(selected) < count and pool:
        total = sum(weight for _, weight in pool)
        if total <= 0:
            index = rng.randrange(len(pool))
        else:
            target = rng.random() * total
            index = len(pool) - 1
            for i, (_, weight) in enumerate(pool):
                target -= weight
                if target <= 0:
                    index = i
                    break
        selected.append(pool.pop(index)[0])

    return selected
