"""
Assessment Selector - Diverse, Difficulty-Matched Question Sets.

Selects the questions for one assessment session:

1. Partition the pool into in-band / near-band / far-band by difficulty
   relative to the level profile, shuffling each band (injected rng).
2. Score candidates: difficulty fit + option count + reasoning depth
   - diversity penalty (topic and section reuse).
3. Greedy passes over the bands in priority order, skipping near-duplicate
   stems; the similarity threshold relaxes 0.62 -> 0.70 -> 0.78.
4. If still short, one fallback pass over the whole pool at 0.88.

Usage counters live in a SelectionState created per call, so concurrent
calls never share state.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from loguru import logger

from medq_engine.core.models import AssessmentLevelProfile, Question
from medq_engine.core.utils import clamp_int
from medq_engine.study.assessment_catalog import (
    GENERAL_TAG,
    get_assessment_level,
    normalize_topic_tag,
)
from medq_engine.study.stem_similarity import is_near_duplicate_stem

MIN_COUNT = 5
MAX_COUNT = 40
DEFAULT_COUNT = 20

PASS_THRESHOLDS = (0.62, 0.70, 0.78)
FALLBACK_THRESHOLD = 0.88

TAG_REUSE_PENALTY = 9
SECTION_REUSE_PENALTY = 6
UNKNOWN_SECTION = "unknown"

GENERIC_DISTRACTOR_RE = re.compile(
    r"this option is incorrect|incorrect in this vignette|not the best answer|not correct",
    re.IGNORECASE,
)
MIN_DISTRACTOR_RATIONALE_CHARS = 30


# =============================================================================
# Scoring
# =============================================================================


def question_focus_tag(question: Question, focus_topic_tag: str | None = None) -> str:
    """
    Primary topic tag of a question, relative to the session focus.

    When the session is focused on a topic the question carries, the first
    other tag (its subtopic) is used so that diversity spreads across
    subtopics instead of collapsing onto the focus tag.
    """
    focus = normalize_topic_tag(focus_topic_tag)
    tags = [tag for tag in (normalize_topic_tag(t) for t in question.topic_tags) if tag]

    if not tags:
        return GENERAL_TAG

    if focus and focus in tags:
        for tag in tags:
            if tag != focus and tag != GENERAL_TAG:
                return tag
        return focus

    return tags[0]


def question_section_key(question: Question) -> str:
    return str(question.section_id or UNKNOWN_SECTION)


def effective_difficulty(question: Question) -> int:
    return clamp_int(question.difficulty or 3, 1, 5)


def reasoning_depth_score(question: Question) -> float:
    """
    Reward substantive explanations; each field is capped.

    - correct-answer rationale: up to 12
    - key takeaway: up to 6
    - non-generic wrong-option rationales: up to 12
    - citations: up to 6
    """
    explanation = question.explanation
    non_generic = sum(
        1
        for item in explanation.why_others_wrong
        if len(item.strip()) >= MIN_DISTRACTOR_RATIONALE_CHARS
        and not GENERIC_DISTRACTOR_RE.search(item)
    )

    correct_why_score = min(12.0, len(explanation.correct_why) / 22)
    takeaway_score = min(6.0, len(explanation.key_takeaway) / 28)
    distractor_score = min(12.0, non_generic * 2.4)
    citation_score = min(6.0, len(question.citations) * 2.0)

    return correct_why_score + takeaway_score + distractor_score + citation_score


def difficulty_fit_score(difficulty: int, profile: AssessmentLevelProfile) -> float:
    """Peaked at the band midpoint; in-band always beats out-of-band."""
    distance = abs(difficulty - profile.midpoint)
    if profile.min_difficulty <= difficulty <= profile.max_difficulty:
        return 26 - distance * 4
    return max(4.0, 14 - distance * 6)


def base_score(question: Question, profile: AssessmentLevelProfile) -> float:
    option_count_score = 4 if len(question.options) >= 4 else 0
    return (
        difficulty_fit_score(effective_difficulty(question), profile)
        + option_count_score
        + reasoning_depth_score(question)
    )


# =============================================================================
# Per-call selection state
# =============================================================================


@dataclass
class SelectionState:
    """Selected questions and the usage tallies that drive the diversity penalty."""

    focus_topic_tag: str | None = None
    selected: list[Question] = field(default_factory=list)
    selected_ids: set[str] = field(default_factory=set)
    selected_stems: list[str] = field(default_factory=list)
    tag_usage: dict[str, int] = field(default_factory=dict)
    section_usage: dict[str, int] = field(default_factory=dict)

    def diversity_penalty(self, question: Question) -> float:
        tag_key = question_focus_tag(question, self.focus_topic_tag)
        section_key = question_section_key(question)
        return (
            self.tag_usage.get(tag_key, 0) * TAG_REUSE_PENALTY
            + self.section_usage.get(section_key, 0) * SECTION_REUSE_PENALTY
        )

    def is_duplicate_stem(self, question: Question, threshold: float) -> bool:
        return any(
            is_near_duplicate_stem(question.stem, stem, threshold)
            for stem in self.selected_stems
        )

    def register(self, question: Question) -> None:
        self.selected.append(question)
        self.selected_ids.add(question.id)
        self.selected_stems.append(question.stem)

        tag_key = question_focus_tag(question, self.focus_topic_tag)
        section_key = question_section_key(question)
        self.tag_usage[tag_key] = self.tag_usage.get(tag_key, 0) + 1
        self.section_usage[section_key] = self.section_usage.get(section_key, 0) + 1


def _is_valid(question: Question) -> bool:
    return (
        isinstance(question, Question)
        and isinstance(question.id, str)
        and bool(question.id)
        and isinstance(question.stem, str)
        and len(question.options) >= 2
    )


def partition_bands(
    questions: Iterable[Question], profile: AssessmentLevelProfile
) -> tuple[list[Question], list[Question], list[Question]]:
    """Split questions into in-band, near-band (one grade out) and far-band."""
    near_lo = max(1, profile.min_difficulty - 1)
    near_hi = min(5, profile.max_difficulty + 1)
    in_band: list[Question] = []
    near_band: list[Question] = []
    far_band: list[Question] = []

    for question in questions:
        difficulty = effective_difficulty(question)
        if profile.min_difficulty <= difficulty <= profile.max_difficulty:
            in_band.append(question)
        elif near_lo <= difficulty <= near_hi:
            near_band.append(question)
        else:
            far_band.append(question)

    return in_band, near_band, far_band


def _shuffled(items: Sequence[Question], rng: random.Random) -> list[Question]:
    copy = list(items)
    rng.shuffle(copy)
    return copy


def _rank(
    candidates: Iterable[Question],
    profile: AssessmentLevelProfile,
    state: SelectionState,
) -> list[Question]:
    # Stable sort keeps the shuffled order among ties
    return sorted(
        candidates,
        key=lambda q: base_score(q, profile) - state.diversity_penalty(q),
        reverse=True,
    )


def _pick_round(
    bands: Sequence[list[Question]],
    profile: AssessmentLevelProfile,
    state: SelectionState,
    count: int,
    threshold: float,
) -> None:
    picked_any = True

    while len(state.selected) < count and picked_any:
        picked_any = False

        for band in bands:
            if len(state.selected) >= count:
                break

            remaining = (q for q in band if q.id not in state.selected_ids)
            for candidate in _rank(remaining, profile, state):
                if not state.is_duplicate_stem(candidate, threshold):
                    state.register(candidate)
                    picked_any = True
                    break


# =============================================================================
# Public API
# =============================================================================


def select_assessment_questions(
    pool: Iterable[Question],
    level: str | AssessmentLevelProfile | None,
    count: int = DEFAULT_COUNT,
    focus_topic_tag: str | None = None,
    rng: random.Random | None = None,
) -> list[Question]:
    """
    Pick a bounded, non-duplicate, difficulty-matched question set.

    Args:
        pool: Candidate questions (invalid entries are ignored)
        level: Level id/alias or a level profile
        count: Requested size, clamped to [5, 40]
        focus_topic_tag: Topic the session is focused on, if any
        rng: Random source for the band shuffles (seed it for reproducibility)

    Returns:
        At most ``count`` questions with unique ids
    """
    profile = get_assessment_level(level)
    safe_count = clamp_int(count if count is not None else DEFAULT_COUNT, MIN_COUNT, MAX_COUNT)
    rng = rng or random.Random()

    valid: list[Question] = []
    seen_ids: set[str] = set()
    for question in pool:
        if _is_valid(question) and question.id not in seen_ids:
            valid.append(question)
            seen_ids.add(question.id)

    bands = [_shuffled(band, rng) for band in partition_bands(valid, profile)]
    state = SelectionState(focus_topic_tag=focus_topic_tag)

    for threshold in PASS_THRESHOLDS:
        if len(state.selected) >= safe_count:
            break
        _pick_round(bands, profile, state, safe_count, threshold)

    if len(state.selected) < safe_count:
        fallback = _rank(_shuffled(valid, rng), profile, state)
        for question in fallback:
            if len(state.selected) >= safe_count:
                break
            if question.id in state.selected_ids:
                continue
            if state.is_duplicate_stem(question, FALLBACK_THRESHOLD):
                continue
            state.register(question)

    logger.debug(
        f"Selected {len(state.selected)}/{safe_count} questions for {profile.id} "
        f"from {len(valid)} valid candidates "
        f"(bands: {', '.join(str(len(b)) for b in bands)})"
    )

    return state.selected
