"""
Unit tests for near-duplicate stem detection.
"""

import pytest

from medq_engine.study.stem_similarity import (
    is_near_duplicate_stem,
    normalize_stem,
    stem_similarity,
    stem_tokens,
)


class TestNormalization:
    def test_normalize_stem(self):
        assert normalize_stem("  A 45-year-old man,  with CHEST pain! ") == "a 45 year old man with chest pain"

    def test_stop_words_and_short_tokens_dropped(self):
        tokens = stem_tokens("The patient is most likely to have an MI with ST elevation")
        assert tokens == frozenset({"elevation"})

    def test_empty(self):
        assert normalize_stem(None) == ""
        assert stem_tokens("") == frozenset()


class TestSimilarity:
    def test_identical_content(self):
        assert stem_similarity("Aortic stenosis murmur radiates", "aortic STENOSIS murmur radiates") == 1.0

    def test_disjoint(self):
        assert stem_similarity("Aortic stenosis murmur", "Lithium toxicity tremor") == 0.0

    def test_overlap_over_larger_set(self):
        # 2 shared tokens over max(3, 4)
        score = stem_similarity("aortic stenosis murmur", "aortic stenosis syncope angina")
        assert score == pytest.approx(0.5)

    def test_no_content_tokens(self):
        assert stem_similarity("the of and", "aortic stenosis") == 0.0


class TestNearDuplicate:
    def test_same_text_after_normalization(self):
        assert is_near_duplicate_stem("Which drug?", "which   DRUG")

    def test_containment_for_long_stems(self):
        long_stem = (
            "A 67-year-old woman presents with exertional syncope, angina and a harsh "
            "crescendo-decrescendo systolic murmur at the right upper sternal border"
        )
        assert len(normalize_stem(long_stem)) >= 90
        assert is_near_duplicate_stem(long_stem, long_stem + " What is the next investigation?")

    def test_containment_ignored_for_short_stems(self):
        assert not is_near_duplicate_stem("aortic stenosis", "aortic stenosis murmur syncope angina dyspnea")

    def test_threshold_is_inclusive(self):
        a = "aortic stenosis murmur syncope"
        b = "aortic stenosis murmur angina"
        assert stem_similarity(a, b) == pytest.approx(0.75)
        assert is_near_duplicate_stem(a, b, threshold=0.75)
        assert not is_near_duplicate_stem(a, b, threshold=0.76)

    def test_empty_stems_never_duplicate(self):
        assert not is_near_duplicate_stem("", "")
        assert not is_near_duplicate_stem("?!", "aortic stenosis")
