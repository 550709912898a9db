"""
Tests for the keyword fallback scorer.
"""

import random

import pytest

from keyword_scorer import (
    CONFIDENCE_CAP,
    KEYWORD_INDICATORS,
    KeywordBiasScorer,
    count_weighted_hits,
    source_offset,
)
from schemas import Attribution, BiasLabel


class SequenceRandom(random.Random):
    """random.Random whose random() replays a fixed sequence."""

    def __init__(self, values):
        super().__init__(0)
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


class TestCounting:

    def test_title_hits_weigh_double(self):
        assert count_weighted_hits(["gun control"], "gun control vote", "") == 2
        assert count_weighted_hits(["gun control"], "", "gun control vote") == 1

    def test_counts_every_occurrence(self):
        assert count_weighted_hits(["crime"], "crime and crime", "crime") == 5

    def test_source_offset(self):
        assert source_offset("cnn") == -25
        assert source_offset("foxnews") == 25
        assert source_offset("reuters") == 0
        assert source_offset("") == 0


class TestKeywordScoring:

    def test_conservative_headline_from_right_outlet(self):
        scorer = KeywordBiasScorer()

        result = scorer.assess_by_keywords(
            "Border security and law and order: border security means law and order",
            "The plan was discussed.",
            "foxnews",
        )

        assert result.bias_score == 85
        assert result.bias_label == BiasLabel.HIGHLY_CONSERVATIVE
        assert result.confidence == pytest.approx(0.85)
        assert result.attribution == Attribution.KEYWORD

    def test_mild_liberal_signal(self):
        scorer = KeywordBiasScorer()

        result = scorer.assess_by_keywords("Climate change", "social justice", "localpaper")

        assert result.bias_score == 40
        assert result.bias_label == BiasLabel.LIBERAL
        assert result.confidence == pytest.approx(0.675)

    def test_left_outlet_without_keywords(self):
        result = KeywordBiasScorer().assess_by_keywords("Weather today", "Sunny skies", "cnn")

        assert result.bias_score == 15
        assert result.bias_label == BiasLabel.HIGHLY_LIBERAL

    def test_no_signal_is_neutral(self):
        result = KeywordBiasScorer().assess_by_keywords("Weather today", "Sunny skies", "localpaper")

        assert result.bias_score == 50
        assert result.confidence == 0.5
        assert result.bias_label == BiasLabel.NEUTRAL

    def test_reasoning_and_indicators(self):
        result = KeywordBiasScorer().assess_by_keywords("Climate change", "social justice", "localpaper")

        assert result.reasoning == (
            "Content-based analysis: Detected 3 liberal, 0 conservative, and 0 neutral "
            "indicators in the article content from localpaper"
        )
        assert result.key_indicators == tuple(KEYWORD_INDICATORS)
        assert result.source_reliability == "Unknown"

    @pytest.mark.parametrize("title,content,source", [
        ("Radical left socialist woke mainstream media", "crime police military", "breitbart"),
        ("Progressive democrats", "climate change " * 50, "huffpost"),
        ("", "", ""),
        ("Bipartisan study finds", "officials said data shows", "apnews"),
    ])
    def test_score_and_confidence_in_range(self, title, content, source):
        result = KeywordBiasScorer().assess_by_keywords(title, content, source)

        assert 15 <= result.bias_score <= 85
        assert 0.5 <= result.confidence <= CONFIDENCE_CAP


class TestTieBreaking:

    TIE_CONTENT = "republican democratic"

    def test_deterministic_without_rng(self):
        scorer = KeywordBiasScorer()

        first = scorer.assess_by_keywords("", self.TIE_CONTENT, "localpaper")
        second = scorer.assess_by_keywords("", self.TIE_CONTENT, "localpaper")

        assert first.bias_score == second.bias_score == 50
        assert first.confidence == 0.6

    def test_tie_leans_liberal_on_high_draw(self):
        scorer = KeywordBiasScorer(rng=SequenceRandom([0.9]))

        assert scorer.assess_by_keywords("", self.TIE_CONTENT, "localpaper").bias_score == 35

    def test_tie_leans_conservative_on_low_draw(self):
        scorer = KeywordBiasScorer(rng=SequenceRandom([0.1]))

        assert scorer.assess_by_keywords("", self.TIE_CONTENT, "localpaper").bias_score == 65

    def test_mostly_neutral_tie_stays_centred(self):
        scorer = KeywordBiasScorer(rng=SequenceRandom([0.9]))

        result = scorer.assess_by_keywords(
            "", "republican democratic bipartisan nonpartisan reported confirmed", "localpaper"
        )

        assert result.bias_score == 50

    def test_no_signal_lean_needs_two_draws(self):
        scorer = KeywordBiasScorer(rng=SequenceRandom([0.9, 0.9]))

        result = scorer.assess_by_keywords("Weather today", "Sunny skies", "localpaper")

        assert result.bias_score == 35
        assert result.confidence == 0.5

    def test_no_signal_low_draw_stays_neutral(self):
        scorer = KeywordBiasScorer(rng=SequenceRandom([0.2]))

        result = scorer.assess_by_keywords("Weather today", "Sunny skies", "localpaper")

        assert result.bias_score == 50

    def test_seeded_rng_is_reproducible(self):
        a = KeywordBiasScorer(rng=random.Random(7)).assess_by_keywords("", self.TIE_CONTENT, "x")
        b = KeywordBiasScorer(rng=random.Random(7)).assess_by_keywords("", self.TIE_CONTENT, "x")

        assert a.bias_score == b.bias_score


class TestKeywordCaching:

    def test_second_call_served_from_cache(self, cache):
        scorer = KeywordBiasScorer(rng=SequenceRandom([0.9]), cache=cache)

        first = scorer.assess_by_keywords("", "republican democratic", "localpaper")
        # The rng is exhausted; a recomputation would fail
        second = scorer.assess_by_keywords("", "republican democratic", "localpaper")

        assert second is first


def test_full_domain_source_label():
    """A source given as a bare domain still gets the outlet bonus."""
    result = KeywordBiasScorer().assess_by_keywords(
        "Border security and law and order: border security means law and order",
        "Officials discussed the plan.",
        "foxnews.com",
    )

    assert 61 <= result.bias_score <= 85
    assert result.bias_label in (BiasLabel.CONSERVATIVE, BiasLabel.HIGHLY_CONSERVATIVE)
    assert result.confidence <= CONFIDENCE_CAP
