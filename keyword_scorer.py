"""
Keyword Bias Scorer - Deterministic Terminal Fallback

Estimates political lean without any external call by counting politically
associated phrases in the headline and body and by checking the outlet against
known left- and right-leaning publishers. It always returns an assessment,
which is what makes it the last tier of the bias cascade.

Counting rules:
- Matching is case-insensitive substring matching (non-overlapping).
- A headline hit weighs twice a body hit.
- A known left-leaning outlet adds SOURCE_BONUS to the liberal count and pulls
  the baseline left by SOURCE_OFFSET; right-leaning outlets mirror this.
"""

import logging
import random
from typing import Optional

from cache import CacheStore, content_digest
from config import DEFAULT_CACHE_TTL
from schemas import (
    Attribution,
    BiasAssessment,
    clamp,
    round_half_up,
)

logger = logging.getLogger(__name__)


# =============================================================================
# POLITICAL LEXICONS
# =============================================================================

LIBERAL_KEYWORDS = [
    # Political
    "progressive", "liberal", "democratic", "democrats", "left-wing", "activist",
    # Social issues
    "climate change", "global warming", "social justice", "systemic racism", "white privilege",
    "healthcare reform", "medicare for all", "gun control", "assault weapons", "lgbtq",
    "transgender rights", "immigration reform", "dreamers", "refugees", "asylum seekers",
    "diversity", "inclusion", "income inequality", "wealth gap", "minimum wage", "living wage",
    "union", "workers rights", "renewable energy", "green new deal", "civil rights",
    "voting rights",
    # Loaded language
    "vulnerable communities", "marginalized", "oppressed", "exploited", "corporate greed",
]

CONSERVATIVE_KEYWORDS = [
    # Political
    "conservative", "republican", "republicans", "right-wing", "patriot", "constitutional",
    "traditional values", "family values", "religious freedom", "christian values",
    # Economic
    "tax cuts", "deregulation", "free market", "capitalism", "small business", "job creators",
    "fiscal responsibility", "balanced budget", "national debt", "government spending",
    # Security / law
    "second amendment", "gun rights", "border security", "illegal immigration", "law and order",
    "crime", "public safety", "police", "military", "national security", "terrorism",
    # Social issues
    "limited government", "states rights", "school choice", "pro-life", "unborn",
    # Loaded language
    "radical left", "socialist", "communist", "woke", "cancel culture", "mainstream media",
]

NEUTRAL_KEYWORDS = [
    "bipartisan", "nonpartisan", "balanced", "objective", "factual", "data shows",
    "according to data", "research shows", "experts say", "analysis reveals", "study finds",
    "officials said", "sources indicate", "reported", "confirmed", "statistics show",
]

# Outlet name fragments, matched as substrings of the source label
LEFT_LEANING_SOURCES = [
    "huffington", "huffpost", "salon", "vox", "dailykos", "motherjones", "thenation",
    "commondreams", "thinkprogress", "mediamatters", "rawstory", "alternet", "truthout",
    "democracynow", "jacobin", "slate", "washingtonpost", "nytimes", "cnn", "msnbc",
]

RIGHT_LEANING_SOURCES = [
    "foxnews", "fox", "dailywire", "breitbart", "nationalreview", "townhall",
    "dailycaller", "redstate", "theblaze", "washingtonexaminer", "nypost",
    "americanthinker", "powerline", "hotair", "pjmedia", "oann", "newsmax",
]

TITLE_WEIGHT = 2
BODY_WEIGHT = 1
SOURCE_BONUS = 10
SOURCE_OFFSET = 25

# Scaling of the dominance ratio into a score and a confidence
MIN_DOMINANCE = 0.3
SCORE_SPAN = 35
SCORE_FLOOR = 15
SCORE_CEILING = 85
CONFIDENCE_BASE = 0.6
CONFIDENCE_SPAN = 0.25
CONFIDENCE_CAP = 0.85

TIE_BREAK_LIBERAL_SCORE = 35
TIE_BREAK_CONSERVATIVE_SCORE = 65

KEYWORD_INDICATORS = ["content-analysis", "keyword-detection", "linguistic-patterns"]


def count_weighted_hits(keywords: list[str], title_lower: str, content_lower: str) -> int:
    """Sum of title hits x TITLE_WEIGHT plus body hits x BODY_WEIGHT over all keywords."""
    total = 0
    for keyword in keywords:
        total += title_lower.count(keyword) * TITLE_WEIGHT
        total += content_lower.count(keyword) * BODY_WEIGHT
    return total


def source_offset(source: str) -> int:
    """-SOURCE_OFFSET for known left-leaning outlets, +SOURCE_OFFSET for right, else 0."""
    source_lower = (source or "").lower()
    if any(name in source_lower for name in LEFT_LEANING_SOURCES):
        return -SOURCE_OFFSET
    if any(name in source_lower for name in RIGHT_LEANING_SOURCES):
        return SOURCE_OFFSET
    return 0


class KeywordBiasScorer:
    """
    Scores bias from keyword counts and outlet affiliation.

    Ties and articles without any political signal are ambiguous. When a
    random.Random is supplied they are broken the legacy way (a mild lean to a
    random side); without one they stay at the neutral centre, which keeps
    the scorer fully deterministic.

    Attributes:
        rng: Optional randomness source for the tie-break
        cache: Optional cache; results are stored per (title, content, source)
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        cache: Optional[CacheStore] = None,
        ttl: float = DEFAULT_CACHE_TTL,
    ):
        self.rng = rng
        self.cache = cache
        self.ttl = ttl

    def assess_by_keywords(self, title: str, content: str, source: str) -> BiasAssessment:
        """
        Score an article from its title, body and outlet. Never raises.

        Args:
            title: Article headline
            content: Article body text
            source: Outlet label

        Returns:
            BiasAssessment attributed to the keyword tier
        """
        cache_key = f"keyword_bias_{content_digest(title, content, source)}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        assessment = self._score(title or "", content or "", source or "")

        if self.cache is not None:
            self.cache.set(cache_key, assessment, self.ttl)
        return assessment

    def _score(self, title: str, content: str, source: str) -> BiasAssessment:
        title_lower = title.lower()
        content_lower = content.lower()

        liberal_score = count_weighted_hits(LIBERAL_KEYWORDS, title_lower, content_lower)
        conservative_score = count_weighted_hits(CONSERVATIVE_KEYWORDS, title_lower, content_lower)
        neutral_score = count_weighted_hits(NEUTRAL_KEYWORDS, title_lower, content_lower)

        offset = source_offset(source)
        if offset < 0:
            liberal_score += SOURCE_BONUS
        elif offset > 0:
            conservative_score += SOURCE_BONUS

        total_political = liberal_score + conservative_score
        bias_score = 50.0 + offset
        confidence = 0.5

        if total_political > 0:
            if liberal_score > conservative_score or offset < 0:
                ratio = self._dominance(liberal_score, offset, total_political)
                bias_score = max(SCORE_FLOOR, 50 - ratio * SCORE_SPAN)
                confidence = min(CONFIDENCE_CAP, CONFIDENCE_BASE + ratio * CONFIDENCE_SPAN)
            elif conservative_score > liberal_score or offset > 0:
                ratio = self._dominance(conservative_score, offset, total_political)
                bias_score = min(SCORE_CEILING, 50 + ratio * SCORE_SPAN)
                confidence = min(CONFIDENCE_CAP, CONFIDENCE_BASE + ratio * CONFIDENCE_SPAN)
            else:
                confidence = 0.6
                mostly_neutral = neutral_score > total_political * 1.5 and total_political < 3
                if not mostly_neutral:
                    bias_score = self._tie_break(bias_score)
        elif self.rng is not None and self.rng.random() > 0.6:
            bias_score = self._tie_break(bias_score)

        score = round_half_up(clamp(bias_score, 0, 100))
        logger.info(
            f"Keyword fallback for {source or 'unknown source'}: "
            f"liberal={liberal_score} conservative={conservative_score} "
            f"neutral={neutral_score} -> {score}"
        )

        return BiasAssessment(
            bias_score=score,
            confidence=confidence,
            reasoning=(
                f"Content-based analysis: Detected {liberal_score} liberal, "
                f"{conservative_score} conservative, and {neutral_score} neutral "
                f"indicators in the article content from {source}"
            ),
            key_indicators=list(KEYWORD_INDICATORS),
            attribution=Attribution.KEYWORD,
            source_reliability="Unknown",
        )

    @staticmethod
    def _dominance(side_score: int, offset: int, total_political: int) -> float:
        return max(MIN_DOMINANCE, (side_score + abs(offset)) / max(1, total_political + 10))

    def _tie_break(self, current: float) -> float:
        if self.rng is None:
            return current
        if self.rng.random() > 0.5:
            return TIE_BREAK_LIBERAL_SCORE
        return TIE_BREAK_CONSERVATIVE_SCORE
