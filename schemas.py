"""
Pydantic v2 schemas for articles and political bias assessments.

Every score-bearing model clamps its score into [0, 100] and its confidence
into [0, 1] on construction, and recomputes the categorical label from the
clamped score, so nothing a language model returns can push a record out of
range or leave a label that disagrees with its score.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from config import BIAS_BANDS, BIAS_FILTERS, RUBRIC_VERSION


# =============================================================================
# Bias Scale
# =============================================================================


class BiasLabel(str, Enum):
    """Five fixed bands across the 0-100 bias scale."""

    HIGHLY_LIBERAL = "Highly Liberal"
    LIBERAL = "Liberal"
    NEUTRAL = "Neutral/Centrist"
    CONSERVATIVE = "Conservative"
    HIGHLY_CONSERVATIVE = "Highly Conservative"


class Attribution(str, Enum):
    """Which cascade tier produced an assessment."""

    DIRECT = "direct"
    SOURCE_CONTENT = "source+content"
    KEYWORD = "keyword"


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (60.5 -> 61, not 60)."""
    return int(math.floor(value + 0.5))


def score_to_bias_label(score: float) -> BiasLabel:
    """
    Map a 0-100 bias score to its band label.

    Scale:
    0-20: Highly Liberal
    21-40: Liberal
    41-60: Neutral/Centrist
    61-80: Conservative
    81-100: Highly Conservative
    """
    for _, high, label, _ in BIAS_BANDS:
        if score <= high:
            return BiasLabel(label)
    return BiasLabel.HIGHLY_CONSERVATIVE


def matches_bias_filter(score: int, bias_filter: str) -> bool:
    """Check a score against one of the reader-facing filters (liberal/center/conservative)."""
    if bias_filter == "all":
        return True
    low, high = BIAS_FILTERS[bias_filter]
    return low <= score <= high


class ScoredModel(BaseModel):
    """Base for records carrying bias_score / bias_label / confidence."""

    @model_validator(mode="before")
    @classmethod
    def _clamp_and_label(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        score = data.get("bias_score")
        if score is not None:
            data["bias_score"] = round_half_up(clamp(float(score), 0, 100))
            data["bias_label"] = score_to_bias_label(data["bias_score"])
        confidence = data.get("confidence")
        if confidence is not None:
            data["confidence"] = clamp(float(confidence), 0.0, 1.0)
        return data


# =============================================================================
# Article Schemas
# =============================================================================


class Article(BaseModel):
    """A retrieved news article. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Source URL, unique within a result set")
    title: str = Field(description="Article headline")
    content: str = Field(description="Article body text (possibly truncated)")
    source: str = Field(description="Short outlet label, e.g. 'nytimes'")
    published_at: datetime = Field(description="Publication timestamp")
    author: Optional[str] = Field(default=None, description="Byline if known")
    image_url: Optional[str] = Field(default=None, description="Lead image URL")


class BiasAssessment(ScoredModel):
    """
    Political bias estimate for a single article.

    Produced by one of three tiers (see Attribution). bias_label is always
    derived from bias_score, whatever label an upstream model reported.
    """

    model_config = ConfigDict(frozen=True)

    bias_score: int = Field(
        ge=0,
        le=100,
        description="0 = strongly left-leaning, 50 = centrist, 100 = strongly right-leaning"
    )
    bias_label: BiasLabel = Field(
        default=BiasLabel.NEUTRAL,
        description="Band label derived from bias_score"
    )
    confidence: float = Field(
        ge=0.0,
        le=1.0,
        description="Confidence score between 0.0 and 1.0"
    )
    reasoning: str = Field(
        description="Explanation of the bias indicators found"
    )
    key_indicators: tuple[str, ...] = Field(
        default=(),
        description="Ordered indicator tags"
    )
    attribution: Attribution = Field(
        description="Cascade tier that produced this assessment"
    )
    source_reliability: Optional[str] = Field(
        default=None,
        description="Reliability of the outlet (High/Medium/Low/Unknown) when known"
    )
    rubric_version: str = Field(
        default=RUBRIC_VERSION,
        description="Version of the scoring prompt rubric"
    )


class SourceReputation(ScoredModel):
    """
    Outlet-level bias estimate, independent of any single article.

    Cached for hours and reused across every article from the same source.
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="Source label the estimate is about")
    bias_score: int = Field(ge=0, le=100)
    bias_label: BiasLabel = Field(default=BiasLabel.NEUTRAL)
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = Field(description="Basis for the reputation estimate")
    key_indicators: tuple[str, ...] = Field(default=())
    source_reliability: str = Field(
        default="Medium",
        description="High/Medium/Low"
    )


class NeutralSummary(BaseModel):
    """Bias-free summary of an article."""

    model_config = ConfigDict(frozen=True)

    summary: str = Field(description="2-3 sentence neutral summary")
    key_points: tuple[str, ...] = Field(default=())
    word_count: int = Field(default=0, ge=0)


class AnalyzedArticle(Article):
    """An Article enriched with its bias assessment and neutral summary."""

    bias: BiasAssessment
    summary: NeutralSummary
    processed_at: datetime

    @classmethod
    def from_article(
        cls,
        article: Article,
        bias: BiasAssessment,
        summary: NeutralSummary,
        processed_at: datetime,
    ) -> "AnalyzedArticle":
        return cls(
            **article.model_dump(),
            bias=bias,
            summary=summary,
            processed_at=processed_at,
        )


# =============================================================================
# Pipeline Result Schemas
# =============================================================================


class ProcessingFailure(BaseModel):
    """An article that could not be processed."""

    url: str
    error: str


class NewsSearchResult(BaseModel):
    """Everything returned for one news query."""

    query: str
    articles: list[AnalyzedArticle] = Field(default_factory=list)
    failures: list[ProcessingFailure] = Field(default_factory=list)
    used_fallback_data: bool = Field(
        default=False,
        description="True when retrieval failed and placeholder articles were used"
    )

    def filter_by_bias(self, bias_filter: str) -> list[AnalyzedArticle]:
        return [
            a for a in self.articles
            if matches_bias_filter(a.bias.bias_score, bias_filter)
        ]
