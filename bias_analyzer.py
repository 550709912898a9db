"""
Content-Aware Bias Analyzer - the three-tier bias cascade.

Tiers, each tried only when the previous one failed:
1. direct:          the LLM scores the article text against a fixed rubric
2. source+content:  the outlet's cached reputation, refined by a second LLM
                    pass over this specific article
3. keyword:         deterministic keyword and outlet heuristics (never fails)

Every tier checks the shared cache before doing work and writes back on
success, each under its own key scheme. Network errors, timeouts and
malformed replies are all treated the same way: the tier reports a failure
TierResult and the cascade moves on. Nothing inside the cascade raises to the
caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from cache import CacheStore, content_digest, is_cacheable_content, normalize_source_key
from config import (
    CONTENT_ADJUSTMENT_CALL,
    CONTENT_PROMPT_CONTENT_CHARS,
    DEFAULT_CACHE_TTL,
    DIRECT_BIAS_CALL,
    DIRECT_PROMPT_CONTENT_CHARS,
    RUBRIC_VERSION,
    render_bias_scale,
)
from keyword_scorer import KeywordBiasScorer
from llm_client import CompletionClient
from response_parser import as_string_list, parse_json_response
from schemas import Article, Attribution, BiasAssessment, SourceReputation
from source_reputation import SourceReputationEstimator

logger = logging.getLogger(__name__)


def _first_present(*values: Any) -> Any:
    """First value that is not None (0 and 0.0 count as present)."""
    for value in values:
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class TierResult:
    """Outcome of one cascade tier: an assessment, or the reason it failed."""

    attribution: Attribution
    assessment: Optional[BiasAssessment] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.assessment is not None

    @classmethod
    def success(cls, assessment: BiasAssessment) -> "TierResult":
        return cls(attribution=assessment.attribution, assessment=assessment)

    @classmethod
    def failure(cls, attribution: Attribution, reason: str) -> "TierResult":
        return cls(attribution=attribution, reason=reason)


class ContentBiasAnalyzer:
    """
    Scores the political bias of individual articles.

    Attributes:
        llm: Completion client for the scoring calls
        cache: Shared cache store
        reputation: Source reputation estimator (tier 2)
        keyword_scorer: Terminal keyword fallback (tier 3)
        ttl: Lifetime of cached per-article assessments
    """

    DIRECT_SYSTEM_PROMPT = (
        "You are a media bias analyst trained to evaluate political and ideological "
        "leanings in news content. Provide balanced, evidence-based assessments using "
        "recognized frameworks and journalistic standards for objectivity and accuracy."
    )

    DIRECT_USER_PROMPT = """Analyze the political bias of this news article and provide a score from 0-100. Be sensitive to subtle bias indicators and avoid over-categorizing as neutral.

BIAS SCORING SCALE:
{scale}

Article Details:
Title: "{title}"
Source: "{source}"
Content: "{content}..."

CRITICAL ANALYSIS GUIDELINES
Source Context: Assess the publication's editorial standards, historical reputation, ownership structure, and any documented political or ideological leanings.
Language Analysis: Examine the use of emotionally charged words, loaded language, and selective descriptors, distinguishing between fact, opinion, and rhetorical strategies.
Story Framing: Analyze how the story is structured, which perspectives are foregrounded or marginalized, and the narrative techniques that shape interpretation.
Source Selection: Identify the range and expertise of sources cited, evaluate the credibility of quoted individuals, and check for the inclusion of diverse or opposing viewpoints.
Fact Selection: Determine which facts are emphasized, backgrounded, or omitted; evaluate the evidence provided and consider how selective fact presentation can influence perception.
Implicit Assumptions: Identify underlying worldviews or presuppositions in the reporting, as well as unstated premises or societal biases reflected in the writing.

IMPORTANT: Do NOT default to neutral unless the content truly shows balanced reporting. Most news sources have some degree of bias - detect and measure it accurately.

Examples of bias indicators:
- Liberal bias: Focus on social justice, climate urgency, healthcare access, income inequality
- Conservative bias: Emphasis on law and order, fiscal responsibility, traditional values, border security
- Neutral: Presents multiple perspectives, uses factual language, minimal editorial tone

Return ONLY a JSON object:
{{
  "biasScore": 32,
  "biasLabel": "Liberal",
  "confidence": 0.78,
  "reasoning": "Detailed explanation of specific bias indicators found",
  "keyIndicators": ["specific-indicator1", "specific-indicator2", "specific-indicator3"]
}}"""

    CONTENT_SYSTEM_PROMPT = (
        "You are a content analyst evaluating articles within their source's established "
        "bias patterns. Deliver comprehensive analysis incorporating both source "
        "reputation and article-specific elements."
    )

    CONTENT_USER_PROMPT = """Given that "{source}" has been analyzed as "{source_label}" with a bias score of {source_score},
now analyze this specific article for any additional bias indicators or deviations from the source's typical pattern:

Title: "{title}"
Content: "{content}..."

Consider:
1. Does this article align with or deviate from the source's typical bias pattern?
2. Are there specific linguistic choices, framing, or selection of facts that indicate bias?
3. How does the article's tone and presentation compare to neutral reporting standards?

Adjust the bias score if needed based on this specific content, but stay within a reasonable range of the source's typical bias pattern.

Return ONLY a JSON object:
{{
  "finalBiasScore": 45,
  "finalBiasLabel": "Neutral/Centrist",
  "confidence": 0.85,
  "reasoning": "Combined source reputation and specific content analysis",
  "keyIndicators": ["source-pattern", "content-specific", "linguistic-analysis"]
}}"""

    def __init__(
        self,
        llm: CompletionClient,
        cache: CacheStore,
        reputation: Optional[SourceReputationEstimator] = None,
        keyword_scorer: Optional[KeywordBiasScorer] = None,
        ttl: float = DEFAULT_CACHE_TTL,
    ):
        self.llm = llm
        self.cache = cache
        self.reputation = reputation or SourceReputationEstimator(llm, cache)
        self.keyword_scorer = keyword_scorer or KeywordBiasScorer(cache=cache, ttl=ttl)
        self.ttl = ttl

    # -------------------------------------------------------------------------
    # Cascade
    # -------------------------------------------------------------------------

    async def assess(self, article: Article) -> BiasAssessment:
        """
        Run the full cascade for one article. Never raises.

        Args:
            article: The article to score

        Returns:
            BiasAssessment from the first tier that succeeded
        """
        result = await self.try_direct(article.title, article.content, article.source)
        if result.ok:
            return result.assessment

        logger.warning(f"Direct bias analysis failed for {article.url}: {result.reason}")
        return await self.assess_via_source(article.source, article.title, article.content)

    async def assess_via_source(self, source: str, title: str, content: str) -> BiasAssessment:
        """
        Tier 2 with the keyword tier as its own fallback. Never raises.

        Args:
            source: Outlet label
            title: Article headline
            content: Article body text

        Returns:
            BiasAssessment attributed to source+content, or to keyword
        """
        result = await self.try_source_content(source, title, content)
        if result.ok:
            return result.assessment

        logger.error(f"Source-based bias analysis failed for {source}: {result.reason}")
        return self.keyword_scorer.assess_by_keywords(title, content, source)

    # -------------------------------------------------------------------------
    # Tier 1: direct
    # -------------------------------------------------------------------------

    @staticmethod
    def direct_cache_key(content: str) -> str:
        return f"bias_{RUBRIC_VERSION}_{content_digest(content)}"

    async def try_direct(self, title: str, content: str, source: str) -> TierResult:
        try:
            cache_key = self.direct_cache_key(content) if is_cacheable_content(content) else None
            cached = self.cache.get(cache_key) if cache_key else None
            if cached is not None:
                logger.info(f"Using cached bias analysis for '{title[:50]}'")
                return TierResult.success(cached)

            reply = await self.llm.complete(
                self.DIRECT_SYSTEM_PROMPT,
                self.DIRECT_USER_PROMPT.format(
                    scale=render_bias_scale(),
                    title=title,
                    source=source,
                    content=(content or "")[:DIRECT_PROMPT_CONTENT_CHARS],
                ),
                max_tokens=DIRECT_BIAS_CALL.max_tokens,
                temperature=DIRECT_BIAS_CALL.temperature,
            )
            data = parse_json_response(reply)
            assessment = self._direct_assessment(data)

            if cache_key:
                self.cache.set(cache_key, assessment, self.ttl)
            return TierResult.success(assessment)

        except Exception as e:
            return TierResult.failure(Attribution.DIRECT, f"{type(e).__name__}: {e}")

    @staticmethod
    def _direct_assessment(data: dict) -> BiasAssessment:
        assessment = BiasAssessment(
            bias_score=_first_present(data.get("biasScore"), 50),
            confidence=_first_present(data.get("confidence"), 0.5),
            reasoning=data.get("reasoning") or "AI-powered bias analysis completed",
            key_indicators=as_string_list(data.get("keyIndicators")),
            attribution=Attribution.DIRECT,
        )
        reported = data.get("biasLabel")
        if reported and reported != assessment.bias_label.value:
            logger.debug(
                f"Model label '{reported}' disagrees with score {assessment.bias_score}; "
                f"using '{assessment.bias_label.value}'"
            )
        return assessment

    # -------------------------------------------------------------------------
    # Tier 2: source reputation + content adjustment
    # -------------------------------------------------------------------------

    @staticmethod
    def source_content_cache_key(source: str, content: str) -> str:
        return (
            f"source_content_{RUBRIC_VERSION}_"
            f"{normalize_source_key(source)}_{content_digest(content)}"
        )

    async def try_source_content(self, source: str, title: str, content: str) -> TierResult:
        try:
            cache_key = (
                self.source_content_cache_key(source, content)
                if is_cacheable_content(content) else None
            )
            cached = self.cache.get(cache_key) if cache_key else None
            if cached is not None:
                return TierResult.success(cached)

            reputation = await self.reputation.estimate(source)

            reply = await self.llm.complete(
                self.CONTENT_SYSTEM_PROMPT,
                self.CONTENT_USER_PROMPT.format(
                    source=source,
                    source_label=reputation.bias_label.value,
                    source_score=reputation.bias_score,
                    title=title,
                    content=(content or "")[:CONTENT_PROMPT_CONTENT_CHARS],
                ),
                max_tokens=CONTENT_ADJUSTMENT_CALL.max_tokens,
                temperature=CONTENT_ADJUSTMENT_CALL.temperature,
            )
            data = parse_json_response(reply)
            assessment = self.merge_source_and_content(reputation, data)

            if cache_key:
                self.cache.set(cache_key, assessment, self.ttl)
            return TierResult.success(assessment)

        except Exception as e:
            return TierResult.failure(Attribution.SOURCE_CONTENT, f"{type(e).__name__}: {e}")

    @staticmethod
    def merge_source_and_content(reputation: SourceReputation, data: dict) -> BiasAssessment:
        """
        Blend the outlet reputation with the article-specific reply.

        Score and confidence come from the article reply when present, else from
        the reputation. Reasoning and indicators are concatenated, source first.
        """
        source_reasoning = reputation.reasoning or "Source analysis completed"
        content_reasoning = data.get("reasoning") or "Content analysis completed"
        content_indicators = as_string_list(data.get("keyIndicators"))

        return BiasAssessment(
            bias_score=_first_present(data.get("finalBiasScore"), reputation.bias_score, 50),
            confidence=_first_present(data.get("confidence"), reputation.confidence, 0.5),
            reasoning=f"{source_reasoning}. {content_reasoning}",
            key_indicators=list(reputation.key_indicators) + content_indicators,
            attribution=Attribution.SOURCE_CONTENT,
            source_reliability=reputation.source_reliability or "Medium",
        )
