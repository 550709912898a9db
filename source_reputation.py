"""
Source Reputation Estimator

Produces an outlet-level political bias estimate, independent of any single
article, by asking the LLM about the outlet's editorial history, ownership and
reliability record. Estimates are cached for SOURCE_REPUTATION_TTL (a day by
default) because an outlet's reputation does not move from one article to the
next.
"""

import logging
from typing import Optional

from cache import CacheStore, normalize_source_key
from config import SOURCE_REPUTATION_CALL, SOURCE_REPUTATION_TTL, render_bias_scale
from llm_client import CompletionClient
from response_parser import as_string_list, parse_json_response
from schemas import SourceReputation

logger = logging.getLogger(__name__)


def source_cache_key(source: str) -> str:
    return f"source_bias_{normalize_source_key(source)}"


class SourceReputationEstimator:
    """
    Estimates and caches the bias reputation of news outlets.

    Errors (network, malformed reply) propagate to the caller, which owns the
    fallback decision.

    Attributes:
        llm: Completion client used for the reputation call
        cache: Shared cache store
        ttl: Lifetime of a cached reputation in seconds
    """

    SYSTEM_PROMPT = (
        "You are a media research specialist with expertise in contemporary media "
        "analysis frameworks. Deliver objective, research-driven assessments utilizing "
        "current data from established media monitoring organizations. Focus on "
        "real-time analysis rather than static categorizations."
    )

    USER_PROMPT = """Analyze the political bias and reputation of the news source "{source}" based on current academic research, fact-checking organizations, and media analysis frameworks.

Research and consider these authoritative sources:
1. AllSides Media Bias Ratings (allsides.com)
2. Ad Fontes Media Bias Chart (adfontesmedia.com)
3. Media Bias/Fact Check ratings
4. Pew Research Center media studies
5. Reuters Institute Digital News Report
6. Academic studies on media bias and reliability

Analyze based on:
- Editorial stance and ownership structure
- Historical reporting patterns and fact-checking scores
- Audience targeting and funding model
- Professional journalism standards adherence
- Transparency in corrections and retractions

Provide an assessment from 0-100:
{scale}

Return ONLY a JSON object:
{{
  "biasScore": 45,
  "biasLabel": "Neutral/Centrist",
  "confidence": 0.85,
  "reasoning": "Detailed explanation based on current research and ratings",
  "keyIndicators": ["methodology-used", "rating-sources", "reliability-factors"],
  "sourceReliability": "High/Medium/Low"
}}"""

    def __init__(
        self,
        llm: CompletionClient,
        cache: CacheStore,
        ttl: float = SOURCE_REPUTATION_TTL,
    ):
        self.llm = llm
        self.cache = cache
        self.ttl = ttl

    def get_cached(self, source: str) -> Optional[SourceReputation]:
        return self.cache.get(source_cache_key(source))

    async def estimate(self, source: str) -> SourceReputation:
        """
        Return the reputation of an outlet, from cache when available.

        Args:
            source: Outlet label (e.g. "foxnews")

        Returns:
            SourceReputation with clamped score and confidence

        Raises:
            Exception: any LLM or parsing failure
        """
        cached = self.get_cached(source)
        if cached is not None:
            logger.info(f"📋 Using cached bias reputation for {source}")
            return cached

        reply = await self.llm.complete(
            self.SYSTEM_PROMPT,
            self.USER_PROMPT.format(source=source, scale=render_bias_scale()),
            max_tokens=SOURCE_REPUTATION_CALL.max_tokens,
            temperature=SOURCE_REPUTATION_CALL.temperature,
        )
        data = parse_json_response(reply)
        reputation = self.from_reply(source, data)

        self.cache.set(source_cache_key(source), reputation, self.ttl)
        logger.info(f"🔍 Generated new bias reputation for {source}: {reputation.bias_score}")
        return reputation

    @staticmethod
    def from_reply(source: str, data: dict) -> SourceReputation:
        """Build a SourceReputation from a parsed reply, defaulting missing fields."""
        score = data.get("biasScore")
        confidence = data.get("confidence")
        return SourceReputation(
            source=source,
            bias_score=50 if score is None else score,
            confidence=0.5 if confidence is None else confidence,
            reasoning=data.get("reasoning") or "Source analysis completed",
            key_indicators=as_string_list(data.get("keyIndicators")),
            source_reliability=data.get("sourceReliability") or "Medium",
        )
