"""
summarizer.py
Generates short, neutral summaries of articles using LLM synthesis.
"""

import logging

from cache import CacheStore, content_digest, is_cacheable_content
from config import DEFAULT_CACHE_TTL, SUMMARY_CALL
from llm_client import CompletionClient
from response_parser import as_string_list, parse_json_response
from schemas import Article, NeutralSummary

logger = logging.getLogger(__name__)

FAILED_SUMMARY = NeutralSummary(
    summary="Summary generation failed. Please try again.",
    key_points=["Error occurred"],
    word_count=0,
)


class NeutralSummarizer:
    SYSTEM_PROMPT = (
        "You are an editorial specialist focused on generating balanced, factual "
        "summaries. Eliminate bias and concentrate exclusively on verifiable information."
    )

    USER_PROMPT = """Create a neutral, objective summary of this news article:

Title: "{title}"
Content: "{content}"

Requirements:
1. Keep it concise (2-3 sentences, max 150 words)
2. Maintain complete neutrality - remove any biased language
3. Focus on factual information only
4. Include key points and main developments
5. Avoid opinion words or emotional language

Return ONLY a JSON object:
{{
  "summary": "Neutral summary text here",
  "keyPoints": ["point1", "point2", "point3"],
  "wordCount": 45
}}"""

    def __init__(self, llm: CompletionClient, cache: CacheStore, ttl: float = DEFAULT_CACHE_TTL):
        self.llm = llm
        self.cache = cache
        self.ttl = ttl

    async def summarize(self, article: Article) -> NeutralSummary:
        """
        Summarize an article. Failures return FAILED_SUMMARY instead of raising.
        """
        cache_key = (
            f"summary_{content_digest(article.content)}"
            if is_cacheable_content(article.content) else None
        )
        try:
            cached = self.cache.get(cache_key) if cache_key else None
            if cached is not None:
                return cached

            reply = await self.llm.complete(
                self.SYSTEM_PROMPT,
                self.USER_PROMPT.format(title=article.title, content=article.content),
                max_tokens=SUMMARY_CALL.max_tokens,
                temperature=SUMMARY_CALL.temperature,
            )
            data = parse_json_response(reply)
            summary_text = data.get("summary") or ""
            summary = NeutralSummary(
                summary=summary_text,
                key_points=as_string_list(data.get("keyPoints")),
                word_count=data.get("wordCount") or len(summary_text.split()),
            )

            if cache_key:
                self.cache.set(cache_key, summary, self.ttl)
            return summary

        except Exception as e:
            logger.error(f"Summary generation failed for {article.url}: {e}")
            return FAILED_SUMMARY
