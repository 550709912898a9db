"""
Article Processor - Per-Article Orchestration

Runs bias assessment and neutral summary generation concurrently for each
article and merges both into an AnalyzedArticle. Batches are processed
concurrently with per-article failure isolation: one broken article is
reported as a ProcessingFailure and never sinks the rest of the batch.
"""

import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Optional, Union

from bias_analyzer import ContentBiasAnalyzer
from cache import CacheStore, TTLCache
from config import FETCH_ARTICLE_TEXT, KEYWORD_RANDOM_TIEBREAK
from keyword_scorer import KeywordBiasScorer
from llm_client import CompletionClient, LLMClient
from news_search import ArticleTextFetcher, DuckDuckGoNewsBackend, NewsSearcher
from schemas import AnalyzedArticle, Article, NewsSearchResult, ProcessingFailure
from summarizer import NeutralSummarizer

logger = logging.getLogger(__name__)


class ArticleProcessingError(Exception):
    """Processing of a single article failed."""

    def __init__(self, url: str, cause: Exception):
        super().__init__(f"Error processing article {url}: {cause}")
        self.url = url
        self.cause = cause


class ArticleProcessor:
    """
    Entry point for turning articles into AnalyzedArticles.

    Attributes:
        analyzer: Bias cascade
        summarizer: Neutral summary generator
        searcher: Retrieval front end (used by search_and_process)
    """

    def __init__(
        self,
        analyzer: ContentBiasAnalyzer,
        summarizer: NeutralSummarizer,
        searcher: Optional[NewsSearcher] = None,
    ):
        self.analyzer = analyzer
        self.summarizer = summarizer
        self.searcher = searcher

    @classmethod
    def create(
        cls,
        llm: Optional[CompletionClient] = None,
        cache: Optional[CacheStore] = None,
        rng: Optional[random.Random] = None,
    ) -> "ArticleProcessor":
        """Wire up the default production stack (OpenAI + DuckDuckGo + in-memory cache)."""
        llm = llm or LLMClient()
        cache = cache if cache is not None else TTLCache()
        if rng is None and KEYWORD_RANDOM_TIEBREAK:
            rng = random.Random()

        keyword_scorer = KeywordBiasScorer(rng=rng, cache=cache)
        analyzer = ContentBiasAnalyzer(llm, cache, keyword_scorer=keyword_scorer)
        summarizer = NeutralSummarizer(llm, cache)
        searcher = NewsSearcher(
            DuckDuckGoNewsBackend(),
            cache,
            text_fetcher=ArticleTextFetcher() if FETCH_ARTICLE_TEXT else None,
        )
        return cls(analyzer, summarizer, searcher)

    async def process(self, article: Article) -> AnalyzedArticle:
        """
        Analyze one article: bias cascade and summary, concurrently.

        Raises:
            ArticleProcessingError: on any unexpected failure
        """
        try:
            bias, summary = await asyncio.gather(
                self.analyzer.assess(article),
                self.summarizer.summarize(article),
            )
            return AnalyzedArticle.from_article(
                article,
                bias=bias,
                summary=summary,
                processed_at=datetime.now(timezone.utc),
            )
        except Exception as e:
            logger.error(f"Error processing article {article.url}: {e}")
            raise ArticleProcessingError(article.url, e) from e

    async def process_safe(self, article: Article) -> Union[AnalyzedArticle, ProcessingFailure]:
        try:
            return await self.process(article)
        except ArticleProcessingError as e:
            return ProcessingFailure(url=e.url, error=str(e.cause))

    async def process_batch(
        self, articles: list[Article]
    ) -> tuple[list[AnalyzedArticle], list[ProcessingFailure]]:
        """Process articles concurrently; results keep input order."""
        outcomes = await asyncio.gather(*[self.process_safe(a) for a in articles])
        analyzed = [o for o in outcomes if isinstance(o, AnalyzedArticle)]
        failures = [o for o in outcomes if isinstance(o, ProcessingFailure)]
        if failures:
            logger.warning(f"{len(failures)} of {len(articles)} articles failed processing")
        return analyzed, failures

    async def search_and_process(
        self, query: str, sources: str = "", limit: int = 10
    ) -> NewsSearchResult:
        """Retrieve articles for a query and analyze each of them."""
        if self.searcher is None:
            raise RuntimeError("ArticleProcessor was built without a NewsSearcher")

        outcome = await self.searcher.search(query, sources=sources, limit=limit)
        analyzed, failures = await self.process_batch(outcome.articles)
        return NewsSearchResult(
            query=query,
            articles=analyzed,
            failures=failures,
            used_fallback_data=outcome.used_fallback,
        )
