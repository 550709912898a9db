"""
News Search Module - Balanced Retrieval for a Query

Fans a query out to four concurrent searches so coverage spans the spectrum:
left-leaning outlets, right-leaning outlets, centre outlets, and a mixed batch
over every known (or caller-specified) domain. Results are merged,
de-duplicated by URL (first seen wins) and mapped to Article records.

The whole fan-out races a fixed timeout. On timeout or any retrieval error
the caller gets a small set of static placeholder articles instead, so the
pipeline always has something to analyze.

Components:
1. DuckDuckGoNewsBackend: DDGS news search with site: filters
2. ArticleTextFetcher: optional full-text enrichment via requests + BeautifulSoup
3. NewsSearcher: fan-out, timeout, dedup, mapping, caching
"""

import asyncio
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from duckduckgo_search import DDGS

from cache import CacheStore
from config import (
    ALL_SOURCE_DOMAINS,
    ARTICLE_TEXT_MAX_CHARS,
    CENTER_DOMAINS,
    DEFAULT_CACHE_TTL,
    LEFT_LEANING_DOMAINS,
    NO_CONTENT_PLACEHOLDER,
    PAGE_FETCH_TIMEOUT,
    PLACEHOLDER_IMAGE_URL,
    RIGHT_LEANING_DOMAINS,
    SEARCH_TIMEOUT_SECONDS,
)
from schemas import Article

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def extract_source_domain(url: str) -> str:
    """
    Short outlet label from a URL.

    "https://www.nytimes.com/article" -> "nytimes"
    """
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return "Unknown Source"
    if not hostname:
        return "Unknown Source"
    return hostname.replace("www.", "").split(".")[0]


def parse_published_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def deduplicate_by_url(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Drop records whose URL was already seen; the first occurrence wins."""
    seen_urls: set[str] = set()
    unique = []
    for record in records:
        url = record.get("url")
        if url in seen_urls:
            continue
        seen_urls.add(url)
        unique.append(record)
    return unique


def to_article(record: dict[str, Any], now: Optional[datetime] = None) -> Article:
    """Map a raw search record onto an Article, filling display defaults."""
    now = now or datetime.now(timezone.utc)
    url = record.get("url") or ""
    return Article(
        url=url,
        title=record.get("title") or "Untitled Article",
        content=record.get("text") or record.get("summary") or NO_CONTENT_PLACEHOLDER,
        source=extract_source_domain(url),
        published_at=parse_published_date(record.get("publishedDate")) or now,
        author=record.get("author") or None,
        image_url=record.get("image") or PLACEHOLDER_IMAGE_URL,
    )


def fallback_articles(now: Optional[datetime] = None) -> list[Article]:
    """Static placeholder articles served when retrieval fails."""
    now = now or datetime.now(timezone.utc)
    return [
        Article(
            url=f"https://example.com/{slug}",
            title=title,
            content=content,
            source=source,
            published_at=now - timedelta(hours=hours_ago),
            author=author,
            image_url=f"https://images.unsplash.com/{image}?w=800&h=600&fit=crop&crop=center",
        )
        for slug, title, content, source, hours_ago, author, image in _FALLBACK_DATA
    ]


_FALLBACK_DATA = [
    (
        "ai-safety-initiative",
        "Breaking: Major Tech Companies Announce AI Safety Initiative",
        "Leading technology companies have announced a comprehensive AI safety initiative aimed at "
        "ensuring responsible development of artificial intelligence systems. The collaboration "
        "involves establishing shared safety standards, conducting joint research on AI alignment, "
        "and creating transparent reporting mechanisms for AI development milestones.",
        "TechNews Daily", 2, "Sarah Mitchell", "photo-1677442136019-21780ecad995",
    ),
    (
        "carbon-capture-breakthrough",
        "Climate Scientists Report Breakthrough in Carbon Capture Technology",
        "Researchers have developed a carbon capture system that can remove CO2 from the atmosphere "
        "at unprecedented efficiency rates. The technology combines advanced materials science with "
        "AI-powered optimization to achieve 90% capture efficiency while reducing energy costs.",
        "Environmental Science Today", 4, "Dr. Michael Chen", "photo-1569163139394-de4e5f43e4e3",
    ),
    (
        "market-reaction-policy",
        "Global Markets React to New Economic Policy Announcements",
        "International financial markets showed mixed reactions to recent economic policy "
        "announcements from major central banks. While some sectors experienced volatility, others "
        "demonstrated resilience as investors analyze the implications of changing monetary policies.",
        "Financial Review", 6, "Jennifer Rodriguez", "photo-1611974789855-9c2a0a7236a3",
    ),
    (
        "alzheimers-drug-trial",
        "Medical Research: New Drug Shows Promise in Alzheimer's Treatment",
        "Clinical trials for a new Alzheimer's treatment have shown promising results, with patients "
        "experiencing significant improvements in cognitive function and memory retention. The drug "
        "targets specific proteins associated with the disease.",
        "Medical Journal Weekly", 8, "Dr. Amanda Foster", "photo-1582719508461-905c673771fd",
    ),
    (
        "mars-mission-collaboration",
        "Space Exploration: International Collaboration on Mars Mission Announced",
        "Space agencies from multiple countries have announced a collaborative mission to Mars, "
        "aimed at establishing a sustainable human presence on the Red Planet. The mission involves "
        "advanced life support systems, habitat construction, and resource utilization technologies.",
        "Space Technology Review", 10, "Dr. James Parker", "photo-1446776653964-20c1d3a81b06",
    ),
]


# =============================================================================
# Backends
# =============================================================================


class NewsSearchBackend(Protocol):
    """Blocking search returning raw records {url, title, text, publishedDate, author, image}."""

    def search(
        self,
        query: str,
        domains: list[str],
        max_results: int,
        max_age_days: int = 14,
    ) -> list[dict[str, Any]]:
        ...


class DuckDuckGoNewsBackend:
    """
    News search through DuckDuckGo.

    Domain filtering uses site: operators; DDGS only offers day/week/month
    windows, so results are also filtered by publication date afterwards.
    """

    def __init__(self, region: str = "us-en", request_timeout: float = SEARCH_TIMEOUT_SECONDS):
        self.region = region
        self.request_timeout = request_timeout

    @staticmethod
    def build_query(query: str, domains: list[str]) -> str:
        if not domains:
            return query
        sites = " OR ".join(f"site:{d}" for d in domains)
        return f"{query} ({sites})"

    def search(
        self,
        query: str,
        domains: list[str],
        max_results: int,
        max_age_days: int = 14,
    ) -> list[dict[str, Any]]:
        timelimit = "w" if max_age_days <= 7 else "m"
        results = DDGS(timeout=self.request_timeout).news(
            self.build_query(query, domains),
            region=self.region,
            timelimit=timelimit,
            max_results=max_results,
        )
        cutoff = datetime.now(timezone.utc) - timedelta(days=max_age_days)

        records = []
        for r in results or []:
            published = parse_published_date(r.get("date"))
            if published is not None and published < cutoff:
                continue
            records.append({
                "url": r.get("url", ""),
                "title": r.get("title", ""),
                "text": r.get("body", ""),
                "publishedDate": r.get("date"),
                "author": None,
                "image": r.get("image"),
            })
        return records


class ArticleTextFetcher:
    """Downloads an article page and keeps the leading paragraph text."""

    HEADERS = {
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(self, max_chars: int = ARTICLE_TEXT_MAX_CHARS, timeout: float = PAGE_FETCH_TIMEOUT):
        self.max_chars = max_chars
        self.timeout = timeout
        self.session = requests.Session()

    def fetch_text(self, url: str) -> Optional[str]:
        """Return up to max_chars of body text, or None when the page is unusable."""
        try:
            resp = self.session.get(url, headers=self.HEADERS, timeout=self.timeout)
            resp.raise_for_status()
            if resp.encoding == "ISO-8859-1":
                resp.encoding = resp.apparent_encoding
        except requests.RequestException as e:
            logger.warning(f"Failed to fetch {url}: {e}")
            return None
        return self.extract_text(resp.text)

    def extract_text(self, html: str) -> Optional[str]:
        soup = BeautifulSoup(html, "html.parser")

        # Heuristic: the container with the most direct <p> children holds the story
        best_container = None
        max_p = 0
        for container in soup.find_all(["div", "article", "section", "main"]):
            p_count = len(container.find_all("p", recursive=False))
            if p_count > max_p:
                max_p = p_count
                best_container = container

        if best_container and max_p > 3:
            paragraphs = best_container.find_all("p")
        else:
            paragraphs = soup.find_all("p")

        text = "\n\n".join(
            p.get_text(strip=True) for p in paragraphs if len(p.get_text(strip=True)) > 30
        )
        if len(text) < 200:
            return None
        return text[: self.max_chars]


# =============================================================================
# NewsSearcher
# =============================================================================


@dataclass(frozen=True)
class SearchOutcome:
    articles: tuple[Article, ...] = ()
    used_fallback: bool = False


class NewsSearcher:
    """
    Balanced multi-category news retrieval.

    Attributes:
        backend: Blocking search backend (run in worker threads)
        cache: Shared cache; outcomes are cached per (query, sources, limit)
        text_fetcher: Optional full-text enrichment
        timeout: Seconds allowed for the whole fan-out
    """

    def __init__(
        self,
        backend: NewsSearchBackend,
        cache: CacheStore,
        text_fetcher: Optional[ArticleTextFetcher] = None,
        timeout: float = SEARCH_TIMEOUT_SECONDS,
        ttl: float = DEFAULT_CACHE_TTL,
    ):
        self.backend = backend
        self.cache = cache
        self.text_fetcher = text_fetcher
        self.timeout = timeout
        self.ttl = ttl

    def plan_searches(self, sources: str, limit: int) -> list[tuple[list[str], int, int]]:
        """(domains, max_results, max_age_days) for each search in the fan-out."""
        per_category = min(math.ceil(limit / 4), 8)
        mixed_domains = (
            [s.strip() for s in sources.split(",") if s.strip()] if sources else ALL_SOURCE_DOMAINS
        )
        return [
            (LEFT_LEANING_DOMAINS, per_category, 14),
            (RIGHT_LEANING_DOMAINS, per_category, 14),
            (CENTER_DOMAINS, per_category, 14),
            (mixed_domains, min(limit, 10), 7),
        ]

    async def search(self, query: str, sources: str = "", limit: int = 10) -> SearchOutcome:
        """
        Retrieve up to `limit` unique articles for a query.

        Never raises: retrieval errors and timeouts produce placeholder articles.
        """
        self.cache.purge_expired()
        cache_key = f"news_{query}_{sources}_{limit}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        logger.info(f"🔍 Searching news: \"{query}\"")
        try:
            records = await asyncio.wait_for(self._fan_out(query, sources, limit), timeout=self.timeout)
            unique = deduplicate_by_url(records)
            logger.info(
                f"📰 Retrieved {len(unique)} unique articles "
                f"({len(records)} total before deduplication)"
            )
            articles = [to_article(r) for r in unique[:limit]]
            if self.text_fetcher is not None:
                articles = await self._enrich(articles)
            outcome = SearchOutcome(articles=tuple(articles))

        except asyncio.TimeoutError:
            logger.error(f"News search timed out after {self.timeout}s")
            outcome = SearchOutcome(articles=tuple(fallback_articles()), used_fallback=True)
        except Exception as e:
            logger.error(f"Error in news search: {e}")
            logger.info("Activating fallback news data")
            outcome = SearchOutcome(articles=tuple(fallback_articles()), used_fallback=True)

        self.cache.set(cache_key, outcome, self.ttl)
        return outcome

    async def _fan_out(self, query: str, sources: str, limit: int) -> list[dict[str, Any]]:
        batches = await self._run_in_threads(
            [
                (self.backend.search, query, domains, max_results, max_age_days)
                for domains, max_results, max_age_days in self.plan_searches(sources, limit)
            ]
        )
        return [record for batch in batches if batch for record in batch]

    async def _enrich(self, articles: list[Article]) -> list[Article]:
        """Swap search snippets for page text where the page could be read."""
        try:
            texts = await asyncio.wait_for(
                self._run_in_threads(
                    [(self.text_fetcher.fetch_text, a.url) for a in articles],
                    return_exceptions=True,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Full-text enrichment timed out; keeping search snippets")
            return articles
        enriched = []
        for article, text in zip(articles, texts):
            if isinstance(text, Exception):
                logger.warning(f"Text extraction failed for {article.url}: {text}")
                text = None
            enriched.append(article.model_copy(update={"content": text}) if text else article)
        return enriched

    @staticmethod
    async def _run_in_threads(calls: list[tuple], return_exceptions: bool = False) -> list[Any]:
        """
        Run blocking calls on a private thread pool and gather their results.

        The pool is released without waiting when the gather finishes or is
        cancelled; calls still running are abandoned, never joined.
        """
        if not calls:
            return []
        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(max_workers=len(calls), thread_name_prefix="news-search")
        try:
            return await asyncio.gather(
                *[loop.run_in_executor(executor, fn, *args) for fn, *args in calls],
                return_exceptions=return_exceptions,
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
