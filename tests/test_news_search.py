"""
Tests for balanced news retrieval, record mapping and the placeholder fallback.
"""

import time
from datetime import datetime, timezone

import pytest

from config import (
    ALL_SOURCE_DOMAINS,
    CENTER_DOMAINS,
    LEFT_LEANING_DOMAINS,
    PLACEHOLDER_IMAGE_URL,
    RIGHT_LEANING_DOMAINS,
)
from news_search import (
    ArticleTextFetcher,
    DuckDuckGoNewsBackend,
    NewsSearcher,
    deduplicate_by_url,
    extract_source_domain,
    fallback_articles,
    parse_published_date,
    to_article,
)

from conftest import FakeSearchBackend, make_record, run

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class StubTextFetcher:
    """Returns page text per URL; exceptions in the mapping are raised."""

    def __init__(self, texts):
        self.texts = texts

    def fetch_text(self, url):
        text = self.texts.get(url)
        if isinstance(text, Exception):
            raise text
        return text


class TestHelpers:

    @pytest.mark.parametrize("url,expected", [
        ("https://www.nytimes.com/2026/10/18/us/politics/story.html", "nytimes"),
        ("https://foxnews.com/politics/story", "foxnews"),
        ("https://edition.cnn.com/story", "edition"),
        ("not a url", "Unknown Source"),
        ("", "Unknown Source"),
    ])
    def test_extract_source_domain(self, url, expected):
        assert extract_source_domain(url) == expected

    def test_deduplicate_keeps_first_seen(self):
        records = [
            make_record("https://a.com/1", title="first"),
            make_record("https://b.com/2"),
            make_record("https://a.com/1", title="second"),
        ]

        unique = deduplicate_by_url(records)

        assert [r["url"] for r in unique] == ["https://a.com/1", "https://b.com/2"]
        assert unique[0]["title"] == "first"

    def test_parse_published_date(self):
        assert parse_published_date("2026-10-18T12:00:00Z") == datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
        assert parse_published_date("2026-10-18T12:00:00").tzinfo == timezone.utc
        assert parse_published_date("yesterday") is None
        assert parse_published_date(None) is None


class TestToArticle:

    def test_defaults_for_sparse_record(self):
        article = to_article({"url": "https://www.reuters.com/x"}, now=NOW)

        assert article.title == "Untitled Article"
        assert article.content == "No content available"
        assert article.source == "reuters"
        assert article.published_at == NOW
        assert article.author is None
        assert article.image_url == PLACEHOLDER_IMAGE_URL

    def test_summary_used_when_text_missing(self):
        article = to_article({"url": "https://a.com/1", "summary": "Snippet"}, now=NOW)

        assert article.content == "Snippet"

    def test_full_record(self):
        record = make_record("https://apnews.com/article/1", title="Vote held", text="Body")
        record["author"] = "Jane Doe"
        record["image"] = "https://img/1.jpg"

        article = to_article(record, now=NOW)

        assert article.title == "Vote held"
        assert article.content == "Body"
        assert article.author == "Jane Doe"
        assert article.image_url == "https://img/1.jpg"
        assert article.published_at == datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class TestFallbackArticles:

    def test_five_placeholders(self):
        articles = fallback_articles(now=NOW)

        assert len(articles) == 5
        assert len({a.url for a in articles}) == 5
        assert all(a.url.startswith("https://example.com/") for a in articles)
        assert all(a.published_at < NOW for a in articles)


class TestPlanSearches:

    def test_default_plan(self):
        searcher = NewsSearcher(FakeSearchBackend(), cache=None)

        plan = searcher.plan_searches("", 10)

        assert plan == [
            (LEFT_LEANING_DOMAINS, 3, 14),
            (RIGHT_LEANING_DOMAINS, 3, 14),
            (CENTER_DOMAINS, 3, 14),
            (ALL_SOURCE_DOMAINS, 10, 7),
        ]

    def test_large_limit_capped(self):
        plan = NewsSearcher(FakeSearchBackend(), cache=None).plan_searches("", 50)

        assert [p[1] for p in plan] == [8, 8, 8, 10]

    def test_caller_sources_used_for_mixed_batch(self):
        plan = NewsSearcher(FakeSearchBackend(), cache=None).plan_searches(" a.com, b.com ,", 4)

        assert plan[3] == (["a.com", "b.com"], 4, 7)
        assert plan[0][1] == 1


class TestNewsSearcher:

    def make_backend(self):
        return FakeSearchBackend(results={
            LEFT_LEANING_DOMAINS[0]: [make_record("https://nytimes.com/1", title="left")],
            RIGHT_LEANING_DOMAINS[0]: [make_record("https://foxnews.com/1", title="right")],
            CENTER_DOMAINS[0]: [
                make_record("https://reuters.com/1", title="center"),
                make_record("https://nytimes.com/1", title="duplicate"),
            ],
            "mixed.com": [make_record("https://mixed.com/1", title="mixed")],
        })

    def test_fan_out_merges_and_deduplicates(self, cache):
        backend = self.make_backend()
        searcher = NewsSearcher(backend, cache)

        outcome = run(searcher.search("budget", sources="mixed.com", limit=10))

        assert not outcome.used_fallback
        assert [a.title for a in outcome.articles] == ["left", "right", "center", "mixed"]
        assert len(backend.calls) == 4
        assert all(call[0] == "budget" for call in backend.calls)

    def test_limit_applied_after_dedup(self, cache):
        outcome = run(NewsSearcher(self.make_backend(), cache).search("budget", sources="mixed.com", limit=2))

        assert [a.title for a in outcome.articles] == ["left", "right"]

    def test_backend_error_uses_fallback(self, cache):
        searcher = NewsSearcher(FakeSearchBackend(error=ConnectionError("blocked")), cache)

        outcome = run(searcher.search("budget"))

        assert outcome.used_fallback
        assert len(outcome.articles) == 5

    def test_timeout_uses_fallback(self, cache):
        searcher = NewsSearcher(FakeSearchBackend(delay=0.3), cache, timeout=0.05)

        outcome = run(searcher.search("budget"))

        assert outcome.used_fallback
        assert len(outcome.articles) == 5

    def test_timeout_does_not_wait_for_blocked_backend(self, cache):
        """The fallback is returned at the deadline, not when the slow threads finish."""
        searcher = NewsSearcher(FakeSearchBackend(delay=2.0), cache, timeout=0.1)

        started = time.monotonic()
        outcome = run(searcher.search("budget"))
        elapsed = time.monotonic() - started

        assert outcome.used_fallback
        assert elapsed < 1.0

    def test_slow_enrichment_keeps_snippets_without_blocking(self, cache):
        class SlowFetcher:
            def fetch_text(self, url):
                time.sleep(2.0)
                return "Full page text"

        searcher = NewsSearcher(self.make_backend(), cache, text_fetcher=SlowFetcher(), timeout=0.3)

        started = time.monotonic()
        outcome = run(searcher.search("budget", sources="mixed.com"))
        elapsed = time.monotonic() - started

        assert not outcome.used_fallback
        assert all(a.content == "Body text" for a in outcome.articles)
        assert elapsed < 1.5

    def test_search_purges_expired_entries(self, cache, clock):
        cache.set("stale", "value", ttl=5)
        clock.advance(10)

        run(NewsSearcher(FakeSearchBackend(), cache).search("budget"))

        assert len(cache) == 1

    def test_outcome_articles_are_immutable(self, cache):
        outcome = run(NewsSearcher(self.make_backend(), cache).search("budget", sources="mixed.com"))

        with pytest.raises(AttributeError):
            outcome.articles.append(outcome.articles[0])

    def test_empty_results_are_not_fallback(self, cache):
        outcome = run(NewsSearcher(FakeSearchBackend(), cache).search("obscure topic"))

        assert not outcome.used_fallback
        assert outcome.articles == ()

    def test_results_cached(self, cache):
        backend = self.make_backend()
        searcher = NewsSearcher(backend, cache)

        first = run(searcher.search("budget", sources="mixed.com"))
        second = run(searcher.search("budget", sources="mixed.com"))

        assert second is first
        assert len(backend.calls) == 4

    def test_cache_key_includes_limit(self, cache):
        backend = self.make_backend()
        searcher = NewsSearcher(backend, cache)

        run(searcher.search("budget", sources="mixed.com", limit=10))
        run(searcher.search("budget", sources="mixed.com", limit=5))

        assert len(backend.calls) == 8

    def test_enrichment_replaces_snippets(self, cache):
        fetcher = StubTextFetcher({
            "https://nytimes.com/1": "Full page text",
            "https://foxnews.com/1": None,
            "https://reuters.com/1": RuntimeError("parser blew up"),
        })
        searcher = NewsSearcher(self.make_backend(), cache, text_fetcher=fetcher)

        outcome = run(searcher.search("budget", sources="mixed.com"))
        contents = {a.url: a.content for a in outcome.articles}

        assert contents["https://nytimes.com/1"] == "Full page text"
        assert contents["https://foxnews.com/1"] == "Body text"
        assert contents["https://reuters.com/1"] == "Body text"


class TestDuckDuckGoQuery:

    def test_site_filters(self):
        query = DuckDuckGoNewsBackend.build_query("budget", ["a.com", "b.com"])

        assert query == "budget (site:a.com OR site:b.com)"

    def test_no_domains(self):
        assert DuckDuckGoNewsBackend.build_query("budget", []) == "budget"


class TestArticleTextFetcher:

    PARAGRAPH = "This paragraph is long enough to count as article body text."

    def test_extract_text_from_main_container(self):
        html = (
            "<html><body><nav><p>Menu item that is pretty long for a nav link</p></nav>"
            "<article>" + "".join(f"<p>{self.PARAGRAPH} {i}</p>" for i in range(5)) + "</article>"
            "</body></html>"
        )

        text = ArticleTextFetcher(max_chars=2000).extract_text(html)

        assert text.startswith(self.PARAGRAPH)
        assert "Menu item" not in text

    def test_short_pages_rejected(self):
        html = "<html><body><p>Too short to be an article body at all.</p></body></html>"

        assert ArticleTextFetcher().extract_text(html) is None

    def test_text_truncated(self):
        html = "<article>" + "".join(f"<p>{self.PARAGRAPH}</p>" for _ in range(10)) + "</article>"

        text = ArticleTextFetcher(max_chars=100).extract_text(html)

        assert len(text) == 100
