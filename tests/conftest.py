"""
Shared fixtures and fakes for the news bias tests.

No test talks to OpenAI or DuckDuckGo: the LLM, the clock and the search
backend are all replaced by the scripted fakes below.
"""

import asyncio
import json
import time
from datetime import datetime, timezone

import pytest

from cache import TTLCache
from schemas import Article


class FakeLLM:
    """
    Scripted CompletionClient.

    Each reply is either a string (returned as the completion), a dict
    (returned JSON-encoded) or an Exception instance (raised). Replies are
    consumed in order; when the script runs out the last entry repeats.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def complete(self, system_prompt, user_prompt, max_tokens, temperature):
        self.calls.append({
            "system": system_prompt,
            "user": user_prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if not self.replies:
            raise RuntimeError("FakeLLM has no scripted reply")
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


class RoutingLLM:
    """CompletionClient that answers according to which prompt it receives."""

    def __init__(self, direct=None, reputation=None, content=None, summary=None):
        self.routes = {
            "direct": direct,
            "reputation": reputation,
            "content": content,
            "summary": summary,
        }
        self.calls = []

    @staticmethod
    def classify(user_prompt):
        if user_prompt.startswith("Create a neutral, objective summary"):
            return "summary"
        if "reputation of the news source" in user_prompt:
            return "reputation"
        if "finalBiasScore" in user_prompt:
            return "content"
        return "direct"

    async def complete(self, system_prompt, user_prompt, max_tokens, temperature):
        route = self.classify(user_prompt)
        self.calls.append(route)
        reply = self.routes[route]
        if reply is None:
            raise RuntimeError(f"no reply scripted for {route}")
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply

    def count(self, route):
        return self.calls.count(route)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeSearchBackend:
    """
    NewsSearchBackend returning canned records.

    results: maps the first domain of a search to the records it returns
        (searches run concurrently, so call order is not stable)
    error: raised from every call when set
    delay: seconds to block before answering
    """

    def __init__(self, results=None, error=None, delay=0.0):
        self.results = dict(results or {})
        self.error = error
        self.delay = delay
        self.calls = []

    def search(self, query, domains, max_results, max_age_days=14):
        self.calls.append((query, list(domains), max_results, max_age_days))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        first = domains[0] if domains else None
        return list(self.results.get(first, []))


def make_record(url, title="Headline", text="Body text", date="2026-10-18T12:00:00Z"):
    return {
        "url": url,
        "title": title,
        "text": text,
        "publishedDate": date,
        "author": None,
        "image": None,
    }


def make_article(
    url="https://www.reuters.com/world/story",
    title="Senate passes budget bill",
    content="Lawmakers approved the measure on Tuesday after a long debate.",
    source="reuters",
):
    return Article(
        url=url,
        title=title,
        content=content,
        source=source,
        published_at=datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc),
    )


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


@pytest.fixture
def article():
    return make_article()
