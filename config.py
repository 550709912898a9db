"""
Configuration for News Bias Lens
Bias bands, cache lifetimes, LLM call settings and source catalogs.
"""
import os
from dataclasses import dataclass

# API Keys
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")

# =============================================================================
# LLM
# =============================================================================
LLM_MODEL = os.environ.get("NEWS_BIAS_MODEL", "gpt-4o-mini")

# Bump whenever the wording of any scoring prompt changes. Article-level cache
# keys carry it, so old results are never served for a new rubric.
RUBRIC_VERSION = "v1"


@dataclass(frozen=True)
class LLMCallSettings:
    max_tokens: int
    temperature: float


DIRECT_BIAS_CALL = LLMCallSettings(max_tokens=500, temperature=0.1)
SOURCE_REPUTATION_CALL = LLMCallSettings(max_tokens=600, temperature=0.1)
CONTENT_ADJUSTMENT_CALL = LLMCallSettings(max_tokens=400, temperature=0.1)
SUMMARY_CALL = LLMCallSettings(max_tokens=300, temperature=0.2)

# =============================================================================
# CACHE
# =============================================================================
DEFAULT_CACHE_TTL = int(os.environ.get("DEFAULT_CACHE_TTL", "1800"))
SOURCE_REPUTATION_TTL = int(os.environ.get("SOURCE_REPUTATION_TTL", "86400"))

# =============================================================================
# RETRIEVAL
# =============================================================================
SEARCH_TIMEOUT_SECONDS = float(os.environ.get("SEARCH_TIMEOUT_SECONDS", "10"))
FETCH_ARTICLE_TEXT = os.environ.get("FETCH_ARTICLE_TEXT", "true").lower() == "true"
ARTICLE_TEXT_MAX_CHARS = 800
PAGE_FETCH_TIMEOUT = 15

# Prompt truncation limits
DIRECT_PROMPT_CONTENT_CHARS = 1000
CONTENT_PROMPT_CONTENT_CHARS = 800

# Body used for search records that carry no text
NO_CONTENT_PLACEHOLDER = "No content available"

PLACEHOLDER_IMAGE_URL = (
    "https://images.unsplash.com/photo-1504711434969-e33886168f5c"
    "?w=800&h=600&fit=crop&crop=center"
)

# Outlet catalogs used for the balanced retrieval fan-out
LEFT_LEANING_DOMAINS = [
    "huffpost.com", "salon.com", "vox.com", "motherjones.com", "thedailybeast.com",
    "slate.com", "msnbc.com", "cnn.com", "thenation.com", "jacobinmag.com",
]
CENTER_DOMAINS = [
    "npr.org", "reuters.com", "bbc.com", "apnews.com", "abcnews.go.com",
    "cbsnews.com", "nbcnews.com", "pbs.org",
]
RIGHT_LEANING_DOMAINS = [
    "foxnews.com", "wsj.com", "nypost.com", "dailywire.com", "nationalreview.com",
    "theblaze.com", "breitbart.com", "townhall.com",
]
EXTRA_DOMAINS = [
    "theguardian.com", "washingtonpost.com", "nytimes.com", "politico.com",
    "theatlantic.com", "usatoday.com", "bloomberg.com",
]
ALL_SOURCE_DOMAINS = LEFT_LEANING_DOMAINS + CENTER_DOMAINS + RIGHT_LEANING_DOMAINS + EXTRA_DOMAINS

# =============================================================================
# KEYWORD FALLBACK
# =============================================================================
# Off by default: ties and signal-free articles stay neutral. Set to "true" to
# restore the legacy coin-flip lean.
KEYWORD_RANDOM_TIEBREAK = os.environ.get("KEYWORD_RANDOM_TIEBREAK", "false").lower() == "true"

# =============================================================================
# BIAS BANDS (0 = strongly left, 100 = strongly right)
# =============================================================================
BIAS_BANDS = [
    (0, 20, "Highly Liberal", "strong progressive/left-wing perspective"),
    (21, 40, "Liberal", "moderate left-leaning perspective"),
    (41, 60, "Neutral/Centrist", "balanced, minimal bias"),
    (61, 80, "Conservative", "moderate right-leaning perspective"),
    (81, 100, "Highly Conservative", "strong conservative/right-wing perspective"),
]

# Bias filter buckets offered to readers
BIAS_FILTERS = {
    "liberal": (0, 40),
    "center": (41, 60),
    "conservative": (61, 100),
}


def render_bias_scale() -> str:
    """Render the bias bands as the bullet list embedded in scoring prompts."""
    return "\n".join(
        f"- {low}-{high}: {label} ({description})"
        for low, high, label, description in BIAS_BANDS
    )
