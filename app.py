"""
app.py — Streamlit Web Interface for News Bias Lens

Usage:
  streamlit run app.py
"""

import asyncio
import math

import streamlit as st

from article_processor import ArticleProcessor
from cache import TTLCache
from schemas import AnalyzedArticle, matches_bias_filter

ARTICLES_PER_PAGE = 9

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------

st.set_page_config(
    page_title="News Bias Lens",
    page_icon="📰",
    layout="wide",
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@st.cache_resource
def get_cache() -> TTLCache:
    # One cache per server process so results survive reruns
    return TTLCache()


def run_search(query: str, sources: str, limit: int):
    # Fresh clients per run: each asyncio.run() owns its own event loop
    processor = ArticleProcessor.create(cache=get_cache())
    return asyncio.run(processor.search_and_process(query, sources=sources, limit=limit))


def bias_color(score: int) -> str:
    if score <= 40:
        return "blue"
    if score >= 61:
        return "red"
    return "gray"


def render_article(article: AnalyzedArticle) -> None:
    bias = article.bias
    with st.container(border=True):
        if article.image_url:
            st.image(article.image_url, use_container_width=True)
        st.markdown(f"**[{article.title}]({article.url})**")
        st.caption(f"{article.source} — {article.published_at:%b %d, %Y %H:%M}")
        st.markdown(
            f":{bias_color(bias.bias_score)}[**{bias.bias_label.value}**] "
            f"({bias.bias_score}/100, confidence {bias.confidence:.0%})"
        )
        st.progress(bias.bias_score / 100)
        with st.expander("Neutral summary", expanded=False):
            st.write(article.summary.summary)
            for point in article.summary.key_points:
                st.markdown(f"- {point}")
        with st.expander("Why this rating?", expanded=False):
            st.write(bias.reasoning)
            if bias.key_indicators:
                st.caption("Indicators: " + ", ".join(bias.key_indicators))
            st.caption(f"Method: {bias.attribution.value}")


# ---------------------------------------------------------------------------
# UI
# ---------------------------------------------------------------------------

st.title("📰 News Bias Lens")
st.caption("Balanced news search with political bias scores and neutral summaries")

with st.sidebar:
    st.header("Search")
    query = st.text_input("Topic", value="latest news")
    sources = st.text_input("Limit to domains (comma-separated)", placeholder="reuters.com,apnews.com")
    limit = st.slider("Articles", min_value=4, max_value=20, value=12)
    search_btn = st.button("Search", type="primary", use_container_width=True)

    st.divider()
    bias_filter = st.radio(
        "Bias filter",
        options=["all", "liberal", "center", "conservative"],
        format_func=lambda f: {"all": "All", "liberal": "Liberal (0-40)", "center": "Center (41-60)", "conservative": "Conservative (61-100)"}[f],
    )

    st.divider()
    st.caption("**How it works:**")
    st.caption("1. Searches left, right and centre outlets in parallel")
    st.caption("2. An LLM scores each article's bias from 0 (left) to 100 (right)")
    st.caption("3. Falls back to outlet reputation, then keyword heuristics")
    st.caption("4. Writes a neutral summary of each article")

if search_btn or "result" not in st.session_state:
    with st.spinner("Searching and analyzing..."):
        st.session_state["result"] = run_search(query, sources, limit)
        st.session_state["page"] = 1

result = st.session_state["result"]

if result.used_fallback_data:
    st.warning("News search is unavailable right now; showing placeholder articles.")
for failure in result.failures:
    st.error(f"Could not analyze {failure.url}: {failure.error}")

filtered = [a for a in result.articles if matches_bias_filter(a.bias.bias_score, bias_filter)]
total_pages = max(1, math.ceil(len(filtered) / ARTICLES_PER_PAGE))
page = min(st.session_state.get("page", 1), total_pages)

start = (page - 1) * ARTICLES_PER_PAGE
current = filtered[start:start + ARTICLES_PER_PAGE]

if not current:
    st.info("No articles match the selected filter.")

cols = st.columns(3)
for i, article in enumerate(current):
    with cols[i % 3]:
        render_article(article)

if total_pages > 1:
    prev_col, info_col, next_col = st.columns([1, 2, 1])
    with prev_col:
        if st.button("← Previous", disabled=page <= 1):
            st.session_state["page"] = page - 1
            st.rerun()
    with info_col:
        st.caption(f"Page {page} of {total_pages}")
    with next_col:
        if st.button("Next →", disabled=page >= total_pages):
            st.session_state["page"] = page + 1
            st.rerun()
