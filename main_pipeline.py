"""
main_pipeline.py
The primary entry point for analyzing the news on a topic.
"""

import argparse
import asyncio
import json
import logging
import sys

from article_processor import ArticleProcessor
from config import BIAS_FILTERS
from schemas import NewsSearchResult

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def analyze_query(query: str, sources: str = "", limit: int = 10) -> NewsSearchResult:
    """
    Main logic flow:
    1. Search balanced news coverage for the query.
    2. Score each article's bias (direct -> source+content -> keyword).
    3. Summarize each article neutrally.
    """
    processor = ArticleProcessor.create()
    return await processor.search_and_process(query, sources=sources, limit=limit)


def print_report(result: NewsSearchResult, bias_filter: str = "all") -> None:
    articles = result.filter_by_bias(bias_filter)

    print("\n" + "=" * 80)
    print(f"NEWS BIAS REPORT: {result.query.upper()}")
    if result.used_fallback_data:
        print("(search unavailable - showing placeholder articles)")
    print("=" * 80 + "\n")

    if not articles:
        print("No articles match the selected filter.")

    for article in articles:
        bias = article.bias
        print(f"[{bias.bias_label.value} | {bias.bias_score}/100 | conf {bias.confidence:.2f} | {bias.attribution.value}]")
        print(f"{article.title}")
        print(f"  {article.source} - {article.published_at:%Y-%m-%d %H:%M} - {article.url}")
        print(f"  Summary: {article.summary.summary}")
        print(f"  Why: {bias.reasoning}")
        print()

    for failure in result.failures:
        print(f"FAILED: {failure.url}: {failure.error}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="News Bias Analysis Pipeline")
    parser.add_argument("query", nargs="?", default="latest news", help="What to search for")
    parser.add_argument("--sources", default="", help="Comma-separated domains for the mixed search batch")
    parser.add_argument("--limit", type=int, default=10, help="Maximum number of articles")
    parser.add_argument(
        "--bias",
        choices=["all", *BIAS_FILTERS],
        default="all",
        help="Only show articles in this bias bucket",
    )
    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of a report")

    args = parser.parse_args(argv)

    result = asyncio.run(analyze_query(args.query, sources=args.sources, limit=args.limit))

    if args.json:
        payload = result.model_dump(mode="json")
        payload["articles"] = [
            a.model_dump(mode="json") for a in result.filter_by_bias(args.bias)
        ]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print_report(result, args.bias)
    return 0


if __name__ == "__main__":
    sys.exit(main())
