#!/usr/bin/env python3
"""
Bias Cascade Validation Script

Runs each tier of the bias cascade against a small golden set of articles
with known leanings and reports how often each tier lands in the expected
bucket (liberal / center / conservative).

The keyword tier runs offline. The direct and source+content tiers call the
configured OpenAI model and need OPENAI_API_KEY.

Usage:
    python verify_bias_cascade.py [--offline] [--verbose]

Options:
    --offline   Only run the keyword tier
    --verbose   Print detailed results for each article
"""

import argparse
import asyncio
import logging
import sys

from bias_analyzer import ContentBiasAnalyzer
from cache import TTLCache
from keyword_scorer import KeywordBiasScorer
from llm_client import LLMClient
from schemas import BiasAssessment, matches_bias_filter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)


# =============================================================================
# Golden Dataset
# =============================================================================

# Each entry: (source, title, content, expected bucket)
GOLDEN_DATASET = [
    (
        "huffpost",
        "Climate activists demand action as corporate greed fuels wealth gap",
        """Progressive lawmakers joined activists on Saturday to call for a green
        new deal, arguing that vulnerable communities bear the brunt of climate
        change while corporate greed widens the wealth gap. Organizers said social
        justice and workers rights must be at the centre of any renewable energy
        transition.""",
        "liberal",
    ),
    (
        "motherjones",
        "Voting rights advocates warn of new barriers for marginalized voters",
        """Civil rights groups say a wave of new state laws will make it harder for
        marginalized communities to vote. Advocates argue the measures roll back
        decades of progress on voting rights and disproportionately affect
        minority voters.""",
        "liberal",
    ),
    (
        "foxnews",
        "Border security crisis deepens as illegal immigration surges",
        """Republicans blasted the administration on Monday over border security,
        saying illegal immigration has reached record levels. Lawmakers called for
        law and order and more funding for police and the military, warning that
        national security is at stake.""",
        "conservative",
    ),
    (
        "dailywire",
        "Tax cuts and deregulation credited for small business boom",
        """Conservative economists say tax cuts and deregulation have unleashed the
        free market, with small business owners and job creators reporting strong
        growth. Critics of government spending argue fiscal responsibility must
        remain the priority.""",
        "conservative",
    ),
    (
        "apnews",
        "City council approves new park budget",
        """The city council voted 7-2 on Tuesday to approve a budget for a new public
        park. Officials said construction is expected to begin next spring. The
        project was confirmed by the parks department, which reported that the
        total cost would be $4.2 million.""",
        "center",
    ),
    (
        "reuters",
        "Central bank holds rates steady",
        """The central bank left its benchmark rate unchanged on Wednesday, in line
        with analyst expectations. Officials said data shows inflation easing
        gradually, and a study finds wage growth has stabilized over the past
        quarter.""",
        "center",
    ),
]


# =============================================================================
# Validation Logic
# =============================================================================


def check(assessment: BiasAssessment, expected: str) -> bool:
    return matches_bias_filter(assessment.bias_score, expected)


def run_keyword_tier(verbose: bool = False) -> float:
    scorer = KeywordBiasScorer()
    correct = 0

    print("\n" + "=" * 70)
    print("KEYWORD TIER")
    print("=" * 70)

    for i, (source, title, content, expected) in enumerate(GOLDEN_DATASET, 1):
        assessment = scorer.assess_by_keywords(title, content, source)
        ok = check(assessment, expected)
        correct += ok
        status = "✓" if ok else "✗"
        print(f"[{i}/{len(GOLDEN_DATASET)}] {status} {source}: expected {expected}, "
              f"got {assessment.bias_score} ({assessment.bias_label.value})")
        if verbose:
            print(f"    {assessment.reasoning}")

    return correct / len(GOLDEN_DATASET)


async def run_llm_tiers(verbose: bool = False) -> dict[str, float]:
    analyzer = ContentBiasAnalyzer(LLMClient(), TTLCache())
    scores = {"direct": 0, "source+content": 0}

    for tier in scores:
        print("\n" + "=" * 70)
        print(f"{tier.upper()} TIER")
        print("=" * 70)

        for i, (source, title, content, expected) in enumerate(GOLDEN_DATASET, 1):
            if tier == "direct":
                result = await analyzer.try_direct(title, content, source)
            else:
                result = await analyzer.try_source_content(source, title, content)

            if not result.ok:
                print(f"[{i}/{len(GOLDEN_DATASET)}] ✗ {source}: tier failed ({result.reason})")
                continue

            assessment = result.assessment
            ok = check(assessment, expected)
            scores[tier] += ok
            status = "✓" if ok else "✗"
            print(f"[{i}/{len(GOLDEN_DATASET)}] {status} {source}: expected {expected}, "
                  f"got {assessment.bias_score} ({assessment.bias_label.value}, "
                  f"conf {assessment.confidence:.2f})")
            if verbose:
                print(f"    {assessment.reasoning}")
                print(f"    Indicators: {', '.join(assessment.key_indicators)}")

    return {tier: correct / len(GOLDEN_DATASET) for tier, correct in scores.items()}


def main():
    """Main entry point for the validation script."""
    parser = argparse.ArgumentParser(
        description="Validate the bias cascade tiers against a golden dataset"
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Only run the keyword tier",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print detailed results for each article",
    )
    args = parser.parse_args()

    accuracies = {"keyword": run_keyword_tier(verbose=args.verbose)}
    if not args.offline:
        accuracies.update(asyncio.run(run_llm_tiers(verbose=args.verbose)))

    print("\n" + "=" * 70)
    print("SUMMARY")
    print("=" * 70)
    for tier, accuracy in accuracies.items():
        print(f"{tier:>15}: {accuracy:.1%}")

    if min(accuracies.values()) < 0.5:
        print("\n⚠️  WARNING: a tier is below the 50% threshold")
        sys.exit(1)
    else:
        print("\n✓ Validation passed")
        sys.exit(0)


if __name__ == "__main__":
    main()
