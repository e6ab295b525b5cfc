"""Basic usage examples for ReviewInsight."""

import os
from reviewinsight import AppStoreService, LLMServiceFactory, ReviewAnalysisPipeline, TTLCache
from reviewinsight.core.filters import FilterCriteria, filter_reviews
from reviewinsight.core.statistics import keyword_analysis

APP_ID = "310633997"


def example_sentiment_analysis(pipeline):
    """Example: classify the latest reviews of an app."""
    print(f"🔍 Analyzing reviews for app {APP_ID}")

    report = pipeline.analyze(APP_ID, limit=40)
    stats = report.statistics
    print(f"📊 Classified {stats.total} reviews ({report.used_fallback_count} via keyword fallback)")
    print(f"  positive {stats.positive_percentage}% / negative {stats.negative_percentage}% / neutral {stats.neutral_percentage}%")

    top = sorted(stats.keyword_frequency.items(), key=lambda kv: kv[1], reverse=True)[:5]
    print(f"🏷️  Top keywords: {', '.join(f'{k} ({n})' for k, n in top)}")
    return report


def example_problem_analysis(pipeline):
    """Example: cluster negative feedback from the cached analysis."""
    print("\n🔧 Running problem analysis")

    result = pipeline.analyze_problems(APP_ID, limit=40)
    print(f"  method: {'keyword fallback' if result.used_fallback else 'AI'}")
    for category in result.problem_categories:
        print(f"  [{category.priority}] {category.name}: {category.frequency}")


def example_filtering(report):
    """Example: filter and keyword statistics on classified reviews."""
    print("\n🔎 Negative reviews with 1 or 2 stars")

    result = filter_reviews(report.reviews, FilterCriteria(sentiment="negative", ratings={1, 2}))
    print(f"  {result.count} of {result.original_count} reviews")

    analysis = keyword_analysis(report.reviews, min_frequency=2)
    print(f"  {analysis['totalUniqueKeywords']} unique keywords")


if __name__ == "__main__":
    if not os.getenv("OPENAI_API_KEY"):
        print("ℹ️  OPENAI_API_KEY not set, running on the keyword fallback only")

    print("🚀 ReviewInsight Examples")
    print("=" * 50)

    pipeline = ReviewAnalysisPipeline(AppStoreService(), LLMServiceFactory.create(), cache=TTLCache(3600))
    report = example_sentiment_analysis(pipeline)
    example_problem_analysis(pipeline)
    example_filtering(report)
    print("\n✅ All examples completed successfully!")
