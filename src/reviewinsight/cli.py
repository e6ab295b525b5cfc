"""Command-line interface for ReviewInsight."""

import argparse
import json
import logging
import sys
from datetime import datetime

from .core.config import settings
from .core.constants import AnalysisConstants, FileConstants
from .core.exceptions import FetchError, InputValidationError
from .core.filters import FilterCriteria, filter_reviews
from .core.statistics import keyword_analysis
from .services.appstore_client import AppStoreService
from .services.llm import LLMServiceFactory
from .services.pipeline import ReviewAnalysisPipeline
from .utils.data_prep import export_to_json, load_classified_reviews, prepare_export

logger = logging.getLogger(__name__)


def setup_logging():
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=FileConstants.LOG_FORMAT
    )


def build_pipeline() -> ReviewAnalysisPipeline:
    return ReviewAnalysisPipeline(AppStoreService(), LLMServiceFactory.create())


def _parse_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid ISO date: {value}")


def _print_problems(result):
    method = "keyword fallback" if result.used_fallback else "AI"
    print(f"\nProblem analysis ({method}, {result.processing_time_ms}ms):")
    print(f"  {result.overall_summary}")
    for category in result.problem_categories:
        print(f"  [{category.priority}] {category.name}: {category.frequency}")
        for solution in category.solutions:
            print(f"      - {solution.description} (effort {solution.effort}, "
                  f"impact {solution.impact}, {solution.timeline} term)")
    if result.quick_wins:
        print("  Quick wins:")
        for item in result.quick_wins:
            print(f"    * {item}")


def cmd_samples(args):
    """Samples command."""
    for app_id in AppStoreService().get_sample_app_ids():
        print(app_id)


def cmd_info(args):
    """Info command."""
    info = AppStoreService().get_app_info(args.app_id)
    print(json.dumps(info.to_dict(), indent=2, ensure_ascii=False))


def cmd_analyze(args):
    """Analyze command: classify reviews and optionally cluster problems."""
    pipeline = build_pipeline()

    print(f"Analyzing app {args.app_id} with limit {args.limit}...")
    report = pipeline.analyze(args.app_id, args.limit)
    stats = report.statistics
    print(f"Analyzed {stats.total} reviews ({report.used_fallback_count} via keyword fallback)")
    print(f"  Positive: {stats.positive} ({stats.positive_percentage}%)")
    print(f"  Negative: {stats.negative} ({stats.negative_percentage}%)")
    print(f"  Neutral:  {stats.neutral} ({stats.neutral_percentage}%)")
    print(f"  Average rating: {stats.average_rating}, average sentiment score: {stats.average_sentiment_score}")

    problems = None
    if args.problems:
        problems = pipeline.analyze_problems(args.app_id, args.limit)
        _print_problems(problems)

    if args.out:
        export_to_json(prepare_export(report, problems), args.out)
        print(f"Results exported to {args.out}")


def cmd_problems(args):
    """Problem analysis over an exported analysis file."""
    reviews = load_classified_reviews(args.input_file)
    with open(args.input_file, 'r', encoding='utf-8') as f:
        exported = json.load(f)
    app_id = str(exported.get("appId", "0")) if isinstance(exported, dict) else "0"

    pipeline = build_pipeline()
    limit = exported.get("limit") if isinstance(exported, dict) else None
    limit = limit or max(1, min(len(reviews), settings.max_limit))
    result = pipeline.analyze_problems(app_id, limit, classified=reviews)
    _print_problems(result)
    if args.out:
        export_to_json(result.to_dict(), args.out)
        print(f"Results exported to {args.out}")


def cmd_filter(args):
    """Filter an exported analysis."""
    reviews = load_classified_reviews(args.input_file)
    criteria = FilterCriteria(
        sentiment=args.sentiment,
        ratings=frozenset(args.rating or []),
        keywords=args.keyword or [],
        start=args.start,
        end=args.end,
    )
    result = filter_reviews(reviews, criteria)
    print(f"{result.count} of {result.original_count} reviews match")
    for r in result.reviews:
        print(f"  [{r.analysis.sentiment}] ★{r.rating} {r.review.title}")
    if args.out:
        export_to_json(result.to_dict(), args.out)
        print(f"Results exported to {args.out}")


def cmd_keywords(args):
    """Keyword analysis over an exported analysis."""
    reviews = load_classified_reviews(args.input_file)
    analysis = keyword_analysis(reviews, args.min_frequency)
    print(f"{analysis['totalUniqueKeywords']} unique keywords, {analysis['totalUniqueTopics']} unique topics")
    for stat in analysis["keywords"]:
        print(f"  {stat['keyword']}: {stat['frequency']} (avg score {stat['avgSentimentScore']})")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="ReviewInsight - App Store review sentiment and problem analysis")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('samples', help='List sample app ids')

    info_parser = subparsers.add_parser('info', help='Show app metadata')
    info_parser.add_argument('app_id', help='App Store app id')

    analyze_parser = subparsers.add_parser('analyze', help='Classify reviews for an app')
    analyze_parser.add_argument('app_id', help='App Store app id')
    analyze_parser.add_argument('--limit', type=int, default=settings.default_limit, help='Number of reviews to analyze')
    analyze_parser.add_argument('--problems', action='store_true', help='Also run problem analysis')
    analyze_parser.add_argument('--out', help='Output JSON file')

    problems_parser = subparsers.add_parser('problems', help='Problem analysis of an exported analysis')
    problems_parser.add_argument('--in', dest='input_file', required=True, help='Exported analysis JSON')
    problems_parser.add_argument('--out', help='Output JSON file')

    filter_parser = subparsers.add_parser('filter', help='Filter an exported analysis')
    filter_parser.add_argument('--in', dest='input_file', required=True, help='Exported analysis JSON')
    filter_parser.add_argument('--sentiment', default='all', choices=('all',) + AnalysisConstants.SENTIMENTS)
    filter_parser.add_argument('--rating', type=int, action='append', help='Keep this star rating (repeatable)')
    filter_parser.add_argument('--keyword', action='append', help='Keep reviews mentioning this keyword (repeatable)')
    filter_parser.add_argument('--start', type=_parse_date, help='Earliest update time (ISO 8601)')
    filter_parser.add_argument('--end', type=_parse_date, help='Latest update time (ISO 8601)')
    filter_parser.add_argument('--out', help='Output JSON file')

    keywords_parser = subparsers.add_parser('keywords', help='Keyword analysis of an exported analysis')
    keywords_parser.add_argument('--in', dest='input_file', required=True, help='Exported analysis JSON')
    keywords_parser.add_argument('--min-frequency', type=int, default=AnalysisConstants.DEFAULT_MIN_FREQUENCY)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setup_logging()

    commands = {
        'samples': cmd_samples,
        'info': cmd_info,
        'analyze': cmd_analyze,
        'problems': cmd_problems,
        'filter': cmd_filter,
        'keywords': cmd_keywords,
    }
    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
    except (FetchError, InputValidationError) as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read input: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
