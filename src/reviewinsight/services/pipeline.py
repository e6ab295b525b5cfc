"""Review analysis pipeline: fetch, classify, aggregate, cluster, cache."""

import logging
import time
from typing import List, Optional, Sequence

from ..core.cache import TTLCache
from ..core.config import settings
from ..core.constants import CacheConstants
from ..core.exceptions import FetchError, InputValidationError
from ..core.lexicon import Lexicon, load_lexicon
from ..core.models import AnalysisReport, ClassifiedReview, ProblemAnalysisResult, Review, utcnow
from ..core.problems import baseline_problem_analysis
from ..core.statistics import generate_statistics
from ..core.timeouts import try_with_timeout
from .classifier import BatchSentimentClassifier
from .problem_analyzer import ProblemAnalyzer, validate_classified

logger = logging.getLogger(__name__)


def create_cache() -> TTLCache:
    """Process-wide cache built from settings. Create once and pass it around."""
    return TTLCache(settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)


class ReviewAnalysisPipeline:
    """Coordinates the review source, classifier, statistics and problem analyzer.

    The cache is injected so one instance can be shared by every handler in
    a process. Concurrent requests for the same key are not deduplicated;
    the last write wins.
    """

    def __init__(self, source, llm_service, cache: Optional[TTLCache] = None,
                 lexicon: Optional[Lexicon] = None,
                 classifier: Optional[BatchSentimentClassifier] = None,
                 problem_analyzer: Optional[ProblemAnalyzer] = None,
                 analysis_timeout: Optional[float] = None):
        self.source = source
        self.cache = cache if cache is not None else create_cache()
        self.lexicon = lexicon or load_lexicon(settings.lexicon_file)
        self.classifier = classifier or BatchSentimentClassifier(llm_service, lexicon=self.lexicon)
        self.problem_analyzer = problem_analyzer or ProblemAnalyzer(llm_service, lexicon=self.lexicon)
        self.analysis_timeout = analysis_timeout if analysis_timeout is not None else settings.analysis_timeout

    @staticmethod
    def validate_request(app_id: str, limit: int) -> None:
        if not app_id or not str(app_id).isdigit():
            raise InputValidationError("App ID must be a number")
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= settings.max_limit:
            raise InputValidationError(f"Limit must be a number between 1 and {settings.max_limit}")

    def fetch_reviews(self, app_id: str, limit: Optional[int] = None, force_refresh: bool = False) -> List[Review]:
        limit = settings.default_limit if limit is None else limit
        self.validate_request(app_id, limit)
        key = CacheConstants.REVIEWS_KEY.format(app_id=app_id, limit=limit)
        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Cache hit: {key}")
                return cached

        logger.info(f"Fetching reviews for app {app_id} with limit {limit}")
        reviews = self.source.fetch_reviews(app_id, limit)
        if not reviews:
            raise FetchError("No reviews found for this app")
        self.cache.set(key, reviews)
        return reviews

    def analyze(self, app_id: str, limit: Optional[int] = None) -> AnalysisReport:
        """Fetch and classify reviews, then cache them with their statistics."""
        limit = settings.default_limit if limit is None else limit
        self.validate_request(app_id, limit)
        logger.info(f"Starting sentiment analysis for app {app_id}")

        reviews = self.source.fetch_reviews(app_id, limit)
        if not reviews:
            raise FetchError("No reviews found for analysis")

        classified = self.classifier.classify(reviews)
        report = AnalysisReport(
            app_id=app_id,
            limit=limit,
            reviews=classified,
            statistics=generate_statistics(classified),
            analyzed_at=utcnow(),
        )
        self.cache.set(CacheConstants.ANALYSIS_KEY.format(app_id=app_id, limit=limit), report)
        return report

    def get_cached_analysis(self, app_id: str, limit: Optional[int] = None) -> Optional[AnalysisReport]:
        limit = settings.default_limit if limit is None else limit
        return self.cache.get(CacheConstants.ANALYSIS_KEY.format(app_id=app_id, limit=limit))

    def analyze_problems(self, app_id: str, limit: Optional[int] = None,
                         classified: Optional[Sequence[ClassifiedReview]] = None) -> ProblemAnalysisResult:
        """Problem analysis over provided reviews, or the cached analysis for app/limit."""
        start = time.monotonic()
        limit = settings.default_limit if limit is None else limit
        self.validate_request(app_id, limit)

        if classified:
            logger.info(f"Using provided analyzed reviews: {len(classified)} reviews")
            reviews = validate_classified(classified)
        else:
            report = self.get_cached_analysis(app_id, limit)
            if report is None or not report.reviews:
                key = CacheConstants.ANALYSIS_KEY.format(app_id=app_id, limit=limit)
                logger.info(f"No analyzed reviews found in cache for key: {key}")
                raise InputValidationError("No analyzed reviews found. Please run sentiment analysis first.")
            reviews = report.reviews

        outcome = try_with_timeout(self.problem_analyzer.analyze, self.analysis_timeout, reviews,
                                   name="problem analysis request")
        if outcome.ok:
            result = outcome.value
        elif isinstance(outcome.error, InputValidationError):
            raise outcome.error
        else:
            logger.warning(f"Problem analysis failed or timed out: {outcome.reason}")
            result = baseline_problem_analysis(reviews, self.lexicon, reason=outcome.reason)
            result.fallback_reason = outcome.reason
            result.processing_time_ms = int((time.monotonic() - start) * 1000)

        logger.info(f"Analysis result: {len(result.problem_categories)} categories, "
                    f"{result.total_negative_reviews} negative reviews")
        self.cache.set(CacheConstants.PROBLEMS_KEY.format(app_id=app_id, limit=limit), result)
        return result

    def get_cached_problems(self, app_id: str, limit: Optional[int] = None) -> Optional[ProblemAnalysisResult]:
        limit = settings.default_limit if limit is None else limit
        return self.cache.get(CacheConstants.PROBLEMS_KEY.format(app_id=app_id, limit=limit))

    def clear_cache(self) -> int:
        """Drop every cached entry and report how many live ones there were."""
        size = self.cache.size
        self.cache.clear()
        logger.info(f"Cleared {size} cache entries")
        return size
