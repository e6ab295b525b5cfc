"""Problem clustering: deterministic baseline first, AI refinement second."""

import logging
import time
from typing import List, Optional, Sequence

from ..core.config import settings
from ..core.exceptions import InputValidationError
from ..core.lexicon import Lexicon, default_lexicon
from ..core.models import ClassifiedReview, ProblemAnalysisResult, utcnow
from ..core.problems import baseline_problem_analysis, negative_reviews, no_problems_result
from ..core.schema import coerce_problem_analysis, extract_json_object
from ..core.timeouts import BoundedWorker, try_with_timeout
from .llm import build_problem_prompt

logger = logging.getLogger(__name__)


def validate_classified(reviews) -> List[ClassifiedReview]:
    if not reviews:
        raise InputValidationError("Classified reviews are required for problem analysis")
    reviews = list(reviews)
    if not all(isinstance(r, ClassifiedReview) for r in reviews):
        raise InputValidationError("Problem analysis expects ClassifiedReview objects")
    return reviews


class ProblemAnalyzer:
    """Clusters negative feedback into problem categories with solutions.

    The keyword baseline is computed before the AI call is issued, so a
    failed or slow refinement never delays the fallback.
    """

    def __init__(self, llm_service, timeout: Optional[float] = None, lexicon: Optional[Lexicon] = None):
        self.llm_service = llm_service
        self.timeout = timeout if timeout is not None else settings.problem_timeout
        self.lexicon = lexicon or default_lexicon()
        self._worker = BoundedWorker("problem-refinement")

    def analyze(self, reviews: Sequence[ClassifiedReview]) -> ProblemAnalysisResult:
        start = time.monotonic()
        reviews = validate_classified(reviews)
        negatives = negative_reviews(reviews)
        logger.info(f"Found {len(negatives)} negative reviews out of {len(reviews)} total reviews")

        if not negatives:
            logger.info("No negative reviews found, returning positive analysis")
            return self._finish(no_problems_result(len(reviews)), reviews, negatives, start)

        logger.info("Generating keyword analysis as baseline...")
        baseline = baseline_problem_analysis(reviews, self.lexicon)

        logger.info(f"Attempting AI problem analysis with {self.timeout:g}s timeout...")
        deadline = time.monotonic() + self.timeout
        outcome = try_with_timeout(self._refine, self.timeout, negatives, reviews, deadline,
                                   name="problem analysis", worker=self._worker)
        if outcome.ok:
            result = outcome.value
            result.used_fallback = False
        else:
            logger.warning(f"AI problem analysis failed or timed out: {outcome.reason}")
            result = baseline
            result.error = outcome.reason

        result = self._finish(result, reviews, negatives, start)
        logger.info(f"Problem analysis completed in {result.processing_time_ms}ms "
                    f"using {'fallback' if result.used_fallback else 'AI'} method")
        return result

    def _refine(self, negatives: List[ClassifiedReview], reviews: List[ClassifiedReview],
                deadline: float) -> ProblemAnalysisResult:
        issues = [i for r in negatives for i in r.analysis.issues]
        keywords = [k for r in negatives for k in r.analysis.keywords]
        prompt = build_problem_prompt(issues, keywords, len(negatives), len(reviews))
        text = self.llm_service.refine_problems(prompt, deadline=deadline)
        return coerce_problem_analysis(extract_json_object(text))

    @staticmethod
    def _finish(result: ProblemAnalysisResult, reviews, negatives, start: float) -> ProblemAnalysisResult:
        result.total_reviews = len(reviews)
        result.total_negative_reviews = len(negatives)
        result.analyzed_at = utcnow()
        result.processing_time_ms = int((time.monotonic() - start) * 1000)
        return result
