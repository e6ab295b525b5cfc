"""Batch sentiment classification with per-review fallback."""

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..core.config import settings
from ..core.exceptions import InputValidationError
from ..core.lexicon import Lexicon, default_lexicon
from ..core.models import Classification, ClassifiedReview, Review, utcnow
from ..core.schema import ParsedClassification, coerce_classification, parse_batch_response
from ..core.sentiment import fallback_sentiment, label_for_score
from ..core.timeouts import BoundedWorker, run_with_timeout

logger = logging.getLogger(__name__)

MISSING_RESULT_ERROR = "Analysis result not found in batch response."
LABEL_FALLBACK_REASON = "AI response had no valid sentiment label, rating baseline used"

# Score used when the AI gives a valid label but no usable score and the
# rating baseline disagrees with that label.
_LABEL_SCORES = {"positive": 0.8, "neutral": 0.5, "negative": 0.2}


def batch_items(batch: Sequence[Review]) -> List[Dict[str, Any]]:
    """Minimal fields sent to the external classifier."""
    return [{"id": r.id, "title": r.title, "content": r.content, "rating": r.rating} for r in batch]


class BatchSentimentClassifier:
    """Classifies reviews in fixed-size batches through an external service.

    Batches run one after another with a pause in between to keep the call
    rate down. All calls go through one worker thread, so a batch abandoned
    at its deadline still blocks the next call until it returns. Each call
    is bounded by `batch_timeout`, which is also handed to the service as a
    deadline. A failed batch falls back to the keyword scorer for every
    review in it, and a review missing from an otherwise good reply falls
    back on its own.
    """

    def __init__(self, llm_service, batch_size: Optional[int] = None, batch_timeout: Optional[float] = None,
                 batch_delay: Optional[float] = None, lexicon: Optional[Lexicon] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.llm_service = llm_service
        self.batch_size = batch_size or settings.batch_size
        self.batch_timeout = batch_timeout if batch_timeout is not None else settings.batch_timeout
        self.batch_delay = batch_delay if batch_delay is not None else settings.batch_delay
        self.lexicon = lexicon or default_lexicon()
        self._sleep = sleep
        self._worker = BoundedWorker("sentiment-batch")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    def classify(self, reviews: Sequence[Review]) -> List[ClassifiedReview]:
        """Classify every review; output order matches input order."""
        if reviews is None or isinstance(reviews, (str, bytes)):
            raise InputValidationError("reviews must be a sequence of Review objects")
        reviews = list(reviews)
        if not reviews:
            raise InputValidationError("reviews must not be empty")
        bad = [r for r in reviews if not isinstance(r, Review)]
        if bad:
            raise InputValidationError(f"{len(bad)} items are not Review objects")

        batches = [reviews[i:i + self.batch_size] for i in range(0, len(reviews), self.batch_size)]
        logger.info(f"Starting sentiment analysis for {len(reviews)} reviews in {len(batches)} batches")

        results: List[ClassifiedReview] = []
        for index, batch in enumerate(batches, 1):
            logger.info(f"Processing batch {index}/{len(batches)}")
            results.extend(self._classify_batch(batch))
            if index < len(batches) and self.batch_delay > 0:
                self._sleep(self.batch_delay)

        fallback_count = sum(1 for r in results if r.analysis.used_fallback)
        logger.info(f"Sentiment analysis completed. {len(results)} reviews processed, {fallback_count} via fallback")
        return results

    def _classify_batch(self, batch: List[Review]) -> List[ClassifiedReview]:
        try:
            deadline = time.monotonic() + self.batch_timeout
            text = run_with_timeout(self.llm_service.classify_batch, self.batch_timeout, batch_items(batch),
                                    deadline=deadline, name="sentiment batch", worker=self._worker)
            by_id = parse_batch_response(text)
        except Exception as e:
            logger.warning(f"Error processing batch: {e}. Falling back to keyword analysis for this batch.")
            return [self._fallback(review, str(e)) for review in batch]

        return [self._merge(review, by_id.get(review.id)) for review in batch]

    def _fallback(self, review: Review, error: str) -> ClassifiedReview:
        analysis = fallback_sentiment(review, self.lexicon)
        analysis.error = error
        return ClassifiedReview(review=review, analysis=analysis)

    def _merge(self, review: Review, entry: Optional[Dict[str, Any]]) -> ClassifiedReview:
        if entry is None:
            logger.debug(f"No result for review {review.id} in batch response")
            return self._fallback(review, MISSING_RESULT_ERROR)

        parsed = coerce_classification(entry)
        sentiment, score, reason = self._label_and_score(review, parsed)
        return ClassifiedReview(
            review=review,
            analysis=Classification(
                sentiment=sentiment,
                sentiment_score=score,
                keywords=parsed.keywords,
                topics=parsed.topics,
                issues=parsed.issues,
                praises=parsed.praises,
                summary=parsed.summary,
                used_fallback=False,
                fallback_reason=reason,
                analyzed_at=utcnow(),
            ),
        )

    def _label_and_score(self, review: Review, parsed: ParsedClassification):
        if not parsed.label_valid:
            baseline = fallback_sentiment(review, self.lexicon)
            return baseline.sentiment, baseline.sentiment_score, LABEL_FALLBACK_REASON
        if parsed.sentiment_score is not None:
            return parsed.sentiment, parsed.sentiment_score, None
        baseline = fallback_sentiment(review, self.lexicon)
        if label_for_score(baseline.sentiment_score) == parsed.sentiment:
            return parsed.sentiment, baseline.sentiment_score, None
        return parsed.sentiment, _LABEL_SCORES[parsed.sentiment], None
