"""Deterministic rating + keyword sentiment scorer.

Used whenever the external classifier cannot provide a result. Output is a
fully populated Classification whose label always agrees with its score:
negative below 0.4, neutral from 0.4 to 0.6, positive above 0.6.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from .constants import AnalysisConstants
from .lexicon import Lexicon, default_lexicon, match_keywords, contains_term
from .models import Classification, Review, utcnow

logger = logging.getLogger(__name__)

FALLBACK_REASON = "AI analysis unavailable, keyword-based analysis used"

_DEFAULT_LEXICON = default_lexicon()


def rating_baseline(rating: Optional[int]) -> Tuple[str, float]:
    """Label and score implied by the star rating alone."""
    if rating is None:
        return "neutral", AnalysisConstants.SCORE_NEUTRAL
    if rating >= 4:
        return "positive", AnalysisConstants.SCORE_RATING_5 if rating == 5 else AnalysisConstants.SCORE_RATING_4
    if rating <= 2:
        return "negative", AnalysisConstants.SCORE_RATING_1 if rating == 1 else AnalysisConstants.SCORE_RATING_2
    return "neutral", AnalysisConstants.SCORE_NEUTRAL


def label_for_score(score: float) -> str:
    if score < 0.4:
        return "negative"
    if score > 0.6:
        return "positive"
    return "neutral"


def _apply_keyword_shift(sentiment: str, score: float, positive: float, negative: float) -> Tuple[str, float]:
    difference = round(positive - negative, 2)
    if abs(difference) <= AnalysisConstants.KEYWORD_OVERRIDE_THRESHOLD:
        return sentiment, score
    # Keep the score inside the band of the overriding label.
    if difference > 0:
        return "positive", max(min(score + difference, 1.0), AnalysisConstants.POSITIVE_BAND_MIN)
    return "negative", min(max(score + difference, 0.0), AnalysisConstants.NEGATIVE_BAND_MAX)


def _dedupe(items):
    return list(dict.fromkeys(items))


def _summary(sentiment: str, rating: Optional[int], keywords) -> str:
    stars = f"★{rating if rating is not None else 3}"
    shown = keywords[:AnalysisConstants.MAX_SUMMARY_KEYWORDS]
    if sentiment == "positive":
        text = f"{stars} positive review"
    elif sentiment == "negative":
        text = f"{stars} improvement request"
    else:
        return f"{stars} neutral review"
    if shown:
        text += f" ({', '.join(shown)})"
    return text


def fallback_sentiment(review: Review, lexicon: Optional[Lexicon] = None,
                       analyzed_at: Optional[datetime] = None) -> Classification:
    """Classify one review from its rating and keyword dictionaries."""
    lexicon = lexicon or _DEFAULT_LEXICON
    text = f"{review.title or ''} {review.content or ''}".lower()

    sentiment, score = rating_baseline(review.rating)

    positive_score, positive_terms = match_keywords(text, lexicon.positive_keywords)
    negative_score, negative_terms = match_keywords(text, lexicon.negative_keywords)
    functional_terms = [t for t in lexicon.functional_keywords if contains_term(text, t)]
    topics = _dedupe(lexicon.functional_keywords[t] for t in functional_terms)

    sentiment, score = _apply_keyword_shift(sentiment, score, positive_score, negative_score)
    keywords = _dedupe(positive_terms + negative_terms + functional_terms)

    issues = []
    praises = []
    if sentiment == "negative":
        issues = [rule.phrase for rule in lexicon.issue_rules if rule.matches(text)] or [lexicon.generic_issue]
    elif sentiment == "positive":
        praises = [rule.phrase for rule in lexicon.praise_rules if rule.matches(text)] or [lexicon.generic_praise]

    return Classification(
        sentiment=sentiment,
        sentiment_score=round(score, 2),
        keywords=keywords[:AnalysisConstants.MAX_KEYWORDS],
        topics=topics[:AnalysisConstants.MAX_TOPICS],
        issues=issues,
        praises=praises,
        summary=_summary(sentiment, review.rating, keywords),
        used_fallback=True,
        fallback_reason=FALLBACK_REASON,
        analyzed_at=analyzed_at or utcnow(),
    )
