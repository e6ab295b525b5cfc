"""Ad hoc filtering of classified reviews."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional, Sequence

from .constants import AnalysisConstants
from .exceptions import InputValidationError
from .models import ClassifiedReview


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass
class FilterCriteria:
    """Filter settings. Every criterion left at its default is a no-op."""
    sentiment: str = "all"
    ratings: FrozenSet[int] = frozenset()
    keywords: List[str] = field(default_factory=list)
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        if self.sentiment != "all" and self.sentiment not in AnalysisConstants.SENTIMENTS:
            raise InputValidationError(f"Unknown sentiment filter: {self.sentiment}")
        self.ratings = frozenset(self.ratings or ())
        self.keywords = [k for k in (self.keywords or []) if k]


@dataclass
class FilterResult:
    reviews: List[ClassifiedReview]
    count: int
    original_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reviews": [r.to_dict() for r in self.reviews],
            "count": self.count,
            "originalCount": self.original_count,
        }


def _matches_keywords(review: ClassifiedReview, keywords: List[str]) -> bool:
    haystacks = [k.lower() for k in review.analysis.keywords]
    haystacks.append((review.review.title or "").lower())
    haystacks.append((review.review.content or "").lower())
    return any(k.lower() in h for k in keywords for h in haystacks)


def _in_range(review: ClassifiedReview, start: datetime, end: datetime) -> bool:
    updated = review.review.updated
    if updated is None:
        return False
    return _aware(start) <= _aware(updated) <= _aware(end)


def filter_reviews(reviews: Sequence[ClassifiedReview], criteria: Optional[FilterCriteria] = None) -> FilterResult:
    """Apply all criteria (ANDed) and report kept vs. original counts."""
    criteria = criteria or FilterCriteria()
    kept = list(reviews)

    if criteria.sentiment != "all":
        kept = [r for r in kept if r.analysis.sentiment == criteria.sentiment]
    if criteria.ratings:
        kept = [r for r in kept if r.rating in criteria.ratings]
    if criteria.keywords:
        kept = [r for r in kept if _matches_keywords(r, criteria.keywords)]
    if criteria.start is not None and criteria.end is not None:
        kept = [r for r in kept if _in_range(r, criteria.start, criteria.end)]

    return FilterResult(reviews=kept, count=len(kept), original_count=len(reviews))
