"""Data models for ReviewInsight."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

__all__ = [
    "utcnow",
    "isoformat",
    "Review",
    "AppMetadata",
    "Classification",
    "ClassifiedReview",
    "Solution",
    "ProblemCategory",
    "ProblemAnalysisResult",
    "ReviewStatistics",
    "AnalysisReport",
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Review:
    """A single store review. Owned by the review source, read-only here."""
    id: str
    title: str
    content: str
    rating: Optional[int]
    author: str = ""
    version: str = ""
    updated: Optional[datetime] = None
    fetched_at: Optional[datetime] = None

    @property
    def text(self) -> str:
        return f"{self.title or ''} {self.content or ''}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "rating": self.rating,
            "author": self.author,
            "version": self.version,
            "updated": isoformat(self.updated),
            "createdAt": isoformat(self.fetched_at),
        }


@dataclass
class AppMetadata:
    """Store metadata for the app whose reviews are analyzed."""
    id: str
    name: str
    bundle_id: str = ""
    version: str = ""
    description: str = ""
    average_user_rating: Optional[float] = None
    user_rating_count: Optional[int] = None
    genres: List[str] = field(default_factory=list)
    release_date: Optional[str] = None
    current_version_release_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "bundleId": self.bundle_id,
            "version": self.version,
            "description": self.description,
            "averageUserRating": self.average_user_rating,
            "userRatingCount": self.user_rating_count,
            "genres": list(self.genres),
            "releaseDate": self.release_date,
            "currentVersionReleaseDate": self.current_version_release_date,
        }


@dataclass
class Classification:
    """Sentiment classification attached to a review."""
    sentiment: str  # "positive", "negative" or "neutral"
    sentiment_score: float  # 0.0 .. 1.0, 1.0 = most positive
    keywords: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    praises: List[str] = field(default_factory=list)
    summary: str = ""
    used_fallback: bool = False
    error: Optional[str] = None
    fallback_reason: Optional[str] = None
    analyzed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "sentiment": self.sentiment,
            "sentimentScore": self.sentiment_score,
            "keywords": list(self.keywords),
            "topics": list(self.topics),
            "issues": list(self.issues),
            "praises": list(self.praises),
            "summary": self.summary,
            "fallback": self.used_fallback,
            "analyzedAt": isoformat(self.analyzed_at),
        }
        if self.error:
            data["error"] = self.error
        if self.fallback_reason:
            data["fallbackReason"] = self.fallback_reason
        return data


@dataclass
class ClassifiedReview:
    """A review together with its classification."""
    review: Review
    analysis: Classification

    @property
    def id(self) -> str:
        return self.review.id

    @property
    def rating(self) -> Optional[int]:
        return self.review.rating

    @property
    def sentiment(self) -> str:
        return self.analysis.sentiment

    def to_dict(self) -> Dict[str, Any]:
        data = self.review.to_dict()
        data["analysis"] = self.analysis.to_dict()
        return data


@dataclass
class Solution:
    """Remediation suggestion for a problem category."""
    description: str
    effort: str = "medium"  # high / medium / low
    impact: str = "medium"  # high / medium / low
    timeline: str = "medium"  # short / medium / long

    def to_dict(self) -> Dict[str, Any]:
        return {
            "solution": self.description,
            "effort": self.effort,
            "impact": self.impact,
            "timeline": self.timeline,
        }


@dataclass
class ProblemCategory:
    """Named cluster of related negative-review issues."""
    name: str
    description: str = ""
    issues: List[str] = field(default_factory=list)
    frequency: int = 0
    priority: str = "medium"
    solutions: List[Solution] = field(default_factory=list)
    affected_reviews: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.name,
            "description": self.description,
            "issues": list(self.issues),
            "frequency": self.frequency,
            "priority": self.priority,
            "affectedReviews": self.affected_reviews,
            "solutions": [s.to_dict() for s in self.solutions],
        }


@dataclass
class ProblemAnalysisResult:
    """Problem clustering output for one set of classified reviews."""
    problem_categories: List[ProblemCategory]
    overall_summary: str
    quick_wins: List[str]
    long_term_goals: List[str]
    total_reviews: int = 0
    total_negative_reviews: int = 0
    used_fallback: bool = False
    fallback_reason: Optional[str] = None
    error: str = ""
    analyzed_at: Optional[datetime] = None
    processing_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "problemCategories": [c.to_dict() for c in self.problem_categories],
            "overallSummary": self.overall_summary,
            "quickWins": list(self.quick_wins),
            "longTermGoals": list(self.long_term_goals),
            "totalReviews": self.total_reviews,
            "totalNegativeReviews": self.total_negative_reviews,
            "usedFallback": self.used_fallback,
            "analyzedAt": isoformat(self.analyzed_at),
            "processingTime": self.processing_time_ms,
        }
        if self.used_fallback:
            data["fallbackReason"] = self.fallback_reason or ""
            data["error"] = self.error
        return data


@dataclass
class ReviewStatistics:
    """Aggregate statistics over classified reviews."""
    total: int
    positive: int
    negative: int
    neutral: int
    positive_percentage: str  # one decimal, e.g. "60.0"
    negative_percentage: str
    neutral_percentage: str
    average_sentiment_score: float
    average_rating: float
    keyword_frequency: Dict[str, int]
    topic_frequency: Dict[str, int]
    generated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "sentimentDistribution": {
                "positive": self.positive,
                "negative": self.negative,
                "neutral": self.neutral,
                "positivePercentage": self.positive_percentage,
                "negativePercentage": self.negative_percentage,
                "neutralPercentage": self.neutral_percentage,
            },
            "averageSentimentScore": self.average_sentiment_score,
            "averageRating": self.average_rating,
            "keywordFrequency": dict(self.keyword_frequency),
            "topicFrequency": dict(self.topic_frequency),
            "generatedAt": isoformat(self.generated_at),
        }


@dataclass
class AnalysisReport:
    """Classified reviews plus their statistics for one app and limit."""
    app_id: str
    limit: int
    reviews: List[ClassifiedReview]
    statistics: ReviewStatistics
    analyzed_at: Optional[datetime] = None

    @property
    def used_fallback_count(self) -> int:
        return sum(1 for r in self.reviews if r.analysis.used_fallback)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appId": self.app_id,
            "limit": self.limit,
            "reviews": [r.to_dict() for r in self.reviews],
            "statistics": self.statistics.to_dict(),
            "analyzedAt": isoformat(self.analyzed_at),
        }
