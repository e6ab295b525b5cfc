"""Core modules for ReviewInsight."""

from .models import *
from .config import settings
from .cache import TTLCache
from .filters import FilterCriteria, FilterResult, filter_reviews
from .sentiment import fallback_sentiment
from .statistics import generate_statistics
from .problems import baseline_problem_analysis

__all__ = [
    "settings",
    "TTLCache",
    "Review",
    "Classification",
    "ClassifiedReview",
    "ProblemCategory",
    "ProblemAnalysisResult",
    "ReviewStatistics",
    "FilterCriteria",
    "FilterResult",
    "filter_reviews",
    "fallback_sentiment",
    "generate_statistics",
    "baseline_problem_analysis",
]
