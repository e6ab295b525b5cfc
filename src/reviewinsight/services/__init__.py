"""Services for ReviewInsight."""

from .llm import LLMServiceFactory
from .appstore_client import AppStoreService
from .classifier import BatchSentimentClassifier
from .problem_analyzer import ProblemAnalyzer
from .pipeline import ReviewAnalysisPipeline

__all__ = [
    "LLMServiceFactory",
    "AppStoreService",
    "BatchSentimentClassifier",
    "ProblemAnalyzer",
    "ReviewAnalysisPipeline",
]
