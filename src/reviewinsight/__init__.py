"""ReviewInsight - App Store review sentiment and problem analysis."""

__version__ = "1.0.0"
__author__ = "ReviewInsight Team"

from .core.models import *
from .core.config import settings
from .core.cache import TTLCache
from .services.llm import LLMServiceFactory
from .services.appstore_client import AppStoreService
from .services.pipeline import ReviewAnalysisPipeline

__all__ = [
    "settings",
    "TTLCache",
    "LLMServiceFactory",
    "AppStoreService",
    "ReviewAnalysisPipeline",
]
