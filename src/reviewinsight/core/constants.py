"""Constants and configuration values for ReviewInsight."""

# Sentiment and Classification Constants
class AnalysisConstants:
    """Constants related to sentiment classification and problem analysis."""

    # Label vocabularies
    SENTIMENTS = ("positive", "negative", "neutral")
    LEVELS = ("high", "medium", "low")  # priority, effort and impact
    TIMELINES = ("short", "medium", "long")
    TIMELINE_ALIASES = {"短期": "short", "中期": "medium", "長期": "long"}

    # Rating baseline scores
    SCORE_RATING_5 = 0.9
    SCORE_RATING_4 = 0.7
    SCORE_NEUTRAL = 0.5
    SCORE_RATING_2 = 0.3
    SCORE_RATING_1 = 0.1

    # Label bands: score < 0.4 is negative-leaning, > 0.6 positive-leaning
    NEGATIVE_BAND_MAX = 0.39
    POSITIVE_BAND_MIN = 0.61
    KEYWORD_OVERRIDE_THRESHOLD = 0.1  # |P - N| must exceed this to override the rating label

    # Extraction limits
    MAX_KEYWORDS = 8
    MAX_TOPICS = 5
    MAX_SUMMARY_KEYWORDS = 2
    MAX_TOP_CATEGORIES = 3  # categories cited in the overall summary

    # LLM request shaping
    LLM_TEMPERATURE = 0.2
    LLM_MAX_TOKENS_PER_REVIEW = 250
    LLM_PROBLEM_MAX_TOKENS = 2000

    # Keyword analysis
    DEFAULT_MIN_FREQUENCY = 2

# Cache Constants
class CacheConstants:
    """Constants for caching behavior."""

    CACHE_KEY_LENGTH = 24  # length of cache key for logging
    REVIEWS_KEY = "reviews_{app_id}_{limit}"
    ANALYSIS_KEY = "analysis_{app_id}_{limit}"
    PROBLEMS_KEY = "problems_{app_id}_{limit}"

# App Store Constants
class AppStoreConstants:
    """Constants for the App Store review source."""

    REVIEWS_URL = "https://itunes.apple.com/{country}/rss/customerreviews/page={page}/id={app_id}/sortby=mostrecent/json"
    LOOKUP_URL = "https://itunes.apple.com/{country}/lookup"
    USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
    MAX_PAGES = 10  # the RSS feed serves at most 10 pages of 50 reviews

    SAMPLE_APP_IDS = [
        "6503927232",
        "1064363738",
        "1543310444",
        "648688812",
        "310633997",  # WhatsApp
    ]

# File and Path Constants
class FileConstants:
    """Constants for file operations."""

    CONFIG_FILE = ".env.example"  # configuration template file
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    EXPORT_VERSION = "1.0.0"
