"""Configuration management for ReviewInsight."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    # OpenAI API
    openai_api_key: str = Field("", description="OpenAI API key")
    OPENAI_API_KEY: str = Field("", description="OpenAI API key (alternative naming)")
    openai_model: str = Field("gpt-4o-mini", description="Model used for classification and problem analysis")

    @property
    def effective_openai_key(self) -> str:
        """Get the effective OpenAI API key from either field."""
        return self.openai_api_key or self.OPENAI_API_KEY

    # Logging
    log_level: str = Field("INFO", description="Logging level")

    # Sentiment batching
    batch_size: int = Field(20, description="Reviews per classification call")
    batch_timeout: float = Field(600.0, description="Deadline for one classification call in seconds")
    batch_delay: float = Field(1.0, description="Pause between consecutive batches in seconds")

    # Problem analysis
    problem_timeout: float = Field(30.0, description="Deadline for the AI problem refinement in seconds")
    analysis_timeout: float = Field(45.0, description="Deadline for a whole problem analysis request in seconds")

    # Cache
    cache_ttl_seconds: int = Field(3600, description="Time-to-live of cached analysis results")
    cache_max_entries: Optional[int] = Field(None, description="Optional LRU bound on cached entries")

    # Request limits
    default_limit: int = Field(50, description="Default number of reviews to analyze")
    max_limit: int = Field(200, description="Maximum number of reviews per request")

    # Retry behaviour for the external classification call
    max_retries: int = Field(3, description="Maximum retry attempts")
    retry_delay: float = Field(1.0, description="Base retry delay in seconds")
    retry_backoff: float = Field(2.0, description="Retry backoff multiplier")

    # App Store review source
    appstore_country: str = Field("jp", description="App Store storefront country code")
    request_timeout: float = Field(10.0, description="HTTP timeout for review fetching in seconds")

    # Keyword and category dictionaries
    lexicon_file: Optional[str] = Field(None, description="YAML file overriding the built-in lexicon")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
