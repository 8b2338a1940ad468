"""Configuration management for reviewmatch."""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import ErrorConstants, ScrapeConstants
from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    # Apify (review scraping)
    apify_api_token: str = Field(
        "",
        validation_alias=AliasChoices("APIFY_API_TOKEN", "APIFY_API_KEY"),
        description="Apify API token",
    )
    apify_base_url: str = Field("https://api.apify.com/v2", description="Apify API base URL")
    apify_actor_id: str = Field("compass~google-maps-reviews-scraper", description="Reviews scraper actor")

    # LLM (OpenAI-compatible endpoint, Groq by default)
    groq_api_key: str = Field("", description="Groq API key")
    openai_api_key: str = Field("", description="OpenAI API key (alternative provider)")
    llm_base_url: Optional[str] = Field(
        "https://api.groq.com/openai/v1", description="OpenAI-compatible base URL"
    )
    llm_model: str = Field("llama-3.3-70b-versatile", description="Chat completion model")

    @property
    def effective_llm_key(self) -> str:
        """Get the effective LLM API key from either field."""
        return self.groq_api_key or self.openai_api_key

    # Scrape job parameters
    scrape_max_reviews: int = Field(ScrapeConstants.MAX_REVIEWS_PER_PLACE, description="Reviews per place")
    scrape_language: str = Field(ScrapeConstants.LANGUAGE, description="Review language")
    scrape_reviews_sort: str = Field(ScrapeConstants.REVIEWS_SORT, description="Review sort order")
    poll_interval_seconds: float = Field(ScrapeConstants.POLL_INTERVAL_SECONDS, description="Seconds between polls")
    poll_max_attempts: int = Field(ScrapeConstants.POLL_MAX_ATTEMPTS, description="Status checks per job")
    max_urls: int = Field(ScrapeConstants.MAX_URLS_PER_REQUEST, description="URLs accepted per request")
    request_timeout: float = Field(ErrorConstants.REQUEST_TIMEOUT, description="HTTP timeout in seconds")

    # Normalization
    field_aliases_file: Optional[str] = Field(None, description="YAML file overriding field aliases")

    # Logging
    log_level: str = Field("INFO", description="Logging level")

    # Retry settings
    max_retries: int = Field(ErrorConstants.MAX_RETRY_ATTEMPTS, description="Maximum retry attempts")
    retry_delay: float = Field(ErrorConstants.RETRY_BASE_DELAY, description="Base retry delay in seconds")
    retry_backoff: float = Field(2.0, description="Retry backoff multiplier")

    def require_apify_token(self) -> str:
        """Return the Apify token or fail before any network activity."""
        if not self.apify_api_token:
            raise ConfigurationError("Apify API key not configured")
        return self.apify_api_token

    def require_llm_key(self) -> str:
        """Return the LLM key or fail before any network activity."""
        key = self.effective_llm_key
        if not key:
            raise ConfigurationError("Groq API key not configured")
        return key


# Global settings instance
settings = Settings()
