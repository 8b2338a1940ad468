"""Constants and configuration values for reviewmatch."""

# Scrape Job Constants
class ScrapeConstants:
    """Constants related to the review scraping provider."""

    # Job input
    MAX_REVIEWS_PER_PLACE = 50  # reviews requested per location
    LANGUAGE = "en"
    REVIEWS_SORT = "newest"

    # Polling (30 x 2s = 60s ceiling per URL)
    POLL_INTERVAL_SECONDS = 2.0
    POLL_MAX_ATTEMPTS = 30

    # Request limits
    MAX_URLS_PER_REQUEST = 10

    # Provider run statuses
    STATUS_SUCCEEDED = "SUCCEEDED"
    STATUS_FAILED = ("FAILED", "TIMED-OUT")
    STATUS_ABORTED = ("ABORTED",)


# Prompt Constants
class PromptConstants:
    """Constants for LLM prompts and templates."""

    ANALYSIS_TEMPERATURE = 0.3
    RESOLVE_TEMPERATURE = 0.3
    ASPECTS_TEMPERATURE = 0.7  # more variety for suggestion lists

    ASPECTS_PER_LIST = 10  # positive and negative aspect suggestions
    MAX_RESOLVED_LOCATIONS = 5

    NOT_SPECIFIED = "not specified"


# Analysis Constants
class AnalysisConstants:
    """Constants for match scoring and aggregation."""

    NEUTRAL_SCORE = 50  # prior when the model gives no score
    MIN_SCORE = 0
    MAX_SCORE = 100
    EMPTY_SCORE = 0  # locations without any text reviews

    MONTHS_IN_WINDOW = 12

    NO_REVIEWS_SUMMARY = "No reviews with text available for this location."

    DEFAULT_PLACE_NAME = "Unknown Place"
    DEFAULT_REVIEWER = "Anonymous"
    DEFAULT_DATE = "Unknown"


# Error Handling Constants
class ErrorConstants:
    """Constants for error handling and retries."""

    MAX_RETRY_ATTEMPTS = 3  # maximum retry attempts
    RETRY_BASE_DELAY = 1.0  # base delay for exponential backoff
    REQUEST_TIMEOUT = 30  # timeout for HTTP requests
    LLM_REQUEST_TIMEOUT = 60  # timeout for model calls


# File and Path Constants
class FileConstants:
    """Constants for file operations."""

    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    EXPORT_VERSION = "1.0.0"
