"""Exception hierarchy for reviewmatch.

Every error a caller can see carries a stable machine-readable ``kind`` and a
human-readable ``detail``. Per-URL scrape skips are not errors and never show
up here.
"""

from typing import Dict


class ReviewMatchError(Exception):
    """Base exception for reviewmatch."""

    kind = "internal"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, str]:
        """Serializable form returned to callers."""
        return {"code": self.kind, "message": self.detail}


class AuthorizationError(ReviewMatchError):
    """Raised when an operation is invoked without an authenticated caller."""

    kind = "unauthenticated"


class ValidationError(ReviewMatchError):
    """Raised when caller input is missing, empty or oversized.

    Examples:
        - Empty URL list or more than the allowed number of URLs
        - Missing reviews payload for analysis
        - Blank location type or query text
    """

    kind = "invalid-argument"


class ConfigurationError(ReviewMatchError):
    """Raised when a required provider credential is missing."""

    kind = "failed-precondition"


class UpstreamParseError(ReviewMatchError):
    """Raised when the model or scrape provider returns an unusable payload.

    Examples:
        - Empty completion content
        - Completion that is not a JSON object
        - JSON that does not match the expected response schema
    """


class ScrapeProviderError(ReviewMatchError):
    """Raised when a scrape provider HTTP call fails after retries."""


class InternalError(ReviewMatchError):
    """Operation-level wrapper for any unexpected failure."""
