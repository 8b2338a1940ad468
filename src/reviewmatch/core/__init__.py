"""Core modules for reviewmatch."""

from .config import Settings, settings
from .exceptions import *
from .models import *

__all__ = [
    "Settings",
    "settings",
    "Review",
    "ReviewAspect",
    "PlaceReviews",
    "Chip",
    "MonthlyReviewCount",
    "LocationAnalysis",
    "AspectSuggestions",
    "ResolvedLocation",
    "ReviewMatchError",
    "AuthorizationError",
    "ValidationError",
    "ConfigurationError",
    "UpstreamParseError",
    "ScrapeProviderError",
    "InternalError",
]
