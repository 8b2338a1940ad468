"""reviewmatch - review ingestion and aspect-sentiment scoring of locations."""

__version__ = "1.0.0"

from .core.config import settings
from .core.exceptions import ReviewMatchError
from .services.operations import (
    CallerContext,
    analyze_reviews,
    fetch_reviews,
    generate_aspects,
    resolve_locations,
)

__all__ = [
    "settings",
    "ReviewMatchError",
    "CallerContext",
    "fetch_reviews",
    "analyze_reviews",
    "generate_aspects",
    "resolve_locations",
]
