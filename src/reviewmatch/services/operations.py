"""Caller-facing operations: fetch reviews, analyze reviews, generate aspects, resolve locations.

Each operation checks the caller first, validates its input second, and only
then talks to providers. Authorization, validation and configuration errors
reach the caller unchanged; anything else is reported as an internal error
naming the operation and the underlying cause.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    InternalError,
    ReviewMatchError,
    ValidationError,
)
from ..core.models import PlaceReviews
from .aspect_generator import AspectGenerator
from .aspect_scoring import AspectScoringEngine
from .location_resolver import LocationResolver
from .scrape_orchestrator import ReviewFetcher

logger = logging.getLogger(__name__)

_PASSTHROUGH_ERRORS = (AuthorizationError, ValidationError, ConfigurationError)


@dataclass(frozen=True)
class CallerContext:
    """Identity of whoever invoked an operation."""
    uid: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.uid)

    @classmethod
    def local(cls) -> "CallerContext":
        """Caller identity for trusted local use (CLI)."""
        return cls(uid="local")


def require_auth(context: Optional[CallerContext]) -> None:
    if context is None or not context.authenticated:
        raise AuthorizationError("User must be authenticated")


@contextmanager
def _internal_errors(action: str) -> Iterator[None]:
    try:
        yield
    except _PASSTHROUGH_ERRORS:
        raise
    except ReviewMatchError as exc:
        logger.error(f"Error {action}: {exc.detail}")
        raise InternalError(f"Failed to {action}: {exc.detail}") from exc
    except Exception as exc:
        logger.exception(f"Error {action}: {exc}")
        raise InternalError(f"Failed to {action}: {exc}") from exc


def _validate_urls(urls: Any, max_urls: int) -> List[str]:
    if not urls or not isinstance(urls, (list, tuple)):
        raise ValidationError("URLs array is required")
    if len(urls) > max_urls:
        raise ValidationError(f"Maximum {max_urls} URLs allowed")
    if not all(isinstance(url, str) for url in urls):
        raise ValidationError("URLs must be strings")
    return list(urls)


def _validate_places(reviews: Any) -> List[PlaceReviews]:
    if not reviews or not isinstance(reviews, (list, tuple)):
        raise ValidationError("Reviews are required")
    return [r if isinstance(r, PlaceReviews) else PlaceReviews.from_dict(r) for r in reviews]


def _require_text(value: Any, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value


def fetch_reviews(
    context: Optional[CallerContext],
    urls: Sequence[str],
    *,
    fetcher: Optional[ReviewFetcher] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Scrape reviews for up to ``max_urls`` place URLs -> ``{"reviews": [...]}``."""
    require_auth(context)
    settings = settings or default_settings
    urls = _validate_urls(urls, settings.max_urls)

    fetcher = fetcher or ReviewFetcher(settings=settings)
    with _internal_errors("fetch reviews"):
        places = fetcher.fetch(urls)
    return {"reviews": [p.to_dict() for p in places]}


def analyze_reviews(
    context: Optional[CallerContext],
    reviews: Sequence[Union[PlaceReviews, Dict[str, Any]]],
    criteria: str,
    red_flags: Optional[str] = None,
    *,
    engine: Optional[AspectScoringEngine] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Score every place against the criteria -> ``{"locations": [...]}``, best match first."""
    require_auth(context)
    places = _validate_places(reviews)

    engine = engine or AspectScoringEngine(settings=settings or default_settings)
    with _internal_errors("analyze reviews"):
        analyses = engine.analyze_all(places, criteria, red_flags)
    return {"locations": [a.to_dict() for a in analyses]}


def generate_aspects(
    context: Optional[CallerContext],
    location_type: str,
    *,
    generator: Optional[AspectGenerator] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Suggest aspects for a location type -> ``{"positiveAspects": [...], "negativeAspects": [...]}``."""
    require_auth(context)
    location_type = _require_text(location_type, "Location type is required")

    generator = generator or AspectGenerator(settings=settings or default_settings)
    with _internal_errors("generate aspects"):
        suggestions = generator.generate(location_type)
    return suggestions.to_dict()


def resolve_locations(
    context: Optional[CallerContext],
    query: str,
    *,
    resolver: Optional[LocationResolver] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Resolve a place description -> ``{"query": ..., "locations": [...]}``."""
    require_auth(context)
    query = _require_text(query, "Query is required")

    resolver = resolver or LocationResolver(settings=settings or default_settings)
    with _internal_errors("resolve locations"):
        resolved_query, locations = resolver.resolve(query)
    return {"query": resolved_query, "locations": [loc.to_dict() for loc in locations]}
