"""Normalization of heterogeneous scraper records into canonical reviews.

Scraper output drifts between provider versions, so every field is looked up
through an ordered alias list and the first truthy value wins. The alias table
is plain data and can be replaced by a YAML file without code changes.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import yaml

from .constants import AnalysisConstants
from .exceptions import ConfigurationError
from .models import Number, PlaceReviews, Review

logger = logging.getLogger(__name__)

FieldAliases = Dict[str, List[str]]

DEFAULT_FIELD_ALIASES: FieldAliases = {
    # place summary records
    "place_name": ["title"],
    "total_score": ["totalScore", "rating", "averageRating"],
    "reviews_count": ["reviewsCount", "totalReviews", "reviewCount"],
    # a titled record carrying any of these is not a place summary
    "summary_excludes": ["text", "reviewText"],
    # review records
    "text": ["text", "reviewText", "textTranslated"],
    "rating": ["stars", "rating", "reviewRating"],
    "reviewer": ["name", "author", "reviewerName", "userName"],
    "date": ["publishedAtDate", "time", "reviewDate", "date"],
}


@dataclass(frozen=True)
class PlaceSummary:
    """Place metadata carried by a summary record."""
    place_name: str
    total_score: Number
    reviews_count: int


NormalizedRecord = Union[PlaceSummary, Review]


def load_field_aliases(path: Optional[str] = None) -> FieldAliases:
    """Load the alias table, overlaying a YAML file on the defaults when given."""
    aliases = {key: list(values) for key, values in DEFAULT_FIELD_ALIASES.items()}
    if not path:
        return aliases

    try:
        with open(Path(path), "r", encoding="utf-8") as f:
            overrides = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error(f"Cannot load field aliases from {path}: {exc}")
        raise ConfigurationError(f"Cannot load field alias file {path}: {exc}") from exc
    if not isinstance(overrides, dict):
        raise ConfigurationError(f"Field alias file must contain a mapping: {path}")

    for key, values in overrides.items():
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise ConfigurationError(f"Aliases for '{key}' must be a list of field names")
        aliases[key] = values
    logger.info(f"Loaded field aliases from {path} ({len(overrides)} overrides)")
    return aliases


def resolve_field(record: Dict[str, Any], aliases: Sequence[str]) -> Optional[Any]:
    """Return the first truthy value found under any alias, in alias order."""
    for name in aliases:
        value = record.get(name)
        if value:
            return value
    return None


def normalize_record(record: Any, aliases: Optional[FieldAliases] = None) -> List[NormalizedRecord]:
    """Classify one raw record.

    Returns a ``PlaceSummary`` when the record is a titled record without
    review text, a ``Review`` when any text alias carries non-blank text, both
    when both hold, and nothing otherwise.
    """
    if not isinstance(record, dict):
        return []
    aliases = aliases or DEFAULT_FIELD_ALIASES
    results: List[NormalizedRecord] = []

    title = resolve_field(record, aliases["place_name"])
    if title and resolve_field(record, aliases["summary_excludes"]) is None:
        results.append(PlaceSummary(
            place_name=str(title),
            total_score=resolve_field(record, aliases["total_score"]) or 0,
            reviews_count=resolve_field(record, aliases["reviews_count"]) or 0,
        ))

    text = resolve_field(record, aliases["text"])
    text = str(text).strip() if text is not None else ""
    if text:
        results.append(Review(
            text=text,
            rating=resolve_field(record, aliases["rating"]) or 0,
            reviewer=str(resolve_field(record, aliases["reviewer"]) or AnalysisConstants.DEFAULT_REVIEWER),
            date=str(resolve_field(record, aliases["date"]) or AnalysisConstants.DEFAULT_DATE),
        ))

    return results


def build_place_reviews(
    url: str,
    items: Iterable[Any],
    aliases: Optional[FieldAliases] = None,
) -> PlaceReviews:
    """Fold a provider dataset into a single PlaceReviews entry."""
    place = PlaceReviews(url=url)
    for item in items:
        for normalized in normalize_record(item, aliases):
            if isinstance(normalized, PlaceSummary):
                place.place_name = normalized.place_name
                place.total_score = normalized.total_score
                place.reviews_count = normalized.reviews_count
            else:
                place.reviews.append(normalized)

    logger.info(
        f"Found place: {place.place_name}, rating: {place.total_score}, "
        f"total reviews: {place.reviews_count}, analyzed: {len(place.reviews)}"
    )
    return place
