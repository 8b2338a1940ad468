"""Data models for reviewmatch.

Field names are snake_case in Python; ``to_dict`` produces the camelCase wire
shape callers receive.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .constants import AnalysisConstants
from .exceptions import ValidationError

Number = Union[int, float]


@dataclass(frozen=True)
class ReviewAspect:
    """An aspect mentioned in one review with its sentiment."""
    label: str
    sentiment: str  # "positive" or "negative"

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "sentiment": self.sentiment}


@dataclass(frozen=True)
class Review:
    """A single normalized review with non-empty text."""
    text: str
    rating: Number = 0
    reviewer: str = AnalysisConstants.DEFAULT_REVIEWER
    date: str = AnalysisConstants.DEFAULT_DATE
    aspects: Optional[List[ReviewAspect]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "text": self.text,
            "rating": self.rating,
            "reviewer": self.reviewer,
            "date": self.date,
        }
        if self.aspects is not None:
            data["aspects"] = [a.to_dict() for a in self.aspects]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Review":
        if not isinstance(data, dict):
            raise ValidationError("Each review must be an object")
        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Each review requires non-empty text")
        aspects = None
        if isinstance(data.get("aspects"), list):
            aspects = [
                ReviewAspect(label=str(a.get("label", "")), sentiment=str(a.get("sentiment", "")))
                for a in data["aspects"]
                if isinstance(a, dict)
            ]
        return cls(
            text=text.strip(),
            rating=data.get("rating") or 0,
            reviewer=data.get("reviewer") or AnalysisConstants.DEFAULT_REVIEWER,
            date=str(data.get("date") or AnalysisConstants.DEFAULT_DATE),
            aspects=aspects,
        )


@dataclass
class PlaceReviews:
    """Reviews scraped for one requested location URL."""
    url: str
    place_name: str = AnalysisConstants.DEFAULT_PLACE_NAME
    total_score: Number = 0
    reviews_count: int = 0
    reviews: List[Review] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "placeName": self.place_name,
            "totalScore": self.total_score,
            "reviewsCount": self.reviews_count,
            "reviews": [r.to_dict() for r in self.reviews],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PlaceReviews":
        """Build from the caller-supplied wire shape."""
        if not isinstance(data, dict):
            raise ValidationError("Each place must be an object")
        reviews = data.get("reviews")
        if not isinstance(reviews, list):
            raise ValidationError("Each place requires a reviews list")
        return cls(
            url=str(data.get("url", "")),
            place_name=data.get("placeName") or AnalysisConstants.DEFAULT_PLACE_NAME,
            total_score=data.get("totalScore") or 0,
            reviews_count=data.get("reviewsCount") or 0,
            reviews=[Review.from_dict(r) for r in reviews],
        )


@dataclass
class Chip:
    """An aspect tag backed by reviews of the same location."""
    label: str
    type: str  # "positive" or "negative"
    review_indices: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "type": self.type, "reviewIndices": list(self.review_indices)}


@dataclass
class MonthlyReviewCount:
    """Distinct supporting reviews per calendar month."""
    month: str
    positive_count: int = 0
    negative_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "positiveCount": self.positive_count,
            "negativeCount": self.negative_count,
        }


@dataclass
class LocationAnalysis:
    """Per-location match analysis."""
    url: str
    place_name: str
    total_score: Number
    reviews_count: int
    match_score: int
    summary: str
    chips: List[Chip]
    reviews: List[Review]
    monthly_reviews: List[MonthlyReviewCount]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "placeName": self.place_name,
            "totalScore": self.total_score,
            "reviewsCount": self.reviews_count,
            "matchScore": self.match_score,
            "summary": self.summary,
            "chips": [c.to_dict() for c in self.chips],
            "reviews": [r.to_dict() for r in self.reviews],
            "monthlyReviews": [m.to_dict() for m in self.monthly_reviews],
        }


@dataclass
class AspectSuggestions:
    """Common positive and negative aspects for a location type."""
    positive_aspects: List[str]
    negative_aspects: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"positiveAspects": list(self.positive_aspects), "negativeAspects": list(self.negative_aspects)}


@dataclass
class ResolvedLocation:
    """A real-world place matched to a free-text description."""
    name: str
    address: str
    confidence_score: float
    maps_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "confidence_score": self.confidence_score,
            "mapsUrl": self.maps_url,
        }
