"""Aspect-based sentiment scoring of each location against user criteria."""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from textwrap import dedent
from typing import Any, Callable, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from ..core.config import Settings, settings as default_settings
from ..core.constants import AnalysisConstants, PromptConstants
from ..core.exceptions import UpstreamParseError
from ..core.models import Chip, LocationAnalysis, PlaceReviews, Review, ReviewAspect
from ..core.monthly import compute_monthly_reviews
from ..core.scoring import (
    CHIP_TYPES,
    clamp_match_score,
    derive_chips,
    filter_supported_chips,
    rank_locations,
    to_review_indices,
)
from .llm import LLMServiceFactory, OpenAIService, parse_json_object

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = dedent("""
You are an expert at Aspect-Based Sentiment Analysis (ABSA). Your job is to:
1. Extract specific aspects mentioned in each review along with their sentiment
2. Score how well the location matches what the user cares about

ABSA RULES:
- An aspect is a specific feature/attribute explicitly discussed (e.g., "food", "service", "price", "cleanliness")
- Sentiment is positive or negative for that specific aspect
- Example: "The pizza was amazing but the waiter was rude"
  → Aspects: [{"label": "food", "sentiment": "positive"}, {"label": "service", "sentiment": "negative"}]
- Generic statements like "great place" or "bad experience" have NO extractable aspects - return empty array
- Each aspect must be explicitly mentioned in the text, not inferred
- Keep aspect labels short (1-2 words) and normalized (e.g., "food" not "food quality", "service" not "customer service")

SCORING RULES (matchScore):
- Start at 50.
- For each thing the user cares about that reviews discuss with POSITIVE sentiment: add 10 to 15.
- For each thing the user cares about that reviews discuss with NEGATIVE sentiment: subtract 10 to 15.
- For each thing the user wants to avoid that reviews confirm (negative sentiment): subtract 15 to 20.
- Criteria no review mentions: no change.
- The final score must be between 0 and 100.

Output strict JSON only. No comments, no trailing commas.
""").strip()

ANALYSIS_USER_TEMPLATE = dedent("""
Location: {place_name}

USER CARES ABOUT: {criteria}
USER WANTS TO AVOID: {red_flags}

REVIEWS:
{reviews_text}

TASK:
1. Extract aspects and sentiments from EACH review using ABSA
2. Group matching aspects into chips; every chip must cite the review numbers that support it
3. Score the location against the user's criteria using the scoring rules

OUTPUT FORMAT (JSON only):
{{
  "matchScore": <0-100>,
  "summary": "<2-3 sentences summarizing how this place matches user's criteria>",
  "chips": [
    {{"label": "food", "type": "positive", "reviewIndices": [1, 4]}},
    {{"label": "wait time", "type": "negative", "reviewIndices": [2]}}
  ],
  "reviewAspects": [
    {{"reviewIndex": 1, "aspects": [{{"label": "food", "sentiment": "positive"}}]}}
  ],
  "rankedPositiveAspects": ["most relevant positive aspect", "..."],
  "rankedNegativeAspects": ["most relevant negative aspect", "..."]
}}

RULES:
- reviewIndices and reviewIndex use the [Review N] numbers shown above
- Never emit a chip without at least one supporting review
- Order chips and ranked aspects by relevance to the user's criteria (most relevant first)
""").strip()


class _ChipPayload(BaseModel):
    label: str
    type: str
    reviewIndices: Optional[List[int]] = None


class _AspectPayload(BaseModel):
    label: str
    sentiment: str


class _ReviewAspectsPayload(BaseModel):
    reviewIndex: int
    aspects: Optional[List[_AspectPayload]] = None


class AnalysisPayload(BaseModel):
    """Expected shape of the model's analysis reply."""

    model_config = ConfigDict(extra="ignore")

    matchScore: Optional[Any] = None  # coerced by clamp_match_score
    summary: Optional[str] = None
    chips: Optional[List[_ChipPayload]] = None
    reviewAspects: Optional[List[_ReviewAspectsPayload]] = None
    rankedPositiveAspects: Optional[List[str]] = None
    rankedNegativeAspects: Optional[List[str]] = None


def format_reviews(reviews: Iterable[Review]) -> str:
    """Render reviews as numbered prompt blocks."""
    return "\n\n".join(
        f"[Review {i}] Rating: {r.rating}/5 | By: {r.reviewer} | Date: {r.date}\n\"{r.text}\""
        for i, r in enumerate(reviews, start=1)
    )


def build_analysis_prompt(place: PlaceReviews, criteria: str, red_flags: Optional[str] = None) -> str:
    """User prompt for a single location."""
    return ANALYSIS_USER_TEMPLATE.format(
        place_name=place.place_name,
        criteria=(criteria or "").strip() or PromptConstants.NOT_SPECIFIED,
        red_flags=(red_flags or "").strip() or PromptConstants.NOT_SPECIFIED,
        reviews_text=format_reviews(place.reviews),
    )


class AspectScoringEngine:
    """Scores locations one at a time; any unusable model reply aborts the batch."""

    def __init__(
        self,
        llm: Optional[OpenAIService] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or default_settings
        self.llm = llm or LLMServiceFactory.create(self.settings)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def analyze_all(
        self,
        places: Iterable[PlaceReviews],
        criteria: str,
        red_flags: Optional[str] = None,
    ) -> List[LocationAnalysis]:
        """Analyze every place sequentially and return them best match first."""
        analyses = [self.analyze_place(place, criteria, red_flags) for place in places]
        ranked = rank_locations(analyses)
        logger.info(f"Analyzed {len(ranked)} locations")
        logger.info("Scores: " + ", ".join(f"{a.place_name}: {a.match_score}" for a in ranked))
        return ranked

    def analyze_place(
        self,
        place: PlaceReviews,
        criteria: str,
        red_flags: Optional[str] = None,
    ) -> LocationAnalysis:
        if not place.reviews:
            return self._empty_analysis(place)

        content = self.llm.chat(
            ANALYSIS_SYSTEM_PROMPT,
            build_analysis_prompt(place, criteria, red_flags),
            temperature=PromptConstants.ANALYSIS_TEMPERATURE,
        )
        payload = self.parse_payload(content)

        review_count = len(place.reviews)
        per_review = self._review_aspects(payload, review_count)
        reviews = [replace(review, aspects=per_review[i]) for i, review in enumerate(place.reviews)]

        if payload.chips:
            chips = filter_supported_chips(
                Chip(
                    label=chip.label.strip(),
                    type=chip.type.strip().lower(),
                    review_indices=to_review_indices(chip.reviewIndices or [], review_count),
                )
                for chip in payload.chips
                if chip.label.strip() and chip.type.strip().lower() in CHIP_TYPES
            )
        else:
            chips = derive_chips(
                per_review,
                payload.rankedPositiveAspects or [],
                payload.rankedNegativeAspects or [],
            )

        match_score = clamp_match_score(payload.matchScore)
        logger.info(f"{place.place_name}: Extracted {len(chips)} chips, Score: {match_score}")

        return LocationAnalysis(
            url=place.url,
            place_name=place.place_name,
            total_score=place.total_score,
            reviews_count=place.reviews_count,
            match_score=match_score,
            summary=payload.summary or "",
            chips=chips,
            reviews=reviews,
            monthly_reviews=compute_monthly_reviews(reviews, chips, now=self.clock()),
        )

    @staticmethod
    def parse_payload(content: Optional[str]) -> AnalysisPayload:
        """Decode and validate the model reply; malformed replies are fatal."""
        data = parse_json_object(content)
        try:
            return AnalysisPayload.model_validate(data)
        except SchemaError as exc:
            logger.error(f"Model analysis reply failed validation: {exc}")
            raise UpstreamParseError(f"Unexpected analysis response shape: {exc.error_count()} errors") from exc

    @staticmethod
    def _review_aspects(payload: AnalysisPayload, review_count: int) -> List[List[ReviewAspect]]:
        per_review: List[List[ReviewAspect]] = [[] for _ in range(review_count)]
        for entry in payload.reviewAspects or []:
            idx = entry.reviewIndex - 1
            if not 0 <= idx < review_count:
                continue
            for aspect in entry.aspects or []:
                sentiment = aspect.sentiment.strip().lower()
                if sentiment in CHIP_TYPES and aspect.label.strip():
                    per_review[idx].append(ReviewAspect(label=aspect.label.strip(), sentiment=sentiment))
        return per_review

    def _empty_analysis(self, place: PlaceReviews) -> LocationAnalysis:
        return LocationAnalysis(
            url=place.url,
            place_name=place.place_name,
            total_score=place.total_score,
            reviews_count=place.reviews_count,
            match_score=AnalysisConstants.EMPTY_SCORE,
            summary=AnalysisConstants.NO_REVIEWS_SUMMARY,
            chips=[],
            reviews=[],
            monthly_reviews=compute_monthly_reviews([], [], now=self.clock()),
        )
