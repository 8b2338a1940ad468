"""Resolve a free-text place description to real-world locations."""

import logging
from textwrap import dedent
from typing import List, Optional, Tuple
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from ..core.config import Settings, settings as default_settings
from ..core.constants import PromptConstants
from ..core.exceptions import UpstreamParseError
from ..core.models import ResolvedLocation
from .llm import LLMServiceFactory, OpenAIService

logger = logging.getLogger(__name__)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={query}"

RESOLVE_SYSTEM_PROMPT = dedent("""
You are a location resolution assistant that maps user descriptions to real-world places.

Task: Given a user's description of a location or places, identify the top relevant real-world locations and return them in a minimal structured format.

Input Interpretation:
The user description may be:
- A specific place or address (e.g., "Grocery Outlet, Sunnyvale, CA")
- A discovery-based query (e.g., "recommended affordable apartments in Sunnyvale, CA")
Infer intent automatically.

Output Rules:
- Return up to 5 locations
- Prefer the most relevant, well-known, and correctly located places
- Use full formatted addresses
- Assign a confidence score between 0.0 and 1.0:
  - 0.90–1.00 → Exact name or address match
  - 0.75–0.89 → Very strong inferred match
  - 0.60–0.74 → Good but weaker relevance
  - < 0.60 → Marginal relevance (include only if needed)
- Do not include ratings, review counts, URLs, explanations, or extra fields
- Output only the structured JSON
""").strip()

RESOLVE_USER_TEMPLATE = dedent("""
Find real-world locations for: "{query}"

Output Format (STRICT JSON):
{{
  "query": "<original user query>",
  "locations": [
    {{
      "name": "",
      "address": "",
      "confidence_score": 0.0
    }}
  ]
}}
""").strip()


class _LocationPayload(BaseModel):
    name: str
    address: str = ""
    confidence_score: float = 0.0


class _ResolvePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    query: Optional[str] = None
    locations: Optional[List[_LocationPayload]] = None


def build_maps_url(name: str, address: str) -> str:
    """Google Maps search link for a place."""
    return MAPS_SEARCH_URL.format(query=quote(f"{name}, {address}", safe="!*'()"))


class LocationResolver:
    """Maps a user's description to up to five candidate places."""

    def __init__(self, llm: Optional[OpenAIService] = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.llm = llm or LLMServiceFactory.create(self.settings)

    def resolve(self, query: str) -> Tuple[str, List[ResolvedLocation]]:
        result = self.llm.chat_json(
            RESOLVE_SYSTEM_PROMPT,
            RESOLVE_USER_TEMPLATE.format(query=query.strip()),
            temperature=PromptConstants.RESOLVE_TEMPERATURE,
        )
        try:
            payload = _ResolvePayload.model_validate(result)
        except SchemaError as exc:
            raise UpstreamParseError(f"Unexpected location response shape: {exc.error_count()} errors") from exc

        locations = [
            ResolvedLocation(
                name=loc.name,
                address=loc.address,
                confidence_score=loc.confidence_score,
                maps_url=build_maps_url(loc.name, loc.address),
            )
            for loc in (payload.locations or [])[:PromptConstants.MAX_RESOLVED_LOCATIONS]
        ]
        logger.info(f"Resolved {len(locations)} locations for query: \"{query}\"")
        return payload.query or query, locations
