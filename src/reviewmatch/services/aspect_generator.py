"""Suggest common positive and negative aspects for a type of location."""

import logging
from typing import Any, List, Optional

from ..core.config import Settings, settings as default_settings
from ..core.constants import PromptConstants
from ..core.exceptions import UpstreamParseError
from ..core.models import AspectSuggestions
from .llm import LLMServiceFactory, OpenAIService

logger = logging.getLogger(__name__)

ASPECTS_SYSTEM_PROMPT = (
    "You are a helpful assistant that generates common review aspects for different types of businesses. "
    "Keep phrases short and practical."
)

ASPECTS_USER_TEMPLATE = """For "{location_type}", generate two lists:
1. {count} common positive aspects that customers typically look for and appreciate
2. {count} common negative aspects (red flags) that customers typically complain about or want to avoid

Be specific and practical. Use short phrases (2-4 words each).

Respond with JSON:
{{
  "positiveAspects": ["aspect1", "aspect2", ...],
  "negativeAspects": ["aspect1", "aspect2", ...]
}}"""


def _clean_aspect_list(value: Any, field: str, limit: int) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise UpstreamParseError(f"'{field}' in aspect response is not a list")
    cleaned = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return cleaned[:limit]


class AspectGenerator:
    """Round-trips a location type through the model to get aspect suggestions."""

    def __init__(self, llm: Optional[OpenAIService] = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.llm = llm or LLMServiceFactory.create(self.settings)

    def generate(self, location_type: str) -> AspectSuggestions:
        prompt = ASPECTS_USER_TEMPLATE.format(
            location_type=location_type.strip(),
            count=PromptConstants.ASPECTS_PER_LIST,
        )
        result = self.llm.chat_json(
            ASPECTS_SYSTEM_PROMPT,
            prompt,
            temperature=PromptConstants.ASPECTS_TEMPERATURE,
        )

        suggestions = AspectSuggestions(
            positive_aspects=_clean_aspect_list(
                result.get("positiveAspects"), "positiveAspects", PromptConstants.ASPECTS_PER_LIST
            ),
            negative_aspects=_clean_aspect_list(
                result.get("negativeAspects"), "negativeAspects", PromptConstants.ASPECTS_PER_LIST
            ),
        )
        logger.info(
            f"Generated {len(suggestions.positive_aspects)} positive and "
            f"{len(suggestions.negative_aspects)} negative aspects for '{location_type}'"
        )
        return suggestions
