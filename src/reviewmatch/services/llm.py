"""LLM service for OpenAI-compatible chat completion endpoints (Groq by default)."""

import json
import logging
import re
from typing import Any, Dict, Optional

import openai
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.config import Settings, settings as default_settings
from ..core.constants import ErrorConstants
from ..core.exceptions import UpstreamParseError

logger = logging.getLogger(__name__)

# Errors worth another attempt; anything else surfaces immediately.
_TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


def _strip_code_fences(s: str) -> str:
    s = s.strip()
    return re.sub(r"^```(?:json)?|```$", "", s, flags=re.IGNORECASE | re.MULTILINE).strip()


def parse_json_object(content: Optional[str]) -> Dict[str, Any]:
    """Decode a model reply that must be a single JSON object.

    Markdown fences are tolerated; anything else that is not a JSON object is
    rejected rather than repaired.
    """
    if not content or not content.strip():
        raise UpstreamParseError("No response from language model")
    try:
        data = json.loads(_strip_code_fences(content))
    except json.JSONDecodeError as exc:
        logger.error(f"Failed to parse model JSON: {exc}. Response was: {content[:200]}...")
        raise UpstreamParseError(f"Invalid JSON from language model: {exc}") from exc
    if not isinstance(data, dict):
        raise UpstreamParseError("Language model response is not a JSON object")
    return data


class LLMServiceFactory:
    """Factory for creating LLM services."""

    @staticmethod
    def create(settings: Optional[Settings] = None) -> "OpenAIService":
        """Create the configured LLM service; fails fast without a key."""
        return OpenAIService(settings=settings)


class OpenAIService:
    """OpenAI-client based LLM service."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[Any] = None):
        self.settings = settings or default_settings
        api_key = self.settings.require_llm_key()
        self.model = self.settings.llm_model
        self.client = client or openai.OpenAI(
            api_key=api_key,
            base_url=self.settings.llm_base_url or None,
            timeout=ErrorConstants.LLM_REQUEST_TIMEOUT,
        )
        logger.info(f"LLM service initialized with model {self.model}")

    def chat(self, system: str, user: str, temperature: float = 0.3, json_mode: bool = True) -> str:
        """Run one chat completion and return the raw message content (may be empty)."""
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        retryer = Retrying(
            stop=stop_after_attempt(max(1, self.settings.max_retries)),
            wait=wait_exponential(multiplier=self.settings.retry_delay, max=self.settings.retry_backoff * 10),
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            before_sleep=lambda state: logger.warning(
                f"Chat attempt {state.attempt_number} failed: {state.outcome.exception()}. Retrying..."
            ),
            reraise=True,
        )
        response = retryer(self.client.chat.completions.create, **kwargs)

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()

    def chat_json(self, system: str, user: str, temperature: float = 0.3) -> Dict[str, Any]:
        """Chat in JSON mode and decode the reply as a JSON object."""
        return parse_json_object(self.chat(system, user, temperature=temperature, json_mode=True))
