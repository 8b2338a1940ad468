"""Shared fixtures for reviewmatch tests."""

import pytest

from reviewmatch.core.config import Settings
from reviewmatch.services.llm import parse_json_object


def make_settings(**overrides):
    values = dict(
        apify_api_token="test-token",
        groq_api_key="test-key",
        openai_api_key="",
        apify_base_url="https://api.apify.test/v2",
        poll_interval_seconds=0,
        poll_max_attempts=5,
        max_retries=1,
        retry_delay=0,
        field_aliases_file=None,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings():
    return make_settings()


class FakeLLM:
    """Stands in for OpenAIService; replays canned replies and records prompts."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def _next(self):
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def chat(self, system, user, temperature=0.3, json_mode=True):
        self.calls.append({"system": system, "user": user, "temperature": temperature})
        return self._next()

    def chat_json(self, system, user, temperature=0.3):
        return parse_json_object(self.chat(system, user, temperature=temperature))
