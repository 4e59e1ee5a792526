"""
Google Gemini client used by the AI routes.

Wraps the provider call and the post-processing of its free-form reply
(code-fence stripping and JSON parsing) so that callers only ever see a
parsed value or one of the typed errors below.
"""

import json
import logging
import re
from typing import Any

from google import genai

from prep_backend.core import config

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```\s*$")


class AIProviderError(Exception):
    """The provider call failed or returned no text."""


class AIResponseFormatError(Exception):
    """The provider replied, but the reply is not valid JSON."""

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


def strip_code_fences(raw_text: str) -> str:
    """Remove a leading ```json fence and a trailing ``` fence, then trim."""
    cleaned = _LEADING_FENCE.sub("", raw_text, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_reply(raw_text: str) -> Any:
    cleaned = strip_code_fences(raw_text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("JSON parse failed for AI reply: %s", cleaned)
        raise AIResponseFormatError(str(exc), raw_text=cleaned) from exc


class GeminiClient:
    """Sends prompts to a Gemini model and returns text or parsed JSON."""

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key if api_key is not None else config.GEMINI_API_KEY
        self.model = model or config.GEMINI_MODEL
        self._client: genai.Client | None = None

    @property
    def client(self) -> genai.Client:
        # Built on first use so the app can boot without a key in development.
        if self._client is None:
            if self.api_key:
                self._client = genai.Client(api_key=self.api_key)
            else:
                self._client = genai.Client()
        return self._client

    def generate_text(self, prompt: str) -> str:
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
            )
        except Exception as exc:
            logger.exception("Gemini request failed")
            raise AIProviderError(str(exc)) from exc

        text = getattr(response, "text", None)
        if not text:
            raise AIProviderError("Gemini returned an empty response.")
        return text

    def generate_json(self, prompt: str) -> Any:
        return parse_json_reply(self.generate_text(prompt))
