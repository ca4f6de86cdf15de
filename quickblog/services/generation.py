import logging

import requests

from quickblog.core.config import settings
from quickblog.core.errors import ServerError, ValidationError

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
PROMPT_SUFFIX = " Generate a blog content for this topic in simple text format"


class ContentGenerator:
    """Blog drafting through the Gemini ``generateContent`` REST endpoint."""

    def __init__(self, api_key: str = None, model: str = None, timeout: float = None):
        self.api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self.model = model or settings.GEMINI_MODEL
        self.timeout = timeout or settings.GEMINI_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, prompt: str) -> str:
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValidationError("Prompt is required")
        if not self.configured:
            raise ServerError("Content generation is not configured")

        payload = {"contents": [{"parts": [{"text": prompt + PROMPT_SUFFIX}]}]}
        # Key travels in a header; request URLs end up in exception text
        try:
            response = requests.post(
                GEMINI_URL.format(model=self.model),
                headers={"x-goog-api-key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Gemini request failed: %s", type(e).__name__)
            raise ServerError("Content generation failed")
        if not response.ok:
            logger.error("Gemini request failed with status %s", response.status_code)
            raise ServerError("Content generation failed")
        try:
            data = response.json()
        except ValueError:
            raise ServerError("Content generation returned an invalid response")

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            logger.error("Unexpected Gemini response: %s", data)
            raise ServerError("Content generation returned no content")
        return "".join(part.get("text", "") for part in parts)


def get_content_generator() -> ContentGenerator:
    return ContentGenerator()
