"""Gemini API extractor for product label photos."""

from __future__ import annotations

from loguru import logger

from . import FieldExtractor
from .parsing import build_prompt, fields_from_output
from ...models.fields import ExtractedFields

GENERATION_CONFIG = {
    "temperature": 0,
    "max_output_tokens": 512,
    "response_mime_type": "application/json",
}


class GeminiExtractor(FieldExtractor):
    """Extract label fields using Google Gemini's vision capability.

    ``client`` may be any object exposing ``generate_content_async`` (a
    ``genai.GenerativeModel`` or a test double). When omitted, the model is
    created lazily on first use from ``api_key`` and ``model``.
    """

    name = "gemini"

    def __init__(self, api_key: str = "", model: str = "gemini-1.5-flash", client=None) -> None:
        self._api_key = api_key
        self._model = model
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client

        if not self._api_key:
            raise ValueError(
                "Gemini API key is not set. Set GEMINI_API_KEY (or GOOGLE_API_KEY)."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        self._client = genai.GenerativeModel(self._model)
        return self._client

    async def extract(
        self, image: bytes, mime_type: str, hint: str | None = None
    ) -> ExtractedFields:
        client = self._get_client()

        parts = [
            build_prompt(hint),
            {"mime_type": mime_type or "image/jpeg", "data": image},
        ]

        logger.debug(f"Calling Gemini model {self._model} with {len(image)} bytes")
        response = await client.generate_content_async(
            parts, generation_config=GENERATION_CONFIG
        )
        return fields_from_output(_response_text(response))


def _response_text(response) -> str:
    # response.text raises when the candidate was blocked or has no text parts
    try:
        return response.text or ""
    except (ValueError, AttributeError):
        return ""
