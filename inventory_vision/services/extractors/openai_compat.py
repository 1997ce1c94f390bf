import base64

import httpx
from loguru import logger

from . import FieldExtractor
from .parsing import PROMPT, fields_from_output
from ...models.fields import ExtractedFields

DEFAULT_USER_TEXT = "Please extract details from this label."


class OpenAICompatibleExtractor(FieldExtractor):
    """
    Calls an OpenAI-compatible ``/chat/completions`` endpoint with the image
    inlined as a data URL (OpenAI, Azure OpenAI, OpenRouter, vLLM, Ollama).
    """

    name = "openai"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str = "gpt-4o",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    def build_payload(self, image: bytes, mime_type: str, hint: str | None = None) -> dict:
        b64 = base64.b64encode(image).decode("ascii")
        return {
            "model": self.model,
            "temperature": 0,
            "max_tokens": 500,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": (hint or "").strip() or DEFAULT_USER_TEXT},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{mime_type or 'image/jpeg'};base64,{b64}"},
                        },
                    ],
                },
            ],
        }

    async def _post(self, payload: dict) -> httpx.Response:
        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}", "api-key": self.api_key}

        if self._client is not None:
            return await self._client.post(url, json=payload, headers=headers, timeout=self.timeout)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(url, json=payload, headers=headers)

    async def extract(
        self, image: bytes, mime_type: str, hint: str | None = None
    ) -> ExtractedFields:
        logger.debug(f"Calling {self.base_url} model {self.model} with {len(image)} bytes")

        r = await self._post(self.build_payload(image, mime_type, hint))
        r.raise_for_status()

        data = r.json()
        try:
            raw_text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.warning(f"Unexpected chat completion shape: {str(data)[:200]}")
            raw_text = ""

        return fields_from_output(raw_text)
