"""Field extractor base class, fallback chain, and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

from loguru import logger

from ...models.fields import ExtractedFields

if TYPE_CHECKING:
    from ...core.config import Settings


class FieldExtractor(ABC):
    """Turns one product label photo into an ``ExtractedFields`` record."""

    name: str = "extractor"

    @abstractmethod
    async def extract(
        self, image: bytes, mime_type: str, hint: str | None = None
    ) -> ExtractedFields:
        """Extract fields from raw image bytes.

        Implementations may raise on transport or provider errors; the
        ``ExtractorChain`` turns that into a fallback to the next extractor.
        """
        ...


class ExtractorChain:
    """
    Tries extractors in order and returns the first result that does not raise.

    The last resort is always a placeholder record, so ``extract`` never
    raises: a broken vision provider only degrades the autofill quality.
    """

    def __init__(self, extractors: Sequence[FieldExtractor]):
        from .placeholder import PlaceholderExtractor

        self.extractors = list(extractors)
        self._fallback = PlaceholderExtractor()

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.extractors]

    async def extract(
        self, image: bytes, mime_type: str, hint: str | None = None
    ) -> ExtractedFields:
        for extractor in self.extractors:
            try:
                fields = await extractor.extract(image, mime_type, hint)
            except Exception as e:
                logger.warning(
                    "Extractor {extractor} failed: {error}",
                    extractor=extractor.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            logger.info(
                "Extracted fields",
                extractor=extractor.name,
                title=fields.title,
                vendor=fields.vendor,
            )
            return fields

        logger.warning("All extractors failed - returning placeholder record")
        return await self._fallback.extract(image, mime_type, hint)


def create_chain(config: Settings, http_client=None) -> ExtractorChain:
    """Build the extractor chain from configuration.

    Gemini is tried first when configured, then the OpenAI-compatible
    endpoint, and the placeholder always closes the chain.
    """
    from .placeholder import PlaceholderExtractor

    extractors: list[FieldExtractor] = []

    if config.gemini_api_key:
        from .gemini import GeminiExtractor

        extractors.append(
            GeminiExtractor(api_key=config.gemini_api_key, model=config.gemini_model)
        )

    if config.llm_base_url and config.llm_api_key:
        from .openai_compat import OpenAICompatibleExtractor

        extractors.append(
            OpenAICompatibleExtractor(
                base_url=config.llm_base_url,
                api_key=config.llm_api_key,
                model=config.llm_deployment,
                timeout=config.llm_timeout_seconds,
                client=http_client,
            )
        )

    if not extractors:
        logger.warning(
            "No vision model configured - using placeholder extraction. "
            "Set GEMINI_API_KEY or LLM_BASE_URL/LLM_API_KEY to enable autofill."
        )

    extractors.append(PlaceholderExtractor())
    return ExtractorChain(extractors)
