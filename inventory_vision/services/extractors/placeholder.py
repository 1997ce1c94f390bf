"""Deterministic last-resort extractor with no external dependencies."""

from . import FieldExtractor
from ...models.fields import ExtractedFields

PLACEHOLDER_TITLE = "Uncategorized Item"


class PlaceholderExtractor(FieldExtractor):
    name = "placeholder"

    async def extract(
        self, image: bytes, mime_type: str, hint: str | None = None
    ) -> ExtractedFields:
        return ExtractedFields(title=PLACEHOLDER_TITLE)
