"""
Value objects shared by the extractor, merger and uploader.

``ExtractedFields`` is the record returned to the mobile client. Every text
field is a string (never ``None``); only ``imageUrl`` is nullable.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

FIELD_KEYS = (
    "item_id",
    "title",
    "description",
    "vendor",
    "manufacture_date",
    "categories",
    "subcategories",
)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_strict_date(value: str | None) -> bool:
    """True when ``value`` is exactly ``YYYY-MM-DD`` and names a real calendar day."""
    if not value or DATE_PATTERN.match(value) is None:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def coerce_text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        # Models sometimes answer categories as a JSON array
        return ", ".join(coerce_text(v) for v in value if coerce_text(v))
    return ""


class ExtractedFields(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item_id: str = ""
    title: str = ""
    description: str = ""
    vendor: str = ""
    manufacture_date: str = ""
    categories: str = ""
    subcategories: str = ""
    imageUrl: str | None = None

    @field_validator(*FIELD_KEYS, mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> str:
        return coerce_text(value)

    @field_validator("manufacture_date")
    @classmethod
    def _strict_date(cls, value: str) -> str:
        return value if is_strict_date(value) else ""

    @classmethod
    def from_model_output(cls, payload: dict) -> "ExtractedFields":
        """Build a record from a model's JSON object, keeping only the expected keys."""
        return cls(**{key: payload.get(key) for key in FIELD_KEYS})


class MergedFields(ExtractedFields):
    """Result of folding several photos of the same item into one record."""


@dataclass(frozen=True)
class UploadTarget:
    bucket: str | None
    object_path: str
    public_url: str | None = None


@dataclass(frozen=True)
class ImageUpload:
    """One received image, held in memory for the lifetime of a request."""

    data: bytes
    filename: str | None = None
    content_type: str | None = None
