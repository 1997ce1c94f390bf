"""
Parsing of free-text vision model output into ``ExtractedFields``.

Models are asked for bare JSON but still wrap it in Markdown fences or
chatty prose now and then. Parsing never raises: the outcome is one of
``Parsed``, ``Unparseable`` or ``Empty``.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ...models.fields import ExtractedFields, FIELD_KEYS

PROMPT = """\
You are a vision parser. Read the product label image and return ONLY valid JSON.
Required keys: {keys}.
- manufacture_date must be YYYY-MM-DD if present; else "".
- categories and subcategories are comma-separated labels.
- If a field is missing, return "" for that field. Never omit a key and never use null.
- No extra keys. No explanations. Only JSON.""".format(keys=", ".join(FIELD_KEYS))


def build_prompt(hint: str | None = None) -> str:
    hint = (hint or "").strip()
    return f"{PROMPT}\nUser note: {hint}" if hint else PROMPT


@dataclass(frozen=True)
class Parsed:
    fields: ExtractedFields


@dataclass(frozen=True)
class Unparseable:
    raw_text: str


@dataclass(frozen=True)
class Empty:
    raw_text: str = field(default="")


ParseResult = Parsed | Unparseable | Empty


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")
        lines = [l for l in lines[1:] if not l.strip().startswith("```")]
        cleaned = "\n".join(lines)
    return cleaned.strip()


def find_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` substring, honouring quoted strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        start = text.find("{", start + 1)
    return None


def _load_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (ValueError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def parse_model_output(raw_text: str | None) -> ParseResult:
    if not raw_text or not raw_text.strip():
        return Empty(raw_text or "")

    cleaned = _strip_code_fence(raw_text)
    payload = _load_object(cleaned)

    # Fence stripping drops the whole opening line, so also scan the raw text
    for text in (cleaned, raw_text):
        if payload is not None:
            break
        candidate = find_json_object(text)
        if candidate is not None:
            payload = _load_object(candidate)

    if payload is None:
        logger.warning(f"Model output is not a JSON object ({len(raw_text)} chars)")
        return Unparseable(raw_text)

    return Parsed(ExtractedFields.from_model_output(payload))


def fields_from_output(raw_text: str | None) -> ExtractedFields:
    """Parse model output, degrading to an all-empty record when it cannot be read."""
    match parse_model_output(raw_text):
        case Parsed(fields=fields):
            return fields
        case _:
            return ExtractedFields()
