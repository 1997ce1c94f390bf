"""
Merging of several photos of the same item into one record.

Each field has its own rule:
- item_id: first non-empty value
- title, description: longest non-empty value (first seen on ties)
- vendor: most frequent value (first seen on ties)
- manufacture_date: first strict YYYY-MM-DD value
- categories, subcategories: ordered union of comma-separated labels
- imageUrl: first non-null value
"""

from collections import Counter
from typing import Iterable, Sequence

from ..models.fields import ExtractedFields, MergedFields, is_strict_date


def split_labels(value: str) -> list[str]:
    return [token.strip() for token in (value or "").split(",") if token.strip()]


def union_labels(values: Iterable[str]) -> str:
    seen: dict[str, None] = {}
    for value in values:
        for token in split_labels(value):
            seen.setdefault(token, None)
    return ", ".join(seen)


def first_non_empty(values: Iterable[str]) -> str:
    return next((v.strip() for v in values if v and v.strip()), "")


def longest(values: Iterable[str]) -> str:
    best = ""
    for value in values:
        # strict > keeps the first of equal-length candidates
        if value and len(value) > len(best):
            best = value
    return best


def majority(values: Iterable[str]) -> str:
    candidates = [v.strip() for v in values if v and v.strip()]
    if not candidates:
        return ""
    counts = Counter(candidates)
    # Counter preserves first-insertion order and max() returns the first maximum
    return max(counts, key=counts.__getitem__)


def first_valid_date(values: Iterable[str]) -> str:
    return next((v for v in values if is_strict_date(v)), "")


def merge_fields(records: Sequence[ExtractedFields]) -> MergedFields:
    if not records:
        raise ValueError("merge_fields requires at least one record")

    return MergedFields(
        item_id=first_non_empty(r.item_id for r in records),
        title=longest(r.title for r in records),
        description=longest(r.description for r in records),
        vendor=majority(r.vendor for r in records),
        manufacture_date=first_valid_date(r.manufacture_date for r in records),
        categories=union_labels(r.categories for r in records),
        subcategories=union_labels(r.subcategories for r in records),
        imageUrl=next((r.imageUrl for r in records if r.imageUrl is not None), None),
    )


def normalize_fields(record: ExtractedFields) -> MergedFields:
    """The single-record case of ``merge_fields``."""
    return merge_fields([record])
