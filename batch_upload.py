#!/usr/bin/env python3
"""
Upload several photos of one item, then merge the per-photo results.

Usage:
    python batch_upload.py front.jpg back.jpg side.png --text "kitchen shelf"
"""
import argparse
from pathlib import Path

import requests

# Configuration
API_BASE_URL = "http://127.0.0.1:8000"

FIELDS = ["item_id", "title", "description", "vendor", "manufacture_date", "categories", "subcategories", "imageUrl"]


def mime_type_for(path: Path) -> str:
    lower = path.name.lower()
    if lower.endswith(".png"):
        return "image/png"
    if lower.endswith(".heic"):
        return "image/heic"
    return "image/jpeg"


def print_fields(fields: dict, indent: str = "   "):
    for key in FIELDS:
        print(f"{indent}{key}: {fields.get(key) or '-'}")


def upload_batch(paths: list[Path], text: str | None = None) -> list[dict] | None:
    """Upload every photo in one request; results come back in upload order"""
    handles = [open(p, "rb") for p in paths]
    try:
        files = [("images", (p.name, h, mime_type_for(p))) for p, h in zip(paths, handles)]
        data = {"text": text} if text else None
        response = requests.post(f"{API_BASE_URL}/extract/batch", files=files, data=data, timeout=120)
    finally:
        for h in handles:
            h.close()

    if response.status_code != 200:
        print(f"❌ ERROR: {response.status_code} - {response.text}")
        return None
    return response.json()


def merge_results(results: list[dict]) -> dict | None:
    response = requests.post(f"{API_BASE_URL}/extract/merge", json={"items": results}, timeout=30)
    if response.status_code != 200:
        print(f"❌ ERROR: {response.status_code} - {response.text}")
        return None
    return response.json()


def main():
    global API_BASE_URL

    parser = argparse.ArgumentParser(description="Extract and merge fields from several photos of one item")
    parser.add_argument("photos", nargs="+", type=Path, help="Photos of the same item")
    parser.add_argument("--text", default=None, help="Optional hint sent with the photos")
    parser.add_argument("--api-url", default=API_BASE_URL, help=f"API base URL (default: {API_BASE_URL})")
    args = parser.parse_args()

    API_BASE_URL = args.api_url.rstrip("/")

    missing = [p for p in args.photos if not p.exists()]
    if missing:
        for p in missing:
            print(f"⚠️  Photo not found: {p}")
        return

    print("=" * 70)
    print(f"Uploading {len(args.photos)} photos to {API_BASE_URL}")
    print("=" * 70)

    results = upload_batch(args.photos, args.text)
    if results is None:
        return

    for path, fields in zip(args.photos, results):
        print(f"\n📷 {path.name}")
        print_fields(fields)

    print("\n" + "-" * 70)
    merged = merge_results(results)
    if merged is None:
        return

    print("\n🧩 MERGED")
    print_fields(merged)
    print("=" * 70)


if __name__ == "__main__":
    main()
