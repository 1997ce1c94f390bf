#!/usr/bin/env python3
"""
Label Photo Watcher - Automatic Extraction Demo

Watches a folder for new product label photos and sends each one through
the extraction API. Simulates the mobile app's capture-and-autofill flow.

Usage:
    python label_watcher.py --watch-folder ./labels-incoming --api-url http://127.0.0.1:8000
"""

import argparse
import json
import time
from datetime import datetime
from pathlib import Path

import requests
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

# Configuration
API_BASE_URL = "http://127.0.0.1:8000"
REQUEST_TIMEOUT = 20
IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".heic", ".webp"}


def guess_mime_type(file_path: Path) -> str:
    suffix = file_path.suffix.lower()
    if suffix == ".png":
        return "image/png"
    if suffix == ".heic":
        return "image/heic"
    if suffix == ".webp":
        return "image/webp"
    return "image/jpeg"


class LabelHandler(FileSystemEventHandler):
    """Handles new photo file events"""

    def __init__(self, watch_folder, processed_folder, failed_folder, hint=None):
        self.watch_folder = Path(watch_folder)
        self.processed_folder = Path(processed_folder)
        self.failed_folder = Path(failed_folder)
        self.hint = hint
        self.processed_files = set()

        self.processed_folder.mkdir(exist_ok=True)
        self.failed_folder.mkdir(exist_ok=True)

    def on_created(self, event):
        """Called when a file is created in the watched folder"""
        if event.is_directory:
            return

        file_path = Path(event.src_path)

        if file_path.suffix.lower() not in IMAGE_SUFFIXES:
            return

        if file_path in self.processed_files:
            return

        # Small delay to ensure file is fully written
        time.sleep(1)

        if not file_path.exists():
            return

        self.processed_files.add(file_path)
        self.process_photo(file_path)

    def process_photo(self, file_path: Path):
        """Send a photo to the extraction API"""
        print("\n" + "=" * 70)
        print(f"📷 NEW PHOTO DETECTED: {file_path.name}")
        print("=" * 70)
        print(f"Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print(f"Size: {file_path.stat().st_size:,} bytes")
        print()

        try:
            print("🔄 Uploading to API...")
            with open(file_path, "rb") as f:
                files = {"image": (file_path.name, f, guess_mime_type(file_path))}
                data = {"text": self.hint} if self.hint else None

                response = requests.post(
                    f"{API_BASE_URL}/extract",
                    files=files,
                    data=data,
                    timeout=REQUEST_TIMEOUT,
                )

            if response.status_code == 200:
                self.handle_success(file_path, response.json())
            else:
                print(f"❌ API Error: {response.status_code}")
                print(f"   {response.text}")
                self.handle_error(file_path, f"API returned {response.status_code}")

        except requests.exceptions.Timeout:
            print(f"⏱️  Request timed out after {REQUEST_TIMEOUT}s")
            self.handle_error(file_path, "Timeout")
        except requests.exceptions.RequestException as e:
            print(f"❌ Error: {str(e)}")
            self.handle_error(file_path, str(e))

    def handle_success(self, file_path: Path, fields: dict):
        print()
        print("📊 EXTRACTED FIELDS:")
        print(f"   Title: {fields.get('title', '')}")
        print(f"   Item ID: {fields.get('item_id', '')}")
        print(f"   Vendor: {fields.get('vendor', '')}")
        print(f"   Manufactured: {fields.get('manufacture_date', '') or 'unknown'}")
        print(f"   Categories: {fields.get('categories', '')}")
        print(f"   Image URL: {fields.get('imageUrl') or 'not hosted'}")

        dest_path = self.processed_folder / file_path.name
        file_path.rename(dest_path)
        print(f"\n📁 Moved to: {dest_path}")

        self.log_processing(file_path.name, fields, dest_path)
        print("=" * 70)

    def handle_error(self, file_path: Path, error_msg: str):
        print(f"\n❌ Processing failed: {error_msg}")

        dest_path = self.failed_folder / f"ERROR_{file_path.name}"
        file_path.rename(dest_path)
        print(f"📁 Moved to: {dest_path}")
        print("=" * 70)

    def log_processing(self, filename: str, fields: dict, dest_path: Path):
        """Append the extraction result to a JSON log next to the watch folder"""
        log_file = self.watch_folder.parent / "extraction_log.json"

        if log_file.exists():
            with open(log_file, "r") as f:
                log_data = json.load(f)
        else:
            log_data = []

        log_data.append({
            "timestamp": datetime.now().isoformat(),
            "filename": filename,
            "fields": fields,
            "destination": str(dest_path),
        })

        with open(log_file, "w") as f:
            json.dump(log_data, f, indent=2)


def main():
    global API_BASE_URL

    parser = argparse.ArgumentParser(
        description="Watch a folder for label photos and extract fields automatically"
    )
    parser.add_argument(
        "--watch-folder",
        default="./labels-incoming",
        help="Folder to watch for new photos (default: ./labels-incoming)",
    )
    parser.add_argument(
        "--processed-folder",
        default="./labels-processed",
        help="Folder for processed photos (default: ./labels-processed)",
    )
    parser.add_argument(
        "--failed-folder",
        default="./labels-failed",
        help="Folder for photos the API rejected (default: ./labels-failed)",
    )
    parser.add_argument("--hint", default=None, help="Optional note sent with every photo")
    parser.add_argument(
        "--api-url",
        default=API_BASE_URL,
        help=f"API base URL (default: {API_BASE_URL})",
    )

    args = parser.parse_args()

    API_BASE_URL = args.api_url.rstrip("/")

    watch_folder = Path(args.watch_folder)
    watch_folder.mkdir(exist_ok=True)

    event_handler = LabelHandler(
        args.watch_folder,
        args.processed_folder,
        args.failed_folder,
        hint=args.hint,
    )
    observer = Observer()
    observer.schedule(event_handler, str(watch_folder), recursive=False)
    observer.start()

    print("=" * 70)
    print("🔍 LABEL WATCHER - AUTOMATIC EXTRACTION")
    print("=" * 70)
    print(f"Watching: {watch_folder.absolute()}")
    print(f"Processed → {Path(args.processed_folder).absolute()}")
    print(f"Failed → {Path(args.failed_folder).absolute()}")
    print(f"API: {API_BASE_URL}")
    print()
    print("💡 Drop label photos into the watch folder to process them")
    print("Press Ctrl+C to stop")
    print("=" * 70)
    print()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n\n👋 Stopping watcher...")
        observer.stop()

    observer.join()
    print("✅ Watcher stopped")


if __name__ == "__main__":
    main()
