"""
Upload every video in a directory to a running Adonomics API.

Usage: python backend/scripts/upload_videos.py ./videos --user-id <id>
"""
import argparse
import sys
from pathlib import Path

import requests

VIDEO_SUFFIXES = {".mp4", ".mov", ".m4v", ".webm"}


def upload(api_url: str, user_id: str, path: Path, timeout: float) -> dict:
    with path.open("rb") as handle:
        response = requests.post(
            f"{api_url.rstrip('/')}/advertisements",
            data={"userId": user_id},
            files={"videoFile": (path.name, handle, "video/mp4")},
            timeout=timeout,
        )
    if response.status_code != 201:
        raise RuntimeError(f"{response.status_code}: {response.text}")
    return response.json()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("directory", type=Path)
    parser.add_argument("--user-id", required=True)
    parser.add_argument("--api-url", default="http://localhost:8000")
    parser.add_argument("--timeout", type=float, default=900.0)
    args = parser.parse_args()

    videos = sorted(
        path for path in args.directory.iterdir()
        if path.is_file() and path.suffix.lower() in VIDEO_SUFFIXES
    )
    if not videos:
        print(f"No videos found in {args.directory}")
        return

    print(f"Uploading {len(videos)} videos to {args.api_url}")
    failures = 0
    for position, path in enumerate(videos, start=1):
        print(f"[{position}/{len(videos)}] {path.name}")
        try:
            body = upload(args.api_url, args.user_id, path, args.timeout)
        except (requests.RequestException, RuntimeError) as exc:
            failures += 1
            print(f"   Failed: {exc}")
            continue
        print(f"   advertisement={body['advertisementId']} video={body['videoId']}")

    print(f"Done: {len(videos) - failures} uploaded, {failures} failed")
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
