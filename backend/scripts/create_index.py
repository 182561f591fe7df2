"""
Create a Twelve Labs index for advertisement analysis.

Usage: python backend/scripts/create_index.py [--name adonomics-ads]
"""
import argparse
import asyncio
import os
import sys

# Add backend/src to path
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

from adonomics.config import Config
from adonomics.errors import AdonomicsError
from adonomics.video_index import VideoIndexClient

INDEX_MODELS = [
    {"model_name": "marengo2.7", "model_options": ["visual", "audio"]},
    {"model_name": "pegasus1.2", "model_options": ["visual", "audio"]},
]


async def create(name: str) -> str:
    config = Config.from_env()
    if not config.twelve_labs_api_key:
        raise SystemExit("TWELVE_LABS_API_KEY is not set")
    client = VideoIndexClient(config)
    return await client.create_index(name, INDEX_MODELS)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--name", default="adonomics-ads")
    args = parser.parse_args()

    print(f"Creating Twelve Labs index '{args.name}'...")
    try:
        index_id = asyncio.run(create(args.name))
    except AdonomicsError as exc:
        print(f"Error creating index: {exc}")
        sys.exit(1)

    print(f"Index ID: {index_id}")
    print("Set it in your .env file:")
    print(f"   TWELVE_LABS_INDEX_ID={index_id}")


if __name__ == "__main__":
    main()
