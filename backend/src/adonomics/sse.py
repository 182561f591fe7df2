"""
Server-Sent Events (SSE) helpers.

Frames are ``data: <json>\\n\\n`` text, one per event.
"""
from __future__ import annotations

import json
from typing import Any, AsyncIterator

from fastapi.responses import StreamingResponse

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def format_event(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def parse_frames(body: str) -> list[dict[str, Any]]:
    """Decode a complete SSE body back into its JSON payloads."""
    events = []
    for block in body.split("\n\n"):
        block = block.strip()
        if block.startswith("data: "):
            events.append(json.loads(block[len("data: "):]))
    return events


def create_sse_response(frames: AsyncIterator[str]) -> StreamingResponse:
    """
    Create a StreamingResponse for SSE.

    Args:
        frames: Async iterator of already formatted frames.

    Returns:
        StreamingResponse configured for SSE
    """
    return StreamingResponse(frames, media_type="text/event-stream", headers=SSE_HEADERS)
