"""Server-Sent Events framing for streaming routes."""

import json
from collections.abc import Iterable
from typing import Any

from fastapi.responses import StreamingResponse

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def sse_frame(payload: Any) -> str:
    """Encode one payload as a `data: <json>` frame."""
    return f"data: {json.dumps(payload)}\n\n"


def sse_sentinel(sentinel: str) -> str:
    """Encode the raw end-of-stream frame, e.g. `data: [DONE]`."""
    return f"data: {sentinel}\n\n"


def sse_response(
    frames: Iterable[str], headers: dict[str, str] | None = None
) -> StreamingResponse:
    """Wrap an iterator of encoded frames in a text/event-stream response."""
    return StreamingResponse(
        frames,
        media_type="text/event-stream",
        headers={**SSE_HEADERS, **(headers or {})},
    )
