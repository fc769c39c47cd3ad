"""Server-sent events framing for streamed generations."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator

from fastapi.responses import StreamingResponse

from fractal.api.error_handling import error_payload
from fractal.core.errors import FractalError
from fractal.models import StreamChunk

logger = logging.getLogger(__name__)


def sse_headers() -> dict[str, str]:
    return {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": "*",
    }


def sse_event(data: dict, event: str | None = None) -> str:
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {json.dumps(data)}\n\n"


async def chunks_to_sse(chunks: AsyncGenerator[StreamChunk, None]) -> AsyncIterator[str]:
    """One ``data:`` frame per chunk; a mid-stream failure becomes an ``error`` frame."""
    try:
        async for chunk in chunks:
            yield sse_event(chunk.to_dict())
    except FractalError as e:
        logger.error(f"Stream aborted: {e.code.value}: {e}")
        yield sse_event(error_payload(e), event="error")
    finally:
        await chunks.aclose()


def streaming_response(
    *,
    stream: AsyncIterator[str],
    headers: dict[str, str] | None = None,
) -> StreamingResponse:
    return StreamingResponse(
        stream,
        media_type="text/event-stream",
        headers=headers or sse_headers(),
    )
