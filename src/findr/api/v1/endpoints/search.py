"""Search endpoint — Aggregated search across every enabled provider.

Supports two output modes:

- **Complete** (``stream=false``, default) — A single JSON ``SearchSnapshot``
  once every provider has completed.
- **Streaming** (``stream=true``) — Server-Sent Events (SSE) stream; a fresh,
  fully sorted snapshot is emitted each time a provider completes.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from findr.api.deps import get_aggregator
from findr.core.aggregator import Aggregator
from findr.core.cancellation import CancellationToken
from findr.models.query import SearchRequest
from findr.models.response import SearchSnapshot, StreamEvent

logger = logging.getLogger(__name__)

router = APIRouter()

CLIENT_DISCONNECTED = "Client disconnected"


@router.post(
    "/search",
    response_model=SearchSnapshot,
    summary="Aggregated Search",
    description=(
        "Fan the query out to every enabled provider and merge the results by URL.\n\n"
        "**Output modes:**\n"
        "- `stream: false` (default) — Returns the final `SearchSnapshot` as JSON.\n"
        "- `stream: true` — Returns an SSE event stream (`text/event-stream`).\n\n"
        "**SSE event types (streaming mode):**\n"
        "| Event | Emitted | Description |\n"
        "|-------|---------|-------------|\n"
        "| `snapshot` | per provider | A provider completed — contains the full, re-sorted `SearchSnapshot` |\n"
        "| `done` | once | All providers completed — contains `total_results`, `error_count`, `processing_time_ms` |\n"
        "| `error` | 0–1 | Unexpected failure — contains `error` message |"
    ),
    responses={
        200: {
            "description": "Final snapshot (stream=false) or SSE stream (stream=true)",
            "content": {
                "application/json": {},
                "text/event-stream": {},
            },
        },
        422: {"description": "Validation error — invalid request body"},
        500: {"description": "Internal server error — search processing failed"},
    },
)
async def search(
    request: SearchRequest,
    http_request: Request,
    aggregator: Aggregator = Depends(get_aggregator),
) -> SearchSnapshot | StreamingResponse:
    """Execute an aggregated search.

    When ``stream=true`` the search is tied to the connection: a client
    disconnect cancels every provider call still in flight.
    """
    if request.options.stream:
        return StreamingResponse(
            _sse_generator(aggregator, request, http_request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    try:
        return await aggregator.search(request.query, request.options)
    except Exception as e:
        logger.error("Search failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Search processing failed: {e!s}",
        ) from e


def _format_event(event: StreamEvent) -> str:
    payload = json.dumps(event.data, ensure_ascii=False)
    return f"event: {event.event}\ndata: {payload}\n\n"


async def _sse_generator(
    aggregator: Aggregator,
    request: SearchRequest,
    http_request: Request,
) -> AsyncIterator[str]:
    """Async generator that yields SSE-formatted lines.

    Each event follows the SSE protocol::

        event: <event_type>
        data: <json_payload>

    """
    token = CancellationToken()
    start_time = time.monotonic()
    last: SearchSnapshot | None = None
    stream = aggregator.search_stream(request.query, request.options, cancel=token)
    try:
        async for snapshot in stream:
            last = snapshot
            yield _format_event(StreamEvent(event="snapshot", data=snapshot.model_dump(mode="json")))
            if await http_request.is_disconnected():
                logger.info("Client disconnected, cancelling search for query: %s", request.query)
                token.cancel(CLIENT_DISCONNECTED)
                return

        yield _format_event(
            StreamEvent(
                event="done",
                data={
                    "query": request.query,
                    "total_results": len(last.results) if last else 0,
                    "error_count": len(last.errors) if last else 0,
                    "processing_time_ms": int((time.monotonic() - start_time) * 1000),
                },
            )
        )
    except Exception as e:
        logger.error("SSE stream error: %s", e, exc_info=True)
        yield _format_event(StreamEvent(event="error", data={"error": str(e)}))
    finally:
        if last is None or not last.complete:
            token.cancel(CLIENT_DISCONNECTED)
        await stream.aclose()
