"""
Call API — REST endpoints for video calls + SSE media stream.

Endpoints:
    POST   /v1/calls                          → Create a call (persona greets first)
    GET    /v1/calls                          → List live calls
    GET    /v1/calls/{id}                     → Current snapshot
    POST   /v1/calls/{id}/turns               → Submit one user utterance
    POST   /v1/calls/{id}/playback-ended      → Client finished playing audio
    GET    /v1/calls/{id}/events              → SSE stream of media + state events
    DELETE /v1/calls/{id}                     → End the call
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from personacall.kernel.event_bus import media_topic, state_topic

if TYPE_CHECKING:
    from personacall.call import CallManager
    from personacall.kernel.event_bus import EventBus

logger = logging.getLogger(__name__)


async def _json_body(request: Request) -> dict:
    """Request body as a dict; an empty or non-object body reads as {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return body if isinstance(body, dict) else {}


def _not_found(call_id: str) -> JSONResponse:
    return JSONResponse({"error": f"Call {call_id} not found"}, status_code=404)


def create_call_router(calls: "CallManager", event_bus: "EventBus") -> APIRouter:
    """Create the call management router."""

    router = APIRouter(prefix="/v1", tags=["calls"])

    # ─── Call lifecycle ───────────────────────────────────────

    @router.post("/calls")
    async def create_call(request: Request) -> JSONResponse:
        body = await _json_body(request)
        for field in ("call_id", "persona_category"):
            if body.get(field) is not None and not isinstance(body[field], str):
                return JSONResponse(
                    {"error": f"'{field}' must be a string"}, status_code=400
                )
        requested_id = body.get("call_id")
        if requested_id and calls.get(requested_id) is not None:
            return JSONResponse(
                {"error": f"Call {requested_id} already exists"}, status_code=409
            )
        call = calls.create(
            persona_category=body.get("persona_category"),
            call_id=requested_id,
        )
        snapshot = (
            await call.start() if body.get("greet", True) else call.snapshot()
        )
        return JSONResponse(
            {
                **snapshot.to_dict(),
                "persona": {
                    "category": call.persona.category,
                    "voice_profile": call.persona.voice_profile,
                    "supports_video_loop": call.persona.supports_video_loop,
                },
                "events_url": f"/v1/calls/{call.call_id}/events",
            },
            status_code=201,
        )

    @router.get("/calls")
    async def list_calls() -> JSONResponse:
        return JSONResponse({"calls": calls.active()})

    @router.get("/calls/{call_id}")
    async def get_call(call_id: str) -> JSONResponse:
        call = calls.get(call_id)
        if call is None:
            return _not_found(call_id)
        return JSONResponse(call.snapshot().to_dict())

    @router.delete("/calls/{call_id}")
    async def end_call(call_id: str) -> JSONResponse:
        ended = await calls.end(call_id)
        if not ended:
            return _not_found(call_id)
        return JSONResponse({"call_id": call_id, "status": "ended"})

    # ─── Turns & playback ─────────────────────────────────────

    @router.post("/calls/{call_id}/turns")
    async def submit_turn(call_id: str, request: Request) -> JSONResponse:
        call = calls.get(call_id)
        if call is None:
            return _not_found(call_id)

        body = await _json_body(request)
        text = body.get("text")
        if not isinstance(text, str):
            return JSONResponse({"error": "Missing 'text' field"}, status_code=400)

        try:
            snapshot = await call.submit(text)
        except ValueError as e:
            return JSONResponse({"error": str(e)}, status_code=422)
        except RuntimeError as e:
            return JSONResponse({"error": str(e)}, status_code=409)
        return JSONResponse(snapshot.to_dict())

    @router.post("/calls/{call_id}/playback-ended")
    async def playback_ended(call_id: str, request: Request) -> JSONResponse:
        call = calls.get(call_id)
        if call is None:
            return _not_found(call_id)

        body = await _json_body(request)
        playback_id = body.get("playback_id")
        if playback_id is not None and not isinstance(playback_id, int):
            return JSONResponse(
                {"error": "'playback_id' must be an integer"}, status_code=400
            )
        snapshot = await call.playback_ended(playback_id)
        return JSONResponse(snapshot.to_dict())

    # ─── SSE Event Stream ─────────────────────────────────────

    @router.get("/calls/{call_id}/events", response_model=None)
    async def call_events(call_id: str) -> StreamingResponse | JSONResponse:
        """Playback commands and state changes for one call, as they happen."""
        if calls.get(call_id) is None:
            return _not_found(call_id)
        return StreamingResponse(
            _sse_generator(call_id, event_bus),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    return router


# ─── SSE Helpers ──────────────────────────────────────────────


def format_sse(event: dict) -> str:
    return f"event: {event.get('type', 'message')}\ndata: {json.dumps(event)}\n\n"


async def _sse_generator(
    call_id: str, event_bus: "EventBus"
) -> AsyncGenerator[str, None]:
    """Merge the media and state topics of a call into one SSE stream."""
    media = media_topic(call_id)
    state = state_topic(call_id)
    queue = event_bus.subscribe(media)
    event_bus.subscribe(state, queue=queue)

    try:
        async for event in event_bus.listen(queue):
            yield format_sse(event)
        yield format_sse({"type": "done", "call_id": call_id})
    finally:
        event_bus.unsubscribe(media, queue)
        event_bus.unsubscribe(state, queue)
