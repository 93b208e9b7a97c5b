"""
PersonaCall — a video call with your younger self.

One process serves many calls. Providers are created once and shared;
every call gets its own DialogueSession and MediaSyncController.

Run: uvicorn personacall.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

import personacall.core.config as config_module
from personacall.call import CallManager
from personacall.core.logging import setup_logging
from personacall.core.metrics import metrics
from personacall.http.calls import create_call_router
from personacall.kernel.event_bus import EventBus
from personacall.providers import get_llm_provider, get_tts_provider
from personacall.recommend import Recommender

VERSION = "0.1.0"

# --- Setup ---
setup_logging()
logger = logging.getLogger("personacall")

app = FastAPI(title="PersonaCall", version=VERSION)

# --- Shared state ---
event_bus = EventBus()
llm_provider = get_llm_provider()
tts_provider = get_tts_provider()
call_manager = CallManager(
    llm_provider, tts_provider, event_bus, recommender=Recommender()
)

app.include_router(create_call_router(call_manager, event_bus))


@app.on_event("startup")
async def startup():
    await llm_provider.start()
    await tts_provider.start()
    cfg = config_module.config
    logger.info(
        "PersonaCall %s ready (LLM=%s/%s, TTS=%s, persona=%s)",
        VERSION,
        cfg.llm.provider,
        cfg.llm.model,
        cfg.tts.provider,
        cfg.persona.default_category,
    )


@app.on_event("shutdown")
async def shutdown():
    await call_manager.end_all()
    await llm_provider.stop()
    await tts_provider.stop()


@app.get("/health")
async def health():
    """Health check — provider status and live call count."""
    return JSONResponse(
        {
            "status": "ok",
            "version": VERSION,
            "providers": {
                "llm": await llm_provider.health_check(),
                "tts": await tts_provider.health_check(),
            },
            "active_calls": len(call_manager.active()),
        }
    )


@app.get("/metrics")
async def get_metrics():
    return JSONResponse(metrics.snapshot())


def run() -> None:
    import uvicorn

    server = config_module.config.server
    uvicorn.run("personacall.main:app", host=server.host, port=server.port)
