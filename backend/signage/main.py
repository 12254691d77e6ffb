from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import display_router, realtime_router, screens_router
from .config import settings
from .services.backend import close_backend
from .services.display_sessions import display_session_manager

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    # No timers or resolutions may outlive the process' sessions.
    await display_session_manager.dispose_all()
    await close_backend()


app = FastAPI(title="Signage Playback Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(screens_router)
app.include_router(display_router)
app.include_router(realtime_router)


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "backend": settings.backend}
