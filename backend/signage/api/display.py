"""Display session APIs: resolve, mount and drive playback per client."""

from __future__ import annotations

import re
from typing import Optional

from fastapi import APIRouter, Body, HTTPException, Path, Query
from fastapi.responses import Response

from ..models.display import (
    JumpRequest,
    MediaErrorReport,
    ResolvedSequence,
    SessionMountRequest,
    SessionResponse,
)
from ..services.backend import get_backend
from ..services.display_sessions import SessionNotFound, display_session_manager
from ..services.schedule_resolver import ScheduleResolver
from ..services.session import PlaybackSession

router = APIRouter()

_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

_SIMPLE_ACTIONS = {"toggle", "pause", "resume", "next", "previous"}


def _sanitize_client_id(value: str) -> str:
    cleaned = value.strip()
    if not cleaned or not _CLIENT_ID_PATTERN.fullmatch(cleaned):
        raise HTTPException(status_code=400, detail="client_id may only contain letters, digits, '_' and '-'")
    return cleaned


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


async def _require_session(client_id: str) -> PlaybackSession:
    try:
        return await display_session_manager.get(client_id)
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail=f"no display session for client {client_id}") from exc


@router.get("/api/resolve", response_model=ResolvedSequence)
async def api_resolve(
    screen: Optional[str] = Query(default=None),
    preview: Optional[str] = Query(default=None),
) -> ResolvedSequence:
    resolver = ScheduleResolver(get_backend().repository)
    return await resolver.resolve(_clean_optional(screen), preview_id=_clean_optional(preview))


@router.post("/api/clients/{client_id}/session", response_model=SessionResponse)
async def api_mount_session(
    client_id: str = Path(..., min_length=1),
    body: Optional[SessionMountRequest] = Body(default=None),
) -> SessionResponse:
    cleaned = _sanitize_client_id(client_id)
    body = body or SessionMountRequest()
    session = await display_session_manager.mount(
        cleaned,
        screen_id=_clean_optional(body.screen_id),
        preview_id=_clean_optional(body.preview_id),
    )
    return session.snapshot()


@router.get("/api/clients/{client_id}/session", response_model=SessionResponse)
async def api_get_session(client_id: str = Path(..., min_length=1)) -> SessionResponse:
    session = await _require_session(_sanitize_client_id(client_id))
    return session.snapshot()


@router.delete("/api/clients/{client_id}/session", response_class=Response)
async def api_dispose_session(client_id: str = Path(..., min_length=1)) -> Response:
    cleaned = _sanitize_client_id(client_id)
    await display_session_manager.dispose(cleaned)
    return Response(status_code=204)


@router.post("/api/clients/{client_id}/session/jump", response_model=SessionResponse)
async def api_jump(
    client_id: str = Path(..., min_length=1),
    body: JumpRequest = Body(...),
) -> SessionResponse:
    session = await _require_session(_sanitize_client_id(client_id))
    try:
        session.jump_to(body.index)
    except IndexError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return session.snapshot()


@router.post("/api/clients/{client_id}/session/refresh", response_model=SessionResponse)
async def api_refresh(client_id: str = Path(..., min_length=1)) -> SessionResponse:
    session = await _require_session(_sanitize_client_id(client_id))
    await session.refresh()
    return session.snapshot()


@router.post("/api/clients/{client_id}/session/media-error", response_model=SessionResponse)
async def api_report_media_error(
    client_id: str = Path(..., min_length=1),
    body: MediaErrorReport = Body(...),
) -> SessionResponse:
    session = await _require_session(_sanitize_client_id(client_id))
    session.report_media_error(body.content_id)
    return session.snapshot()


@router.post("/api/clients/{client_id}/session/{action}", response_model=SessionResponse)
async def api_session_action(
    client_id: str = Path(..., min_length=1),
    action: str = Path(...),
) -> SessionResponse:
    if action not in _SIMPLE_ACTIONS:
        raise HTTPException(status_code=404, detail=f"unknown action {action}")
    session = await _require_session(_sanitize_client_id(client_id))
    getattr(session, action)()
    return session.snapshot()
