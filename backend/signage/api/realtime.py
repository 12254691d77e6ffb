"""Realtime APIs pushing display session updates over WebSocket."""

from __future__ import annotations

import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..services.display_sessions import display_session_manager
from ..services.realtime_bus import realtime_broadcaster

router = APIRouter()


def _text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


@router.get("/api/clients")
async def api_list_clients() -> dict:
    clients = await realtime_broadcaster.list_clients()
    sessions = await display_session_manager.list_client_ids()
    return {"clients": clients, "sessions": sessions}


@router.websocket("/ws/display")
async def websocket_display(websocket: WebSocket) -> None:
    await realtime_broadcaster.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(message, dict):
                continue

            msg_type = message.get("type")
            client_id = _text(message.get("client_id"))
            if msg_type == "hello":
                await realtime_broadcaster.identify(websocket, client_id)
                if client_id is None:
                    continue
                session = await display_session_manager.find(client_id)
                await realtime_broadcaster.send_session(
                    websocket,
                    client_id,
                    session.snapshot() if session is not None else None,
                )
            elif msg_type == "media_error":
                content_id = _text(message.get("content_id"))
                if client_id is None or content_id is None:
                    continue
                session = await display_session_manager.find(client_id)
                if session is not None:
                    session.report_media_error(content_id)
    except WebSocketDisconnect:
        await realtime_broadcaster.disconnect(websocket)
    except Exception:
        await realtime_broadcaster.disconnect(websocket)
        raise
