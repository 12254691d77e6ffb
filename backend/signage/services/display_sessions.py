"""Per-client playback session registry with realtime fan-out."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, Optional, Set

from .backend import Backend, get_backend
from .playback import TimerSource
from .realtime_bus import RealtimeBroadcaster, realtime_broadcaster
from .schedule_resolver import ScheduleResolver
from .session import PlaybackSession

logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    """No session is mounted for the requested client."""


class DisplaySessionManager:
    """Keep one playback session per display client and push frames on every change."""

    def __init__(
        self,
        *,
        backend_provider: Callable[[], Backend] = get_backend,
        broadcaster: Optional[RealtimeBroadcaster] = None,
        timer: Optional[TimerSource] = None,
    ) -> None:
        self._lock = asyncio.Lock()
        self._sessions: Dict[str, PlaybackSession] = {}
        self._backend_provider = backend_provider
        self._broadcaster = broadcaster or realtime_broadcaster
        self._timer = timer
        self._push_tasks: Set[asyncio.Task[None]] = set()

    async def mount(
        self,
        client_id: str,
        *,
        screen_id: Optional[str] = None,
        preview_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PlaybackSession:
        """Create a fresh session for ``client_id``, replacing (and disposing) any previous one."""
        backend = self._backend_provider()
        session = PlaybackSession(
            client_id,
            ScheduleResolver(backend.repository),
            backend.blob_store,
            screen_id=screen_id,
            preview_id=preview_id,
            timer=self._timer,
            on_change=self._schedule_push,
        )
        async with self._lock:
            previous = self._sessions.pop(client_id, None)
            self._sessions[client_id] = session
        if previous is not None:
            await previous.dispose()
        await session.mount(now)
        return session

    async def get(self, client_id: str) -> PlaybackSession:
        async with self._lock:
            session = self._sessions.get(client_id)
        if session is None:
            raise SessionNotFound(client_id)
        return session

    async def find(self, client_id: str) -> Optional[PlaybackSession]:
        async with self._lock:
            return self._sessions.get(client_id)

    async def dispose(self, client_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(client_id, None)
        if session is None:
            return False
        await session.dispose()
        await self._broadcaster.push_session(client_id, None)
        return True

    async def dispose_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.dispose()
        for task in list(self._push_tasks):
            task.cancel()
        self._push_tasks.clear()

    async def list_client_ids(self) -> list[str]:
        async with self._lock:
            return sorted(self._sessions)

    def _schedule_push(self, session: PlaybackSession) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self._broadcaster.push_session(session.client_id, session.snapshot()))
        self._push_tasks.add(task)
        task.add_done_callback(self._push_tasks.discard)


display_session_manager = DisplaySessionManager()
