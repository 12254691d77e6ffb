"""One playback session: what a single mounted display view owns."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..config import settings
from ..models.display import RenderFrame, ResolvedSequence, SessionResponse
from .media_binding import MediaBinder
from .playback import PlaybackEngine, TimerSource
from .render import build_frame
from .schedule_resolver import ScheduleResolver
from .storage import BlobStore

logger = logging.getLogger(__name__)

ChangeCallback = Callable[["PlaybackSession"], None]


class PlaybackSession:
    """Ephemeral state for one display client.

    Nothing here is authoritative: disposing a session and mounting a new
    one rebuilds the same state by resolving again.
    """

    def __init__(
        self,
        client_id: str,
        resolver: ScheduleResolver,
        blob_store: BlobStore,
        *,
        screen_id: Optional[str] = None,
        preview_id: Optional[str] = None,
        timer: Optional[TimerSource] = None,
        on_change: Optional[ChangeCallback] = None,
        refresh_interval: Optional[float] = None,
    ) -> None:
        self.client_id = client_id
        self.screen_id = screen_id
        self.preview_id = preview_id
        self._resolver = resolver
        self._on_change = on_change
        self._refresh_interval = (
            refresh_interval if refresh_interval is not None else settings.refresh_interval_seconds
        )
        self.engine = PlaybackEngine(timer)
        self.engine.add_listener(lambda _engine: self._changed())
        self.binder = MediaBinder(blob_store, on_update=self._media_updated)
        self.resolution: Optional[ResolvedSequence] = None
        self._refresh_task: Optional[asyncio.Task[None]] = None
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def resolved_media_urls(self) -> Dict[str, str]:
        return self.binder.resolved_urls

    @property
    def media_error_flags(self) -> List[str]:
        return sorted(self.binder.error_flags)

    async def mount(self, now: Optional[datetime] = None) -> None:
        await self.refresh(now)
        if self._refresh_interval and self._refresh_interval > 0 and self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh_loop(), name=f"session-refresh-{self.client_id}")

    async def refresh(self, now: Optional[datetime] = None) -> None:
        """Resolve again and restart playback from the first item."""
        resolution = await self._resolver.resolve(self.screen_id, now, preview_id=self.preview_id)
        if self._disposed:
            return
        renew = self.resolution is not None
        self.resolution = resolution
        logger.info(
            "client %s loaded %d items from %s",
            self.client_id,
            len(resolution.items),
            resolution.source.value,
        )
        self.binder.start(resolution.items, renew=renew)
        self.engine.load(resolution.items)

    def toggle(self) -> None:
        self.engine.toggle()

    def pause(self) -> None:
        self.engine.pause()

    def resume(self) -> None:
        self.engine.resume()

    def next(self) -> None:
        self.engine.next()

    def previous(self) -> None:
        self.engine.previous()

    def jump_to(self, index: int) -> None:
        self.engine.jump_to(index)

    def report_media_error(self, content_id: str) -> None:
        self.binder.mark_error(content_id)

    def frame(self) -> RenderFrame:
        engine = self.engine
        return build_frame(
            engine.current_item,
            self.binder.resolved_urls,
            self.binder.error_flags,
            index=engine.current_index,
            total=len(engine.sequence),
            mode=engine.mode,
            remaining_seconds=engine.remaining_seconds(),
        )

    def snapshot(self) -> SessionResponse:
        resolution = self.resolution
        return SessionResponse(
            client_id=self.client_id,
            screen_id=self.screen_id,
            source=resolution.source if resolution else None,
            schedule_id=resolution.schedule_id if resolution else None,
            frame=self.frame(),
            resolved_media_urls=dict(self.binder.resolved_urls),
            media_error_flags=self.media_error_flags,
        )

    async def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.engine.dispose()
        self.binder.cancel()
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None

    async def _refresh_loop(self) -> None:
        while not self._disposed:
            await asyncio.sleep(self._refresh_interval)
            try:
                await self.refresh()
            except Exception:  # noqa: BLE001 - keep refreshing on the next tick
                logger.exception("periodic refresh failed for client %s", self.client_id)

    def _media_updated(self, content_id: str) -> None:
        current = self.engine.current_item
        if current is not None and current.id == content_id:
            self._changed()

    def _changed(self) -> None:
        if self._disposed or self._on_change is None:
            return
        self._on_change(self)
