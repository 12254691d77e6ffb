"""Resolve image/video references to fetchable URLs, one independent task per item."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Iterable, Optional, Set

from ..config import settings
from ..errors import ResolutionError
from ..models.content import ContentItem
from .storage import BlobStore

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str], None]


class MediaBinder:
    """Fills ``resolved_urls`` / ``error_flags`` for a session as resolutions complete.

    Each item is resolved in its own task with a bounded timeout; a failure
    only flags that item. Flagged items are never resolved again for the
    lifetime of the binder.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        *,
        expires_in: Optional[int] = None,
        timeout: Optional[float] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        self._blob_store = blob_store
        self._expires_in = expires_in if expires_in is not None else settings.signed_url_expiry
        self._timeout = timeout if timeout is not None else settings.media_timeout_seconds
        self._on_update = on_update
        self.resolved_urls: Dict[str, str] = {}
        self.error_flags: Set[str] = set()
        self._media_ids: Set[str] = set()
        self._tasks: Dict[str, asyncio.Task[None]] = {}
        self._closed = False

    def is_pending(self, content_id: str) -> bool:
        task = self._tasks.get(content_id)
        return task is not None and not task.done()

    def start(self, items: Iterable[ContentItem], *, renew: bool = False) -> None:
        """Schedule resolution for every media item not yet resolved, pending or flagged.

        With ``renew`` already resolved items are signed again (signed URLs
        expire); the previous URL stays usable until the new one lands.
        """
        if self._closed:
            return
        items = list(items)
        self._media_ids = {item.id for item in items if item.media is not None}
        for item in items:
            media = item.media
            if media is None:
                continue
            if item.id in self.error_flags or self.is_pending(item.id):
                continue
            if item.id in self.resolved_urls and not (renew and media.storage_path):
                continue
            task = asyncio.create_task(self._resolve_one(item), name=f"media-resolve-{item.id}")
            self._tasks[item.id] = task
            task.add_done_callback(lambda t, cid=item.id: self._forget(cid, t))

    async def wait(self) -> None:
        """Wait for all in-flight resolutions; mostly useful in tests and prefetching."""
        pending = [task for task in self._tasks.values() if not task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def mark_error(self, content_id: str) -> None:
        """Record a load error reported by the display; the item will not be retried."""
        if content_id not in self._media_ids:
            logger.info("ignoring media error for %s: not a media item of the loaded sequence", content_id)
            return
        task = self._tasks.pop(content_id, None)
        if task is not None and not task.done():
            task.cancel()
        self.resolved_urls.pop(content_id, None)
        if content_id not in self.error_flags:
            self.error_flags.add(content_id)
            self._emit(content_id)

    def cancel(self) -> None:
        self._closed = True
        for task in self._tasks.values():
            if not task.done():
                task.cancel()
        self._tasks.clear()

    async def _resolve_one(self, item: ContentItem) -> None:
        media = item.media
        assert media is not None
        url: Optional[str] = None
        if media.storage_path:
            try:
                url = await asyncio.wait_for(
                    self._blob_store.create_signed_url(media.storage_path, self._expires_in),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("signing %s for %s timed out after %.1fs", media.storage_path, item.id, self._timeout)
            except ResolutionError as exc:
                logger.warning("signing %s for %s failed: %s", media.storage_path, item.id, exc)
            except Exception as exc:  # noqa: BLE001 - isolate the failure to this item
                logger.warning("unexpected error signing %s for %s: %s", media.storage_path, item.id, exc)

        if self._closed:
            return
        if url is None and item.id in self.resolved_urls:
            # Failed renewal: keep serving the previous URL.
            return
        if url is None and media.url:
            url = media.url
        if url is None:
            self.error_flags.add(item.id)
        else:
            self.resolved_urls[item.id] = url
        self._emit(item.id)

    def _forget(self, content_id: str, task: "asyncio.Task[None]") -> None:
        if self._tasks.get(content_id) is task:
            self._tasks.pop(content_id, None)

    def _emit(self, content_id: str) -> None:
        if self._on_update is None or self._closed:
            return
        try:
            self._on_update(content_id)
        except Exception:  # noqa: BLE001
            logger.exception("media update callback failed")
