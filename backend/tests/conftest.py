"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from signage.models.content import ContentItem
from signage.models.schedule import Playlist, Schedule, Screen
from signage.services.backend import Backend, set_backend
from signage.services.repository import InMemoryRepository
from signage.services.storage import InMemoryBlobStore

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeTimerHandle:
    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimer:
    """Manual clock standing in for the event loop's ``call_later``/``time``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._handles: List[FakeTimerHandle] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + delay, callback, args)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> List[FakeTimerHandle]:
        return [handle for handle in self._handles if not handle.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [handle for handle in self.pending if handle.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._handles.remove(handle)
            self.now = handle.when
            handle.callback(*handle.args)
        self.now = target


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()


def text_item(
    item_id: str,
    duration: int = 5,
    *,
    created_offset: int = 0,
    is_active: bool = True,
    text: Optional[str] = None,
) -> ContentItem:
    return ContentItem(
        id=item_id,
        title=f"Text {item_id}",
        kind="text",
        duration_seconds=duration,
        payload={"text": text or f"slide {item_id}"},
        is_active=is_active,
        created_at=BASE_TIME + timedelta(minutes=created_offset),
    )


def media_item(
    item_id: str,
    kind: str = "image",
    *,
    url: Optional[str] = None,
    storage_path: Optional[str] = None,
    duration: int = 8,
) -> ContentItem:
    return ContentItem(
        id=item_id,
        title=f"Media {item_id}",
        kind=kind,
        duration_seconds=duration,
        payload={"url": url, "storage_path": storage_path, "alt_or_filename": f"{item_id}.bin"},
        created_at=BASE_TIME,
    )


def schedule(
    schedule_id: str,
    playlist_id: str,
    *,
    screen_id: Optional[str] = "lobby",
    start: str = "08:00",
    end: str = "18:00",
    days: Optional[List[int]] = None,
    created_offset: int = 0,
    is_active: bool = True,
) -> Schedule:
    return Schedule(
        id=schedule_id,
        name=f"Schedule {schedule_id}",
        playlist_id=playlist_id,
        screen_id=screen_id,
        start_time=start,
        end_time=end,
        days_of_week=days if days is not None else [0, 1, 2, 3, 4, 5, 6],
        is_active=is_active,
        created_at=BASE_TIME + timedelta(minutes=created_offset),
    )


def playlist(playlist_id: str, content_ids: List[str], name: str = "") -> Playlist:
    return Playlist(
        id=playlist_id,
        name=name or f"Playlist {playlist_id}",
        entries=[{"content_id": cid, "position": i} for i, cid in enumerate(content_ids)],
    )


@pytest.fixture
def seeded_repository() -> InMemoryRepository:
    return InMemoryRepository(
        content=[
            text_item("welcome", 5, created_offset=1),
            text_item("menu", 3, created_offset=2),
            text_item("promo", 7, created_offset=3),
            media_item("poster", storage_path="posters/jan.png"),
        ],
        playlists=[playlist("morning", ["welcome", "menu", "promo"])],
        schedules=[schedule("s-morning", "morning", start="00:00", end="23:59")],
        screens=[
            Screen(id="lobby", name="Lobby", location="Ground floor", status="online"),
            Screen(id="bar", name="Bar", location="Rooftop", status="maintenance"),
        ],
    )


@pytest.fixture
def client(seeded_repository: InMemoryRepository) -> Generator[TestClient, None, None]:
    """FastAPI test client running lifespan against an in-memory backend."""
    from signage.main import app

    blob_store = InMemoryBlobStore(objects={"posters/jan.png": b""})
    set_backend(Backend(repository=seeded_repository, blob_store=blob_store))
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        set_backend(None)
