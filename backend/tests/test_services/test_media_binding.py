"""Tests for per-item media URL resolution."""

from __future__ import annotations

import asyncio
from collections import Counter

import pytest

from conftest import media_item, text_item
from signage.errors import ResolutionError
from signage.services.media_binding import MediaBinder
from signage.services.storage import InMemoryBlobStore


class RecordingBlobStore:
    def __init__(self, urls: dict[str, str] | None = None, *, slow: set[str] | None = None) -> None:
        self.urls = urls or {}
        self.slow = slow or set()
        self.calls: Counter[str] = Counter()

    async def create_signed_url(self, storage_path: str, expires_in: int) -> str:
        self.calls[storage_path] += 1
        if storage_path in self.slow:
            await asyncio.sleep(10)
        if storage_path not in self.urls:
            raise ResolutionError(f"missing {storage_path}")
        return f"{self.urls[storage_path]}?exp={expires_in}"


@pytest.mark.asyncio
async def test_signed_url_is_preferred() -> None:
    store = RecordingBlobStore({"a.png": "https://cdn/a.png"})
    binder = MediaBinder(store, expires_in=3600, timeout=1)
    binder.start([media_item("a", storage_path="a.png", url="https://literal/a.png")])
    await binder.wait()

    assert binder.resolved_urls == {"a": "https://cdn/a.png?exp=3600"}
    assert binder.error_flags == set()


@pytest.mark.asyncio
async def test_signing_failure_falls_back_to_literal_url() -> None:
    binder = MediaBinder(RecordingBlobStore(), timeout=1)
    binder.start([media_item("a", storage_path="missing.png", url="https://literal/a.png")])
    await binder.wait()

    assert binder.resolved_urls == {"a": "https://literal/a.png"}
    assert "a" not in binder.error_flags


@pytest.mark.asyncio
async def test_literal_url_only_item_resolves_without_signing() -> None:
    store = RecordingBlobStore()
    binder = MediaBinder(store, timeout=1)
    binder.start([media_item("a", url="https://literal/a.png")])
    await binder.wait()

    assert binder.resolved_urls == {"a": "https://literal/a.png"}
    assert store.calls == Counter()


@pytest.mark.asyncio
async def test_unresolvable_video_is_flagged_and_never_retried() -> None:
    store = RecordingBlobStore()
    binder = MediaBinder(store, timeout=1)
    video = media_item("v", kind="video", storage_path="clips/v.mp4")

    binder.start([video])
    await binder.wait()
    binder.start([video])
    await binder.wait()

    assert binder.error_flags == {"v"}
    assert "v" not in binder.resolved_urls
    assert store.calls["clips/v.mp4"] == 1


@pytest.mark.asyncio
async def test_failures_are_isolated_per_item() -> None:
    store = RecordingBlobStore({"ok.png": "https://cdn/ok.png"}, slow={"slow.png"})
    binder = MediaBinder(store, timeout=0.05)
    binder.start(
        [
            media_item("ok", storage_path="ok.png"),
            media_item("bad", storage_path="bad.png"),
            media_item("slow", storage_path="slow.png"),
            text_item("text"),
        ]
    )
    await binder.wait()

    assert set(binder.resolved_urls) == {"ok"}
    assert binder.error_flags == {"bad", "slow"}


@pytest.mark.asyncio
async def test_updates_are_reported_per_item() -> None:
    seen: list[str] = []
    binder = MediaBinder(RecordingBlobStore({"a.png": "https://cdn/a.png"}), timeout=1, on_update=seen.append)
    binder.start([media_item("a", storage_path="a.png"), media_item("b", storage_path="b.png")])
    await binder.wait()
    assert sorted(seen) == ["a", "b"]


@pytest.mark.asyncio
async def test_cancel_discards_in_flight_results() -> None:
    store = RecordingBlobStore({"slow.png": "https://cdn/slow.png"}, slow={"slow.png"})
    binder = MediaBinder(store, timeout=30)
    binder.start([media_item("slow", storage_path="slow.png")])
    await asyncio.sleep(0)
    assert binder.is_pending("slow")

    binder.cancel()
    await asyncio.sleep(0)
    assert not binder.is_pending("slow")
    assert binder.resolved_urls == {}
    assert binder.error_flags == set()

    binder.start([media_item("other", url="https://literal/o.png")])
    assert binder.resolved_urls == {}


@pytest.mark.asyncio
async def test_reported_load_error_marks_item() -> None:
    binder = MediaBinder(RecordingBlobStore(), timeout=1)
    item = media_item("v", kind="video", url="https://literal/v.mp4")
    binder.start([item])
    await binder.wait()
    assert binder.resolved_urls == {"v": "https://literal/v.mp4"}

    binder.mark_error("v")
    binder.start([item])
    await binder.wait()
    assert binder.error_flags == {"v"}
    assert "v" not in binder.resolved_urls


@pytest.mark.asyncio
async def test_renew_keeps_previous_url_when_signing_fails() -> None:
    store = RecordingBlobStore({"a.png": "https://cdn/a.png"})
    binder = MediaBinder(store, timeout=1)
    item = media_item("a", storage_path="a.png")
    binder.start([item])
    await binder.wait()

    del store.urls["a.png"]
    binder.start([item], renew=True)
    await binder.wait()

    assert store.calls["a.png"] == 2
    assert binder.resolved_urls == {"a": "https://cdn/a.png?exp=3600"}
    assert binder.error_flags == set()


@pytest.mark.asyncio
async def test_failed_renewal_does_not_swap_signed_url_for_literal() -> None:
    store = RecordingBlobStore({"a.png": "https://cdn/a.png"})
    binder = MediaBinder(store, timeout=1)
    item = media_item("a", storage_path="a.png", url="https://literal/a.png")
    binder.start([item])
    await binder.wait()

    del store.urls["a.png"]
    binder.start([item], renew=True)
    await binder.wait()

    assert binder.resolved_urls == {"a": "https://cdn/a.png?exp=3600"}


@pytest.mark.asyncio
async def test_errors_for_unknown_or_non_media_items_are_ignored() -> None:
    updates: list[str] = []
    binder = MediaBinder(RecordingBlobStore(), timeout=1, on_update=updates.append)
    binder.start([text_item("t"), media_item("v", kind="video", url="https://literal/v.mp4")])
    await binder.wait()
    updates.clear()

    binder.mark_error("t")
    binder.mark_error("not-in-sequence")
    assert binder.error_flags == set()
    assert updates == []

    binder.mark_error("v")
    assert binder.error_flags == {"v"}
    assert updates == ["v"]

@pytest.mark.asyncio
async def test_in_memory_blob_store_signs_known_objects() -> None:
    store = InMemoryBlobStore("https://files.local", objects={"content/u1/a.png": b""})
    url = await store.create_signed_url("content/u1/a.png", 60)
    assert url.startswith("https://files.local/content/u1/a.png?expires=")
    assert "token=" in url

    with pytest.raises(ResolutionError):
        await store.create_signed_url("content/u1/missing.png", 60)
