"""Timer-driven playback state machine for one display session."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional, Protocol, Sequence

from ..models.content import ContentItem
from ..models.display import PlaybackMode

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class TimerSource(Protocol):
    """Subset of ``asyncio.AbstractEventLoop`` the engine needs."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        ...

    def time(self) -> float:
        ...


Listener = Callable[["PlaybackEngine"], None]


class PlaybackEngine:
    """Owns the current index and the single outstanding advance deadline.

    States are ``idle`` (nothing loaded), ``playing`` (deadline armed) and
    ``paused`` (deadline cancelled, index frozen). Every transition cancels
    the pending deadline before arming a new one, so at most one timer is
    ever outstanding.
    """

    def __init__(self, timer: Optional[TimerSource] = None) -> None:
        self._timer = timer
        self._sequence: List[ContentItem] = []
        self._index = 0
        self._mode = PlaybackMode.IDLE
        self._handle: Optional[TimerHandle] = None
        self._deadline: Optional[float] = None
        # Bumped on every arm/cancel so a stale callback can tell it lost the race.
        self._generation = 0
        self._listeners: List[Listener] = []
        self._disposed = False

    # ------------------------------------------------------------------ state
    @property
    def mode(self) -> PlaybackMode:
        return self._mode

    @property
    def sequence(self) -> List[ContentItem]:
        return list(self._sequence)

    @property
    def current_index(self) -> Optional[int]:
        return self._index if self._sequence else None

    @property
    def current_item(self) -> Optional[ContentItem]:
        if not self._sequence:
            return None
        return self._sequence[self._index]

    @property
    def is_playing(self) -> bool:
        return self._mode is PlaybackMode.PLAYING

    @property
    def has_pending_deadline(self) -> bool:
        return self._handle is not None

    def remaining_seconds(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock().time())

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------ transitions
    def load(self, sequence: Sequence[ContentItem]) -> None:
        self._ensure_alive()
        self._cancel()
        self._sequence = list(sequence)
        self._index = 0
        if self._sequence:
            self._mode = PlaybackMode.PLAYING
            self._arm()
        else:
            self._mode = PlaybackMode.IDLE
        self._notify()

    def toggle(self) -> None:
        if self._mode is PlaybackMode.PLAYING:
            self.pause()
        elif self._mode is PlaybackMode.PAUSED:
            self.resume()

    def pause(self) -> None:
        if self._mode is not PlaybackMode.PLAYING:
            return
        self._cancel()
        self._mode = PlaybackMode.PAUSED
        self._notify()

    def resume(self) -> None:
        """Resume with a full fresh deadline for the current item."""
        if self._mode is not PlaybackMode.PAUSED:
            return
        self._mode = PlaybackMode.PLAYING
        self._arm()
        self._notify()

    def next(self) -> None:
        if self._sequence:
            self._select((self._index + 1) % len(self._sequence))

    def previous(self) -> None:
        if self._sequence:
            self._select((self._index - 1) % len(self._sequence))

    def jump_to(self, index: int) -> None:
        if not 0 <= index < len(self._sequence):
            raise IndexError(f"index {index} out of range for sequence of {len(self._sequence)}")
        self._select(index)

    def dispose(self) -> None:
        """Cancel the deadline and refuse further loads; listeners are dropped."""
        self._cancel()
        self._listeners.clear()
        self._disposed = True

    # ---------------------------------------------------------------- helpers
    def _select(self, index: int) -> None:
        self._cancel()
        self._index = index
        if self._mode is PlaybackMode.PLAYING:
            self._arm()
        self._notify()

    def _clock(self) -> TimerSource:
        if self._timer is None:
            self._timer = asyncio.get_running_loop()
        return self._timer

    def _arm(self) -> None:
        self._cancel()
        item = self.current_item
        if item is None or self._disposed:
            return
        clock = self._clock()
        self._generation += 1
        self._deadline = clock.time() + item.duration_seconds
        self._handle = clock.call_later(item.duration_seconds, self._on_deadline, self._generation)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._deadline = None
        self._generation += 1

    def _on_deadline(self, generation: int) -> None:
        if generation != self._generation or self._disposed:
            return
        self._handle = None
        self._deadline = None
        if self._mode is not PlaybackMode.PLAYING or not self._sequence:
            return
        self._index = (self._index + 1) % len(self._sequence)
        self._arm()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:  # noqa: BLE001 - a bad listener must not stop playback
                logger.exception("playback listener failed")

    def _ensure_alive(self) -> None:
        if self._disposed:
            raise RuntimeError("playback engine has been disposed")
