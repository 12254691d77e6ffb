"""Read-only repository contracts and the in-memory implementation."""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from pydantic import ValidationError

from ..errors import RepositoryError
from ..models.content import ContentItem
from ..models.schedule import Playlist, PlaylistSlot, Schedule, ScheduleMatch, Screen

logger = logging.getLogger(__name__)


class SignageRepository(Protocol):
    """Everything the display core reads. Implementations raise ``RepositoryError`` on failure."""

    async def list_active_content(self) -> List[ContentItem]:
        """Active content, most recently created first."""
        ...

    async def get_content(self, content_id: str) -> Optional[ContentItem]:
        ...

    async def find_active_for_screen(
        self,
        screen_id: str,
        day_of_week: int,
        time_of_day: str,
    ) -> List[ScheduleMatch]:
        """Active schedules for ``screen_id`` covering the moment, oldest schedule first."""
        ...

    async def list_screens(self) -> List[Screen]:
        ...


def _created_key(created_at: Optional[datetime]) -> float:
    if created_at is None:
        return -math.inf
    return created_at.timestamp()


class InMemoryRepository:
    """Dictionary backed repository used for local runs, seeds and tests."""

    def __init__(
        self,
        *,
        content: Iterable[ContentItem] = (),
        playlists: Iterable[Playlist] = (),
        schedules: Iterable[Schedule] = (),
        screens: Iterable[Screen] = (),
    ) -> None:
        self._content: Dict[str, ContentItem] = {item.id: item for item in content}
        self._playlists: Dict[str, Playlist] = {playlist.id: playlist for playlist in playlists}
        self._schedules: Dict[str, Schedule] = {schedule.id: schedule for schedule in schedules}
        self._screens: Dict[str, Screen] = {screen.id: screen for screen in screens}

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemoryRepository":
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise RepositoryError(f"cannot read seed file {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise RepositoryError("seed file must contain a JSON object")
        try:
            return cls(
                content=[ContentItem.model_validate(row) for row in raw.get("content", [])],
                playlists=[Playlist.model_validate(row) for row in raw.get("playlists", [])],
                schedules=[Schedule.model_validate(row) for row in raw.get("schedules", [])],
                screens=[Screen.model_validate(row) for row in raw.get("screens", [])],
            )
        except ValidationError as exc:
            raise RepositoryError(f"invalid seed data in {path}: {exc}") from exc

    # Writes are only used to seed fixtures; the admin layer owns real writes.
    def put_content(self, item: ContentItem) -> None:
        self._content[item.id] = item

    def delete_content(self, content_id: str) -> None:
        self._content.pop(content_id, None)

    def put_playlist(self, playlist: Playlist) -> None:
        self._playlists[playlist.id] = playlist

    def put_schedule(self, schedule: Schedule) -> None:
        self._schedules[schedule.id] = schedule

    def put_screen(self, screen: Screen) -> None:
        self._screens[screen.id] = screen

    async def list_active_content(self) -> List[ContentItem]:
        active = [item for item in self._content.values() if item.is_active]
        # Stable sort keeps insertion order for equal timestamps.
        return sorted(active, key=lambda item: _created_key(item.created_at), reverse=True)

    async def get_content(self, content_id: str) -> Optional[ContentItem]:
        return self._content.get(content_id)

    async def find_active_for_screen(
        self,
        screen_id: str,
        day_of_week: int,
        time_of_day: str,
    ) -> List[ScheduleMatch]:
        candidates = [
            schedule
            for schedule in self._schedules.values()
            if schedule.screen_id == screen_id and schedule.matches(day_of_week, time_of_day)
        ]
        candidates.sort(key=lambda schedule: (_created_key(schedule.created_at), schedule.id))
        matches: List[ScheduleMatch] = []
        for schedule in candidates:
            playlist = self._playlists.get(schedule.playlist_id)
            if playlist is None:
                logger.warning("schedule %s references missing playlist %s", schedule.id, schedule.playlist_id)
                continue
            slots = [
                PlaylistSlot(
                    position=entry.position,
                    content_id=entry.content_id,
                    content=self._content.get(entry.content_id),
                )
                for entry in playlist.entries
            ]
            matches.append(ScheduleMatch(schedule=schedule, playlist_name=playlist.name, slots=slots))
        return matches

    async def list_screens(self) -> List[Screen]:
        return sorted(self._screens.values(), key=lambda screen: screen.name)


def content_from_rows(rows: Iterable[Dict[str, Any]]) -> List[ContentItem]:
    """Decode content rows, skipping (and logging) rows that fail validation."""
    items: List[ContentItem] = []
    for row in rows:
        try:
            items.append(ContentItem.model_validate(row))
        except ValidationError as exc:
            logger.warning("skipping invalid content row %s: %s", row.get("id"), exc.errors()[:1])
    return items
