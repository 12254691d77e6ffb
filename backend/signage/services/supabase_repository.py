"""Repository backed by the hosted Supabase tables."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..errors import RepositoryError
from ..models.content import ContentItem
from ..models.schedule import PlaylistSlot, Schedule, ScheduleMatch, Screen
from ..utils.supabase_client import SupabaseClient
from .repository import content_from_rows

logger = logging.getLogger(__name__)

_CONTENT_COLUMNS = "id,title,type,content_data,duration,is_active,created_at"

_SCHEDULE_SELECT = (
    "*,"
    "playlist:playlists("
    "id,name,"
    f"playlist_items(id,content_id,order_index,content({_CONTENT_COLUMNS}))"
    ")"
)


class SupabaseRepository:
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    async def _select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        try:
            return await self._client.select(table, params)
        except (httpx.HTTPError, ValueError) as exc:
            raise RepositoryError(f"query on {table} failed: {exc}") from exc

    async def list_active_content(self) -> List[ContentItem]:
        rows = await self._select(
            "content",
            {"select": _CONTENT_COLUMNS, "is_active": "eq.true", "order": "created_at.desc"},
        )
        return content_from_rows(rows)

    async def get_content(self, content_id: str) -> Optional[ContentItem]:
        rows = await self._select(
            "content",
            {"select": _CONTENT_COLUMNS, "id": f"eq.{content_id}", "limit": "1"},
        )
        items = content_from_rows(rows)
        return items[0] if items else None

    async def find_active_for_screen(
        self,
        screen_id: str,
        day_of_week: int,
        time_of_day: str,
    ) -> List[ScheduleMatch]:
        rows = await self._select(
            "schedules",
            {
                "select": _SCHEDULE_SELECT,
                "screen_id": f"eq.{screen_id}",
                "is_active": "eq.true",
                "days_of_week": f"cs.{{{day_of_week}}}",
                "start_time": f"lte.{time_of_day}",
                "end_time": f"gte.{time_of_day}",
                "order": "created_at.asc,id.asc",
            },
        )
        matches: List[ScheduleMatch] = []
        for row in rows:
            match = _schedule_match_from_row(row)
            if match is None:
                continue
            # The server filter compares `time` columns; re-check on HH:MM to keep inclusive-minute semantics.
            if match.schedule.matches(day_of_week, time_of_day):
                matches.append(match)
        return matches

    async def list_screens(self) -> List[Screen]:
        rows = await self._select("screens", {"select": "*", "order": "name.asc"})
        screens: List[Screen] = []
        for row in rows:
            try:
                screens.append(Screen.model_validate(row))
            except ValidationError as exc:
                logger.warning("skipping invalid screen row %s: %s", row.get("id"), exc.errors()[:1])
        return screens


def _schedule_match_from_row(row: Dict[str, Any]) -> Optional[ScheduleMatch]:
    try:
        schedule = Schedule.model_validate(row)
    except ValidationError as exc:
        logger.warning("skipping invalid schedule row %s: %s", row.get("id"), exc.errors()[:1])
        return None

    playlist = row.get("playlist") or {}
    slots: List[PlaylistSlot] = []
    for item in playlist.get("playlist_items") or []:
        content_row = item.get("content")
        content: Optional[ContentItem] = None
        if content_row:
            decoded = content_from_rows([content_row])
            content = decoded[0] if decoded else None
        try:
            slots.append(
                PlaylistSlot(
                    position=int(item.get("order_index") or 0),
                    content_id=str(item.get("content_id") or ""),
                    content=content,
                )
            )
        except (TypeError, ValueError, ValidationError):
            logger.warning("skipping malformed playlist item %s in schedule %s", item.get("id"), schedule.id)
    return ScheduleMatch(schedule=schedule, playlist_name=str(playlist.get("name") or ""), slots=slots)
