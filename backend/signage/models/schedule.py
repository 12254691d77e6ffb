"""Playlist, schedule and screen schemas."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .content import ContentItem

# Postgres `time` columns come back as HH:MM:SS; only minutes matter here.
_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::[0-5]\d(?:\.\d+)?)?$")

GENERIC_SCREEN_ID = "generic"


def normalize_hhmm(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("time must be an 'HH:MM' string")
    match = _TIME_PATTERN.fullmatch(value.strip())
    if match is None:
        raise ValueError(f"invalid time {value!r}, expected HH:MM")
    return f"{match.group(1)}:{match.group(2)}"


class PlaylistEntry(BaseModel):
    content_id: str = Field(..., min_length=1)
    position: int = Field(..., ge=0, validation_alias=AliasChoices("position", "order_index"))


class Playlist(BaseModel):
    """Named ordered list of content references with dense zero-based positions."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    is_active: bool = True
    entries: List[PlaylistEntry] = Field(
        default_factory=list,
        validation_alias=AliasChoices("entries", "playlist_items"),
    )

    @field_validator("entries")
    @classmethod
    def _normalize_entries(cls, values: List[PlaylistEntry]) -> List[PlaylistEntry]:
        positions = [entry.position for entry in values]
        if len(set(positions)) != len(positions):
            raise ValueError("playlist positions must be unique")
        return _renumber(sorted(values, key=lambda entry: entry.position))

    def ordered_content_ids(self) -> list[str]:
        return [entry.content_id for entry in self.entries]

    def append(self, content_id: str) -> None:
        self.insert(len(self.entries), content_id)

    def insert(self, index: int, content_id: str) -> None:
        ids = self.ordered_content_ids()
        index = max(0, min(index, len(ids)))
        ids.insert(index, content_id)
        self._set_order(ids)

    def remove(self, content_id: str) -> None:
        ids = self.ordered_content_ids()
        if content_id not in ids:
            raise KeyError(content_id)
        ids.remove(content_id)
        self._set_order(ids)

    def move(self, from_index: int, to_index: int) -> None:
        ids = self.ordered_content_ids()
        if not 0 <= from_index < len(ids):
            raise IndexError(f"from_index {from_index} out of range")
        if not 0 <= to_index < len(ids):
            raise IndexError(f"to_index {to_index} out of range")
        moved = ids.pop(from_index)
        ids.insert(to_index, moved)
        self._set_order(ids)

    def _set_order(self, content_ids: list[str]) -> None:
        self.entries = [PlaylistEntry(content_id=cid, position=i) for i, cid in enumerate(content_ids)]


def _renumber(entries: List[PlaylistEntry]) -> List[PlaylistEntry]:
    return [PlaylistEntry(content_id=entry.content_id, position=i) for i, entry in enumerate(entries)]


class Schedule(BaseModel):
    """Time-and-day window binding a playlist to a screen.

    Windows are same-day only: ``start_time`` must be strictly before
    ``end_time`` and both ends are inclusive. A schedule crossing midnight
    has to be entered as two schedules.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    playlist_id: str = Field(..., min_length=1)
    screen_id: Optional[str] = None
    start_time: str
    end_time: str
    days_of_week: List[int] = Field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _validate_time(cls, value: Any) -> str:
        return normalize_hhmm(value)

    @field_validator("days_of_week")
    @classmethod
    def _validate_days(cls, values: List[int]) -> List[int]:
        for day in values:
            if not 0 <= day <= 6:
                raise ValueError("days_of_week entries must be within 0..6 (Sunday=0)")
        return sorted(set(values))

    @field_validator("screen_id", mode="before")
    @classmethod
    def _blank_screen(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _validate_window(self) -> "Schedule":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time (overnight windows are not supported)")
        if self.is_active and not self.days_of_week:
            raise ValueError("an active schedule needs at least one day of week")
        return self

    def matches(self, day_of_week: int, time_of_day: str) -> bool:
        if not self.is_active:
            return False
        if day_of_week not in self.days_of_week:
            return False
        return self.start_time <= time_of_day <= self.end_time


class PlaylistSlot(BaseModel):
    """A joined playlist row; ``content`` is None when the item was deleted."""

    position: int = Field(..., ge=0)
    content_id: str
    content: Optional[ContentItem] = None


class ScheduleMatch(BaseModel):
    """A schedule together with its joined playlist items."""

    schedule: Schedule
    playlist_name: str = ""
    slots: List[PlaylistSlot] = Field(default_factory=list)

    def ordered_content(self) -> list[ContentItem]:
        ordered = sorted(self.slots, key=lambda slot: slot.position)
        return [slot.content for slot in ordered if slot.content is not None]


class ScreenStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"


class Screen(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    location: str = ""
    status: ScreenStatus = ScreenStatus.OFFLINE
    resolution: Optional[str] = None
    last_seen: Optional[datetime] = None

    @property
    def selectable(self) -> bool:
        return self.status is not ScreenStatus.MAINTENANCE
