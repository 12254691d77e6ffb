"""Pydantic models for resolved sequences, render frames and display session APIs."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .content import ContentItem, ContentKind


class SequenceSource(str, Enum):
    PREVIEW = "preview"
    SCHEDULE = "schedule"
    ACTIVE_POOL = "active_pool"
    DEMO = "demo"


class ResolvedSequence(BaseModel):
    """Outcome of schedule resolution: the ordered items plus which tier produced them."""

    items: List[ContentItem] = Field(default_factory=list)
    source: SequenceSource
    screen_id: Optional[str] = Field(default=None, description="Screen the sequence was resolved for")
    schedule_id: Optional[str] = Field(default=None, description="Winning schedule when source=schedule")
    resolved_at: datetime


class PlaybackMode(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class FrameState(str, Enum):
    CONTENT = "content"
    LOADING = "loading"
    ERROR = "error"
    NO_CONTENT = "no_content"


class RenderFrame(BaseModel):
    """What a display client has to draw right now."""

    state: FrameState
    mode: PlaybackMode = PlaybackMode.IDLE
    index: Optional[int] = Field(default=None, description="Zero-based position in the sequence")
    total: int = 0
    content_id: Optional[str] = None
    title: Optional[str] = None
    kind: Optional[ContentKind] = None
    duration_seconds: Optional[int] = None
    remaining_seconds: Optional[float] = Field(default=None, description="Time left before auto-advance")
    message: Optional[str] = Field(default=None, description="Human readable status for loading/error states")
    body: Dict[str, Any] = Field(default_factory=dict, description="Kind specific render parameters")


class SessionMountRequest(BaseModel):
    screen_id: Optional[str] = Field(default=None, description="Screen id, 'generic' or omitted")
    preview_id: Optional[str] = Field(default=None, description="Content id to preview on its own")


class JumpRequest(BaseModel):
    index: int = Field(..., ge=0)


class MediaErrorReport(BaseModel):
    content_id: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    client_id: str
    screen_id: Optional[str] = None
    source: Optional[SequenceSource] = None
    schedule_id: Optional[str] = None
    frame: RenderFrame
    resolved_media_urls: Dict[str, str] = Field(default_factory=dict)
    media_error_flags: List[str] = Field(default_factory=list)


class DisplaySessionMessage(BaseModel):
    """WebSocket push; ``session`` is null once the client's session is disposed."""

    type: Literal["display_session"] = "display_session"
    client_id: str
    session: Optional[SessionResponse] = None


class ScreenSummary(BaseModel):
    id: str
    name: str
    location: str
    status: str
    resolution: Optional[str] = None
    selectable: bool
