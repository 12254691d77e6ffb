"""Content item schemas.

Rows coming from the hosted database use the legacy column names
(``type``, ``content_data``, ``duration``) and camelCase payload keys, so
every model here accepts both spellings and normalizes to snake_case.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

MIN_DURATION_SECONDS = 1
MAX_DURATION_SECONDS = 300


class ContentKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    MARKUP = "markup"

    @property
    def is_media(self) -> bool:
        return self in (ContentKind.IMAGE, ContentKind.VIDEO)


# Legacy rows call markup "html".
_KIND_ALIASES = {"html": ContentKind.MARKUP.value}


class TextPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    text: str
    font_size: str = Field(default="48px", validation_alias=AliasChoices("font_size", "fontSize"))
    color: str = "#1F2937"
    background_color: str = Field(
        default="#F3F4F6",
        validation_alias=AliasChoices("background_color", "backgroundColor"),
    )
    align: str = "center"


class MediaPayload(BaseModel):
    """Payload for image and video items; one of ``url``/``storage_path`` is expected."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    url: Optional[str] = None
    storage_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("storage_path", "storagePath"),
    )
    alt_or_filename: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("alt_or_filename", "alt", "fileName", "filename"),
    )
    mime_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("mime_type", "mimeType"))
    size_bytes: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("size_bytes", "sizeBytes", "fileSize"),
    )

    @model_validator(mode="after")
    def _blank_to_none(self) -> "MediaPayload":
        for name in ("url", "storage_path"):
            value = getattr(self, name)
            if isinstance(value, str) and not value.strip():
                object.__setattr__(self, name, None)
        return self


class MarkupPayload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    html: str


ContentPayload = Union[TextPayload, MediaPayload, MarkupPayload]

_PAYLOAD_TYPES: dict[ContentKind, type[BaseModel]] = {
    ContentKind.TEXT: TextPayload,
    ContentKind.IMAGE: MediaPayload,
    ContentKind.VIDEO: MediaPayload,
    ContentKind.MARKUP: MarkupPayload,
}


class ContentItem(BaseModel):
    """Immutable snapshot of one displayable unit."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    kind: ContentKind = Field(..., validation_alias=AliasChoices("kind", "type"))
    duration_seconds: int = Field(
        ...,
        ge=MIN_DURATION_SECONDS,
        le=MAX_DURATION_SECONDS,
        validation_alias=AliasChoices("duration_seconds", "duration"),
    )
    payload: ContentPayload = Field(..., validation_alias=AliasChoices("payload", "content_data"))
    is_active: bool = True
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _parse_payload_for_kind(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        kind_key = next((k for k in ("kind", "type") if k in data), None)
        if kind_key is None:
            return data
        raw_kind = data[kind_key]
        if isinstance(raw_kind, str):
            raw_kind = _KIND_ALIASES.get(raw_kind.strip().lower(), raw_kind.strip().lower())
            data[kind_key] = raw_kind
        try:
            kind = ContentKind(raw_kind)
        except ValueError as exc:
            raise ValueError(f"unsupported content kind: {raw_kind!r}") from exc

        payload_key = next((k for k in ("payload", "content_data") if k in data), None)
        if payload_key is None:
            return data
        raw_payload = data[payload_key]
        if isinstance(raw_payload, BaseModel):
            return data
        if raw_payload is None:
            raw_payload = {}
        if not isinstance(raw_payload, dict):
            raise ValueError("payload must be an object")
        data[payload_key] = _PAYLOAD_TYPES[kind].model_validate(raw_payload)
        return data

    @model_validator(mode="after")
    def _payload_matches_kind(self) -> "ContentItem":
        expected = _PAYLOAD_TYPES[self.kind]
        if not isinstance(self.payload, expected):
            raise ValueError(f"{self.kind.value} content requires a {expected.__name__}")
        return self

    @property
    def media(self) -> Optional[MediaPayload]:
        if self.kind.is_media and isinstance(self.payload, MediaPayload):
            return self.payload
        return None
