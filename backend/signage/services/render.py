"""Build the render frame a display client draws for the current item."""

from __future__ import annotations

from typing import Mapping, Optional, Set

from ..config import settings
from ..models.content import ContentItem, ContentKind, MarkupPayload, TextPayload
from ..models.display import FrameState, PlaybackMode, RenderFrame

# Markup runs in an isolated document: no scripts, no same-origin access to the host page.
MARKUP_SANDBOX = ""

NO_CONTENT_MESSAGE = "No hay contenido disponible para mostrar"
VIDEO_UNAVAILABLE_MESSAGE = "Video no disponible"


def build_frame(
    item: Optional[ContentItem],
    resolved_urls: Mapping[str, str],
    error_flags: Set[str],
    *,
    index: Optional[int] = None,
    total: int = 0,
    mode: PlaybackMode = PlaybackMode.IDLE,
    remaining_seconds: Optional[float] = None,
    placeholder_url: Optional[str] = None,
) -> RenderFrame:
    if item is None:
        return RenderFrame(state=FrameState.NO_CONTENT, mode=mode, total=total, message=NO_CONTENT_MESSAGE)

    state = FrameState.CONTENT
    message: Optional[str] = None
    body: dict = {}

    if item.kind is ContentKind.TEXT:
        payload = item.payload
        assert isinstance(payload, TextPayload)
        body = {
            "text": payload.text,
            "font_size": payload.font_size,
            "color": payload.color,
            "background_color": payload.background_color,
            "align": payload.align,
        }
    elif item.kind is ContentKind.MARKUP:
        payload = item.payload
        assert isinstance(payload, MarkupPayload)
        body = {"srcdoc": payload.html, "sandbox": MARKUP_SANDBOX}
    else:
        media = item.media
        assert media is not None
        body = {"alt": media.alt_or_filename or item.title, "mime_type": media.mime_type}
        if item.id in error_flags:
            state = FrameState.ERROR
            if item.kind is ContentKind.VIDEO:
                message = VIDEO_UNAVAILABLE_MESSAGE
                body["src"] = None
            else:
                body["src"] = placeholder_url or settings.placeholder_image_url
        else:
            src = resolved_urls.get(item.id) or media.url
            if src is None:
                state = FrameState.LOADING
                message = "Cargando video..." if item.kind is ContentKind.VIDEO else "Cargando imagen..."
            body["src"] = src
            if item.kind is ContentKind.IMAGE:
                body["fallback_src"] = placeholder_url or settings.placeholder_image_url
            else:
                body.update({"autoplay": True, "muted": True, "loop": True})

    return RenderFrame(
        state=state,
        mode=mode,
        index=index,
        total=total,
        content_id=item.id,
        title=item.title,
        kind=item.kind,
        duration_seconds=item.duration_seconds,
        remaining_seconds=remaining_seconds,
        message=message,
        body=body,
    )
