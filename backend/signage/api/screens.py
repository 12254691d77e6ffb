"""Screen listing for display pickers."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from ..errors import RepositoryError
from ..models.display import ScreenSummary
from ..services.backend import get_backend

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/screens")
async def api_list_screens() -> dict:
    try:
        screens = await get_backend().repository.list_screens()
    except RepositoryError as exc:
        logger.warning("listing screens failed: %s", exc)
        raise HTTPException(status_code=502, detail="screen list unavailable") from exc
    summaries = [
        ScreenSummary(
            id=screen.id,
            name=screen.name,
            location=screen.location,
            status=screen.status.value,
            resolution=screen.resolution,
            selectable=screen.selectable,
        )
        for screen in screens
    ]
    return {"screens": [summary.model_dump() for summary in summaries]}
