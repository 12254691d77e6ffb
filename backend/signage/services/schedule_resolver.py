"""Pick the ordered content sequence a screen should be playing right now.

Tiers are tried in order and the first non-empty one wins:

1. preview override (a single explicit content id)
2. the first active schedule bound to the screen that covers ``now``
3. every active content item, newest first
4. the built-in demo sequence

Repository failures in tiers 1-3 are logged and treated as "no match";
``resolve`` itself never raises.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from ..config import settings
from ..models.content import ContentItem
from ..models.display import ResolvedSequence, SequenceSource
from ..models.schedule import GENERIC_SCREEN_ID
from ..utils.clock import day_of_week, time_of_day, to_local, utc_now
from .demo_content import demo_sequence
from .repository import SignageRepository

logger = logging.getLogger(__name__)


def normalize_screen_id(screen_id: Optional[str]) -> Optional[str]:
    """Return the screen id to match schedules against, or None for generic/absent."""
    if screen_id is None:
        return None
    cleaned = screen_id.strip()
    if not cleaned or cleaned == GENERIC_SCREEN_ID:
        return None
    return cleaned


class ScheduleResolver:
    def __init__(self, repository: SignageRepository, *, timezone_name: Optional[str] = None) -> None:
        self._repository = repository
        self._timezone_name = timezone_name if timezone_name is not None else settings.timezone

    async def resolve(
        self,
        screen_id: Optional[str] = None,
        now: Optional[datetime] = None,
        *,
        preview_id: Optional[str] = None,
    ) -> ResolvedSequence:
        moment = to_local(now or utc_now(), self._timezone_name)
        target_screen = normalize_screen_id(screen_id)

        def _result(items: List[ContentItem], source: SequenceSource, schedule_id: Optional[str] = None) -> ResolvedSequence:
            return ResolvedSequence(
                items=items,
                source=source,
                screen_id=screen_id,
                schedule_id=schedule_id,
                resolved_at=moment,
            )

        if preview_id:
            item = await self._preview(preview_id)
            if item is not None:
                return _result([item], SequenceSource.PREVIEW)

        if target_screen is not None:
            scheduled, schedule_id = await self._scheduled(target_screen, moment)
            if scheduled:
                return _result(scheduled, SequenceSource.SCHEDULE, schedule_id)

        pool = await self._active_pool()
        if pool:
            logger.info("screen %s: no scheduled playlist, playing %d active items", screen_id, len(pool))
            return _result(pool, SequenceSource.ACTIVE_POOL)

        logger.info("screen %s: no scheduled or active content, playing demo sequence", screen_id)
        return _result(demo_sequence(), SequenceSource.DEMO)

    async def _preview(self, preview_id: str) -> Optional[ContentItem]:
        try:
            item = await self._repository.get_content(preview_id)
        except Exception as exc:  # noqa: BLE001 - any failure degrades to the next tier
            logger.warning("preview lookup for %s failed: %s", preview_id, exc)
            return None
        if item is None:
            logger.warning("preview content %s not found", preview_id)
        return item

    async def _scheduled(self, screen_id: str, moment: datetime) -> Tuple[List[ContentItem], Optional[str]]:
        day = day_of_week(moment)
        hhmm = time_of_day(moment)
        try:
            matches = await self._repository.find_active_for_screen(screen_id, day, hhmm)
        except Exception as exc:  # noqa: BLE001 - any failure degrades to the next tier
            logger.warning("schedule lookup for screen %s failed: %s", screen_id, exc)
            return [], None
        if not matches:
            return [], None

        # Repository order is oldest schedule first; the first match wins.
        winner = matches[0]
        if len(matches) > 1:
            logger.info(
                "screen %s: %d overlapping schedules at day=%d %s, using %s",
                screen_id,
                len(matches),
                day,
                hhmm,
                winner.schedule.id,
            )
        items = winner.ordered_content()
        if not items:
            logger.info("screen %s: schedule %s has no playable items", screen_id, winner.schedule.id)
        return items, winner.schedule.id

    async def _active_pool(self) -> List[ContentItem]:
        try:
            return list(await self._repository.list_active_content())
        except Exception as exc:  # noqa: BLE001 - any failure degrades to the demo sequence
            logger.warning("active content lookup failed: %s", exc)
            return []
