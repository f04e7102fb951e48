"""Click handling for pagination sessions."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .errors import StaleSessionError, TransientFetchError
from .lifecycle import ClickEvent, SessionLifecycleManager, WorldSource
from .models import PaginationSession
from .rendering import (
    ACTION_JUMP_END,
    ACTION_JUMP_START,
    ACTION_NEXT,
    ACTION_PREV,
    ACTION_REFRESH,
    REFRESH_FAILED_REPLY,
    SESSION_EXPIRED_REPLY,
    RenderedPage,
)

logger = logging.getLogger(__name__)


class NavigationAction(str, Enum):
    JUMP_START = ACTION_JUMP_START
    PREV = ACTION_PREV
    REFRESH = ACTION_REFRESH
    NEXT = ACTION_NEXT
    JUMP_END = ACTION_JUMP_END


def target_page(action: NavigationAction, current: int, total: int) -> int:
    last = max(0, total - 1)
    if action is NavigationAction.PREV:
        return max(0, current - 1)
    if action is NavigationAction.NEXT:
        return min(last, current + 1)
    if action is NavigationAction.JUMP_START:
        return 0
    if action is NavigationAction.JUMP_END:
        return last
    return current


class InteractionRouter:
    """Consumes clicks for live sessions and produces the next page.

    Handling is serialized per session id. A click received before the
    previous update for its session reached the message was made against an
    outdated page and is acknowledged without further effect.
    """

    def __init__(self, lifecycle: SessionLifecycleManager, source: WorldSource) -> None:
        self._lifecycle = lifecycle
        self._registry = lifecycle.registry
        self._renderer = lifecycle.renderer
        self._source = source

    async def handle(self, session_id: str, event: ClickEvent) -> None:
        live = self._registry.get(session_id)
        seen_revision: Optional[int] = live.revision if live is not None else None
        await self._acknowledge(event)

        async with self._registry.lock(session_id):
            try:
                session = self._registry.require(session_id)
            except StaleSessionError:
                logger.debug("Click for inactive session %s", session_id)
                await self._send_ephemeral(event, SESSION_EXPIRED_REPLY)
                return
            if seen_revision is not None and seen_revision != session.revision:
                logger.debug(
                    "Ignoring %s click on outdated page of session %s", event.action, session_id
                )
                return
            try:
                action = NavigationAction(event.action)
            except ValueError:
                logger.warning("Unknown pagination action %s", event.action)
                return
            if action is NavigationAction.REFRESH:
                await self.refresh(session, event)
            else:
                await self.navigate(session, action, event)

    async def refresh(self, session: PaginationSession, event: ClickEvent) -> None:
        try:
            world = await self._source.fetch_world_detail(session.world_id)
        except TransientFetchError:
            logger.exception("Error refreshing data for session %s", session.session_id)
            await self._send_ephemeral(event, REFRESH_FAILED_REPLY)
            return

        now = self._lifecycle.now()
        page = self._renderer.render(world, session.filters, session.current_page, now)
        session.world = world
        session.last_refreshed = now
        session.total_pages = page.total_pages
        session.current_page = page.page_index
        await self._deliver(session, event, page)
        self._lifecycle.persist(session)

    async def navigate(
        self, session: PaginationSession, action: NavigationAction, event: ClickEvent
    ) -> None:
        target = target_page(action, session.current_page, session.total_pages)
        page = self._renderer.render(
            session.world, session.filters, target, session.last_refreshed
        )
        # Phase freshness depends on the clock, so the page count can shrink
        # between clicks; the session follows the clamped page.
        if (
            page.page_index == session.current_page
            and page.total_pages == session.total_pages
        ):
            return
        session.current_page = page.page_index
        session.total_pages = page.total_pages
        await self._deliver(session, event, page)
        self._lifecycle.persist(session)

    async def _deliver(
        self, session: PaginationSession, event: ClickEvent, page: RenderedPage
    ) -> None:
        try:
            await event.update(page)
        except Exception:
            logger.exception("Error updating pagination for session %s", session.session_id)
        session.revision += 1

    async def _acknowledge(self, event: ClickEvent) -> None:
        try:
            await event.acknowledge()
        except Exception:
            logger.warning("Failed to acknowledge %s click", event.action, exc_info=True)

    async def _send_ephemeral(self, event: ClickEvent, content: str) -> None:
        try:
            await event.send_ephemeral(content)
        except Exception:
            logger.warning("Failed to send ephemeral reply", exc_info=True)


__all__ = ["InteractionRouter", "NavigationAction", "target_page"]
