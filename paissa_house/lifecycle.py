"""Creation, persistence, restoration and expiry of pagination sessions."""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Protocol

from .errors import PaissaHouseError, PersistenceWriteError
from .models import FilterSpec, MessageRef, PaginationSession, WorldDetail, new_session_id
from .rendering import Control, PageRenderer, RenderedPage, build_controls
from .sessions import SessionRegistry, Subscription
from .state import SessionStateStore, StoredSession

logger = logging.getLogger(__name__)


class EditOutcome(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


class ClickEvent(Protocol):
    """A button press on a session message, as seen by the router."""

    user_id: int
    message_id: int
    action: str

    async def acknowledge(self) -> None:
        ...

    async def update(self, page: RenderedPage) -> None:
        ...

    async def send_ephemeral(self, content: str) -> None:
        ...


EventHandler = Callable[[str, ClickEvent], Awaitable[None]]


class WorldSource(Protocol):
    async def fetch_world_detail(self, world_id: int) -> WorldDetail:
        ...


class Transport(Protocol):
    """Messaging operations the lifecycle manager needs."""

    async def deliver(self, target: Any, page: RenderedPage) -> MessageRef:
        ...

    async def attach(
        self,
        ref: MessageRef,
        *,
        controls: List[Control],
        predicate: Callable[[ClickEvent], bool],
        on_event: Callable[[ClickEvent], Awaitable[None]],
        on_end: Callable[[], Awaitable[None]],
        timeout: float,
        verify: bool,
    ) -> Subscription:
        ...

    async def try_append_expired_notice(self, ref: MessageRef) -> EditOutcome:
        ...


@dataclass(frozen=True)
class CommandRequest:
    owner_id: int
    world_id: int
    filters: FilterSpec
    guild_id: Optional[int] = None


@dataclass
class RestoreReport:
    restored: int = 0
    expired: int = 0
    failed: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionLifecycleManager:
    """Owns sessions from the command invocation to their expiry.

    Durable writes are best effort: a failing store is logged and never
    blocks the live interaction.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        store: SessionStateStore,
        source: WorldSource,
        transport: Transport,
        renderer: PageRenderer,
        *,
        retention_seconds: float,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._source = source
        self._transport = transport
        self._renderer = renderer
        self._retention_seconds = retention_seconds
        self._clock = clock or _utcnow
        self._event_handler: Optional[EventHandler] = None

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def renderer(self) -> PageRenderer:
        return self._renderer

    def now(self) -> datetime:
        return self._clock()

    def bind_event_handler(self, handler: EventHandler) -> None:
        self._event_handler = handler

    def is_expired(self, created_at: datetime) -> bool:
        return (self.now() - created_at).total_seconds() > self._retention_seconds

    # Creation ----------------------------------------------------------
    async def create(self, request: CommandRequest, target: Any) -> PaginationSession:
        """Fetch, render and deliver the first page, then start listening.

        ``TransientFetchError`` from the dataset source propagates so the
        command handler can report it.
        """

        world = await self._source.fetch_world_detail(request.world_id)
        now = self.now()
        page = self._renderer.render(world, request.filters, 0, now)
        ref = await self._transport.deliver(target, page)
        if ref.guild_id is None and request.guild_id is not None:
            ref = MessageRef(ref.channel_id, ref.message_id, request.guild_id)
        session = PaginationSession(
            session_id=new_session_id(),
            owner_id=request.owner_id,
            message=ref,
            world_id=request.world_id,
            filters=request.filters,
            current_page=page.page_index,
            total_pages=page.total_pages,
            world=world,
            created_at=now,
            last_refreshed=now,
        )
        self._registry.add(session)
        self.persist(session)
        await self._attach(session, verify=False)
        logger.info(
            "Created session %s for user %s on world %s (%d pages)",
            session.session_id,
            session.owner_id,
            session.world_id,
            session.total_pages,
        )
        return session

    async def _attach(self, session: PaginationSession, *, verify: bool) -> None:
        session_id = session.session_id
        owner_id = session.owner_id
        message_id = session.message.message_id

        def predicate(event: ClickEvent) -> bool:
            return event.user_id == owner_id and event.message_id == message_id

        async def on_event(event: ClickEvent) -> None:
            await self._dispatch(session_id, event)

        async def on_end() -> None:
            await self.end(session_id)

        subscription = await self._transport.attach(
            session.message,
            controls=build_controls(
                session.current_page, session.total_pages, session.total_pages > 1
            ),
            predicate=predicate,
            on_event=on_event,
            on_end=on_end,
            timeout=self._retention_seconds,
            verify=verify,
        )
        self._registry.bind(session_id, subscription)

    async def _dispatch(self, session_id: str, event: ClickEvent) -> None:
        if self._event_handler is None:
            logger.warning("No event handler bound; ignoring click for %s", session_id)
            await event.acknowledge()
            return
        await self._event_handler(session_id, event)

    # Persistence -------------------------------------------------------
    def persist(self, session: PaginationSession) -> bool:
        """Write the full session, including its snapshot, to the store."""

        try:
            self._store.put(StoredSession.from_session(session))
        except PersistenceWriteError:
            logger.exception("Failed to save pagination session %s", session.session_id)
            return False
        return True

    def _delete_row(self, session_id: str) -> None:
        try:
            self._store.delete(session_id)
        except PersistenceWriteError:
            logger.exception("Failed to delete pagination session %s", session_id)

    # Startup -----------------------------------------------------------
    async def restore(self) -> RestoreReport:
        """Reload stored sessions, expiring the old and re-attaching the rest."""

        report = RestoreReport()
        try:
            rows = self._store.list()
        except sqlite3.Error:
            logger.exception("Failed to load pagination sessions")
            return report

        for row in rows:
            try:
                expired = self.is_expired(row.created)
            except PaissaHouseError as exc:
                logger.warning("Failed to restore pagination session %s: %s", row.session_id, exc)
                self._delete_row(row.session_id)
                report.failed += 1
                continue
            if expired:
                self._delete_row(row.session_id)
                await self._expire_message(row.message)
                report.expired += 1
                continue
            try:
                session = row.to_session()
                self._registry.add(session)
                await self._attach(session, verify=True)
            except PaissaHouseError as exc:
                logger.warning("Failed to restore pagination session %s: %s", row.session_id, exc)
                self._registry.cancel(row.session_id)
                self._delete_row(row.session_id)
                report.failed += 1
                continue
            except Exception:
                logger.exception("Unexpected error restoring session %s", row.session_id)
                self._registry.cancel(row.session_id)
                self._delete_row(row.session_id)
                report.failed += 1
                continue
            report.restored += 1

        logger.info(
            "Loaded %d pagination sessions (%d expired, %d failed)",
            report.restored,
            report.expired,
            report.failed,
        )
        return report

    async def _expire_message(self, ref: MessageRef) -> None:
        try:
            outcome = await self._transport.try_append_expired_notice(ref)
        except Exception:  # pragma: no cover - logging only
            logger.warning("Failed to update expired message %s", ref.message_id, exc_info=True)
            return
        if outcome is not EditOutcome.OK:
            logger.debug("Expired message %s unreachable (%s)", ref.message_id, outcome.value)

    # Expiry ------------------------------------------------------------
    def sweep(self) -> int:
        """Delete durable rows older than the retention window."""

        cutoff = self.now().timestamp() - self._retention_seconds
        try:
            deleted = self._store.delete_older_than(
                datetime.fromtimestamp(cutoff, tz=timezone.utc)
            )
        except PersistenceWriteError:
            logger.exception("Failed to run scheduled pagination cleanup")
            return 0
        logger.info("Deleted %d expired pagination sessions from database", deleted)
        return deleted

    async def end(self, session_id: str) -> None:
        """Forget a session everywhere and mark its message as expired."""

        async with self._registry.lock(session_id):
            session = self._registry.remove(session_id)
        self._delete_row(session_id)
        if session is None:
            return
        try:
            outcome = await self._transport.try_append_expired_notice(session.message)
        except Exception:
            logger.exception("Failed to remove pagination buttons for %s", session_id)
            return
        if outcome is EditOutcome.FORBIDDEN:
            logger.debug("Failed to remove pagination buttons: Missing Access")
        elif outcome is EditOutcome.NOT_FOUND:
            logger.warning("Message for session %s no longer exists", session_id)
        logger.info("Ended pagination session %s", session_id)

    def shutdown(self) -> None:
        """Stop every listener but keep stored rows for the next start."""

        self._registry.clear()


__all__ = [
    "ClickEvent",
    "CommandRequest",
    "EditOutcome",
    "RestoreReport",
    "SessionLifecycleManager",
    "Transport",
    "WorldSource",
]
