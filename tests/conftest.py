"""Shared factories for PaissaHouse tests."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

import pytest

from paissa_house.errors import UnreachableMessageError
from paissa_house.lifecycle import EditOutcome
from paissa_house.models import (
    District,
    FilterSpec,
    MessageRef,
    OpenPlot,
    PaginationSession,
    WorldDetail,
)
from paissa_house.plot_validation import PlotValidator

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
NOW_TS = NOW.timestamp()

DISTRICT_NAMES: Dict[int, str] = {
    339: "Mist",
    340: "The Lavender Beds",
    341: "The Goblet",
    641: "Shirogane",
    979: "Empyreum",
}


def build_plot(
    ward: int = 0,
    plot: int = 0,
    *,
    district_id: int = 339,
    size: int = 0,
    price: int = 3_187_500,
    purchase_system: int = 7,
    lotto_phase: Optional[int] = 1,
    lotto_phase_until: Optional[float] = NOW_TS + 86_400,
    lotto_entries: Optional[int] = 2,
) -> OpenPlot:
    return OpenPlot(
        world_id=73,
        district_id=district_id,
        ward_number=ward,
        plot_number=plot,
        size=size,
        price=price,
        last_updated_time=NOW_TS - 600,
        first_seen_time=NOW_TS - 3_600,
        est_time_open_min=NOW_TS - 7_200,
        est_time_open_max=NOW_TS - 3_600,
        purchase_system=purchase_system,
        lotto_entries=lotto_entries,
        lotto_phase=lotto_phase,
        lotto_phase_until=lotto_phase_until,
    )


def build_world(plots: Iterable[OpenPlot], *, world_id: int = 73, name: str = "Adamantoise") -> WorldDetail:
    grouped: Dict[int, List[OpenPlot]] = {}
    for item in plots:
        grouped.setdefault(item.district_id, []).append(item)
    districts = [
        District(
            id=district_id,
            name=DISTRICT_NAMES.get(district_id, "Unknown"),
            num_open_plots=len(items),
            oldest_plot_time=NOW_TS - 7_200,
            open_plots=items,
        )
        for district_id, items in grouped.items()
    ]
    return WorldDetail(
        id=world_id,
        name=name,
        districts=districts,
        num_open_plots=sum(len(items) for items in grouped.values()),
        oldest_plot_time=NOW_TS - 7_200,
    )


def build_world_with(count: int) -> WorldDetail:
    """A world with ``count`` open plots spread across wards of Mist."""

    return build_world(build_plot(ward=index // 30, plot=index % 30) for index in range(count))


def build_session(
    world: WorldDetail,
    *,
    session_id: str = "session-1",
    owner_id: int = 42,
    message_id: int = 900,
    created_at: datetime = NOW,
    current_page: int = 0,
    total_pages: int = 1,
    filters: Optional[FilterSpec] = None,
) -> PaginationSession:
    return PaginationSession(
        session_id=session_id,
        owner_id=owner_id,
        message=MessageRef(channel_id=55, message_id=message_id, guild_id=7),
        world_id=world.id,
        filters=filters or FilterSpec(),
        current_page=current_page,
        total_pages=total_pages,
        world=world,
        created_at=created_at,
        last_refreshed=created_at,
    )


@pytest.fixture
def validator() -> PlotValidator:
    return PlotValidator(clock=lambda: NOW_TS)


class FakeSubscription:
    """Listener handle recorded by :class:`FakeTransport`."""

    def __init__(self, ref, controls, predicate, on_event, on_end, timeout, verify) -> None:
        self.ref = ref
        self.controls = controls
        self.predicate = predicate
        self.on_event = on_event
        self.on_end = on_end
        self.timeout = timeout
        self.verify = verify
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def is_finished(self) -> bool:
        return self.cancelled


class FakeTransport:
    """Records deliveries, listeners and expiry edits instead of talking to Discord."""

    def __init__(self) -> None:
        self.delivered = []
        self.attached: List[FakeSubscription] = []
        self.expired: List[MessageRef] = []
        self.unreachable: set = set()
        self.outcome = EditOutcome.OK
        self._next_message_id = 1000

    async def deliver(self, target, page) -> MessageRef:
        self.delivered.append((target, page))
        self._next_message_id += 1
        return MessageRef(channel_id=55, message_id=self._next_message_id)

    async def attach(self, ref, *, controls, predicate, on_event, on_end, timeout, verify):
        if verify and ref.message_id in self.unreachable:
            raise UnreachableMessageError(f"Message {ref.message_id} is gone")
        subscription = FakeSubscription(ref, controls, predicate, on_event, on_end, timeout, verify)
        self.attached.append(subscription)
        return subscription

    async def try_append_expired_notice(self, ref) -> EditOutcome:
        self.expired.append(ref)
        return self.outcome


class FakeSource:
    """World snapshot source returning a fixed world or raising a given error."""

    def __init__(self, world: WorldDetail) -> None:
        self.world = world
        self.error: Optional[Exception] = None
        self.calls: List[int] = []

    async def fetch_world_detail(self, world_id: int) -> WorldDetail:
        self.calls.append(world_id)
        if self.error is not None:
            raise self.error
        return self.world
