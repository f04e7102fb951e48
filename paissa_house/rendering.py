"""Transport-neutral rendering of session pages.

The renderer turns ``(world, filters, page index)`` into a :class:`RenderedPage`
holding the text of one page and the controls that go with it. The Discord
adapter converts it into an embed and a button row.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple
from urllib.parse import urlencode

from .filters import filter_plots, flatten_world, phase_category
from .models import (
    PLOTS_PER_WARD,
    FilterPhase,
    FilterSpec,
    HouseSize,
    LottoPhase,
    PlotRecord,
    PurchaseSystem,
    WorldDetail,
)
from .pagination import Page, paginate
from .plot_validation import PlotValidator

EXPIRED_NOTICE = "Pagination session expired. Run the command again to continue browsing."
SESSION_EXPIRED_REPLY = "Pagination session expired. Please run the command again."
REFRESH_FAILED_REPLY = "Failed to refresh data. Please try again later."

ACTION_JUMP_START = "jump-start"
ACTION_PREV = "prev"
ACTION_REFRESH = "refresh"
ACTION_NEXT = "next"
ACTION_JUMP_END = "jump-end"

_SIZE_LABELS = {
    HouseSize.SMALL: "Small",
    HouseSize.MEDIUM: "Medium",
    HouseSize.LARGE: "Large",
}

_PHASE_LABELS = {
    FilterPhase.ENTRY: "Accepting Entries",
    FilterPhase.RESULTS: "Results",
    FilterPhase.UNAVAILABLE: "Unavailable",
    FilterPhase.FCFS: "FCFS",
    FilterPhase.MISSING_OUTDATED: "Missing/Outdated",
}


@dataclass(frozen=True)
class Control:
    action: str
    label: str
    disabled: bool = False


@dataclass(frozen=True)
class PageField:
    name: str
    value: str
    inline: bool = True


@dataclass(frozen=True)
class RenderedPage:
    title: str
    url: str
    description: str
    fields: List[PageField]
    footer: Optional[str]
    timestamp: Optional[datetime]
    controls: List[Control]
    page: Page[PlotRecord] = field(repr=False)

    @property
    def page_index(self) -> int:
        return self.page.page_index

    @property
    def total_pages(self) -> int:
        return self.page.total_pages


def build_controls(current_page: int, total_pages: int, has_multiple_pages: bool) -> List[Control]:
    """Return the button set for a page; single-page sessions only refresh."""

    refresh = Control(ACTION_REFRESH, "🔄 Refresh")
    if not has_multiple_pages:
        return [refresh]
    at_start = current_page <= 0
    at_end = current_page >= total_pages - 1
    return [
        Control(ACTION_JUMP_START, "⏮️", disabled=at_start),
        Control(ACTION_PREV, "◀️ Previous", disabled=at_start),
        refresh,
        Control(ACTION_NEXT, "Next ▶️", disabled=at_end),
        Control(ACTION_JUMP_END, "⏭️", disabled=at_end),
    ]


def append_expired_notice(footer: Optional[str]) -> str:
    """Append the expiry notice to a footer once."""

    text = footer or ""
    if EXPIRED_NOTICE in text:
        return text
    return f"{text}\n{EXPIRED_NOTICE}" if text else EXPIRED_NOTICE


def build_web_url(base_url: str, world_id: int, filters: FilterSpec) -> str:
    """Link to the PaissaDB website with the same filters applied."""

    params: List[Tuple[str, int]] = [("world", world_id)]
    if filters.size is not None:
        params.append(("sizes", filters.size))
    if filters.district is not None:
        params.append(("districts", filters.district))
    if filters.lottery_phase is not None:
        params.append(("phases", filters.lottery_phase))
    if filters.allowed_tenants is not None:
        params.append(("tenants", filters.allowed_tenants))
    if filters.plot is not None:
        params.append(("plots", filters.plot - 1))
        params.append(("plots", filters.plot - 1 + PLOTS_PER_WARD))
    if filters.ward is not None:
        params.append(("wards", filters.ward - 1))
    return f"{base_url}?{urlencode(params)}"


def size_label(size: int) -> str:
    try:
        return _SIZE_LABELS[HouseSize(size)]
    except ValueError:
        return f"Unknown size ({size})"


def phase_label(phase: Optional[int]) -> str:
    try:
        return _PHASE_LABELS[FilterPhase(phase)]
    except ValueError:
        return f"Unknown ({phase})"


def tenants_label(purchase_system: int) -> str:
    both = PurchaseSystem.FREE_COMPANY | PurchaseSystem.INDIVIDUAL
    if purchase_system & both == both:
        return "Unrestricted"
    if purchase_system & PurchaseSystem.FREE_COMPANY:
        return "Free Company"
    return "Individual"


def _entries_label(record: PlotRecord, validator: PlotValidator) -> str:
    plot = record.plot
    if not validator.is_lottery(plot):
        return "N/A"
    if validator.is_unknown_or_outdated_phase(plot):
        return "_Missing Pl. Data_"
    return str(plot.lotto_entries or 0)


def _plot_field(record: PlotRecord, validator: PlotValidator) -> PageField:
    plot = record.plot
    lines = [
        f"📍 {record.district_name or 'Unknown District'}",
        f"🏠 {size_label(plot.size)}",
        f"💰 {plot.price:,}",
        f"🎟️ {_entries_label(record, validator)}",
        f"📅 {phase_label(phase_category(record, validator))}",
        f"👥 {tenants_label(plot.purchase_system)}",
        f"🕒 <t:{int(plot.last_updated_time)}:R>",
    ]
    return PageField(
        name=f"Plot {plot.plot_number + 1} (Ward {plot.ward_number + 1})",
        value="\n".join(lines),
    )


def _latest_phase_line(records: List[PlotRecord], validator: PlotValidator, now: float) -> str:
    latest: Optional[PlotRecord] = None
    for record in records:
        plot = record.plot
        if not validator.is_lottery(plot) or plot.lotto_phase_until is None:
            continue
        if latest is None or plot.lotto_phase_until > (latest.plot.lotto_phase_until or 0):
            latest = record
    if latest is None:
        return "Lottery phase ends: Insufficient data"
    until = int(latest.plot.lotto_phase_until or 0)
    name = "Entry phase" if latest.plot.lotto_phase == LottoPhase.ENTRY else "Results phase"
    verb = "ends" if until > now else "ended"
    return f"{name} {verb}: <t:{until}:F> (<t:{until}:R>)"


def _filter_labels(world: WorldDetail, filters: FilterSpec) -> List[str]:
    labels: List[str] = []
    if filters.district is not None:
        labels.append(world.district_name(filters.district) or "Unknown District")
    if filters.size is not None:
        labels.append(size_label(filters.size))
    if filters.plot is not None:
        labels.append(f"Plot {filters.plot} / {filters.plot + PLOTS_PER_WARD}")
    if filters.ward is not None:
        labels.append(f"Ward {filters.ward}")
    if filters.lottery_phase is not None:
        labels.append(phase_label(filters.lottery_phase))
    if filters.allowed_tenants is not None:
        labels.append(tenants_label(filters.allowed_tenants))
    return labels


def render_page(
    world: WorldDetail,
    filters: FilterSpec,
    page_index: int,
    *,
    page_size: int,
    validator: Optional[PlotValidator] = None,
    last_refreshed: Optional[datetime] = None,
    web_base_url: str = "https://zhu.codes/paissa",
) -> RenderedPage:
    validator = validator or PlotValidator()
    now = validator.now()
    every_plot = flatten_world(world)
    filtered = filter_plots(world, filters, validator)
    page = paginate(filtered, page_size, page_index)

    available = sum(
        1 for record in every_plot if phase_category(record, validator) == FilterPhase.ENTRY
    )
    missing = sum(
        1
        for record in every_plot
        if validator.is_unknown_or_outdated_phase(record.plot)
    )
    summary = f"Open plots: {len(every_plot)} (Available: {available}"
    if missing:
        summary += f", Missing/outdated data: {missing}"
    description = summary + ")\n" + _latest_phase_line(every_plot, validator, now)

    if len(filtered) != len(every_plot):
        noun = "plot" if len(filtered) == 1 else "plots"
        labels = _filter_labels(world, filters)
        description += f"\n\nFiltered {len(filtered)} {noun}"
        if labels:
            description += ": " + " • ".join(labels)

    footer = None
    if page.has_multiple_pages:
        footer = (
            f"Page {page.page_index + 1}/{page.total_pages} • "
            f"Showing plots {page.start}-{page.end} of {page.total_items} total"
        )

    return RenderedPage(
        title=world.name,
        url=build_web_url(web_base_url, world.id, filters),
        description=description,
        fields=[_plot_field(record, validator) for record in page.items],
        footer=footer,
        timestamp=last_refreshed,
        controls=build_controls(page.page_index, page.total_pages, page.has_multiple_pages),
        page=page,
    )


class PageRenderer:
    """Binds page rendering to the configured page size and links."""

    def __init__(
        self,
        *,
        page_size: int,
        web_base_url: str = "https://zhu.codes/paissa",
        validator: Optional[PlotValidator] = None,
    ) -> None:
        self.page_size = page_size
        self.web_base_url = web_base_url
        self.validator = validator or PlotValidator()

    def render(
        self,
        world: WorldDetail,
        filters: FilterSpec,
        page_index: int,
        last_refreshed: Optional[datetime] = None,
    ) -> RenderedPage:
        return render_page(
            world,
            filters,
            page_index,
            page_size=self.page_size,
            validator=self.validator,
            last_refreshed=last_refreshed,
            web_base_url=self.web_base_url,
        )


__all__ = [
    "PageRenderer",
    "ACTION_JUMP_START",
    "ACTION_PREV",
    "ACTION_REFRESH",
    "ACTION_NEXT",
    "ACTION_JUMP_END",
    "EXPIRED_NOTICE",
    "SESSION_EXPIRED_REPLY",
    "REFRESH_FAILED_REPLY",
    "Control",
    "PageField",
    "RenderedPage",
    "append_expired_notice",
    "build_controls",
    "build_web_url",
    "render_page",
    "size_label",
    "phase_label",
    "tenants_label",
]
