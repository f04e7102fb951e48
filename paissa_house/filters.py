"""Filtering of world snapshots into ordered plot lists."""
from __future__ import annotations

from typing import List, Optional

from .models import PLOTS_PER_WARD, FilterPhase, FilterSpec, PlotRecord, WorldDetail
from .plot_validation import PlotValidator


def flatten_world(world: WorldDetail) -> List[PlotRecord]:
    """Return every open plot on the world in district-then-listing order."""

    return [
        PlotRecord(plot=plot, district_id=district.id, district_name=district.name)
        for district in world.districts
        for plot in district.open_plots
    ]


def phase_category(record: PlotRecord, validator: PlotValidator) -> FilterPhase:
    """Classify a plot into the lottery-phase category users filter by."""

    plot = record.plot
    if not validator.is_lottery(plot):
        return FilterPhase.FCFS
    if validator.is_unknown_or_outdated_phase(plot):
        return FilterPhase.MISSING_OUTDATED
    try:
        return FilterPhase(plot.lotto_phase)
    except ValueError:
        return FilterPhase.MISSING_OUTDATED


def matches_district(record: PlotRecord, district: Optional[int]) -> bool:
    return district is None or record.district_id == district


def matches_size(record: PlotRecord, size: Optional[int]) -> bool:
    return size is None or record.plot.size == size


def matches_plot(record: PlotRecord, plot: Optional[int]) -> bool:
    if plot is None:
        return True
    raw_index = plot - 1
    return record.plot.plot_number in (raw_index, raw_index + PLOTS_PER_WARD)


def matches_ward(record: PlotRecord, ward: Optional[int]) -> bool:
    return ward is None or record.plot.ward_number == ward - 1


def matches_tenants(record: PlotRecord, mask: Optional[int]) -> bool:
    return mask is None or (record.plot.purchase_system & mask) != 0


def matches_phase(
    record: PlotRecord, phase: Optional[int], validator: PlotValidator
) -> bool:
    if phase is None:
        return True
    plot = record.plot
    if not validator.is_lottery(plot):
        return phase == FilterPhase.FCFS
    if validator.is_unknown_or_outdated_phase(plot):
        return phase == FilterPhase.MISSING_OUTDATED
    return plot.lotto_phase == phase


def filter_records(
    records: List[PlotRecord], spec: FilterSpec, validator: PlotValidator
) -> List[PlotRecord]:
    return [
        record
        for record in records
        if matches_district(record, spec.district)
        and matches_size(record, spec.size)
        and matches_plot(record, spec.plot)
        and matches_ward(record, spec.ward)
        and matches_phase(record, spec.lottery_phase, validator)
        and matches_tenants(record, spec.allowed_tenants)
    ]


def filter_plots(
    world: WorldDetail, spec: FilterSpec, validator: PlotValidator
) -> List[PlotRecord]:
    """Apply every set field of ``spec`` to the world's plots.

    Filters compose by AND and preserve listing order. An empty result is
    valid and never raises.
    """

    return filter_records(flatten_world(world), spec, validator)


__all__ = [
    "flatten_world",
    "phase_category",
    "filter_plots",
    "filter_records",
    "matches_district",
    "matches_size",
    "matches_plot",
    "matches_ward",
    "matches_tenants",
    "matches_phase",
]
