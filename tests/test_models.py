"""Tests for filter validation and plot lottery checks."""
from __future__ import annotations

import pytest
from conftest import NOW_TS, build_plot

from paissa_house.models import FilterSpec, PurchaseSystem


@pytest.mark.parametrize(
    "spec",
    [
        FilterSpec(district=1),
        FilterSpec(size=3),
        FilterSpec(lottery_phase=6),
        FilterSpec(allowed_tenants=PurchaseSystem.LOTTERY),
        FilterSpec(plot=0),
        FilterSpec(ward=31),
    ],
)
def test_invalid_filters_rejected(spec):
    with pytest.raises(ValueError):
        spec.validate()


def test_valid_filter_passes_through():
    spec = FilterSpec(district=641, size=1, lottery_phase=5, allowed_tenants=6, plot=30, ward=1)

    assert spec.validate() is spec
    assert not spec.is_empty()
    assert FilterSpec().is_empty()


def test_lottery_detection(validator):
    assert validator.is_lottery(build_plot(purchase_system=PurchaseSystem.LOTTERY | PurchaseSystem.INDIVIDUAL))
    assert not validator.is_lottery(build_plot(purchase_system=PurchaseSystem.FREE_COMPANY))


def test_outdated_phase_rules(validator):
    assert not validator.is_outdated_phase(build_plot(lotto_phase_until=NOW_TS + 60))
    assert validator.is_outdated_phase(build_plot(lotto_phase_until=NOW_TS - 60))
    assert validator.is_outdated_phase(build_plot(lotto_phase_until=None))
    assert not validator.is_outdated_phase(build_plot(lotto_phase=None, lotto_phase_until=None))
    assert validator.is_unknown_or_outdated_phase(build_plot(lotto_phase=None, lotto_phase_until=None))
