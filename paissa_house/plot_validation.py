"""Lottery data checks for open plots."""
from __future__ import annotations

import time
from typing import Callable, Optional

from .models import OpenPlot, PurchaseSystem


class PlotValidator:
    """Answers whether a plot is sold by lottery and whether its phase data is usable.

    PaissaDB only learns a plot's lottery phase when a player with the plugin
    walks past the placard, so phase data is frequently missing or describes a
    phase that has already ended.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.time

    def now(self) -> float:
        return self._clock()

    def is_lottery(self, plot: OpenPlot) -> bool:
        return bool(plot.purchase_system & PurchaseSystem.LOTTERY)

    def is_outdated_phase(self, plot: OpenPlot) -> bool:
        if plot.lotto_phase is None:
            return False
        if plot.lotto_phase_until is None:
            return True
        return plot.lotto_phase_until < self._clock()

    def is_unknown_or_outdated_phase(self, plot: OpenPlot) -> bool:
        return plot.lotto_phase is None or self.is_outdated_phase(plot)


__all__ = ["PlotValidator"]
