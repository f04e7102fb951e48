"""Core data models for the PaissaHouse housing browser."""
from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum, IntFlag
from typing import Any, Dict, List, Optional

PLOTS_PER_WARD = 30
MAX_WARDS = 30


class DistrictId(IntEnum):
    MIST = 339
    THE_LAVENDER_BEDS = 340
    THE_GOBLET = 341
    SHIROGANE = 641
    EMPYREUM = 979


class HouseSize(IntEnum):
    SMALL = 0
    MEDIUM = 1
    LARGE = 2


class LottoPhase(IntEnum):
    ENTRY = 1
    RESULTS = 2
    UNAVAILABLE = 3


class PurchaseSystem(IntFlag):
    LOTTERY = 1
    FREE_COMPANY = 2
    INDIVIDUAL = 4


class FilterPhase(IntEnum):
    """Lottery-phase filter categories offered to users."""

    ENTRY = LottoPhase.ENTRY.value
    RESULTS = LottoPhase.RESULTS.value
    UNAVAILABLE = LottoPhase.UNAVAILABLE.value
    FCFS = 4
    MISSING_OUTDATED = 5


TENANT_MASK = PurchaseSystem.FREE_COMPANY | PurchaseSystem.INDIVIDUAL


@dataclass(frozen=True)
class OpenPlot:
    """A single open listing as reported by PaissaDB."""

    world_id: int
    district_id: int
    ward_number: int
    plot_number: int
    size: int
    price: int
    last_updated_time: float
    first_seen_time: float
    est_time_open_min: float
    est_time_open_max: float
    purchase_system: int
    lotto_entries: Optional[int] = None
    lotto_phase: Optional[int] = None
    lotto_phase_until: Optional[float] = None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "OpenPlot":
        return OpenPlot(
            world_id=int(data["world_id"]),
            district_id=int(data["district_id"]),
            ward_number=int(data["ward_number"]),
            plot_number=int(data["plot_number"]),
            size=int(data["size"]),
            price=int(data["price"]),
            last_updated_time=float(data["last_updated_time"]),
            first_seen_time=float(data.get("first_seen_time", data["last_updated_time"])),
            est_time_open_min=float(data.get("est_time_open_min", 0.0)),
            est_time_open_max=float(data.get("est_time_open_max", 0.0)),
            purchase_system=int(data["purchase_system"]),
            lotto_entries=_optional_int(data.get("lotto_entries")),
            lotto_phase=_optional_int(data.get("lotto_phase")),
            lotto_phase_until=_optional_float(data.get("lotto_phase_until")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "world_id": self.world_id,
            "district_id": self.district_id,
            "ward_number": self.ward_number,
            "plot_number": self.plot_number,
            "size": self.size,
            "price": self.price,
            "last_updated_time": self.last_updated_time,
            "first_seen_time": self.first_seen_time,
            "est_time_open_min": self.est_time_open_min,
            "est_time_open_max": self.est_time_open_max,
            "purchase_system": self.purchase_system,
            "lotto_entries": self.lotto_entries,
            "lotto_phase": self.lotto_phase,
            "lotto_phase_until": self.lotto_phase_until,
        }


@dataclass(frozen=True)
class District:
    id: int
    name: str
    num_open_plots: int
    oldest_plot_time: float
    open_plots: List[OpenPlot] = field(default_factory=list)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "District":
        plots = [OpenPlot.from_dict(item) for item in data.get("open_plots", [])]
        return District(
            id=int(data["id"]),
            name=str(data["name"]),
            num_open_plots=int(data.get("num_open_plots", len(plots))),
            oldest_plot_time=float(data.get("oldest_plot_time", 0.0)),
            open_plots=plots,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "num_open_plots": self.num_open_plots,
            "oldest_plot_time": self.oldest_plot_time,
            "open_plots": [plot.to_dict() for plot in self.open_plots],
        }


@dataclass(frozen=True)
class WorldDetail:
    """Snapshot of every open plot on a world, grouped by district."""

    id: int
    name: str
    districts: List[District]
    num_open_plots: int
    oldest_plot_time: float

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "WorldDetail":
        districts = [District.from_dict(item) for item in data.get("districts", [])]
        return WorldDetail(
            id=int(data["id"]),
            name=str(data["name"]),
            districts=districts,
            num_open_plots=int(
                data.get("num_open_plots", sum(len(d.open_plots) for d in districts))
            ),
            oldest_plot_time=float(data.get("oldest_plot_time", 0.0)),
        )

    @staticmethod
    def from_json(payload: str) -> "WorldDetail":
        return WorldDetail.from_dict(json.loads(payload))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "districts": [district.to_dict() for district in self.districts],
            "num_open_plots": self.num_open_plots,
            "oldest_plot_time": self.oldest_plot_time,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def district_name(self, district_id: int) -> Optional[str]:
        for district in self.districts:
            if district.id == district_id:
                return district.name
        return None


@dataclass(frozen=True)
class WorldSummary:
    id: int
    name: str
    datacenter_name: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "WorldSummary":
        return WorldSummary(
            id=int(data["id"]),
            name=str(data["name"]),
            datacenter_name=str(data.get("datacenter_name", "")),
        )


@dataclass(frozen=True)
class PlotRecord:
    """An open plot paired with the district it was listed under."""

    plot: OpenPlot
    district_id: int
    district_name: str


@dataclass(frozen=True)
class FilterSpec:
    """Optional predicates narrowing a world snapshot.

    ``plot`` and ``ward`` use the 1-based numbers shown in game; the raw API
    indices are 0-based and plots 31-60 are the subdivision of plots 1-30.
    """

    district: Optional[int] = None
    size: Optional[int] = None
    lottery_phase: Optional[int] = None
    allowed_tenants: Optional[int] = None
    plot: Optional[int] = None
    ward: Optional[int] = None

    def validate(self) -> "FilterSpec":
        if self.district is not None and self.district not in {d.value for d in DistrictId}:
            raise ValueError(f"Unknown district {self.district}")
        if self.size is not None and self.size not in {s.value for s in HouseSize}:
            raise ValueError(f"Unknown plot size {self.size}")
        if self.lottery_phase is not None and self.lottery_phase not in {
            p.value for p in FilterPhase
        }:
            raise ValueError(f"Unknown lottery phase {self.lottery_phase}")
        if self.allowed_tenants is not None and (
            self.allowed_tenants <= 0 or self.allowed_tenants & ~int(TENANT_MASK)
        ):
            raise ValueError(f"Unknown allowed tenants {self.allowed_tenants}")
        if self.plot is not None and not 1 <= self.plot <= PLOTS_PER_WARD:
            raise ValueError("Plot must be between 1 and 30")
        if self.ward is not None and not 1 <= self.ward <= MAX_WARDS:
            raise ValueError("Ward must be between 1 and 30")
        return self

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.district,
                self.size,
                self.lottery_phase,
                self.allowed_tenants,
                self.plot,
                self.ward,
            )
        )


@dataclass(frozen=True)
class MessageRef:
    channel_id: int
    message_id: int
    guild_id: Optional[int] = None


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class PaginationSession:
    """One user's live browsing context, tied to one delivered message.

    ``revision`` counts message updates delivered since the session was
    loaded into memory; it is not persisted.
    """

    session_id: str
    owner_id: int
    message: MessageRef
    world_id: int
    filters: FilterSpec
    current_page: int
    total_pages: int
    world: WorldDetail
    created_at: datetime
    last_refreshed: datetime
    revision: int = 0


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


__all__ = [
    "DistrictId",
    "HouseSize",
    "LottoPhase",
    "PurchaseSystem",
    "FilterPhase",
    "TENANT_MASK",
    "PLOTS_PER_WARD",
    "MAX_WARDS",
    "OpenPlot",
    "District",
    "WorldDetail",
    "WorldSummary",
    "PlotRecord",
    "FilterSpec",
    "MessageRef",
    "PaginationSession",
    "new_session_id",
]
