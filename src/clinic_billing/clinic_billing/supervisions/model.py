from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Mapping, Optional

from ..core.constants import DEFAULT_SUPERVISION_RATE
from ..core.enums import Sector


@dataclass(frozen=True)
class Supervision:
    """Domain entity: a supervision session credited to a staff member."""

    supervision_id: int
    staff_id: int
    coordinator_id: int
    supervision_date: date
    start_time: time
    end_time: time
    hours: float
    sector: Sector
    observations: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.supervision_id,
            "staff_id": self.staff_id,
            "coordinator_id": self.coordinator_id,
            "date": self.supervision_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "hours": self.hours,
            "sector": self.sector.value,
            "observations": self.observations,
        }


@dataclass(frozen=True)
class SupervisionRates:
    """Per-sector hourly supervision rates (single versioned row)."""

    rates: Mapping[Sector, Optional[float]] = field(default_factory=dict)
    version: int = 0

    def rate_for(self, sector: Optional[Sector]) -> float:
        # unset and zero both fall back to the default
        if sector is None:
            return DEFAULT_SUPERVISION_RATE
        return self.rates.get(sector) or DEFAULT_SUPERVISION_RATE

    def to_dict(self) -> dict:
        return {
            **{s.value: self.rate_for(s) for s in Sector},
            "version": self.version,
        }
