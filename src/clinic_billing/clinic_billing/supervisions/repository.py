from __future__ import annotations

from datetime import date, time
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import Sector
from .model import Supervision, SupervisionRates


class SupervisionRepository(Protocol):
    def get_by_id(self, supervision_id: int) -> Optional[Supervision]:
        raise NotImplementedError

    def find_duplicate(
        self, *, staff_id: int, supervision_date: date, start_time: time, end_time: time
    ) -> Optional[Supervision]:
        raise NotImplementedError

    def create_supervision(
        self,
        *,
        staff_id: int,
        coordinator_id: int,
        supervision_date: date,
        start_time: time,
        end_time: time,
        hours: float,
        sector: Sector,
        observations: Optional[str],
    ) -> int:
        raise NotImplementedError

    def delete_by_id(self, supervision_id: int) -> bool:
        raise NotImplementedError

    def delete_for_staff(self, staff_id: int) -> int:
        raise NotImplementedError

    def list_in_period(
        self,
        start_date: date,
        end_date: date,
        *,
        staff_id: Optional[int] = None,
        coordinator_id: Optional[int] = None,
        sector: Optional[Sector] = None,
    ) -> Sequence[Supervision]:
        raise NotImplementedError


class SupervisionRateRepository(Protocol):
    def get_rates(self) -> SupervisionRates:
        raise NotImplementedError

    def save_rates(self, rates: Mapping[Sector, float], *, expected_version: int) -> bool:
        """Compare-and-swap on the row version; False when it moved."""

        raise NotImplementedError
