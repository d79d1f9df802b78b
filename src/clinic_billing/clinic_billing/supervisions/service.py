from __future__ import annotations

import logging
from datetime import date
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import month_bounds, parse_clock_time, parse_iso_date
from ..common.validators import require_number
from ..core.enums import Role, Sector
from ..core.exceptions import AuthorizationError, ConcurrencyError, ConflictError, NotFoundError, ValidationError
from ..core.identity import Identity
from ..core.permissions import CREATE_SUPERVISION_ROLES, DELETE_ANY_SUPERVISION_ROLES, SUPERVISION_RATE_ROLES
from ..payroll.calculator.base import HoursCalculator
from ..payroll.calculator.half_hour_calculator import HalfHourCalculator
from ..users.repository import UserRepository
from .model import Supervision, SupervisionRates
from .repository import SupervisionRateRepository, SupervisionRepository

logger = logging.getLogger(__name__)


class SupervisionService:
    def __init__(
        self,
        supervisions: SupervisionRepository,
        rates: SupervisionRateRepository,
        users: UserRepository,
        *,
        calculator: Optional[HoursCalculator] = None,
    ):
        self._supervisions = supervisions
        self._rates = rates
        self._users = users
        self._calculator = calculator or HalfHourCalculator()

    def create_supervision(
        self,
        identity: Identity,
        *,
        staff_id,
        supervision_date: date | str,
        start_time: str,
        end_time: str,
        observations: Optional[str] = None,
    ) -> Supervision:
        identity.require(CREATE_SUPERVISION_ROLES, "You cannot register supervisions")

        if staff_id in (None, ""):
            raise ValidationError("Staff member is required")
        try:
            staff_id = int(staff_id)
        except (TypeError, ValueError):
            raise ValidationError("Staff id must be an integer")

        if identity.role == Role.STAFF and staff_id != identity.user_id:
            raise AuthorizationError("Staff members can only register their own supervisions")

        if not isinstance(supervision_date, date):
            supervision_date = parse_iso_date(supervision_date)
        start = parse_clock_time(start_time)
        end = parse_clock_time(end_time)
        hours = self._calculator.billable_hours(start, end)

        staff = self._users.get_by_id(staff_id)
        if not staff or staff.role != Role.STAFF:
            raise NotFoundError("Staff member not found")
        identity.require_sector(staff.sector, "This staff member belongs to another sector")

        if self._supervisions.find_duplicate(
            staff_id=staff_id, supervision_date=supervision_date, start_time=start, end_time=end
        ):
            raise ConflictError("This supervision was already registered")

        sector = identity.sector if identity.role in {Role.STAFF, Role.COORDINATOR} else staff.sector
        if sector is None:
            raise ValidationError("Staff member has no sector")

        supervision_id = self._supervisions.create_supervision(
            staff_id=staff_id,
            coordinator_id=identity.user_id,
            supervision_date=supervision_date,
            start_time=start,
            end_time=end,
            hours=hours,
            sector=sector,
            observations=(observations or "").strip() or None,
        )
        logger.info("Supervision %s registered for staff %s by %s (%.1fh)", supervision_id, staff_id, identity.user_id, hours)

        created = self._supervisions.get_by_id(supervision_id)
        if not created:
            raise NotFoundError("Supervision not found")
        return created

    def delete_supervision(self, identity: Identity, *, supervision_id: int) -> None:
        sup = self._supervisions.get_by_id(int(supervision_id))
        if not sup:
            raise NotFoundError("Supervision not found")

        allowed = identity.role in DELETE_ANY_SUPERVISION_ROLES or identity.user_id in (sup.coordinator_id, sup.staff_id)
        if not allowed:
            raise AuthorizationError("You cannot delete this supervision")
        if identity.role == Role.SECTOR_ADMIN:
            identity.require_sector(sup.sector)

        if not self._supervisions.delete_by_id(sup.supervision_id):
            raise NotFoundError("Supervision not found")
        logger.info("Supervision %s deleted by %s", sup.supervision_id, identity.user_id)

    def list_supervisions(self, identity: Identity, *, month: int, year: int) -> Sequence[Supervision]:
        start, end = month_bounds(month, year)

        if identity.role == Role.GUARDIAN:
            raise AuthorizationError("You cannot view supervisions")
        if identity.role == Role.COORDINATOR:
            return self._supervisions.list_in_period(start, end, coordinator_id=identity.user_id)
        if identity.role == Role.STAFF:
            return self._supervisions.list_in_period(start, end, staff_id=identity.user_id)
        if not identity.sees_all_sectors:
            return self._supervisions.list_in_period(start, end, sector=identity.sector)
        return self._supervisions.list_in_period(start, end)

    def get_supervision_rates(self, identity: Identity) -> SupervisionRates:
        identity.require(SUPERVISION_RATE_ROLES, "Only staff billing can view supervision rates")
        return self._rates.get_rates()

    def save_supervision_rates(
        self, identity: Identity, rates: Mapping[str, object], *, expected_version: Optional[int] = None
    ) -> SupervisionRates:
        """Replace all four sector rates.

        ``expected_version`` defaults to the version read just before the write.
        """

        identity.require(SUPERVISION_RATE_ROLES, "Only staff billing can change supervision rates")

        parsed: dict[Sector, float] = {}
        for sector in Sector:
            if sector.value not in rates:
                raise ValidationError(f"Rate for sector {sector.value} is required")
            parsed[sector] = require_number(rates[sector.value], f"Rate for {sector.value}")

        if expected_version is None:
            expected_version = self._rates.get_rates().version
        try:
            expected_version = int(expected_version)
        except (TypeError, ValueError):
            raise ValidationError("Version must be an integer")

        if not self._rates.save_rates(parsed, expected_version=expected_version):
            raise ConcurrencyError("Supervision rates were changed by someone else, reload and try again")

        logger.info("Supervision rates updated by %s", identity.user_id)
        return self._rates.get_rates()
