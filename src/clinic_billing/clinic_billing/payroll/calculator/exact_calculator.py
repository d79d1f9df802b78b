from __future__ import annotations

from datetime import time

from .base import HoursCalculator, elapsed_minutes


class ExactHoursCalculator(HoursCalculator):
    """Attendance rule: exact fractional hours, no rounding."""

    def hours(self, start: str | time, end: str | time) -> float:
        return elapsed_minutes(start, end) / 60
