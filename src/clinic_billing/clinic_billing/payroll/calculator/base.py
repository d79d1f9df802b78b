from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import time

from ...common.datetime_utils import minutes_of_day, parse_clock_time
from ...core.exceptions import ValidationError

MINUTES_PER_DAY = 24 * 60


def elapsed_minutes(start: str | time, end: str | time) -> int:
    """Minutes from start to end, wrapping past midnight when end < start."""

    diff = minutes_of_day(parse_clock_time(end)) - minutes_of_day(parse_clock_time(start))
    if diff < 0:
        diff += MINUTES_PER_DAY
    return max(diff, 0)


class HoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for duration rounding)."""

    @abstractmethod
    def hours(self, start: str | time, end: str | time) -> float:
        raise NotImplementedError

    def billable_hours(self, start: str | time, end: str | time) -> float:
        """Like ``hours`` but rejects a zero duration."""
        value = self.hours(start, end)
        if value <= 0:
            raise ValidationError("End time must be after start time")
        return value
