from __future__ import annotations

import math
from datetime import time

from .base import HoursCalculator, elapsed_minutes


class HalfHourCalculator(HoursCalculator):
    """Supervision rule: round half-up to the nearest 0.5 h."""

    def hours(self, start: str | time, end: str | time) -> float:
        raw = elapsed_minutes(start, end) / 60
        return math.floor(raw * 2 + 0.5) / 2
