from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class MonthKey:
    schedule_id: int
    year: int
    month: int


@dataclass(frozen=True)
class AvailabilitySlot:
    date: date
    available_slots: int
    price: Decimal
    is_booking_open: bool

    @property
    def is_bookable(self) -> bool:
        return self.is_booking_open and self.available_slots > 0


@dataclass(frozen=True)
class MonthLoad:
    """Outcome of a month lookup. `error` is set when the fetch failed."""

    key: MonthKey | None
    slots: dict[date, AvailabilitySlot]
    from_cache: bool = False
    error: str | None = None
