from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class ScheduleWindow:
    schedule_id: int
    name: str
    start_date: date | None = None
    end_date: date | None = None
    active: bool = True


@dataclass(frozen=True)
class BookingRule:
    min_participants: int | None = None
    max_participants: int | None = None
