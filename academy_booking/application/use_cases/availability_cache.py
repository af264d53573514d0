from __future__ import annotations

import logging
import threading
from datetime import date

from academy_booking.application.exceptions import (
    BackendContractError,
    BackendUnavailableError,
    BookingValidationError,
)
from academy_booking.application.ports.availability import AvailabilityPort
from academy_booking.domain.entities.availability import AvailabilitySlot, MonthKey, MonthLoad

LOAD_FAILED_MESSAGE = "Failed to load availability for this month."


class AvailabilityCache:
    """
    Per-session memo of availability months for the selected schedule.

    Months are only ever added for the lifetime of a schedule selection; a
    failed month stays unset so the next lookup retries it. Selecting another
    schedule drops everything cached for the previous one.
    """

    def __init__(self, availability: AvailabilityPort) -> None:
        self._availability = availability
        self._schedule_id: int | None = None
        self._generation = 0
        self._fetched: set[MonthKey] = set()
        self._slots: dict[date, AvailabilitySlot] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def schedule_id(self) -> int | None:
        return self._schedule_id

    def select_schedule(self, schedule_id: int | None) -> None:
        with self._lock:
            self._select_without_lock(schedule_id)

    def _select_without_lock(self, schedule_id: int | None) -> None:
        if schedule_id == self._schedule_id:
            return
        self._schedule_id = schedule_id
        self._generation += 1
        self._fetched.clear()
        self._slots.clear()

    def get_month(self, schedule_id: int | None, year: int, month: int) -> MonthLoad:
        if schedule_id is None:
            return MonthLoad(key=None, slots={})
        if not 1 <= month <= 12:
            raise BookingValidationError(f"Invalid month: {month}")

        key = MonthKey(schedule_id=schedule_id, year=year, month=month)
        with self._lock:
            self._select_without_lock(schedule_id)
            if key in self._fetched:
                return MonthLoad(key=key, slots=self._month_slots(year, month), from_cache=True)
            generation = self._generation

        try:
            fetched = self._availability.fetch_month(schedule_id, year, month)
        except (BackendUnavailableError, BackendContractError) as e:
            self._logger.warning(
                "Availability fetch failed",
                extra={"schedule_id": schedule_id, "month": f"{year}-{month:02d}", "reason": str(e)},
            )
            return MonthLoad(key=key, slots={}, error=LOAD_FAILED_MESSAGE)

        with self._lock:
            if generation != self._generation:
                # schedule changed while the request was in flight
                self._logger.info(
                    "Discarding availability for superseded schedule",
                    extra={"schedule_id": schedule_id, "month": f"{year}-{month:02d}"},
                )
                return MonthLoad(key=key, slots={})
            if key not in self._fetched:
                for slot in fetched:
                    self._slots[slot.date] = slot
                self._fetched.add(key)
            return MonthLoad(key=key, slots=self._month_slots(year, month))

    def _month_slots(self, year: int, month: int) -> dict[date, AvailabilitySlot]:
        return {d: s for d, s in self._slots.items() if d.year == year and d.month == month}

    def is_fetched(self, year: int, month: int) -> bool:
        if self._schedule_id is None:
            return False
        return MonthKey(self._schedule_id, year, month) in self._fetched

    def slot(self, day: date) -> AvailabilitySlot | None:
        return self._slots.get(day)

    def slots(self) -> dict[date, AvailabilitySlot]:
        with self._lock:
            return dict(self._slots)
