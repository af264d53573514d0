from __future__ import annotations

from abc import ABC, abstractmethod

from academy_booking.domain.entities.availability import AvailabilitySlot


class AvailabilityPort(ABC):
    @abstractmethod
    def fetch_month(self, schedule_id: int, year: int, month: int) -> list[AvailabilitySlot]:
        """Fetch availability slots for one month of a schedule."""
        raise NotImplementedError
