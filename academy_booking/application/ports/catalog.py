from __future__ import annotations

from abc import ABC, abstractmethod

from academy_booking.domain.entities.catalog import BookableItem, BookingKind


class CatalogPort(ABC):
    @abstractmethod
    def load_item(self, kind: BookingKind, route_key: str) -> BookableItem:
        """Load a course, package or camp with its schedules/sessions."""
        raise NotImplementedError
