from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from academy_booking.domain.entities.catalog import BookingKind


class BookingBackendPort(ABC):
    @abstractmethod
    def validate_coupon(self, kind: BookingKind, item_id: int, code: str) -> dict[str, Any]:
        """
        Validate a coupon for an item.
        Returns the raw response body: {valid, message, discountType, discountValue}.
        """
        raise NotImplementedError

    @abstractmethod
    def initiate_booking(self, kind: BookingKind, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Create a pending booking.
        Returns the raw response body: {success, data: {...reference...}, message}.
        """
        raise NotImplementedError
