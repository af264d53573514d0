from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from academy_booking.application.exceptions import BackendUnavailableError
from academy_booking.application.ports.availability import AvailabilityPort
from academy_booking.application.ports.booking_backend import BookingBackendPort
from academy_booking.application.use_cases.draft_store import DraftStore
from academy_booking.domain.entities.availability import AvailabilitySlot
from academy_booking.domain.entities.catalog import BookingKind
from academy_booking.infrastructure.store.memory_store import MemoryKeyValueStore

TODAY = date(2025, 6, 15)


class FakeAvailability(AvailabilityPort):
    def __init__(self) -> None:
        self.months: dict[tuple[int, int, int], list[AvailabilitySlot]] = {}
        self.failing: set[tuple[int, int, int]] = set()
        self.calls: list[tuple[int, int, int]] = []

    def add_slot(self, schedule_id: int, day: date, price: str = "20", available: int = 5, is_open: bool = True) -> None:
        key = (schedule_id, day.year, day.month)
        self.months.setdefault(key, []).append(
            AvailabilitySlot(date=day, available_slots=available, price=Decimal(price), is_booking_open=is_open)
        )

    def fetch_month(self, schedule_id: int, year: int, month: int) -> list[AvailabilitySlot]:
        key = (schedule_id, year, month)
        self.calls.append(key)
        if key in self.failing:
            raise BackendUnavailableError("availability down")
        return list(self.months.get(key, []))


class FakeBookingBackend(BookingBackendPort):
    def __init__(self) -> None:
        self.coupon_response: dict[str, Any] = {"valid": False, "message": "Coupon not found."}
        self.booking_response: dict[str, Any] = {"success": True, "data": {"bookingId": 901}}
        self.error: BackendUnavailableError | None = None
        self.coupon_calls: list[tuple[BookingKind, int, str]] = []
        self.booking_calls: list[tuple[BookingKind, dict[str, Any]]] = []

    def validate_coupon(self, kind: BookingKind, item_id: int, code: str) -> dict[str, Any]:
        self.coupon_calls.append((kind, item_id, code))
        if self.error is not None:
            raise self.error
        return self.coupon_response

    def initiate_booking(self, kind: BookingKind, payload: dict[str, Any]) -> dict[str, Any]:
        self.booking_calls.append((kind, payload))
        if self.error is not None:
            raise self.error
        return self.booking_response


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def availability() -> FakeAvailability:
    return FakeAvailability()


@pytest.fixture
def backend() -> FakeBookingBackend:
    return FakeBookingBackend()


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def draft_store(kv_store: MemoryKeyValueStore, today: date) -> DraftStore:
    return DraftStore(store=kv_store, today=lambda: today)
