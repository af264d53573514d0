from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from academy_booking.application.exceptions import BackendUnavailableError
from academy_booking.application.ports.availability import AvailabilityPort
from academy_booking.application.ports.booking_backend import BookingBackendPort
from academy_booking.application.ports.catalog import CatalogPort
from academy_booking.application.ports.identity import IdentityPort
from academy_booking.domain.entities.availability import AvailabilitySlot
from academy_booking.domain.entities.catalog import (
    AddonGroup,
    AddonOption,
    BookableItem,
    BookingKind,
    CampSession,
    SelectionType,
)
from academy_booking.domain.entities.profile import UserProfile
from academy_booking.domain.entities.schedule import BookingRule, ScheduleWindow

MOCK_TOKEN = "mock-token"

COUPONS = {
    "WELCOME10": ("PERCENTAGE", Decimal(10)),
    "SAVE25": ("FIXED_AMOUNT", Decimal(25)),
}


class MockAcademyBackend(AvailabilityPort, BookingBackendPort, CatalogPort, IdentityPort):
    """In-process academy backend for local development."""

    def __init__(self, today: date | None = None) -> None:
        self._today = today or date.today()
        self._bookings: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._logger = logging.getLogger(__name__)

    def fetch_month(self, schedule_id: int, year: int, month: int) -> list[AvailabilitySlot]:
        self.calls.append(("fetch_month", (schedule_id, year, month)))
        if schedule_id not in (1, 2):
            raise BackendUnavailableError(f"Unknown schedule {schedule_id}", status_code=404)
        weekend_only = schedule_id == 2
        slots: list[AvailabilitySlot] = []
        for day in range(1, calendar.monthrange(year, month)[1] + 1):
            current = date(year, month, day)
            is_weekend = current.weekday() >= 5
            if is_weekend != weekend_only:
                continue
            slots.append(
                AvailabilitySlot(
                    date=current,
                    available_slots=0 if day % 10 == 0 else 5,
                    price=Decimal(25) if weekend_only else Decimal(20),
                    is_booking_open=True,
                )
            )
        return slots

    def load_item(self, kind: BookingKind, route_key: str) -> BookableItem:
        self.calls.append(("load_item", (kind, route_key)))
        if kind is BookingKind.COURSE:
            return BookableItem(
                kind=kind,
                item_id=1,
                route_key=route_key,
                name="Junior Tennis Development",
                flat_price=Decimal(20),
                schedules=(
                    ScheduleWindow(schedule_id=1, name="Weekday Mornings"),
                    ScheduleWindow(schedule_id=2, name="Weekend Clinics"),
                ),
            )
        if kind is BookingKind.PACKAGE:
            return BookableItem(
                kind=kind,
                item_id=3,
                route_key=route_key,
                name="Family Pickleball Pack",
                flat_price=Decimal(150),
                booking_rule=BookingRule(min_participants=2, max_participants=4),
                schedules=(
                    ScheduleWindow(
                        schedule_id=11,
                        name="Current Season",
                        start_date=self._today - timedelta(days=30),
                        end_date=self._today + timedelta(days=60),
                    ),
                    ScheduleWindow(
                        schedule_id=12,
                        name="Next Season",
                        start_date=self._today + timedelta(days=61),
                        end_date=self._today + timedelta(days=150),
                    ),
                ),
            )
        return BookableItem(
            kind=kind,
            item_id=7,
            route_key=route_key,
            name="Summer High Performance Camp",
            flat_price=Decimal(300),
            camp_sessions=(
                CampSession(session_id=71, name="Week 1", base_price=Decimal(350), discount_price=Decimal(320),
                            max_capacity=20, booked_slots=18),
                CampSession(session_id=72, name="Week 2", base_price=Decimal(350), max_capacity=20),
            ),
            addon_groups=(
                AddonGroup(
                    group_id=1,
                    name="Lunch",
                    selection_type=SelectionType.SINGLE,
                    options=(
                        AddonOption(option_id=1, name="No lunch"),
                        AddonOption(option_id=2, name="Daily lunch", price_adjustment=Decimal(40)),
                    ),
                ),
                AddonGroup(
                    group_id=2,
                    name="Extras",
                    selection_type=SelectionType.MULTIPLE,
                    options=(
                        AddonOption(option_id=3, name="Racquet rental", price_adjustment=Decimal(15)),
                        AddonOption(option_id=4, name="Video analysis", price_adjustment=Decimal(30)),
                    ),
                ),
            ),
        )

    def get_profile(self, token: str) -> UserProfile | None:
        self.calls.append(("get_profile", (token,)))
        if token != MOCK_TOKEN:
            return None
        return UserProfile(id=42, first_name="Sam", last_name="Rivera", email="sam@example.com", phone="480-555-0100")

    def validate_coupon(self, kind: BookingKind, item_id: int, code: str) -> dict[str, Any]:
        self.calls.append(("validate_coupon", (kind, item_id, code)))
        coupon = COUPONS.get(code)
        if coupon is None:
            return {"valid": False, "message": "Coupon not found or expired."}
        discount_type, value = coupon
        return {
            "valid": True,
            "message": "Coupon applied successfully!",
            "discountType": discount_type,
            "discountValue": float(value),
        }

    def initiate_booking(self, kind: BookingKind, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("initiate_booking", (kind,)))
        reference = f"mock-{kind.value}-{len(self._bookings) + 1}"
        self._bookings[reference] = payload
        self._logger.info("Mock booking initiated", extra={"booking_reference": reference})
        field = {
            BookingKind.COURSE: "bookingId",
            BookingKind.PACKAGE: "bookingToken",
            BookingKind.CAMP: "secureAccessToken",
        }[kind]
        return {"success": True, "data": {field: reference}, "message": "Booking saved."}

    def booking(self, reference: str) -> dict[str, Any] | None:
        return self._bookings.get(reference)
