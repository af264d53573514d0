from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from academy_booking.application.exceptions import BackendContractError, BackendUnavailableError
from academy_booking.application.ports.availability import AvailabilityPort
from academy_booking.application.ports.booking_backend import BookingBackendPort
from academy_booking.application.ports.catalog import CatalogPort
from academy_booking.application.ports.identity import IdentityPort
from academy_booking.application.utils.dates import parse_day
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
from academy_booking.infrastructure.backend.client import BackendClient

_COUPON_PATHS = {
    BookingKind.COURSE: ("/api/public/booking-data/validate-coupon", "courseId"),
    BookingKind.PACKAGE: ("/api/public/package-bookings/validate-coupon", "packageId"),
    BookingKind.CAMP: ("/api/public/booking-data/validate-coupon", "campId"),
}

_INITIATE_PATHS = {
    BookingKind.COURSE: "/api/public/booking-data/initiate-booking",
    BookingKind.PACKAGE: "/api/public/package-bookings/initiate",
    BookingKind.CAMP: "/api/public/booking-data/camp/initiate-booking",
}


def _decimal(value: Any) -> Decimal:
    if value in (None, ""):
        return Decimal(0)
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise BackendContractError(f"Not a number: {value!r}") from e
    if not result.is_finite():
        raise BackendContractError(f"Not a number: {value!r}")
    return result


def _optional_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    return int(value)


def _expect_dict(body: Any, what: str) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise BackendContractError(f"Expected an object for {what}")
    return body


def _expect_list(body: Any, what: str) -> list[Any]:
    if body is None:
        return []
    if not isinstance(body, list):
        raise BackendContractError(f"Expected a list for {what}")
    return body


class AcademyBackendGateway(AvailabilityPort, BookingBackendPort, CatalogPort):
    def __init__(self, client: BackendClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    # --- availability ---

    def fetch_month(self, schedule_id: int, year: int, month: int) -> list[AvailabilitySlot]:
        body = self._client.get_json(
            f"/api/public/booking-data/availability/schedule/{schedule_id}",
            params={"year": year, "month": month},
        )
        slots: list[AvailabilitySlot] = []
        for raw in _expect_list(body, "availability"):
            day = parse_day(raw.get("date")) if isinstance(raw, dict) else None
            if day is None:
                self._logger.warning("Skipping availability entry without date", extra={"schedule_id": schedule_id})
                continue
            try:
                available = max(0, int(raw.get("availableSlots") or 0))
            except (TypeError, ValueError) as e:
                raise BackendContractError(f"Bad availableSlots for {day}") from e
            slots.append(
                AvailabilitySlot(
                    date=day,
                    available_slots=available,
                    price=max(Decimal(0), _decimal(raw.get("price"))),
                    is_booking_open=bool(raw.get("isBookingOpen")),
                )
            )
        return slots

    # --- coupons & bookings ---

    def validate_coupon(self, kind: BookingKind, item_id: int, code: str) -> dict[str, Any]:
        path, id_field = _COUPON_PATHS[kind]
        body = self._client.post_json(path, {"couponCode": code, id_field: item_id})
        return _expect_dict(body, "coupon validation")

    def initiate_booking(self, kind: BookingKind, payload: dict[str, Any]) -> dict[str, Any]:
        body = self._client.post_json(_INITIATE_PATHS[kind], payload)
        return _expect_dict(body, "booking initiation")

    # --- catalog ---

    def load_item(self, kind: BookingKind, route_key: str) -> BookableItem:
        try:
            if kind is BookingKind.COURSE:
                return self._load_course(route_key)
            if kind is BookingKind.PACKAGE:
                return self._load_package(route_key)
            return self._load_camp(route_key)
        except (KeyError, TypeError, ValueError) as e:
            raise BackendContractError(f"Malformed {kind.value} payload: {e}") from e

    def _load_course(self, route_key: str) -> BookableItem:
        course = _expect_dict(self._client.get_json(f"/api/public_api/courses/{route_key}"), "course")
        schedules = _expect_list(
            self._client.get_json(f"/api/public/course-schedules/course/{route_key}"),
            "course schedules",
        )
        return BookableItem(
            kind=BookingKind.COURSE,
            item_id=int(course["id"]),
            route_key=route_key,
            name=course.get("name") or "",
            flat_price=_decimal(course.get("pricePerSlot")),
            schedules=tuple(
                ScheduleWindow(schedule_id=int(s["schedule_id"]), name=s.get("scheduleName") or "")
                for s in schedules
                if s.get("schedule_id") is not None
            ),
        )

    def _load_package(self, route_key: str) -> BookableItem:
        pkg = _expect_dict(self._client.get_json(f"/api/public/packages/{route_key}"), "package")
        schedules = _expect_list(
            self._client.get_json(f"/api/public/package-schedules/package/{route_key}"),
            "package schedules",
        )
        rule = pkg.get("bookingRule")
        return BookableItem(
            kind=BookingKind.PACKAGE,
            item_id=int(pkg["id"]),
            route_key=route_key,
            name=pkg.get("name") or "",
            flat_price=_decimal(pkg.get("price")),
            booking_rule=(
                BookingRule(
                    min_participants=_optional_int(rule.get("minParticipants")),
                    max_participants=_optional_int(rule.get("maxParticipants")),
                )
                if isinstance(rule, dict)
                else None
            ),
            # entries without a scheduleId cannot be booked
            schedules=tuple(
                ScheduleWindow(
                    schedule_id=int(s["scheduleId"]),
                    name=s.get("name") or "",
                    start_date=parse_day(s.get("startDate")),
                    end_date=parse_day(s.get("endDate")),
                    active=bool(s.get("active", True)),
                )
                for s in schedules
                if s.get("scheduleId") is not None
            ),
        )

    def _load_camp(self, route_key: str) -> BookableItem:
        camp = _expect_dict(self._client.get_json(f"/api/public/camps/{route_key}"), "camp")
        sessions = tuple(
            CampSession(
                session_id=int(s["sessionId"]),
                name=s.get("sessionName") or "",
                base_price=_decimal(s.get("basePrice")),
                discount_price=_decimal(s["discountPrice"]) if s.get("discountPrice") else None,
                max_capacity=int(s.get("maxCapacity") or 0),
                booked_slots=int(s.get("bookedSlots") or 0),
            )
            for s in _expect_list(camp.get("sessions"), "camp sessions")
        )
        groups = tuple(
            AddonGroup(
                group_id=int(g["groupId"]),
                name=g.get("groupName") or "",
                selection_type=SelectionType(g.get("selectionType") or "SINGLE"),
                options=tuple(
                    AddonOption(
                        option_id=int(o["optionId"]),
                        name=o.get("optionName") or "",
                        price_adjustment=_decimal(o.get("priceAdjustment")),
                    )
                    for o in sorted(g.get("options") or [], key=lambda o: o.get("displayOrder") or 0)
                ),
            )
            for g in sorted(
                _expect_list(camp.get("addonGroups"), "addon groups"),
                key=lambda g: g.get("displayOrder") or 0,
            )
        )
        return BookableItem(
            kind=BookingKind.CAMP,
            item_id=int(camp["campId"]),
            route_key=route_key,
            name=camp.get("title") or "",
            flat_price=_decimal(camp.get("pricePerSlot")),
            camp_sessions=sessions,
            addon_groups=groups,
        )


class IdentityGateway(IdentityPort):
    def __init__(self, client: BackendClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    def get_profile(self, token: str) -> UserProfile | None:
        try:
            body = self._client.get_json("/api/auth/me", token=token)
        except BackendUnavailableError as e:
            if e.status_code in (401, 403):
                self._logger.info("Bearer token rejected", extra={"reason": e.status_code})
                return None
            raise
        try:
            return UserProfile.from_payload(_expect_dict(body, "profile"))
        except (KeyError, TypeError, ValueError) as e:
            raise BackendContractError(f"Malformed profile payload: {e}") from e
