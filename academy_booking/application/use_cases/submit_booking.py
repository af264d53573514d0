from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from academy_booking.application.exceptions import BackendContractError, BackendUnavailableError
from academy_booking.application.ports.booking_backend import BookingBackendPort
from academy_booking.application.use_cases.draft_store import DraftStore
from academy_booking.application.utils.dates import day_key
from academy_booking.domain.entities.catalog import BookingKind, CampSession
from academy_booking.domain.entities.draft import BookingDraft
from academy_booking.domain.entities.pricing import PriceBreakdown

REJECTED_MESSAGE = "Booking failed. Please try again."
ERROR_MESSAGE = "There was an error saving your booking."
MISSING_REFERENCE_MESSAGE = "Booking response did not include a booking reference."

_MISSING_SELECTION = {
    BookingKind.COURSE: "Please fill out all required fields and select at least one date.",
    BookingKind.PACKAGE: "Please fill out all required fields and select a schedule.",
    BookingKind.CAMP: "Please fill out all required fields and select a session.",
}

_ITEM_FIELD = {
    BookingKind.COURSE: "courseId",
    BookingKind.PACKAGE: "packageId",
    BookingKind.CAMP: "campId",
}

_REFERENCE_FIELD = {
    BookingKind.COURSE: "bookingId",
    BookingKind.PACKAGE: "bookingToken",
    BookingKind.CAMP: "secureAccessToken",
}


def money(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class BookingSelections:
    kind: BookingKind
    item_id: int
    draft_key: str
    price: PriceBreakdown
    schedule_id: int | None = None
    user_id: int | None = None
    coupon_code: str | None = None  # only set while a discount is applied
    camp_session: CampSession | None = None


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    message: str
    booking_reference: str | None = None
    checkout_path: str | None = None


class BookingSubmitter:
    def __init__(self, backend: BookingBackendPort, drafts: DraftStore, checkout_path_prefix: str = "/checkout") -> None:
        self._backend = backend
        self._drafts = drafts
        self._checkout_path_prefix = checkout_path_prefix.rstrip("/")
        self._logger = logging.getLogger(__name__)

    def precondition_error(self, draft: BookingDraft, selections: BookingSelections) -> str | None:
        contact = draft.contact
        first = draft.participants[0] if draft.participants else None
        missing = (
            not contact.name.strip()
            or not contact.email.strip()
            or not contact.phone.strip()
            or first is None
            or not first.first_name.strip()
        )
        if selections.kind is BookingKind.COURSE:
            missing = missing or not draft.selected_dates
        else:
            missing = missing or selections.schedule_id is None
        if missing:
            return _MISSING_SELECTION[selections.kind]

        session = selections.camp_session
        if selections.kind is BookingKind.CAMP and session is not None:
            if session.available_spots < len(draft.participants):
                return f"Only {session.available_spots} spots available in this session."
        return None

    def build_payload(self, draft: BookingDraft, selections: BookingSelections) -> dict[str, Any]:
        kind = selections.kind
        payload: dict[str, Any] = {
            "userId": selections.user_id,
            "guestName": draft.contact.name,
            "guestEmail": draft.contact.email,
            "guestPhone": draft.contact.phone,
            _ITEM_FIELD[kind]: selections.item_id,
            "participants": [p.to_payload(include_hours=kind is BookingKind.COURSE) for p in draft.participants],
            "couponCode": selections.coupon_code,
            "originalAmount": money(selections.price.subtotal),
            "discountAmount": money(selections.price.discount_amount) if selections.coupon_code else 0.0,
            "finalAmount": money(selections.price.final_price),
        }
        if kind is BookingKind.CAMP:
            payload["sessionId"] = selections.schedule_id
            payload["addOns"] = {
                str(group_id): list(choice) if isinstance(choice, tuple) else choice
                for group_id, choice in draft.selected_addons.items()
            }
        else:
            payload["scheduleId"] = selections.schedule_id
        if kind is BookingKind.COURSE:
            payload["bookedDates"] = sorted(day_key(d) for d in draft.selected_dates)
        return payload

    def submit(self, draft: BookingDraft, selections: BookingSelections) -> SubmissionResult:
        error = self.precondition_error(draft, selections)
        if error:
            return SubmissionResult(success=False, message=error)

        payload = self.build_payload(draft, selections)
        try:
            body = self._backend.initiate_booking(selections.kind, payload)
        except BackendUnavailableError as e:
            self._logger.warning(
                "Booking submission failed",
                extra={"item_id": selections.item_id, "reason": str(e)},
            )
            return SubmissionResult(success=False, message=e.backend_message or ERROR_MESSAGE)
        except BackendContractError as e:
            self._logger.error("Booking response unreadable", extra={"item_id": selections.item_id, "reason": str(e)})
            return SubmissionResult(success=False, message=ERROR_MESSAGE)

        if not body.get("success"):
            return SubmissionResult(success=False, message=str(body.get("message") or REJECTED_MESSAGE))

        data = body.get("data") or {}
        reference = data.get(_REFERENCE_FIELD[selections.kind]) if isinstance(data, dict) else None
        if reference in (None, ""):
            self._logger.error("Booking accepted without reference", extra={"item_id": selections.item_id})
            return SubmissionResult(success=False, message=MISSING_REFERENCE_MESSAGE)

        reference = str(reference)
        self._drafts.clear(selections.draft_key)
        self._logger.info(
            "Booking initiated",
            extra={"item_id": selections.item_id, "booking_reference": reference},
        )
        return SubmissionResult(
            success=True,
            message=str(body.get("message") or "Booking saved. Redirecting to payment..."),
            booking_reference=reference,
            checkout_path=f"{self._checkout_path_prefix}/{reference}",
        )
