from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import date
from typing import Any

from academy_booking.application.exceptions import (
    ActionInProgressError,
    BackendContractError,
    BackendUnavailableError,
    BookingValidationError,
)
from academy_booking.application.ports.availability import AvailabilityPort
from academy_booking.application.ports.booking_backend import BookingBackendPort
from academy_booking.application.ports.catalog import CatalogPort
from academy_booking.application.ports.identity import IdentityPort
from academy_booking.application.use_cases import schedule_gate
from academy_booking.application.use_cases.availability_cache import AvailabilityCache
from academy_booking.application.use_cases.coupon import CouponResult, CouponValidator
from academy_booking.application.use_cases.draft_store import DraftStore, draft_key, resolve_contact
from academy_booking.application.use_cases.pricing import PricingEngine
from academy_booking.application.use_cases.submit_booking import (
    BookingSelections,
    BookingSubmitter,
    SubmissionResult,
)
from academy_booking.application.utils import participants as roster
from academy_booking.domain.entities.availability import MonthLoad
from academy_booking.domain.entities.catalog import BookableItem, BookingKind, SelectionType
from academy_booking.domain.entities.discount import Discount, DiscountPolicy
from academy_booking.domain.entities.draft import BookingDraft, ContactInfo
from academy_booking.domain.entities.participant import Participant
from academy_booking.domain.entities.pricing import PriceBreakdown
from academy_booking.domain.entities.profile import UserProfile

RESTORED_NOTICE = "Your previous progress has been restored."
SUBMIT_PENDING_MESSAGE = "A booking submission is already in progress."
COUPON_PENDING_MESSAGE = "A coupon is already being validated."


class BookingSession:
    """
    One visitor's in-progress booking for a course, package or camp.

    Every mutation writes the full draft back through the DraftStore. Prices
    are recomputed on each `quote()` call.
    """

    def __init__(
        self,
        item: BookableItem,
        profile: UserProfile | None,
        draft: BookingDraft | None,
        availability: AvailabilityCache,
        drafts: DraftStore,
        pricing: PricingEngine,
        coupons: CouponValidator,
        submitter: BookingSubmitter,
        today: Callable[[], date],
        discount_policy: DiscountPolicy = DiscountPolicy.KEEP,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self.item = item
        self.profile = profile
        self._availability = availability
        self._drafts = drafts
        self._pricing = pricing
        self._coupons = coupons
        self._submitter = submitter
        self._today = today
        self._discount_policy = discount_policy
        self._draft_key = draft_key(item.kind, item.route_key)
        self._lock = threading.RLock()
        self._coupon_pending = False
        self._submit_pending = False
        self._notices: list[str] = []
        self._logger = logging.getLogger(__name__)

        self.contact = resolve_contact(profile, draft)
        self.participants: tuple[Participant, ...] = draft.participants if draft else (Participant(id=1),)
        self.selected_dates: frozenset[date] = draft.selected_dates if draft else frozenset()
        self.selected_addons: dict[int, int | tuple[int, ...]] = dict(draft.selected_addons) if draft else {}
        self.discount: Discount | None = None
        self.coupon_code: str | None = None
        self.schedule_id: int | None = None

        if draft is not None:
            self._notices.append(RESTORED_NOTICE)
        self._select_initial_schedule(draft.selected_schedule_id if draft else None)

    @property
    def draft_key(self) -> str:
        return self._draft_key

    @property
    def is_submitting(self) -> bool:
        return self._submit_pending

    def _schedule_ids(self) -> list[int]:
        if self.item.kind is BookingKind.CAMP:
            return [s.session_id for s in self.item.camp_sessions]
        return [s.schedule_id for s in self.item.schedules]

    def _select_initial_schedule(self, restored_id: int | None) -> None:
        ids = self._schedule_ids()
        if restored_id in ids:
            self.schedule_id = restored_id
        elif ids:
            self.schedule_id = ids[0]
        if self.item.kind is BookingKind.COURSE:
            self._availability.select_schedule(self.schedule_id)

    def add_notice(self, notice: str) -> None:
        with self._lock:
            self._notices.append(notice)

    def pop_notices(self) -> list[str]:
        with self._lock:
            notices, self._notices = self._notices, []
            return notices

    def snapshot(self) -> BookingDraft:
        return BookingDraft(
            contact=self.contact,
            participants=self.participants,
            selected_dates=self.selected_dates,
            selected_schedule_id=self.schedule_id,
            selected_addons=dict(self.selected_addons),
        )

    def _changed(self, affects_price: bool = False) -> None:
        if affects_price and self.discount is not None and self._discount_policy is DiscountPolicy.CLEAR_ON_CHANGE:
            self._logger.info("Discount cleared after selection change", extra={"item_id": self.item.item_id})
            self.discount = None
            self.coupon_code = None
        self._drafts.persist(self._draft_key, self.snapshot())

    # --- contact & participants ---

    def update_contact(self, name: str | None = None, email: str | None = None, phone: str | None = None) -> None:
        with self._lock:
            self.contact = ContactInfo(
                name=self.contact.name if name is None else name,
                email=self.contact.email if email is None else email,
                phone=self.contact.phone if phone is None else phone,
            )
            self._changed()

    def add_participant(self) -> Participant:
        with self._lock:
            self.participants = roster.add_participant(self.participants)
            self._changed(affects_price=True)
            return self.participants[-1]

    def update_participant(self, participant_id: int, changes: dict[str, Any]) -> Participant:
        with self._lock:
            self.participants = roster.update_participant(self.participants, participant_id, changes)
            self._changed(affects_price="daily_hours" in changes)
            return next(p for p in self.participants if p.id == participant_id)

    def remove_participant(self, participant_id: int) -> None:
        with self._lock:
            self.participants = roster.remove_participant(self.participants, participant_id)
            self._changed(affects_price=True)

    # --- schedule, availability & dates ---

    def select_schedule(self, schedule_id: int) -> None:
        with self._lock:
            if schedule_id not in self._schedule_ids():
                raise BookingValidationError(f"Unknown schedule {schedule_id}.")
            if schedule_id == self.schedule_id:
                return
            self.schedule_id = schedule_id
            if self.item.kind is BookingKind.COURSE:
                self._availability.select_schedule(schedule_id)
            self._changed(affects_price=self.item.kind is not BookingKind.PACKAGE)

    def load_month(self, year: int, month: int) -> MonthLoad:
        if self.item.kind is not BookingKind.COURSE:
            return MonthLoad(key=None, slots={})
        # not under the session lock: the fetch is network-bound
        return self._availability.get_month(self.schedule_id, year, month)

    def is_selectable(self, day: date) -> bool:
        # unknown months read as locked
        slot = self._availability.slot(day)
        return day >= self._today() and slot is not None and slot.is_bookable

    def toggle_date(self, day: date) -> bool:
        """Add or remove a date. Returns True if the date is now selected."""
        with self._lock:
            if self.item.kind is not BookingKind.COURSE:
                raise BookingValidationError("Dates are only selected for course bookings.")
            if day in self.selected_dates:
                self.selected_dates = self.selected_dates - {day}
                self._changed(affects_price=True)
                return False

            if day < self._today():
                raise BookingValidationError("Past dates cannot be booked.")
            if not self.is_selectable(day):
                raise BookingValidationError(f"{day.isoformat()} is not available for booking.")
            self.selected_dates = self.selected_dates | {day}
            self._changed(affects_price=True)
            return True

    def select_addon(self, group_id: int, option_id: int) -> None:
        with self._lock:
            group = self.item.addon_group(group_id)
            if group is None or group.option(option_id) is None:
                raise BookingValidationError(f"Unknown add-on option {group_id}/{option_id}.")
            if group.selection_type is SelectionType.SINGLE:
                self.selected_addons[group_id] = option_id
            else:
                current = self.selected_addons.get(group_id)
                chosen = current if isinstance(current, tuple) else ()
                if option_id in chosen:
                    chosen = tuple(o for o in chosen if o != option_id)
                else:
                    chosen = chosen + (option_id,)
                self.selected_addons[group_id] = chosen
            self._changed(affects_price=True)

    # --- pricing & gating ---

    def quote(self) -> PriceBreakdown:
        with self._lock:
            if self.item.kind is BookingKind.CAMP:
                return self._pricing.compute_camp(
                    session=self.item.camp_session(self.schedule_id),
                    camp_price=self.item.flat_price,
                    addon_groups=self.item.addon_groups,
                    selected_addons=self.selected_addons,
                    participant_count=len(self.participants),
                    discount=self.discount,
                )
            return self._pricing.compute(
                kind=self.item.kind,
                selected_dates=self.selected_dates,
                availability=self._availability.slots(),
                participants=self.participants,
                fallback_price=self.item.flat_price,
                discount=self.discount,
            )

    def violation_message(self) -> str | None:
        return schedule_gate.rule_violation_message(
            self.item.schedule(self.schedule_id),
            self.item.booking_rule,
            len(self.participants),
            self._today(),
        )

    @property
    def can_submit(self) -> bool:
        if self._submit_pending or self.violation_message() is not None:
            return False
        if self.item.kind is BookingKind.COURSE:
            return bool(self.selected_dates)
        return self.schedule_id is not None

    # --- coupon & submission ---

    def apply_coupon(self, code: str | None) -> CouponResult:
        with self._lock:
            if self._coupon_pending:
                raise ActionInProgressError(COUPON_PENDING_MESSAGE)
            self._coupon_pending = True
        try:
            result = self._coupons.validate(code, self.item.kind, self.item.item_id)
        finally:
            with self._lock:
                self._coupon_pending = False

        with self._lock:
            discount = result.discount
            if discount is not None:
                self.discount = discount
                self.coupon_code = result.code
            else:
                self.discount = None
                self.coupon_code = None
        return result

    def submit(self) -> SubmissionResult:
        with self._lock:
            if self._submit_pending:
                raise ActionInProgressError(SUBMIT_PENDING_MESSAGE)
            violation = self.violation_message()
            if violation is not None:
                return SubmissionResult(success=False, message=violation)
            draft = self.snapshot()
            selections = BookingSelections(
                kind=self.item.kind,
                item_id=self.item.item_id,
                draft_key=self._draft_key,
                price=self.quote(),
                schedule_id=self.schedule_id,
                user_id=self.profile.id if self.profile else None,
                coupon_code=self.coupon_code if self.discount is not None else None,
                camp_session=self.item.camp_session(self.schedule_id),
            )
            self._submit_pending = True
        try:
            return self._submitter.submit(draft, selections)
        finally:
            with self._lock:
                self._submit_pending = False


class BookingSessionFactory:
    """Builds a session: item, profile and draft are resolved before anything is written."""

    def __init__(
        self,
        catalog: CatalogPort,
        identity: IdentityPort,
        availability: AvailabilityPort,
        backend: BookingBackendPort,
        drafts: DraftStore,
        today: Callable[[], date],
        discount_policy: DiscountPolicy = DiscountPolicy.KEEP,
        checkout_path_prefix: str = "/checkout",
    ) -> None:
        self._catalog = catalog
        self._identity = identity
        self._availability = availability
        self._backend = backend
        self._drafts = drafts
        self._today = today
        self._discount_policy = discount_policy
        self._pricing = PricingEngine()
        self._coupons = CouponValidator(backend)
        self._submitter = BookingSubmitter(backend, drafts, checkout_path_prefix)
        self._logger = logging.getLogger(__name__)

    def start(self, kind: BookingKind, route_key: str, token: str | None = None) -> BookingSession:
        item = self._catalog.load_item(kind, route_key)

        profile = None
        if token:
            try:
                profile = self._identity.get_profile(token)
            except (BackendUnavailableError, BackendContractError) as e:
                self._logger.warning("Profile lookup failed, continuing as guest", extra={"reason": str(e)})

        draft = self._drafts.restore(draft_key(kind, item.route_key))
        session = BookingSession(
            item=item,
            profile=profile,
            draft=draft,
            availability=AvailabilityCache(self._availability),
            drafts=self._drafts,
            pricing=self._pricing,
            coupons=self._coupons,
            submitter=self._submitter,
            today=self._today,
            discount_policy=self._discount_policy,
        )

        if kind is BookingKind.COURSE:
            today = self._today()
            load = session.load_month(today.year, today.month)
            if load.error:
                session.add_notice(load.error)
        self._logger.info(
            "Booking session started",
            extra={"item_id": item.item_id, "kind": kind.value, "guest": profile is None},
        )
        return session
