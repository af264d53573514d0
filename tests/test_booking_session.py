"""
Tests for the booking session flow.

Sessions are built through BookingSessionFactory against the in-process
mock backend, with "today" pinned to Sunday 2025-06-15.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from academy_booking.application.exceptions import (
    ActionInProgressError,
    BackendUnavailableError,
    BookingValidationError,
)
from academy_booking.application.use_cases.availability_cache import LOAD_FAILED_MESSAGE
from academy_booking.application.use_cases.booking_session import RESTORED_NOTICE, BookingSessionFactory
from academy_booking.application.use_cases.draft_store import draft_key
from academy_booking.domain.entities.catalog import BookingKind
from academy_booking.domain.entities.discount import DiscountPolicy
from academy_booking.infrastructure.backend.mock_backend import MOCK_TOKEN, MockAcademyBackend

TODAY = date(2025, 6, 15)
MONDAY = date(2025, 6, 16)
TUESDAY = date(2025, 6, 17)
FULL_DAY = date(2025, 6, 20)  # mock backend reports zero slots on the 10th/20th/30th
SATURDAY = date(2025, 6, 21)


@pytest.fixture
def mock_backend() -> MockAcademyBackend:
    return MockAcademyBackend(today=TODAY)


def _factory(mock_backend, draft_store, policy=DiscountPolicy.KEEP) -> BookingSessionFactory:
    return BookingSessionFactory(
        catalog=mock_backend,
        identity=mock_backend,
        availability=mock_backend,
        backend=mock_backend,
        drafts=draft_store,
        today=lambda: TODAY,
        discount_policy=policy,
    )


@pytest.fixture
def factory(mock_backend, draft_store) -> BookingSessionFactory:
    return _factory(mock_backend, draft_store)


def _fill_contact(session) -> None:
    session.update_contact(name="Pat Guest", email="pat@example.com", phone="480-555-0101")
    session.update_participant(session.participants[0].id, {"first_name": "Kid"})


def test_fresh_session_starts_with_one_blank_participant(factory, mock_backend):
    session = factory.start(BookingKind.COURSE, "1")

    assert len(session.participants) == 1
    assert session.schedule_id == 1
    assert session.pop_notices() == []
    assert ("fetch_month", (1, 2025, 6)) in mock_backend.calls


def test_restored_draft_emits_notice_once(kv_store, factory):
    kv_store.set(
        draft_key(BookingKind.COURSE, "1"),
        json.dumps({"contactName": "Pat", "selectedDates": [TUESDAY.isoformat()], "selectedScheduleId": 2}),
    )

    session = factory.start(BookingKind.COURSE, "1")

    assert session.pop_notices() == [RESTORED_NOTICE]
    assert session.pop_notices() == []
    assert session.selected_dates == frozenset({TUESDAY})
    assert session.schedule_id == 2


def test_restored_unknown_schedule_falls_back_to_first(kv_store, factory):
    kv_store.set(draft_key(BookingKind.COURSE, "1"), json.dumps({"selectedScheduleId": 99}))
    assert factory.start(BookingKind.COURSE, "1").schedule_id == 1


def test_profile_overrides_restored_contact_but_keeps_participants(kv_store, factory):
    kv_store.set(
        draft_key(BookingKind.COURSE, "1"),
        json.dumps(
            {
                "contactName": "Old Name",
                "contactEmail": "old@example.com",
                "participants": [{"id": 1, "firstName": "Kid"}, {"id": 2, "firstName": "Sib"}],
            }
        ),
    )

    session = factory.start(BookingKind.COURSE, "1", token=MOCK_TOKEN)

    assert session.contact.name == "Sam Rivera"
    assert session.contact.email == "sam@example.com"
    assert [p.first_name for p in session.participants] == ["Kid", "Sib"]


def test_unknown_token_continues_as_guest(factory):
    session = factory.start(BookingKind.COURSE, "1", token="stale-token")
    assert session.profile is None


def test_failed_initial_month_is_reported_as_notice(draft_store):
    class BrokenAvailability(MockAcademyBackend):
        def fetch_month(self, schedule_id, year, month):
            raise BackendUnavailableError("down")

    backend = BrokenAvailability(today=TODAY)
    session = _factory(backend, draft_store).start(BookingKind.COURSE, "1")
    assert session.pop_notices() == [LOAD_FAILED_MESSAGE]


def test_mutations_are_persisted(kv_store, factory):
    session = factory.start(BookingKind.COURSE, "1")
    session.update_contact(name="Pat Guest")
    session.toggle_date(TUESDAY)

    stored = json.loads(kv_store.get(session.draft_key))
    assert stored["contactName"] == "Pat Guest"
    assert stored["selectedDates"] == ["2025-06-17"]


def test_last_participant_cannot_be_removed(factory):
    session = factory.start(BookingKind.COURSE, "1")
    only = session.participants[0].id
    with pytest.raises(BookingValidationError, match="At least one participant is required."):
        session.remove_participant(only)

    added = session.add_participant()
    session.remove_participant(only)
    assert [p.id for p in session.participants] == [added.id]


def test_daily_hours_scale_course_total(factory):
    session = factory.start(BookingKind.COURSE, "1")
    session.toggle_date(MONDAY)
    session.toggle_date(TUESDAY)
    assert session.quote().final_price == Decimal(40)

    session.update_participant(session.participants[0].id, {"daily_hours": 3})
    assert session.quote().final_price == Decimal(120)

    with pytest.raises(BookingValidationError):
        session.update_participant(session.participants[0].id, {"daily_hours": 13})


def test_toggle_date_rejects_past_full_and_unloaded_days(factory):
    session = factory.start(BookingKind.COURSE, "1")

    with pytest.raises(BookingValidationError):
        session.toggle_date(date(2025, 6, 13))
    with pytest.raises(BookingValidationError):
        session.toggle_date(FULL_DAY)
    with pytest.raises(BookingValidationError):
        session.toggle_date(date(2025, 7, 1))  # month not loaded yet

    session.load_month(2025, 7)
    assert session.toggle_date(date(2025, 7, 1)) is True
    assert session.toggle_date(date(2025, 7, 1)) is False


def test_switching_schedule_keeps_dates_and_reprices(factory):
    session = factory.start(BookingKind.COURSE, "1")
    session.toggle_date(TUESDAY)

    session.select_schedule(2)
    session.load_month(2025, 6)

    assert session.selected_dates == frozenset({TUESDAY})
    assert session.is_selectable(SATURDAY) is True
    assert session.is_selectable(TUESDAY) is False
    # Tuesday has no slot on the weekend schedule, so the flat price applies
    assert session.quote().subtotal == Decimal(20)

    with pytest.raises(BookingValidationError):
        session.select_schedule(42)


def test_package_rule_blocks_submit_until_satisfied(factory, mock_backend):
    session = factory.start(BookingKind.PACKAGE, "family-pack")
    _fill_contact(session)

    assert session.violation_message() == "This package requires a minimum of 2 participants."
    assert session.can_submit is False
    result = session.submit()
    assert result.success is False
    assert not any(name == "initiate_booking" for name, _ in mock_backend.calls)

    session.add_participant()
    assert session.can_submit is True
    assert session.quote().final_price == Decimal(300)


def test_package_schedule_not_yet_open(factory):
    session = factory.start(BookingKind.PACKAGE, "family-pack")
    session.add_participant()
    session.select_schedule(12)
    assert session.violation_message() == "This schedule will be available from 8/15/2025."
    assert session.can_submit is False


def test_failed_coupon_clears_discount(factory):
    session = factory.start(BookingKind.PACKAGE, "family-pack")
    session.add_participant()

    applied = session.apply_coupon("welcome10")
    assert applied.valid is True
    assert session.quote().discount_amount == Decimal(30)
    assert session.coupon_code == "WELCOME10"

    rejected = session.apply_coupon("NOPE")
    assert rejected.valid is False
    quote = session.quote()
    assert quote.discount_amount == Decimal(0)
    assert quote.final_price == quote.subtotal
    assert session.coupon_code is None


def test_discount_kept_across_changes_by_default(factory):
    session = factory.start(BookingKind.PACKAGE, "family-pack")
    session.apply_coupon("SAVE25")
    session.add_participant()
    assert session.quote().discount_amount == Decimal(25)


def test_clear_on_change_policy_drops_discount(mock_backend, draft_store):
    session = _factory(mock_backend, draft_store, DiscountPolicy.CLEAR_ON_CHANGE).start(
        BookingKind.PACKAGE, "family-pack"
    )
    session.apply_coupon("SAVE25")
    session.update_contact(name="Pat")
    assert session.discount is not None

    session.add_participant()
    assert session.discount is None
    assert session.coupon_code is None


def test_coupon_request_in_flight_is_rejected(factory):
    session = factory.start(BookingKind.PACKAGE, "family-pack")
    session._coupon_pending = True
    with pytest.raises(ActionInProgressError):
        session.apply_coupon("SAVE25")


def test_camp_addons_and_pricing(factory):
    session = factory.start(BookingKind.CAMP, "summer-camp")
    assert session.schedule_id == 71

    session.select_addon(1, 2)
    session.select_addon(2, 3)
    session.select_addon(2, 4)
    session.select_addon(2, 3)
    assert session.selected_addons == {1: 2, 2: (4,)}

    quote = session.quote()
    assert quote.addons_total == Decimal(70)
    assert quote.subtotal == Decimal(390)

    with pytest.raises(BookingValidationError):
        session.select_addon(1, 99)


def test_camp_capacity_blocks_oversized_group(factory, mock_backend):
    session = factory.start(BookingKind.CAMP, "summer-camp")
    _fill_contact(session)
    session.add_participant()
    session.add_participant()

    result = session.submit()

    assert result.success is False
    assert result.message == "Only 2 spots available in this session."
    assert not any(name == "initiate_booking" for name, _ in mock_backend.calls)


def test_successful_submit_clears_draft(kv_store, factory):
    session = factory.start(BookingKind.COURSE, "1", token=MOCK_TOKEN)
    session.update_contact(phone="480-555-0100")
    session.update_participant(session.participants[0].id, {"first_name": "Kid"})
    session.toggle_date(TUESDAY)
    assert kv_store.get(session.draft_key) is not None

    result = session.submit()

    assert result.success is True
    assert result.checkout_path == "/checkout/mock-course-1"
    assert kv_store.get(session.draft_key) is None
    assert session.is_submitting is False


def test_incomplete_submit_keeps_draft(kv_store, factory):
    session = factory.start(BookingKind.COURSE, "1")
    session.toggle_date(TUESDAY)

    result = session.submit()

    assert result.success is False
    assert kv_store.get(session.draft_key) is not None


def test_second_submit_while_pending_is_rejected(draft_store):
    class ReentrantBackend(MockAcademyBackend):
        """Tries to submit the same session again while the first request is in flight."""

        session = None

        def __init__(self, today):
            super().__init__(today=today)
            self.nested_errors = []
            self.can_submit_while_pending = []

        def initiate_booking(self, kind, payload):
            self.can_submit_while_pending.append(self.session.can_submit)
            try:
                self.session.submit()
            except ActionInProgressError as e:
                self.nested_errors.append(e)
            return super().initiate_booking(kind, payload)

    backend = ReentrantBackend(today=TODAY)
    session = _factory(backend, draft_store).start(BookingKind.COURSE, "1", token=MOCK_TOKEN)
    backend.session = session
    session.update_participant(session.participants[0].id, {"first_name": "Kid"})
    session.toggle_date(TUESDAY)

    result = session.submit()

    assert result.success is True
    assert len(backend.nested_errors) == 1
    assert backend.can_submit_while_pending == [False]
    assert [name for name, _ in backend.calls].count("initiate_booking") == 1
    assert session.is_submitting is False
    assert session.can_submit is True
