"""
Tests for schedule window and booking rule gating.
"""

from __future__ import annotations

from datetime import date, timedelta

from academy_booking.application.use_cases.schedule_gate import (
    ENDED_MESSAGE,
    is_booking_rule_satisfied,
    is_schedule_active,
    rule_violation_message,
)
from academy_booking.domain.entities.schedule import BookingRule, ScheduleWindow

TODAY = date(2025, 6, 15)


def _window(start: date, end: date) -> ScheduleWindow:
    return ScheduleWindow(schedule_id=1, name="Summer", start_date=start, end_date=end)


def test_schedule_that_ended_yesterday_is_inactive():
    window = _window(TODAY - timedelta(days=30), TODAY - timedelta(days=1))
    assert is_schedule_active(window, TODAY) is False


def test_window_boundaries_are_inclusive():
    assert is_schedule_active(_window(TODAY, TODAY + timedelta(days=5)), TODAY) is True
    assert is_schedule_active(_window(TODAY - timedelta(days=5), TODAY), TODAY) is True


def test_missing_schedule_is_inactive():
    assert is_schedule_active(None, TODAY) is False


def test_rule_bounds_min_2_max_4():
    rule = BookingRule(min_participants=2, max_participants=4)
    assert not is_booking_rule_satisfied(rule, 1)
    assert not is_booking_rule_satisfied(rule, 5)
    for count in (2, 3, 4):
        assert is_booking_rule_satisfied(rule, count)

    too_few = rule_violation_message(None, rule, 1, TODAY)
    too_many = rule_violation_message(None, rule, 5, TODAY)
    assert too_few == "This package requires a minimum of 2 participants."
    assert too_many == "This package allows a maximum of 4 participants."
    assert too_few != too_many
    assert rule_violation_message(None, rule, 3, TODAY) is None


def test_partial_or_missing_rule_is_unconstrained_on_missing_side():
    assert is_booking_rule_satisfied(BookingRule(min_participants=3), 50)
    assert not is_booking_rule_satisfied(BookingRule(min_participants=3), 2)
    assert is_booking_rule_satisfied(BookingRule(max_participants=2), 1)
    assert not is_booking_rule_satisfied(BookingRule(max_participants=2), 3)
    assert is_booking_rule_satisfied(BookingRule(), 100)
    assert is_booking_rule_satisfied(None, 100)


def test_message_priority_schedule_before_rule():
    rule = BookingRule(min_participants=2)
    upcoming = _window(date(2025, 7, 1), date(2025, 8, 31))
    ended = _window(date(2025, 1, 1), date(2025, 5, 31))

    assert rule_violation_message(upcoming, rule, 1, TODAY) == "This schedule will be available from 7/1/2025."
    assert rule_violation_message(ended, rule, 1, TODAY) == ENDED_MESSAGE
    assert rule_violation_message(_window(TODAY, TODAY), rule, 1, TODAY) == (
        "This package requires a minimum of 2 participants."
    )
    assert rule_violation_message(_window(TODAY, TODAY), rule, 2, TODAY) is None
