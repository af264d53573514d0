from __future__ import annotations

from datetime import date

from academy_booking.application.utils.dates import display_day
from academy_booking.domain.entities.schedule import BookingRule, ScheduleWindow

ENDED_MESSAGE = "This schedule has ended and is no longer available for booking."


def is_schedule_active(schedule: ScheduleWindow | None, today: date) -> bool:
    """True iff today falls inside [start_date, end_date]; a missing bound is open."""
    if schedule is None:
        return False
    if schedule.start_date is not None and today < schedule.start_date:
        return False
    if schedule.end_date is not None and today > schedule.end_date:
        return False
    return True


def _below_minimum(rule: BookingRule, participant_count: int) -> bool:
    return bool(rule.min_participants) and participant_count < rule.min_participants


def _above_maximum(rule: BookingRule, participant_count: int) -> bool:
    return bool(rule.max_participants) and participant_count > rule.max_participants


def is_booking_rule_satisfied(rule: BookingRule | None, participant_count: int) -> bool:
    if rule is None:
        return True
    return not _below_minimum(rule, participant_count) and not _above_maximum(rule, participant_count)


def rule_violation_message(
    schedule: ScheduleWindow | None,
    rule: BookingRule | None,
    participant_count: int,
    today: date,
) -> str | None:
    """Single message, highest priority first: not open yet, ended, too few, too many."""
    if schedule is not None:
        if schedule.start_date is not None and today < schedule.start_date:
            return f"This schedule will be available from {display_day(schedule.start_date)}."
        if schedule.end_date is not None and today > schedule.end_date:
            return ENDED_MESSAGE

    if rule is None:
        return None
    if _below_minimum(rule, participant_count):
        return f"This package requires a minimum of {rule.min_participants} participants."
    if _above_maximum(rule, participant_count):
        return f"This package allows a maximum of {rule.max_participants} participants."
    return None
