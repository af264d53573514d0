from __future__ import annotations

from dataclasses import fields, replace
from typing import Any

from academy_booking.application.exceptions import BookingValidationError
from academy_booking.domain.entities.participant import MAX_DAILY_HOURS, Participant

EDITABLE_FIELDS = frozenset(f.name for f in fields(Participant)) - {"id"}


def next_participant_id(participants: tuple[Participant, ...] | list[Participant]) -> int:
    return max((p.id for p in participants), default=0) + 1


def add_participant(participants: tuple[Participant, ...]) -> tuple[Participant, ...]:
    return participants + (Participant(id=next_participant_id(participants)),)


def remove_participant(participants: tuple[Participant, ...], participant_id: int) -> tuple[Participant, ...]:
    if not any(p.id == participant_id for p in participants):
        raise BookingValidationError(f"Unknown participant {participant_id}.")
    if len(participants) <= 1:
        raise BookingValidationError("At least one participant is required.")
    return tuple(p for p in participants if p.id != participant_id)


def update_participant(
    participants: tuple[Participant, ...],
    participant_id: int,
    changes: dict[str, Any],
) -> tuple[Participant, ...]:
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise BookingValidationError(f"Unknown participant fields: {', '.join(sorted(unknown))}.")

    if "daily_hours" in changes:
        hours = changes["daily_hours"]
        if isinstance(hours, bool) or not isinstance(hours, int) or not 1 <= hours <= MAX_DAILY_HOURS:
            raise BookingValidationError(f"Daily hours must be between 1 and {MAX_DAILY_HOURS}.")

    updated: list[Participant] = []
    found = False
    for p in participants:
        if p.id == participant_id:
            p = replace(p, **changes)
            found = True
        updated.append(p)
    if not found:
        raise BookingValidationError(f"Unknown participant {participant_id}.")
    return tuple(updated)
