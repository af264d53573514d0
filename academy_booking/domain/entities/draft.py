from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from academy_booking.domain.entities.participant import Participant


class DraftPhase(str, Enum):
    RESTORING = "restoring"
    READY = "ready"


@dataclass(frozen=True)
class ContactInfo:
    name: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class BookingDraft:
    contact: ContactInfo = field(default_factory=ContactInfo)
    participants: tuple[Participant, ...] = ()
    selected_dates: frozenset[date] = frozenset()
    selected_schedule_id: int | None = None
    # camp add-ons: group id -> option id (SINGLE) or option ids (MULTIPLE)
    selected_addons: dict[int, int | tuple[int, ...]] = field(default_factory=dict)
