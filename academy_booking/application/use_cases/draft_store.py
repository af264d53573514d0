from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import date
from typing import Any

from academy_booking.application.ports.key_value_store import KeyValueStorePort
from academy_booking.application.utils.dates import day_key, parse_day
from academy_booking.domain.entities.catalog import BookingKind
from academy_booking.domain.entities.draft import BookingDraft, ContactInfo, DraftPhase
from academy_booking.domain.entities.participant import (
    DEFAULT_GENDER,
    DEFAULT_SKILL_LEVEL,
    MAX_DAILY_HOURS,
    Participant,
)
from academy_booking.domain.entities.profile import UserProfile

_KEY_PREFIXES = {
    BookingKind.COURSE: "booking-progress",
    BookingKind.PACKAGE: "package-booking-progress",
    BookingKind.CAMP: "camp-booking-progress",
}


def draft_key(kind: BookingKind, route_key: str) -> str:
    return f"{_KEY_PREFIXES[kind]}-{route_key}"


def resolve_contact(profile: UserProfile | None, draft: BookingDraft | None) -> ContactInfo:
    """Profile is the source of truth; a stored draft only fills in for guests."""
    if profile is not None:
        return ContactInfo(name=profile.full_name, email=profile.email, phone=profile.phone or "")
    if draft is not None:
        return draft.contact
    return ContactInfo()


def _unique_ids(participants: tuple[Participant, ...]) -> tuple[Participant, ...]:
    seen: set[int] = set()
    next_id = max(p.id for p in participants) + 1
    out: list[Participant] = []
    for p in participants:
        if p.id in seen:
            p = replace(p, id=next_id)
            next_id += 1
        seen.add(p.id)
        out.append(p)
    return tuple(out)


class DraftStore:
    def __init__(self, store: KeyValueStorePort, today: Callable[[], date]) -> None:
        self._store = store
        self._today = today
        self._phases: dict[str, DraftPhase] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def phase(self, key: str) -> DraftPhase:
        with self._lock:
            return self._phases.get(key, DraftPhase.RESTORING)

    def restore(self, key: str) -> BookingDraft | None:
        """Load the stored draft once, dropping dates that have already passed."""
        try:
            raw = self._store.get(key)
            if raw is None:
                return None
            try:
                data = json.loads(raw)
                if not isinstance(data, dict):
                    raise ValueError("draft is not an object")
                draft = self._deserialize(data)
            except (ValueError, TypeError, KeyError) as e:
                self._logger.warning("Discarding unreadable draft", extra={"draft_key": key, "reason": str(e)})
                self._store.remove(key)
                return None

            today = self._today()
            kept = frozenset(d for d in draft.selected_dates if d >= today)
            dropped = len(draft.selected_dates) - len(kept)
            if dropped:
                self._logger.info("Dropped past dates from draft", extra={"draft_key": key, "dropped": dropped})
            return BookingDraft(
                contact=draft.contact,
                participants=draft.participants,
                selected_dates=kept,
                selected_schedule_id=draft.selected_schedule_id,
                selected_addons=draft.selected_addons,
            )
        finally:
            with self._lock:
                self._phases[key] = DraftPhase.READY

    def persist(self, key: str, draft: BookingDraft) -> bool:
        """Write the whole draft. Suppressed until `restore` has run for the key."""
        if self.phase(key) is not DraftPhase.READY:
            self._logger.debug("Draft write suppressed before restore", extra={"draft_key": key})
            return False
        self._store.set(key, json.dumps(self._serialize(draft)))
        return True

    def clear(self, key: str) -> None:
        self._store.remove(key)
        self._logger.info("Draft cleared", extra={"draft_key": key})

    def _serialize(self, draft: BookingDraft) -> dict[str, Any]:
        return {
            "contactName": draft.contact.name,
            "contactEmail": draft.contact.email,
            "contactPhone": draft.contact.phone,
            "participants": [{"id": p.id, **p.to_payload()} for p in draft.participants],
            "selectedDates": sorted(day_key(d) for d in draft.selected_dates),
            "selectedScheduleId": draft.selected_schedule_id,
            "selectedAddOns": {
                str(group_id): list(choice) if isinstance(choice, tuple) else choice
                for group_id, choice in draft.selected_addons.items()
            },
        }

    def _deserialize(self, data: dict[str, Any]) -> BookingDraft:
        participants = tuple(
            self._deserialize_participant(p, index)
            for index, p in enumerate(data.get("participants") or [], start=1)
            if isinstance(p, dict)
        )
        if not participants:
            participants = (Participant(id=1),)
        participants = _unique_ids(participants)

        dates = frozenset(d for d in (parse_day(v) for v in data.get("selectedDates") or []) if d is not None)

        addons: dict[int, int | tuple[int, ...]] = {}
        for group_id, choice in (data.get("selectedAddOns") or {}).items():
            if isinstance(choice, list):
                addons[int(group_id)] = tuple(int(c) for c in choice)
            elif choice is not None:
                addons[int(group_id)] = int(choice)

        schedule_id = data.get("selectedScheduleId")
        return BookingDraft(
            contact=ContactInfo(
                name=data.get("contactName") or "",
                email=data.get("contactEmail") or "",
                phone=data.get("contactPhone") or "",
            ),
            participants=participants,
            selected_dates=dates,
            selected_schedule_id=int(schedule_id) if schedule_id is not None else None,
            selected_addons=addons,
        )

    def _deserialize_participant(self, data: dict[str, Any], fallback_id: int) -> Participant:
        hours = data.get("dailyHours")
        try:
            daily_hours = min(MAX_DAILY_HOURS, max(1, int(hours))) if hours not in (None, "") else 1
        except (TypeError, ValueError):
            daily_hours = 1
        raw_id = data.get("id")
        return Participant(
            id=raw_id if isinstance(raw_id, int) else fallback_id,
            first_name=data.get("firstName") or "",
            last_name=data.get("lastName") or "",
            date_of_birth=data.get("dateOfBirth") or "",
            gender=data.get("gender") or DEFAULT_GENDER,
            skill_level=data.get("skillLevel") or DEFAULT_SKILL_LEVEL,
            medical_notes=data.get("medicalNotes") or "",
            emergency_contact_name=data.get("emergencyContactName") or "",
            emergency_contact_phone=data.get("emergencyContactPhone") or "",
            daily_hours=daily_hours,
        )
