from __future__ import annotations

from dataclasses import dataclass

DEFAULT_GENDER = "Prefer not to say"
DEFAULT_SKILL_LEVEL = "Beginner"
MAX_DAILY_HOURS = 12


@dataclass(frozen=True)
class Participant:
    id: int  # draft-local sequence id, never sent to the backend
    first_name: str = ""
    last_name: str = ""
    date_of_birth: str = ""
    gender: str = DEFAULT_GENDER
    skill_level: str = DEFAULT_SKILL_LEVEL
    medical_notes: str = ""
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""
    daily_hours: int = 1

    def to_payload(self, include_hours: bool = True) -> dict[str, object]:
        """Backend representation (camelCase, no local id)."""
        payload: dict[str, object] = {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "dateOfBirth": self.date_of_birth,
            "gender": self.gender,
            "skillLevel": self.skill_level,
            "medicalNotes": self.medical_notes,
            "emergencyContactName": self.emergency_contact_name,
            "emergencyContactPhone": self.emergency_contact_phone,
        }
        if include_hours:
            payload["dailyHours"] = self.daily_hours
        return payload
