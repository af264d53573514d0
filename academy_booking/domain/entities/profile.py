from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class UserProfile:
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> "UserProfile":
        return UserProfile(
            id=int(payload["id"]),
            first_name=(payload.get("firstName") or "").strip(),
            last_name=(payload.get("lastName") or "").strip(),
            email=(payload.get("email") or "").strip(),
            phone=(payload.get("phone") or None),
        )
