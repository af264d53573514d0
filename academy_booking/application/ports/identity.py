from __future__ import annotations

from abc import ABC, abstractmethod

from academy_booking.domain.entities.profile import UserProfile


class IdentityPort(ABC):
    @abstractmethod
    def get_profile(self, token: str) -> UserProfile | None:
        """Resolve a bearer token to a profile. Returns None if the token is rejected."""
        raise NotImplementedError
