from __future__ import annotations

import threading

from academy_booking.application.exceptions import SessionNotFoundError
from academy_booking.application.use_cases.booking_session import BookingSession


class MemorySessionRegistry:
    def __init__(self, max_sessions: int = 1000) -> None:
        self._sessions: dict[str, BookingSession] = {}
        self._max_sessions = max_sessions
        self._lock = threading.Lock()

    def add(self, session: BookingSession) -> None:
        with self._lock:
            self._sessions.pop(session.session_id, None)
            self._sessions[session.session_id] = session
            # Keep the N most recently used sessions
            while len(self._sessions) > self._max_sessions:
                oldest = next(iter(self._sessions))
                del self._sessions[oldest]

    def get(self, session_id: str) -> BookingSession:
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is not None:
                self._sessions[session_id] = session
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def remove(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
