"""
Tests for the in-memory booking session registry.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from academy_booking.application.exceptions import SessionNotFoundError
from academy_booking.infrastructure.store.session_registry import MemorySessionRegistry


def _session(session_id: str) -> SimpleNamespace:
    return SimpleNamespace(session_id=session_id)


def test_eviction_drops_least_recently_used_session():
    registry = MemorySessionRegistry(max_sessions=2)
    registry.add(_session("a"))
    registry.add(_session("b"))

    registry.get("a")  # visitor keeps editing the older session
    registry.add(_session("c"))

    assert registry.get("a").session_id == "a"
    assert registry.get("c").session_id == "c"
    with pytest.raises(SessionNotFoundError):
        registry.get("b")


def test_removed_session_is_not_found():
    registry = MemorySessionRegistry()
    registry.add(_session("a"))
    registry.remove("a")
    with pytest.raises(SessionNotFoundError):
        registry.get("a")
