#!/usr/bin/env python3
from __future__ import annotations

import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

"""
Local booking walkthrough (no HTTP, mock academy backend).

Usage:
  python3 scripts/book_local.py [course|package|camp]

What it does:
- Starts a booking session the same way the API does
- Picks the first selectable dates / a valid schedule
- Applies the WELCOME10 coupon, prints the quote and submits
"""

from datetime import date

from academy_booking.application.use_cases.booking_session import BookingSessionFactory
from academy_booking.application.use_cases.draft_store import DraftStore
from academy_booking.domain.entities.catalog import BookingKind
from academy_booking.infrastructure.backend.mock_backend import MockAcademyBackend
from academy_booking.infrastructure.store.json_store import JsonKeyValueStore


def _print_quote(session) -> None:
    quote = session.quote()
    print(f"  subtotal:  {quote.subtotal:.2f}")
    if quote.addons_total:
        print(f"  add-ons:   {quote.addons_total:.2f}")
    print(f"  discount: -{quote.discount_amount:.2f}")
    print(f"  total:     {quote.final_price:.2f}")


def main(kind: BookingKind) -> int:
    today = date.today()
    backend = MockAcademyBackend(today=today)
    with tempfile.TemporaryDirectory() as tmpdir:
        drafts = DraftStore(JsonKeyValueStore(data_dir=tmpdir), today=lambda: today)
        factory = BookingSessionFactory(
            catalog=backend,
            identity=backend,
            availability=backend,
            backend=backend,
            drafts=drafts,
            today=lambda: today,
        )
        session = factory.start(kind, "demo")
        print(f"Booking: {session.item.name} ({kind.value})")

        session.update_contact(name="Alex Guest", email="alex@example.com", phone="480-555-0199")
        first = session.participants[0]
        session.update_participant(first.id, {"first_name": "Jamie", "last_name": "Guest"})

        if kind is BookingKind.COURSE:
            load = session.load_month(today.year, today.month)
            picks = [d for d in sorted(load.slots) if session.is_selectable(d)][:3]
            for day in picks:
                session.toggle_date(day)
            print(f"Selected dates: {', '.join(d.isoformat() for d in picks) or 'none'}")
        elif kind is BookingKind.PACKAGE:
            second = session.add_participant()
            session.update_participant(second.id, {"first_name": "Riley"})
        else:
            session.select_schedule(72)
            session.select_addon(1, 2)

        violation = session.violation_message()
        if violation:
            print(f"Blocked: {violation}")

        result = session.apply_coupon("welcome10")
        print(f"Coupon {result.code}: {result.message}")
        _print_quote(session)

        outcome = session.submit()
        print(f"Submit: success={outcome.success} message={outcome.message}")
        if outcome.checkout_path:
            print(f"Checkout: {outcome.checkout_path}")
    return 0 if outcome.success else 1


if __name__ == "__main__":
    arg = sys.argv[1] if len(sys.argv) > 1 else "course"
    sys.exit(main(BookingKind(arg)))
