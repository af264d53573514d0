from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal

from academy_booking.domain.entities.availability import AvailabilitySlot
from academy_booking.domain.entities.catalog import AddonGroup, BookingKind, CampSession
from academy_booking.domain.entities.discount import Discount
from academy_booking.domain.entities.participant import Participant
from academy_booking.domain.entities.pricing import ZERO, PriceBreakdown


class PricingEngine:
    """
    Pure price computation for the three booking flows.

    Nothing is cached: callers recompute on every read so a participant or
    date edit can never be served a stale total.
    """

    def compute(
        self,
        kind: BookingKind,
        selected_dates: Iterable[date],
        availability: Mapping[date, AvailabilitySlot],
        participants: tuple[Participant, ...],
        fallback_price: Decimal | None,
        discount: Discount | None,
    ) -> PriceBreakdown:
        if kind is BookingKind.COURSE:
            subtotal = self.course_subtotal(selected_dates, availability, participants, fallback_price)
        elif kind is BookingKind.PACKAGE:
            subtotal = (fallback_price or ZERO) * len(participants)
        else:
            raise ValueError("Camp bookings are priced with compute_camp")
        return self.apply_discount(subtotal, discount)

    def unit_price(
        self,
        day: date,
        availability: Mapping[date, AvailabilitySlot],
        fallback_price: Decimal | None,
    ) -> Decimal:
        slot = availability.get(day)
        # a zero slot price falls through to the flat price
        if slot is not None and slot.price:
            return slot.price
        return fallback_price or ZERO

    def course_subtotal(
        self,
        selected_dates: Iterable[date],
        availability: Mapping[date, AvailabilitySlot],
        participants: tuple[Participant, ...],
        fallback_price: Decimal | None,
    ) -> Decimal:
        # hours scale the whole date sum, per participant
        per_participant = sum(
            (self.unit_price(d, availability, fallback_price) for d in selected_dates),
            ZERO,
        )
        return sum((per_participant * (p.daily_hours or 1) for p in participants), ZERO)

    def compute_camp(
        self,
        session: CampSession | None,
        camp_price: Decimal | None,
        addon_groups: tuple[AddonGroup, ...],
        selected_addons: Mapping[int, int | tuple[int, ...]],
        participant_count: int,
        discount: Discount | None,
    ) -> PriceBreakdown:
        unit = ZERO
        if session is not None:
            unit = session.discount_price or session.base_price or ZERO
        unit = unit or camp_price or ZERO
        base = unit * participant_count

        addons_total = ZERO
        groups = {g.group_id: g for g in addon_groups}
        for group_id, choice in selected_addons.items():
            group = groups.get(group_id)
            if group is None:
                continue
            option_ids = choice if isinstance(choice, tuple) else (choice,)
            for option_id in option_ids:
                option = group.option(option_id)
                if option is not None:
                    addons_total += option.price_adjustment * participant_count

        breakdown = self.apply_discount(base + addons_total, discount)
        return PriceBreakdown(
            subtotal=breakdown.subtotal,
            discount_amount=breakdown.discount_amount,
            final_price=breakdown.final_price,
            addons_total=addons_total,
        )

    def apply_discount(self, subtotal: Decimal, discount: Discount | None) -> PriceBreakdown:
        discount_amount = ZERO
        if discount is not None:
            discount_amount = discount.amount_off(subtotal)
        final_price = max(ZERO, subtotal - discount_amount)
        return PriceBreakdown(subtotal=subtotal, discount_amount=discount_amount, final_price=final_price)
