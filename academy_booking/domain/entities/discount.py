from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


@dataclass(frozen=True)
class Discount:
    amount: Decimal
    type: DiscountType

    def amount_off(self, subtotal: Decimal) -> Decimal:
        if self.type is DiscountType.PERCENTAGE:
            return subtotal * (self.amount / Decimal(100))
        return self.amount


class DiscountPolicy(str, Enum):
    # keep: an applied coupon survives date/participant changes
    KEEP = "keep"
    CLEAR_ON_CHANGE = "clear_on_change"
