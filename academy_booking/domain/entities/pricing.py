from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

ZERO = Decimal(0)


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    final_price: Decimal = ZERO
    addons_total: Decimal = ZERO  # camp only, already included in subtotal
