from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from academy_booking.application.exceptions import BackendContractError, BackendUnavailableError
from academy_booking.application.ports.booking_backend import BookingBackendPort
from academy_booking.domain.entities.catalog import BookingKind
from academy_booking.domain.entities.discount import Discount, DiscountType

EMPTY_CODE_MESSAGE = "Please enter a coupon code."
INVALID_CODE_MESSAGE = "Invalid coupon code."


@dataclass(frozen=True)
class CouponResult:
    valid: bool
    message: str
    code: str
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = None

    @property
    def discount(self) -> Discount | None:
        if not self.valid or self.discount_type is None or self.discount_value is None:
            return None
        return Discount(amount=self.discount_value, type=self.discount_type)


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


class CouponValidator:
    def __init__(self, backend: BookingBackendPort) -> None:
        self._backend = backend
        self._logger = logging.getLogger(__name__)

    def validate(self, code: str | None, kind: BookingKind, item_id: int) -> CouponResult:
        normalized = normalize_code(code)
        if not normalized:
            return CouponResult(valid=False, message=EMPTY_CODE_MESSAGE, code=normalized)

        try:
            body = self._backend.validate_coupon(kind, item_id, normalized)
        except (BackendUnavailableError, BackendContractError) as e:
            self._logger.warning(
                "Coupon validation failed",
                extra={"item_id": item_id, "reason": str(e)},
            )
            return CouponResult(valid=False, message=INVALID_CODE_MESSAGE, code=normalized)

        message = str(body.get("message") or "")
        if not body.get("valid"):
            return CouponResult(valid=False, message=message or INVALID_CODE_MESSAGE, code=normalized)

        try:
            discount_type = DiscountType(str(body.get("discountType")).upper())
            discount_value = Decimal(str(body.get("discountValue")))
        except (ValueError, InvalidOperation):
            self._logger.error(
                "Coupon response missing discount descriptor",
                extra={"item_id": item_id, "reason": repr(body)},
            )
            return CouponResult(valid=False, message=INVALID_CODE_MESSAGE, code=normalized)
        if not discount_value.is_finite() or discount_value < 0:
            return CouponResult(valid=False, message=INVALID_CODE_MESSAGE, code=normalized)

        return CouponResult(
            valid=True,
            message=message or "Coupon applied.",
            code=normalized,
            discount_type=discount_type,
            discount_value=discount_value,
        )
