"""
Tests for coupon validation.
"""

from __future__ import annotations

from decimal import Decimal

from academy_booking.application.exceptions import BackendUnavailableError
from academy_booking.application.use_cases.coupon import (
    EMPTY_CODE_MESSAGE,
    INVALID_CODE_MESSAGE,
    CouponValidator,
)
from academy_booking.domain.entities.catalog import BookingKind
from academy_booking.domain.entities.discount import Discount, DiscountType


def test_blank_code_is_rejected_without_network(backend):
    result = CouponValidator(backend).validate("   ", BookingKind.COURSE, 1)
    assert result.valid is False
    assert result.message == EMPTY_CODE_MESSAGE
    assert backend.coupon_calls == []


def test_code_is_uppercased_before_submission(backend):
    backend.coupon_response = {
        "valid": True,
        "message": "Coupon applied!",
        "discountType": "PERCENTAGE",
        "discountValue": 10,
    }
    result = CouponValidator(backend).validate(" summer10 ", BookingKind.PACKAGE, 3)

    assert backend.coupon_calls == [(BookingKind.PACKAGE, 3, "SUMMER10")]
    assert result.valid is True
    assert result.code == "SUMMER10"
    assert result.discount == Discount(amount=Decimal(10), type=DiscountType.PERCENTAGE)


def test_rejected_code_carries_backend_message(backend):
    backend.coupon_response = {"valid": False, "message": "Coupon expired."}
    result = CouponValidator(backend).validate("OLD", BookingKind.COURSE, 1)
    assert result.valid is False
    assert result.message == "Coupon expired."
    assert result.discount is None


def test_network_failure_is_a_rejection(backend):
    backend.error = BackendUnavailableError("timed out")
    result = CouponValidator(backend).validate("SAVE", BookingKind.CAMP, 7)
    assert result.valid is False
    assert result.message == INVALID_CODE_MESSAGE


def test_valid_flag_without_descriptor_is_a_rejection(backend):
    backend.coupon_response = {"valid": True, "message": "ok", "discountType": "BOGUS", "discountValue": 5}
    result = CouponValidator(backend).validate("SAVE", BookingKind.COURSE, 1)
    assert result.valid is False
    assert result.discount is None
