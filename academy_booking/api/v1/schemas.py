from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from academy_booking.domain.entities.catalog import BookingKind
from academy_booking.domain.entities.discount import DiscountType


class StartSessionSchema(BaseModel):
    kind: BookingKind
    item_id: str = Field(min_length=1)


class ContactSchema(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class ParticipantSchema(BaseModel):
    id: int
    first_name: str
    last_name: str
    date_of_birth: str
    gender: str
    skill_level: str
    medical_notes: str
    emergency_contact_name: str
    emergency_contact_phone: str
    daily_hours: int


class ParticipantUpdateSchema(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: str | None = None
    gender: str | None = None
    skill_level: str | None = None
    medical_notes: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    daily_hours: int | None = Field(default=None, ge=1, le=12)


class ScheduleSelectSchema(BaseModel):
    schedule_id: int


class DateToggleSchema(BaseModel):
    date: date


class AddonSelectSchema(BaseModel):
    group_id: int
    option_id: int


class CouponRequestSchema(BaseModel):
    code: str = ""


class SlotSchema(BaseModel):
    date: date
    available_slots: int
    price: Decimal
    is_booking_open: bool
    selectable: bool


class MonthAvailabilitySchema(BaseModel):
    year: int
    month: int
    slots: list[SlotSchema] = Field(default_factory=list)
    error: str | None = None


class QuoteSchema(BaseModel):
    subtotal: Decimal
    addons_total: Decimal
    discount_amount: Decimal
    final_price: Decimal


class DiscountSchema(BaseModel):
    code: str | None
    type: DiscountType
    amount: Decimal


class CouponResponseSchema(BaseModel):
    valid: bool
    message: str
    code: str
    quote: QuoteSchema


class SessionSchema(BaseModel):
    session_id: str
    kind: BookingKind
    item_id: int
    item_name: str
    authenticated: bool
    contact: ContactSchema
    participants: list[ParticipantSchema]
    schedule_id: int | None
    selected_dates: list[date]
    selected_addons: dict[int, int | list[int]] = Field(default_factory=dict)
    discount: DiscountSchema | None = None
    quote: QuoteSchema
    violation: str | None = None
    can_submit: bool
    notices: list[str] = Field(default_factory=list)


class SubmitResponseSchema(BaseModel):
    success: bool
    message: str
    booking_reference: str | None = None
    checkout_path: str | None = None
