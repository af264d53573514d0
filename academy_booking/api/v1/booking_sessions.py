from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from academy_booking.api.v1.schemas import (
    AddonSelectSchema,
    ContactSchema,
    CouponRequestSchema,
    CouponResponseSchema,
    DateToggleSchema,
    DiscountSchema,
    MonthAvailabilitySchema,
    ParticipantSchema,
    ParticipantUpdateSchema,
    QuoteSchema,
    ScheduleSelectSchema,
    SessionSchema,
    SlotSchema,
    StartSessionSchema,
    SubmitResponseSchema,
)
from academy_booking.application.exceptions import (
    ActionInProgressError,
    BackendContractError,
    BackendUnavailableError,
    BookingValidationError,
    SessionNotFoundError,
)
from academy_booking.application.use_cases.booking_session import BookingSession, BookingSessionFactory
from academy_booking.domain.entities.pricing import PriceBreakdown
from academy_booking.infrastructure.store.session_registry import MemorySessionRegistry
from academy_booking.wiring.dependencies import get_session_factory, get_session_registry

router = APIRouter()
logger = logging.getLogger(__name__)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _quote_view(quote: PriceBreakdown) -> QuoteSchema:
    return QuoteSchema(
        subtotal=quote.subtotal,
        addons_total=quote.addons_total,
        discount_amount=quote.discount_amount,
        final_price=quote.final_price,
    )


def _session_view(session: BookingSession, notices: list[str] | None = None) -> SessionSchema:
    discount = None
    if session.discount is not None:
        discount = DiscountSchema(code=session.coupon_code, type=session.discount.type, amount=session.discount.amount)
    return SessionSchema(
        session_id=session.session_id,
        kind=session.item.kind,
        item_id=session.item.item_id,
        item_name=session.item.name,
        authenticated=session.profile is not None,
        contact=ContactSchema(**asdict(session.contact)),
        participants=[ParticipantSchema(**asdict(p)) for p in session.participants],
        schedule_id=session.schedule_id,
        selected_dates=sorted(session.selected_dates),
        selected_addons={
            group_id: list(choice) if isinstance(choice, tuple) else choice
            for group_id, choice in session.selected_addons.items()
        },
        discount=discount,
        quote=_quote_view(session.quote()),
        violation=session.violation_message(),
        can_submit=session.can_submit,
        notices=notices or [],
    )


def _get_session(session_id: str, registry: MemorySessionRegistry) -> BookingSession:
    try:
        return registry.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Booking session not found")


@router.post("", response_model=SessionSchema, status_code=201)
def start_session(
    req: StartSessionSchema,
    authorization: str | None = Header(default=None),
    factory: BookingSessionFactory = Depends(get_session_factory),
    registry: MemorySessionRegistry = Depends(get_session_registry),
):
    try:
        session = factory.start(req.kind, req.item_id, token=_bearer_token(authorization))
    except BackendUnavailableError as e:
        logger.exception("Failed to start booking session", extra={"item_id": req.item_id, "reason": str(e)})
        status = 404 if e.status_code == 404 else 502
        raise HTTPException(status_code=status, detail=e.backend_message or f"Could not load {req.kind.value} details.")
    except BackendContractError as e:
        logger.exception("Unreadable item details", extra={"item_id": req.item_id, "reason": str(e)})
        raise HTTPException(status_code=502, detail=str(e))
    registry.add(session)
    return _session_view(session, notices=session.pop_notices())


@router.get("/{session_id}", response_model=SessionSchema)
def get_session(session_id: str, registry: MemorySessionRegistry = Depends(get_session_registry)):
    session = _get_session(session_id, registry)
    return _session_view(session, notices=session.pop_notices())


@router.put("/{session_id}/contact", response_model=SessionSchema)
def update_contact(
    session_id: str,
    req: ContactSchema,
    registry: MemorySessionRegistry = Depends(get_session_registry),
):
    session = _get_session(session_id, registry)
    session.update_contact(name=req.name, email=req.email, phone=req.phone)
    return _session_view(session)


@router.post("/{session_id}/participants", response_model=SessionSchema, status_code=201)
def add_participant(session_id: str, registry: MemorySessionRegistry = Depends(get_session_registry)):
    session = _get_session(session_id, registry)
    session.add_participant()
    return _session_view(session)


@router.patch("/{session_id}/participants/{participant_id}", response_model=SessionSchema)
def update_participant(
    session_id: str,
    participant_id: int,
    req: ParticipantUpdateSchema,
    registry: MemorySessionRegistry = Depends(get_session_registry),
):
    session = _get_session(session_id, registry)
    try:
        session.update_participant(participant_id, req.model_dump(exclude_none=True))
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_view(session)


@router.delete("/{session_id}/participants/{participant_id}", response_model=SessionSchema)
def remove_participant(
    session_id: str,
    participant_id: int,
    registry: MemorySessionRegistry = Depends(get_session_registry),
):
    session = _get_session(session_id, registry)
    try:
        session.remove_participant(participant_id)
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_view(session)


@router.put("/{session_id}/schedule", response_model=SessionSchema)
def select_schedule(
    session_id: str,
    req: ScheduleSelectSchema,
    registry: MemorySessionRegistry = Depends(get_session_registry),
):
    session = _get_session(session_id, registry)
    try:
        session.select_schedule(req.schedule_id)
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_view(session)


@router.get("/{session_id}/availability", response_model=MonthAvailabilitySchema)
def month_availability(
    session_id: str,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    registry: MemorySessionRegistry = Depends(get_session_registry),
):
    session = _get_session(session_id, registry)
    load = session.load_month(year, month)
    return MonthAvailabilitySchema(
        year=year,
        month=month,
        error=load.error,
        slots=[
            SlotSchema(
                date=slot.date,
                available_slots=slot.available_slots,
                price=slot.price,
                is_booking_open=slot.is_booking_open,
                selectable=session.is_selectable(slot.date),
            )
            for slot in sorted(load.slots.values(), key=lambda s: s.date)
        ],
    )


@router.post("/{session_id}/dates/toggle", response_model=SessionSchema)
def toggle_date(
    session_id: str,
    req: DateToggleSchema,
    registry: MemorySessionRegistry = Depends(get_session_registry),
):
    session = _get_session(session_id, registry)
    try:
        session.toggle_date(req.date)
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_view(session)


@router.post("/{session_id}/addons/select", response_model=SessionSchema)
def select_addon(
    session_id: str,
    req: AddonSelectSchema,
    registry: MemorySessionRegistry = Depends(get_session_registry),
):
    session = _get_session(session_id, registry)
    try:
        session.select_addon(req.group_id, req.option_id)
    except BookingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_view(session)


@router.post("/{session_id}/coupon", response_model=CouponResponseSchema)
def apply_coupon(
    session_id: str,
    req: CouponRequestSchema,
    registry: MemorySessionRegistry = Depends(get_session_registry),
):
    session = _get_session(session_id, registry)
    try:
        result = session.apply_coupon(req.code)
    except ActionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return CouponResponseSchema(
        valid=result.valid,
        message=result.message,
        code=result.code,
        quote=_quote_view(session.quote()),
    )


@router.post("/{session_id}/submit", response_model=SubmitResponseSchema)
def submit(session_id: str, registry: MemorySessionRegistry = Depends(get_session_registry)):
    session = _get_session(session_id, registry)
    try:
        result = session.submit()
    except ActionInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if result.success:
        registry.remove(session_id)
    return SubmitResponseSchema(
        success=result.success,
        message=result.message,
        booking_reference=result.booking_reference,
        checkout_path=result.checkout_path,
    )
