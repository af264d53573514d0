from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from academy_booking.domain.entities.schedule import BookingRule, ScheduleWindow


class BookingKind(str, Enum):
    COURSE = "course"
    PACKAGE = "package"
    CAMP = "camp"


class SelectionType(str, Enum):
    SINGLE = "SINGLE"
    MULTIPLE = "MULTIPLE"


@dataclass(frozen=True)
class Course:
    id: int
    name: str
    price_per_slot: Decimal = Decimal(0)
    sport_name: str = ""


@dataclass(frozen=True)
class PackageDetails:
    id: int
    name: str
    price: Decimal = Decimal(0)
    booking_rule: BookingRule | None = None


@dataclass(frozen=True)
class CampSession:
    session_id: int
    name: str
    base_price: Decimal = Decimal(0)
    discount_price: Decimal | None = None
    max_capacity: int = 0
    booked_slots: int = 0

    @property
    def available_spots(self) -> int:
        return self.max_capacity - self.booked_slots


@dataclass(frozen=True)
class AddonOption:
    option_id: int
    name: str
    price_adjustment: Decimal = Decimal(0)


@dataclass(frozen=True)
class AddonGroup:
    group_id: int
    name: str
    selection_type: SelectionType = SelectionType.SINGLE
    options: tuple[AddonOption, ...] = ()

    def option(self, option_id: int) -> AddonOption | None:
        for opt in self.options:
            if opt.option_id == option_id:
                return opt
        return None


@dataclass(frozen=True)
class Camp:
    id: int
    title: str
    price_per_slot: Decimal = Decimal(0)
    sessions: tuple[CampSession, ...] = ()
    addon_groups: tuple[AddonGroup, ...] = ()


@dataclass(frozen=True)
class BookableItem:
    """What a booking session is for, normalized across the three flows."""

    kind: BookingKind
    item_id: int
    route_key: str  # id or slug used in the draft key
    name: str
    flat_price: Decimal = Decimal(0)
    schedules: tuple[ScheduleWindow, ...] = ()
    booking_rule: BookingRule | None = None
    camp_sessions: tuple[CampSession, ...] = ()
    addon_groups: tuple[AddonGroup, ...] = field(default_factory=tuple)

    def schedule(self, schedule_id: int | None) -> ScheduleWindow | None:
        for s in self.schedules:
            if s.schedule_id == schedule_id:
                return s
        return None

    def camp_session(self, session_id: int | None) -> CampSession | None:
        for s in self.camp_sessions:
            if s.session_id == session_id:
                return s
        return None

    def addon_group(self, group_id: int) -> AddonGroup | None:
        for g in self.addon_groups:
            if g.group_id == group_id:
                return g
        return None
