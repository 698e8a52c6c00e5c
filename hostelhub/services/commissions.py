"""
Agent commission aggregation.

Everything here is a pure projection from booking-level rows to the derived
agent view. Nothing is cached or stored: every call recomputes totals from the
bookings it is given, so two calls over the same rows produce equal results.
"""
from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, PlainSerializer

from ..models import CommissionStatus

NO_BOOKING_DATE = "N/A"

# Exact arithmetic internally, plain numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class Flag(str, Enum):
    """Three-state agent flag. UNSET never restricts anything."""

    TRUE = "true"
    FALSE = "false"
    UNSET = "unset"

    @classmethod
    def from_stored(cls, value: Optional[bool]) -> "Flag":
        if value is None:
            return cls.UNSET
        return cls.TRUE if value else cls.FALSE

    @property
    def is_set_false(self) -> bool:
        return self is Flag.FALSE

    def as_bool(self) -> Optional[bool]:
        if self is Flag.UNSET:
            return None
        return self is Flag.TRUE


def _flag_to_json(value) -> Optional[bool]:
    return Flag(value).as_bool()


# Tri-state internally, optional boolean on the wire
FlagField = Annotated[Flag, PlainSerializer(_flag_to_json, return_type=Optional[bool], when_used="json")]


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class AgentBooking(BaseModel):
    id: int
    hostel_id: Optional[int] = None
    hostel_name: str
    room_number: str
    student_name: str
    booking_date: str
    amount: Money = Decimal("0")
    commission_amount: Money = Decimal("0")
    commission_status: CommissionStatus = CommissionStatus.PENDING

    class Config:
        use_enum_values = True


class CommissionTotals(BaseModel):
    total_commission: Money = Decimal("0")
    paid_commission: Money = Decimal("0")
    pending_commission: Money = Decimal("0")
    bookings_count: int = 0
    last_booking_date: str = NO_BOOKING_DATE


class AgentCommission(CommissionTotals):
    agent_id: int
    agent_name: str
    profile_image: str
    active: FlagField = Flag.UNSET
    verified: FlagField = Flag.UNSET
    bookings: list[AgentBooking] = []


class HostelRollup(BaseModel):
    hostel_id: Optional[int] = None
    name: str
    rooms_referred: int = 0


class PaymentRecord(BaseModel):
    id: int
    date: str
    amount: Money
    status: str = "completed"
    reference: str


def summarize_commissions(bookings: Iterable[AgentBooking]) -> CommissionTotals:
    """
    Fold an agent's bookings into commission totals.

    A booking counts toward ``paid_commission`` only when its status is paid;
    every other booking counts as pending, so total == paid + pending always.
    ``last_booking_date`` is the max ISO date string, or "N/A" with no bookings.
    """
    paid = Decimal("0")
    pending = Decimal("0")
    count = 0
    last_date = ""
    for booking in bookings:
        amount = to_money(booking.commission_amount)
        if booking.commission_status == CommissionStatus.PAID:
            paid += amount
        else:
            pending += amount
        count += 1
        # ISO dates are zero padded, so string order is date order
        if booking.booking_date and booking.booking_date > last_date:
            last_date = booking.booking_date
    return CommissionTotals(
        total_commission=paid + pending,
        paid_commission=paid,
        pending_commission=pending,
        bookings_count=count,
        last_booking_date=last_date or NO_BOOKING_DATE,
    )


def build_agent_commission(
    *,
    agent_id: int,
    agent_name: str,
    profile_image: str,
    active: Optional[bool],
    verified: Optional[bool],
    bookings: list[AgentBooking],
) -> AgentCommission:
    totals = summarize_commissions(bookings)
    return AgentCommission(
        agent_id=agent_id,
        agent_name=agent_name,
        profile_image=profile_image,
        active=Flag.from_stored(active),
        verified=Flag.from_stored(verified),
        bookings=list(bookings),
        **totals.model_dump(),
    )


def hostel_rollup(bookings: Iterable[AgentBooking]) -> list[HostelRollup]:
    """
    Group an agent's bookings per hostel, counting referred rooms.

    Bookings that carry a hostel id are grouped by id. Older bookings that only
    carry the denormalized hostel name are grouped by name, so two different
    hostels sharing a name collapse into one row for those bookings.
    Rows come back in first-seen order.
    """
    groups: dict[tuple, HostelRollup] = {}
    for booking in bookings:
        if booking.hostel_id is not None:
            key = ("id", booking.hostel_id)
        else:
            key = ("name", booking.hostel_name)
        row = groups.get(key)
        if row is None:
            groups[key] = HostelRollup(hostel_id=booking.hostel_id, name=booking.hostel_name, rooms_referred=1)
        else:
            row.rooms_referred += 1
    return list(groups.values())


def payment_history(bookings: Iterable[AgentBooking]) -> list[PaymentRecord]:
    """One completed payment per booking whose commission has been paid."""
    return [
        PaymentRecord(
            id=b.id,
            date=b.booking_date,
            amount=to_money(b.commission_amount),
            reference=str(b.id),
        )
        for b in bookings
        if b.commission_status == CommissionStatus.PAID
    ]
