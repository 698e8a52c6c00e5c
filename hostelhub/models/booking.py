from __future__ import annotations
from datetime import date, datetime
from typing import TYPE_CHECKING
from enum import Enum as PyEnum
from sqlalchemy import CheckConstraint, Integer, String, ForeignKey, Date, Numeric, Enum, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .agent import Agent

class BookingStatus(str, PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

class CommissionStatus(str, PyEnum):
    PAID = "paid"
    PENDING = "pending"

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (CheckConstraint("commission_amount >= 0", name="ck_bookings_commission_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    business_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    hostel_id: Mapped[int | None] = mapped_column(ForeignKey("hostels.id", ondelete="SET NULL"), index=True)
    # Denormalized for display; rollups fall back to it when hostel_id is missing
    hostel_name: Mapped[str | None] = mapped_column(String(200))
    room_number: Mapped[str | None] = mapped_column(String(20))
    student_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"))
    student_name: Mapped[str | None] = mapped_column(String(200))
    agent_id: Mapped[int | None] = mapped_column(ForeignKey("agents.id"), index=True)
    amount: Mapped[float | None] = mapped_column(Numeric(12, 2))
    booking_date: Mapped[date] = mapped_column(Date, default=date.today, nullable=False, index=True)
    status: Mapped[BookingStatus] = mapped_column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False)
    commission_amount: Mapped[float] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    commission_status: Mapped[CommissionStatus] = mapped_column(Enum(CommissionStatus), default=CommissionStatus.PENDING, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    agent: Mapped[Agent | None] = relationship(back_populates="bookings")
