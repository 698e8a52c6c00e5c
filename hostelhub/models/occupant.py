from __future__ import annotations
from datetime import date
from typing import TYPE_CHECKING
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, ForeignKey, Date, Enum, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

if TYPE_CHECKING:
    from .room import Room

class PaymentStatus(str, PyEnum):
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"

class Occupant(Base):
    __tablename__ = "occupants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    lease_end: Mapped[date] = mapped_column(Date, nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    agent_assisted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    agent_name: Mapped[str | None] = mapped_column(String(200))

    room: Mapped[Room] = relationship(back_populates="occupants")
