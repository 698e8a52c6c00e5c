from sqlalchemy import Integer, String, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (CheckConstraint("capacity >= 1", name="ck_rooms_capacity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    hostel_id: Mapped[int] = mapped_column(ForeignKey("hostels.id"), nullable=False, index=True)
    room_number: Mapped[str] = mapped_column(String(20), nullable=False)
    room_type: Mapped[str] = mapped_column(String(50), nullable=False, default="Standard")
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    hostel: Mapped["Hostel"] = relationship(back_populates="rooms")
    # No stored occupied count: it is always len(occupants)
    occupants: Mapped[list["Occupant"]] = relationship(back_populates="room", cascade="all, delete-orphan")
