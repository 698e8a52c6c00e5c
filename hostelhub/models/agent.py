from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

# Business association set of an agent
agent_businesses = Table(
    "agent_businesses",
    Base.metadata,
    Column("agent_id", ForeignKey("agents.id", ondelete="CASCADE"), primary_key=True),
    Column("business_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

class Agent(Base):
    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(200))
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    phone: Mapped[str | None] = mapped_column(String(50))
    photo_url: Mapped[str | None] = mapped_column(String(500))
    # NULL means "never set", which is treated as the non-restrictive default
    active: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    verified: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)

    businesses: Mapped[list["User"]] = relationship(secondary=agent_businesses, back_populates="agents")
    hostels: Mapped[list["Hostel"]] = relationship(secondary="hostel_agents", back_populates="agents")
    bookings: Mapped[list["Booking"]] = relationship(back_populates="agent")
