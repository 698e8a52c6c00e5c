from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric, Text, JSON, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

# Agents a hostel lets refer students to it
hostel_agents = Table(
    "hostel_agents",
    Base.metadata,
    Column("hostel_id", ForeignKey("hostels.id", ondelete="CASCADE"), primary_key=True),
    Column("agent_id", ForeignKey("agents.id", ondelete="CASCADE"), primary_key=True),
)

class Hostel(Base):
    __tablename__ = "hostels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    business_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # Flattened "address, city, state"; structured parts live in location_details
    location: Mapped[str | None] = mapped_column(String(300))
    location_details: Mapped[dict | None] = mapped_column(JSON)
    price_per_year: Mapped[float | None] = mapped_column(Numeric(12, 2))
    room_types: Mapped[list] = mapped_column(JSON, default=list)
    available_rooms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    amenities: Mapped[list] = mapped_column(JSON, default=list)
    contact: Mapped[dict | None] = mapped_column(JSON)
    rules: Mapped[str | None] = mapped_column(Text)
    image_urls: Mapped[list] = mapped_column(JSON, default=list)
    geolocation: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)

    business: Mapped["User"] = relationship(back_populates="hostels")
    rooms: Mapped[list["Room"]] = relationship(back_populates="hostel", cascade="all, delete-orphan")
    agents: Mapped[list["Agent"]] = relationship(secondary=hostel_agents, back_populates="hostels")

    @property
    def primary_image_url(self) -> str | None:
        return self.image_urls[0] if self.image_urls else None
