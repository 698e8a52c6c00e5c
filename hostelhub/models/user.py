from datetime import datetime
from sqlalchemy import Integer, String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base
from enum import Enum

class UserRole(str, Enum):
    ADMIN = "admin"
    BUSINESS = "business"
    STUDENT = "student"

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.STUDENT, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    currency: Mapped[str] = mapped_column(String(8), default="NGN", nullable=False)

    # Business profile (only meaningful for role == business)
    business_name: Mapped[str | None] = mapped_column(String(200))
    phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(String(300))
    description: Mapped[str | None] = mapped_column(Text)

    # A business owns hostels via hostels.business_id -> users.id
    hostels: Mapped[list["Hostel"]] = relationship(back_populates="business", cascade="all, delete-orphan")

    # Agents serving this business (an agent may serve several businesses)
    agents: Mapped[list["Agent"]] = relationship(secondary="agent_businesses", back_populates="businesses")

    @property
    def is_business(self) -> bool:
        return self.role == UserRole.BUSINESS
