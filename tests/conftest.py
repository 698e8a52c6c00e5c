import os

# Configure before the app modules read settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CLOUDINARY_URL"] = ""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hostelhub.config import settings
from hostelhub.db import Base, get_db
from hostelhub.main import app
from hostelhub.models import (
    Agent, Booking, BookingStatus, CommissionStatus, Hostel, Occupant, PaymentStatus, Room, User, UserRole,
)
from hostelhub.security import session_token
from hostelhub.services.session_state import SessionRegistry


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.state.sessions = SessionRegistry()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    def _login(user):
        client.cookies.set(settings.SESSION_COOKIE_NAME, session_token(user.id))
        return client
    return _login


# ==== Factories ====

@pytest.fixture
def make_business(db):
    counter = {"n": 0}

    def _make(business_name="Campus Stays", currency="NGN", role=UserRole.BUSINESS):
        counter["n"] += 1
        user = User(
            email=f"owner{counter['n']}@example.com",
            hashed_password="not-a-real-hash",
            role=role,
            business_name=business_name,
            currency=currency,
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def make_hostel(db):
    def _make(business, name="Sunrise Hostel", image_urls=None, location="12 College Rd, Ibadan, Oyo"):
        hostel = Hostel(
            business_id=business.id,
            name=name,
            location=location,
            image_urls=list(image_urls or []),
            room_types=["Single", "Double"],
            amenities=["WiFi"],
            price_per_year=Decimal("150000"),
            available_rooms=4,
        )
        db.add(hostel)
        db.commit()
        return hostel
    return _make


@pytest.fixture
def make_room(db):
    def _make(hostel, room_number="101", capacity=2, room_type="Double"):
        room = Room(hostel_id=hostel.id, room_number=room_number, capacity=capacity, room_type=room_type)
        db.add(room)
        db.commit()
        return room
    return _make


@pytest.fixture
def make_occupant(db):
    def _make(room, name="Ada", lease_end=date(2030, 1, 1), payment_status=PaymentStatus.PAID, agent_name=None):
        occupant = Occupant(
            room_id=room.id,
            name=name,
            lease_end=lease_end,
            payment_status=payment_status,
            agent_assisted=bool(agent_name),
            agent_name=agent_name,
        )
        db.add(occupant)
        db.commit()
        return occupant
    return _make


@pytest.fixture
def make_agent(db):
    def _make(business, name="Agent", active=True, verified=True, photo_url=None):
        agent = Agent(display_name=name, email=f"{name.lower().replace(' ', '.')}@agents.test",
                      active=active, verified=verified, photo_url=photo_url)
        businesses = business if isinstance(business, (list, tuple)) else [business]
        agent.businesses.extend(businesses)
        db.add(agent)
        db.commit()
        return agent
    return _make


@pytest.fixture
def make_booking(db):
    def _make(business, agent=None, hostel=None, commission="0", paid=False, booking_date=date(2024, 1, 1),
              amount="100000", status=BookingStatus.CONFIRMED, hostel_name=None, room_number="101",
              student_name="Student"):
        booking = Booking(
            business_id=business.id,
            agent_id=agent.id if agent else None,
            hostel_id=hostel.id if hostel else None,
            hostel_name=hostel_name or (hostel.name if hostel else None),
            room_number=room_number,
            student_name=student_name,
            amount=Decimal(amount),
            booking_date=booking_date,
            status=BookingStatus(status),
            commission_amount=Decimal(commission),
            commission_status=CommissionStatus.PAID if paid else CommissionStatus.PENDING,
        )
        db.add(booking)
        db.commit()
        return booking
    return _make
