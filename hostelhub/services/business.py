"""
Business dashboard service: queries against the entity store folded into the
derived views in ``commissions`` and ``occupancy``, plus the thin commands
(hostels, agents, status toggles, commission settlement).

Read policy: list reads are fail-empty. A rejected query is logged and the
caller gets an empty list, which the dashboard shows as "no data". Pass
``strict=True`` where a caller must tell "empty" apart from "failed"; it then
raises ReadFailure. Single-record reads raise NotFound/ReadFailure.
Writes roll back and raise PersistFailure on any store error.
"""
from __future__ import annotations

import logging
import random
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import Forbidden, NotFound, PersistFailure, ReadFailure, Unauthenticated, ValidationFailure
from ..models import (
    Agent, Booking, BookingStatus, CommissionStatus, Hostel, Occupant, PaymentStatus, Room, User,
)
from . import media
from .activity import record_activity
from .commissions import (
    AgentBooking, AgentCommission, Flag, FlagField, HostelRollup, Money, PaymentRecord,
    build_agent_commission, hostel_rollup, payment_history, to_money,
)
from .currency import format_money
from .hostels import (
    HostelDetail, HostelIn, HostelSummary, HostelUpdateIn, normalize_location, price_label,
)
from .listing import filter_bookings
from .occupancy import OccupantView, RoomOccupancy, build_room_occupancy
from .session_state import DashboardSession

logger = logging.getLogger(__name__)

AVATAR_URL_TEMPLATE = "https://randomuser.me/api/portraits/lego/{n}.jpg"


class AgentSummary(BaseModel):
    agent_id: int
    agent_name: str
    profile_image: str
    active: FlagField = Flag.UNSET
    verified: FlagField = Flag.UNSET


class AgentDetail(BaseModel):
    agent: AgentCommission
    hostels: list[HostelRollup]
    payment_history: list[PaymentRecord]


class AgentHostel(BaseModel):
    id: int
    name: str
    location: str = ""


class BookingSummary(BaseModel):
    id: int
    student_name: str
    hostel_name: str
    date: str
    amount: Money = Decimal("0")
    status: BookingStatus = BookingStatus.PENDING

    class Config:
        use_enum_values = True


class DashboardStats(BaseModel):
    total_revenue: str
    pending_payments: str
    projected_revenue: str
    total_bookings: int = 0
    pending_requests: int = 0
    confirmed_bookings: int = 0
    occupancy_rate: int = 0


class BusinessService:
    def __init__(self, db: Session, business: Optional[User]):
        self.db = db
        self.business = business

    # ------------------------------------------------------------------ #
    # Guards & helpers
    # ------------------------------------------------------------------ #
    def _require_business(self) -> User:
        if self.business is None or not self.business.is_business:
            raise Unauthenticated()
        return self.business

    @property
    def currency(self) -> str:
        return getattr(self.business, "currency", None) or settings.DEFAULT_CURRENCY

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Error %s", action)
            raise PersistFailure(f"Could not {action}") from exc

    def _read_failed(self, message: str, strict: bool, exc: Exception):
        self.db.rollback()
        if strict:
            raise ReadFailure(message) from exc
        logger.exception(message)

    def _owned_hostel(self, hostel_id: int, hide_foreign: bool = False) -> Hostel:
        business = self._require_business()
        hostel = self.db.query(Hostel).get(hostel_id)
        if not hostel or (hide_foreign and hostel.business_id != business.id):
            raise NotFound("Hostel not found")
        if hostel.business_id != business.id:
            raise Forbidden("You do not own this hostel")
        return hostel

    def _business_agent(self, agent_id: int) -> Agent:
        business = self._require_business()
        agent = self.db.query(Agent).get(agent_id)
        if not agent:
            raise NotFound("Agent not found")
        if business not in agent.businesses:
            raise Forbidden("This agent is not associated with your business")
        return agent

    @staticmethod
    def _agent_name(agent: Agent) -> str:
        return agent.display_name or "Unknown Agent"

    @staticmethod
    def _profile_image(agent: Agent) -> str:
        return agent.photo_url or settings.DEFAULT_AGENT_AVATAR_URL

    def _agent_summary(self, agent: Agent) -> AgentSummary:
        return AgentSummary(
            agent_id=agent.id,
            agent_name=self._agent_name(agent),
            profile_image=self._profile_image(agent),
            active=Flag.from_stored(agent.active),
            verified=Flag.from_stored(agent.verified),
        )

    @staticmethod
    def _to_agent_booking(b: Booking) -> AgentBooking:
        return AgentBooking(
            id=b.id,
            hostel_id=b.hostel_id,
            hostel_name=b.hostel_name or "Unknown Hostel",
            room_number=b.room_number or "Unknown",
            student_name=b.student_name or "Unknown Student",
            booking_date=(b.booking_date or (b.created_at or datetime.utcnow()).date()).isoformat(),
            amount=to_money(b.amount),
            commission_amount=to_money(b.commission_amount),
            commission_status=b.commission_status or CommissionStatus.PENDING,
        )

    def _agent_bookings(self, agent_id: int, business_id: int, hostel_id: int | None = None) -> list[AgentBooking]:
        # Both ids must match so an agent serving several businesses never leaks bookings across them
        q = self.db.query(Booking).filter(Booking.agent_id == agent_id, Booking.business_id == business_id)
        if hostel_id is not None:
            q = q.filter(Booking.hostel_id == hostel_id)
        return [self._to_agent_booking(b) for b in q.order_by(Booking.id.asc()).all()]

    def _agent_commission(self, agent: Agent, bookings: list[AgentBooking]) -> AgentCommission:
        return build_agent_commission(
            agent_id=agent.id,
            agent_name=self._agent_name(agent),
            profile_image=self._profile_image(agent),
            active=agent.active,
            verified=agent.verified,
            bookings=bookings,
        )

    @staticmethod
    def _clamp_limit(limit: int | None, default: int, maximum: int | None = None) -> int:
        if limit is None:
            return default
        limit = max(int(limit), 1)
        return min(limit, maximum) if maximum else limit

    # ------------------------------------------------------------------ #
    # Agent commissions
    # ------------------------------------------------------------------ #
    def get_agent_commissions(self, limit: int | None = None, hostel_id: int | None = None,
                              strict: bool = False) -> list[AgentCommission]:
        """
        Every agent associated with the business, with commission aggregates
        and full booking lists.

        With ``hostel_id`` only that hostel's bookings count and agents without
        any booking there are left out. An agent whose booking query fails is
        dropped (never returned with zeroed totals).
        """
        business = self._require_business()
        limit = self._clamp_limit(limit, settings.AGENT_COMMISSIONS_DEFAULT_LIMIT, settings.AGENT_COMMISSIONS_MAX_LIMIT)
        try:
            agents = (
                self.db.query(Agent)
                .filter(Agent.businesses.any(User.id == business.id))
                .order_by(Agent.id.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            self._read_failed("Error fetching agent commissions", strict, exc)
            return []

        results: list[AgentCommission] = []
        for agent in agents:
            try:
                bookings = self._agent_bookings(agent.id, business.id, hostel_id)
            except SQLAlchemyError as exc:
                self._read_failed(f"Error fetching bookings for agent {agent.id}; agent dropped", strict, exc)
                continue
            if hostel_id is not None and not bookings:
                continue
            results.append(self._agent_commission(agent, bookings))
        return results

    def get_agent_by_id(self, agent_id: int) -> AgentDetail:
        """One agent's aggregate plus the per-hostel rollup and paid-commission history."""
        business = self._require_business()
        try:
            agent = self.db.query(Agent).get(agent_id)
            if not agent or business not in agent.businesses:
                raise NotFound("Agent not found")
            bookings = self._agent_bookings(agent.id, business.id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise ReadFailure("Could not load agent details") from exc
        return AgentDetail(
            agent=self._agent_commission(agent, bookings),
            hostels=hostel_rollup(bookings),
            payment_history=payment_history(bookings),
        )

    def toggle_agent_active_status(self, agent_id: int, make_active: bool) -> None:
        """Persist the agent's active flag. On failure nothing changes and PersistFailure is raised."""
        agent = self._business_agent(agent_id)
        agent.active = make_active
        agent.updated_at = datetime.utcnow()
        self._commit("update agent status")
        logger.info("Agent %s %s by business %s", agent_id, "activated" if make_active else "deactivated", self.business.id)

    def reconcile_agent_status(self, session: DashboardSession, agent_id: int, make_active: bool,
                               limit: int | None = None) -> list[AgentCommission]:
        """
        Toggle under the session's single-flight marker, then re-derive the
        whole agent list from the store. Cached aggregates are never patched.
        No re-fetch happens when the toggle fails.
        """
        with session.agent_toggle(agent_id):
            self.toggle_agent_active_status(agent_id, make_active)
        return self.get_agent_commissions(limit=limit or settings.AGENT_COMMISSIONS_MAX_LIMIT)

    def mark_commission_paid(self, booking_id: int) -> None:
        business = self._require_business()
        booking = self.db.query(Booking).get(booking_id)
        if not booking or booking.business_id != business.id:
            raise NotFound("Booking not found")
        if booking.agent_id is None:
            raise ValidationFailure("Booking was not referred by an agent")
        booking.commission_status = CommissionStatus.PAID
        self._commit("mark commission as paid")

    # ------------------------------------------------------------------ #
    # Agents
    # ------------------------------------------------------------------ #
    def add_agent(self, display_name: str, email: str, phone: str | None = None,
                  profile_image: str | None = None) -> int:
        business = self._require_business()
        agent = Agent(
            display_name=display_name.strip(),
            email=email.strip().lower(),
            phone=(phone or "").strip(),
            photo_url=profile_image or AVATAR_URL_TEMPLATE.format(n=random.randint(1, 9)),
            verified=False,
            active=True,
        )
        agent.businesses.append(business)
        self.db.add(agent)
        self._commit("add agent")
        return agent.id

    def get_business_agents(self, limit: int = 50) -> list[AgentSummary]:
        business = self._require_business()
        try:
            agents = (
                self.db.query(Agent)
                .filter(Agent.businesses.any(User.id == business.id))
                .order_by(Agent.id.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            self._read_failed("Error fetching business agents", False, exc)
            return []
        return [self._agent_summary(a) for a in agents]

    def get_assigned_agents(self, hostel_id: int) -> list[AgentSummary]:
        hostel = self._owned_hostel(hostel_id)
        return [self._agent_summary(a) for a in hostel.agents]

    def assign_agent_to_hostel(self, hostel_id: int, agent_id: int) -> None:
        hostel = self._owned_hostel(hostel_id)
        agent = self._business_agent(agent_id)
        if agent not in hostel.agents:
            hostel.agents.append(agent)
            self._commit("assign agent to hostel")

    def remove_agent_from_hostel(self, hostel_id: int, agent_id: int) -> None:
        hostel = self._owned_hostel(hostel_id)
        remaining = [a for a in hostel.agents if a.id != agent_id]
        if len(remaining) != len(hostel.agents):
            hostel.agents = remaining
            self._commit("remove agent from hostel")

    def get_hostels_for_agent(self, agent_id: int) -> list[AgentHostel]:
        business = self._require_business()
        try:
            agent = self.db.query(Agent).get(agent_id)
            if not agent or business not in agent.businesses:
                return []
            hostels = (
                self.db.query(Hostel)
                .filter(Hostel.business_id == business.id, Hostel.agents.any(Agent.id == agent_id))
                .order_by(Hostel.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            self._read_failed(f"Error fetching hostels for agent {agent_id}", False, exc)
            return []
        return [AgentHostel(id=h.id, name=h.name or "Unnamed Hostel", location=h.location or "") for h in hostels]

    # ------------------------------------------------------------------ #
    # Rooms
    # ------------------------------------------------------------------ #
    def get_room_occupancy(self, hostel_id: int, limit: int | None = None,
                           strict: bool = False) -> list[RoomOccupancy]:
        """Rooms of one hostel in store order, each with its occupants. The occupied count is always derived."""
        self._owned_hostel(hostel_id, hide_foreign=True)
        limit = self._clamp_limit(limit, settings.ROOM_OCCUPANCY_DEFAULT_LIMIT)
        try:
            rooms = (
                self.db.query(Room)
                .filter(Room.hostel_id == hostel_id)
                .order_by(Room.id.asc())
                .limit(limit)
                .all()
            )
            result = []
            for room in rooms:
                occupants = (
                    self.db.query(Occupant)
                    .filter(Occupant.room_id == room.id)
                    .order_by(Occupant.id.asc())
                    .all()
                )
                result.append(build_room_occupancy(
                    room_id=room.id,
                    room_number=room.room_number or "Unknown",
                    room_type=room.room_type or "Standard",
                    capacity=room.capacity or 1,
                    occupants=[
                        OccupantView(
                            id=o.id,
                            name=o.name or "Unknown",
                            lease_end=o.lease_end,
                            payment_status=o.payment_status or PaymentStatus.PENDING,
                            agent_assisted=bool(o.agent_assisted),
                            agent_name=o.agent_name,
                        )
                        for o in occupants
                    ],
                ))
        except SQLAlchemyError as exc:
            self._read_failed(f"Error fetching room occupancy for hostel {hostel_id}", strict, exc)
            return []
        return result

    def add_room(self, hostel_id: int, room_number: str, room_type: str = "Standard", capacity: int = 1) -> int:
        self._owned_hostel(hostel_id)
        if capacity < 1:
            raise ValidationFailure("Room capacity must be at least 1")
        room = Room(hostel_id=hostel_id, room_number=room_number.strip(), room_type=room_type.strip() or "Standard", capacity=capacity)
        self.db.add(room)
        self._commit("add room")
        return room.id

    def add_occupant(self, room_id: int, name: str, lease_end: date,
                     payment_status: PaymentStatus = PaymentStatus.PENDING,
                     agent_name: str | None = None) -> int:
        room = self.db.query(Room).get(room_id)
        if not room:
            raise NotFound("Room not found")
        self._owned_hostel(room.hostel_id)
        occupied = self.db.query(Occupant).filter(Occupant.room_id == room_id).count()
        if occupied >= room.capacity:
            raise ValidationFailure(f"Room {room.room_number} is full")
        occupant = Occupant(
            room_id=room_id,
            name=name.strip(),
            lease_end=lease_end,
            payment_status=payment_status,
            agent_assisted=bool(agent_name),
            agent_name=agent_name,
        )
        self.db.add(occupant)
        self._commit("add occupant")
        return occupant.id

    # ------------------------------------------------------------------ #
    # Hostels
    # ------------------------------------------------------------------ #
    def get_business_hostels(self) -> list[HostelSummary]:
        business = self._require_business()
        try:
            hostels = (
                self.db.query(Hostel)
                .filter(Hostel.business_id == business.id)
                .order_by(Hostel.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            self._read_failed("Error fetching business hostels", False, exc)
            return []
        return [
            HostelSummary(
                id=h.id,
                name=h.name or "Unnamed Hostel",
                location=h.location or "",
                image_url=h.primary_image_url,
                available_rooms=h.available_rooms or 0,
            )
            for h in hostels
        ]

    def _hostel_detail(self, hostel: Hostel) -> HostelDetail:
        return HostelDetail(
            id=hostel.id,
            business_id=hostel.business_id,
            name=hostel.name,
            description=hostel.description,
            location=hostel.location,
            location_details=hostel.location_details,
            price_per_year=float(hostel.price_per_year) if hostel.price_per_year is not None else None,
            price_label=price_label(hostel.price_per_year, self.currency),
            room_types=hostel.room_types or [],
            available_rooms=hostel.available_rooms or 0,
            amenities=hostel.amenities or [],
            contact=hostel.contact,
            rules=hostel.rules,
            image_urls=hostel.image_urls or [],
            image_url=hostel.primary_image_url,
            geolocation=hostel.geolocation,
            agent_ids=[a.id for a in hostel.agents],
            created_at=hostel.created_at,
            updated_at=hostel.updated_at,
        )

    def get_hostel_details(self, hostel_id: int) -> HostelDetail:
        return self._hostel_detail(self._owned_hostel(hostel_id))

    @staticmethod
    def _upload_images(images: list[tuple[bytes, str]], business_id: int) -> list[str]:
        urls = []
        for data, filename in images:
            url = media.save_image(data, filename, folder=f"hostels/{business_id}")
            if url:
                urls.append(url)
            else:
                logger.warning("Skipped image %s: not a valid image", filename)
        return urls

    def add_hostel(self, payload: HostelIn, images: list[tuple[bytes, str]] = ()) -> int:
        business = self._require_business()
        uploaded = self._upload_images(list(images), business.id)
        location, details = normalize_location(payload.location)
        hostel = Hostel(
            business_id=business.id,
            name=payload.name.strip(),
            description=payload.description,
            location=location,
            location_details=details,
            price_per_year=payload.price_per_year,
            room_types=list(payload.room_types),
            available_rooms=payload.available_rooms,
            amenities=list(payload.amenities),
            contact=payload.contact.model_dump() if payload.contact else None,
            rules=payload.rules,
            image_urls=uploaded + list(payload.image_urls),
            geolocation=payload.geolocation.model_dump() if payload.geolocation else None,
        )
        self.db.add(hostel)
        self._commit("add hostel")
        logger.info("Hostel %s added for business %s", hostel.id, business.id)
        record_activity(
            self.db,
            user_id=business.id,
            type="add_hostel",
            title=f"Added hostel: {hostel.name}",
            description="A new hostel was added to your properties",
            entity_id=str(hostel.id),
            entity_type="hostel",
        )
        return hostel.id

    def update_hostel(self, hostel_id: int, payload: HostelUpdateIn,
                      new_images: list[tuple[bytes, str]] = ()) -> HostelDetail:
        hostel = self._owned_hostel(hostel_id)
        changes = payload.model_dump(exclude_unset=True, exclude={"existing_images", "location"})
        for key, value in changes.items():
            setattr(hostel, key, value)
        if "location" in payload.model_fields_set:
            hostel.location, hostel.location_details = normalize_location(payload.location)
        kept = list(payload.existing_images) if payload.existing_images is not None else list(hostel.image_urls or [])
        hostel.image_urls = kept + self._upload_images(list(new_images), hostel.business_id)
        hostel.updated_at = datetime.utcnow()
        self._commit("update hostel")
        return self._hostel_detail(hostel)

    def delete_hostel(self, hostel_id: int) -> None:
        """
        Delete a hostel, then best-effort remove its stored images and record
        the action. Cleanup failures are logged and never undo the delete.
        """
        hostel = self._owned_hostel(hostel_id)
        name = hostel.name
        image_urls = list(hostel.image_urls or [])
        self.db.delete(hostel)
        self._commit("delete hostel")

        for url in image_urls:
            media.delete_image(url)

        record_activity(
            self.db,
            user_id=self.business.id,
            type="delete_hostel",
            title=f"Deleted hostel: {name}",
            description="Hostel was permanently removed from your properties",
            entity_id=str(hostel_id),
            entity_type="hostel",
        )
        logger.info("Hostel %s deleted by business %s", hostel_id, self.business.id)

    # ------------------------------------------------------------------ #
    # Bookings & dashboard
    # ------------------------------------------------------------------ #
    def get_recent_bookings(self, limit: int = 3, status: str = "all") -> list[BookingSummary]:
        """Newest bookings first, narrowed to one status unless it is "all"."""
        business = self._require_business()
        if status and status != "all":
            try:
                BookingStatus(status)
            except ValueError:
                raise ValidationFailure(f"Unknown booking status: {status}") from None
        try:
            bookings = (
                self.db.query(Booking)
                .filter(Booking.business_id == business.id)
                .order_by(Booking.created_at.desc(), Booking.id.desc())
                .all()
            )
        except SQLAlchemyError as exc:
            self._read_failed("Error fetching recent bookings", False, exc)
            return []
        summaries = [
            BookingSummary(
                id=b.id,
                student_name=b.student_name or "Unknown Student",
                hostel_name=b.hostel_name or "Unknown Hostel",
                date=(b.created_at or datetime.utcnow()).date().isoformat(),
                amount=to_money(b.amount),
                status=b.status or BookingStatus.PENDING,
            )
            for b in bookings
        ]
        return filter_bookings(summaries, status)[:limit]

    def _empty_stats(self) -> DashboardStats:
        zero = format_money(0, self.currency)
        return DashboardStats(total_revenue=zero, pending_payments=zero, projected_revenue=zero)

    def get_dashboard_stats(self) -> DashboardStats:
        """Revenue, booking counts and occupancy derived from bookings and rooms; zeros on read failure."""
        business = self._require_business()
        try:
            bookings = self.db.query(Booking).filter(Booking.business_id == business.id).all()
            rooms = (
                self.db.query(Room)
                .join(Hostel, Room.hostel_id == Hostel.id)
                .filter(Hostel.business_id == business.id)
                .all()
            )
            capacity = sum(r.capacity or 0 for r in rooms)
            occupied = (
                self.db.query(Occupant).filter(Occupant.room_id.in_([r.id for r in rooms])).count()
                if rooms else 0
            )
        except SQLAlchemyError as exc:
            self._read_failed("Error fetching business stats", False, exc)
            return self._empty_stats()

        revenue = sum((to_money(b.amount) for b in bookings if b.status == BookingStatus.CONFIRMED), Decimal("0"))
        pending = sum((to_money(b.amount) for b in bookings if b.status == BookingStatus.PENDING), Decimal("0"))
        return DashboardStats(
            total_revenue=format_money(revenue, self.currency),
            pending_payments=format_money(pending, self.currency),
            projected_revenue=format_money(revenue + pending, self.currency),
            total_bookings=len(bookings),
            pending_requests=sum(1 for b in bookings if b.status == BookingStatus.PENDING),
            confirmed_bookings=sum(1 for b in bookings if b.status == BookingStatus.CONFIRMED),
            occupancy_rate=round(100 * occupied / capacity) if capacity else 0,
        )

    def get_occupancy_chart_data(self) -> dict:
        occupied = self.get_dashboard_stats().occupancy_rate
        return {
            "labels": ["Occupied", "Vacant"],
            "datasets": [
                {
                    "label": "Occupancy",
                    "data": [occupied, 100 - occupied],
                    "backgroundColor": ["#4F46E5", "#E5E7EB"],
                    "borderColor": ["#4F46E5", "#E5E7EB"],
                    "borderWidth": 1,
                }
            ],
        }
