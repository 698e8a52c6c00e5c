"""Room occupancy projection and lease-expiry rules."""
from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, computed_field

from ..config import settings
from ..models import PaymentStatus

logger = logging.getLogger(__name__)


class RoomStatus(str, Enum):
    VACANT = "vacant"
    PARTIAL = "partial"
    FULL = "full"


class OccupantView(BaseModel):
    id: int
    name: str
    lease_end: date
    payment_status: PaymentStatus = PaymentStatus.PENDING
    agent_assisted: bool = False
    agent_name: Optional[str] = None

    class Config:
        use_enum_values = True


class RoomOccupancy(BaseModel):
    room_id: int
    room_number: str
    room_type: str
    capacity: int
    occupants: list[OccupantView] = []

    @computed_field
    @property
    def occupied_count(self) -> int:
        return len(self.occupants)

    @computed_field
    @property
    def status(self) -> RoomStatus:
        return classify_room(self.occupied_count, self.capacity)

    @property
    def has_vacancy(self) -> bool:
        return self.occupied_count < self.capacity


class OccupancySummary(BaseModel):
    total_rooms: int = 0
    rooms_with_vacancy: int = 0
    full_rooms: int = 0
    rooms_with_expiring_leases: int = 0


def classify_room(occupied_count: int, capacity: int) -> RoomStatus:
    if occupied_count == 0:
        return RoomStatus.VACANT
    if occupied_count >= capacity:
        return RoomStatus.FULL
    return RoomStatus.PARTIAL


def days_until(lease_end: date, today: date | None = None) -> int:
    return (lease_end - (today or date.today())).days


def is_lease_expiring_soon(lease_end: date, today: date | None = None, window_days: int | None = None) -> bool:
    """True when the lease ends between today and ``window_days`` from now, both ends inclusive."""
    window = settings.LEASE_EXPIRY_WINDOW_DAYS if window_days is None else window_days
    return 0 <= days_until(lease_end, today) <= window


def room_has_expiring_lease(room: RoomOccupancy, today: date | None = None) -> bool:
    return any(is_lease_expiring_soon(o.lease_end, today) for o in room.occupants)


def build_room_occupancy(*, room_id: int, room_number: str, room_type: str, capacity: int,
                         occupants: list[OccupantView]) -> RoomOccupancy:
    room = RoomOccupancy(
        room_id=room_id,
        room_number=room_number,
        room_type=room_type,
        capacity=capacity,
        occupants=occupants,
    )
    if room.occupied_count > room.capacity:
        # Only reachable through writes that bypassed add_occupant
        logger.warning("Room %s holds %d occupants over capacity %d", room_id, room.occupied_count, capacity)
    return room


def summarize_rooms(rooms: list[RoomOccupancy], today: date | None = None) -> OccupancySummary:
    return OccupancySummary(
        total_rooms=len(rooms),
        rooms_with_vacancy=sum(1 for r in rooms if r.has_vacancy),
        full_rooms=sum(1 for r in rooms if r.status == RoomStatus.FULL),
        rooms_with_expiring_leases=sum(1 for r in rooms if room_has_expiring_lease(r, today)),
    )
