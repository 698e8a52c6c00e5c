"""
In-memory filter / sort / paginate transforms.

These run over lists the caller already fetched; none of them touch the
database or mutate their input.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date
from enum import Enum
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel

from .commissions import AgentCommission
from .occupancy import RoomOccupancy, RoomStatus, room_has_expiring_lease

T = TypeVar("T")

PAGE_WINDOW_SIZE = 5

Direction = Literal["asc", "desc"]


class RoomFilter(str, Enum):
    ALL = "all"
    VACANT = "vacant"
    OCCUPIED = "occupied"
    EXPIRING = "expiring"


BookingFilter = Literal["all", "pending", "confirmed", "cancelled"]


class SortCriteria(str, Enum):
    NAME = "name"
    COMMISSION = "commission"
    PENDING = "pending"
    PAID = "paid"
    BOOKINGS = "bookings"
    STATUS = "status"


# ==== Filters ====

def filter_agents(agents: Sequence[AgentCommission], include_inactive: bool = False,
                  include_unverified: bool = False) -> list[AgentCommission]:
    """Drop agents explicitly marked inactive/unverified unless the matching toggle relaxes it."""
    result = []
    for agent in agents:
        if not include_inactive and agent.active.is_set_false:
            continue
        if not include_unverified and agent.verified.is_set_false:
            continue
        result.append(agent)
    return result


def filter_rooms(rooms: Sequence[RoomOccupancy], room_filter: RoomFilter | str = RoomFilter.ALL,
                 today: date | None = None) -> list[RoomOccupancy]:
    room_filter = RoomFilter(room_filter)
    if room_filter == RoomFilter.VACANT:
        return [r for r in rooms if r.has_vacancy]
    if room_filter == RoomFilter.OCCUPIED:
        return [r for r in rooms if r.status == RoomStatus.FULL]
    if room_filter == RoomFilter.EXPIRING:
        return [r for r in rooms if room_has_expiring_lease(r, today)]
    return list(rooms)


def filter_bookings(bookings: Sequence[T], status: str = "all") -> list[T]:
    if not status or status == "all":
        return list(bookings)
    return [b for b in bookings if getattr(b, "status", None) == status]


# ==== Sorting ====

class SortState(BaseModel):
    criteria: SortCriteria = SortCriteria.COMMISSION
    direction: Direction = "desc"

    class Config:
        frozen = True

    def select(self, criteria: SortCriteria | str) -> "SortState":
        """Same criteria flips the direction; a new criteria starts descending."""
        criteria = SortCriteria(criteria)
        if criteria == self.criteria:
            return SortState(criteria=criteria, direction="asc" if self.direction == "desc" else "desc")
        return SortState(criteria=criteria, direction="desc")


def _agent_sort_key(criteria: SortCriteria):
    if criteria == SortCriteria.NAME:
        return lambda a: a.agent_name
    if criteria == SortCriteria.COMMISSION:
        return lambda a: a.total_commission
    if criteria == SortCriteria.PENDING:
        return lambda a: a.pending_commission
    if criteria == SortCriteria.PAID:
        return lambda a: a.paid_commission
    if criteria == SortCriteria.BOOKINGS:
        return lambda a: a.bookings_count
    # status: anything not explicitly inactive ranks as active
    return lambda a: 0 if a.active.is_set_false else 1


def sort_agents(agents: Sequence[AgentCommission], state: SortState | None = None) -> list[AgentCommission]:
    # sorted() is stable in both directions, so ties keep their input order
    state = state or SortState()
    return sorted(agents, key=_agent_sort_key(state.criteria), reverse=state.direction == "desc")


# ==== Pagination ====

class Page(BaseModel, Generic[T]):
    items: list[T]
    page: int
    per_page: int
    total_items: int
    total_pages: int
    page_numbers: list[int]


def total_pages(count: int, per_page: int) -> int:
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    return math.ceil(count / per_page)


def clamp_page(page: int, pages: int) -> int:
    if pages < 1:
        return 1
    return min(max(page, 1), pages)


def page_window(current: int, pages: int, size: int = PAGE_WINDOW_SIZE) -> list[int]:
    """Page-number buttons: everything when few pages, else a sliding window around ``current``."""
    if pages <= size:
        return list(range(1, pages + 1))
    half = size // 2
    if current <= half + 1:
        start = 1
    elif current >= pages - half:
        start = pages - size + 1
    else:
        start = current - half
    return list(range(start, start + size))


def paginate(items: Sequence[T], page: int, per_page: int) -> Page[T]:
    pages = total_pages(len(items), per_page)
    current = clamp_page(page, pages)
    start = (current - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        page=current,
        per_page=per_page,
        total_items=len(items),
        total_pages=pages,
        page_numbers=page_window(current, pages),
    )
