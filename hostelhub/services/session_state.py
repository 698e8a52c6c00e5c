"""
Per-session dashboard state: selected filters, sort, current page, expanded
rows, and the single-flight marker for agent status changes.

One DashboardSession exists per signed-in business and lives in the
SessionRegistry held on ``app.state``; nothing here is a module global.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Literal, Optional

from ..errors import ToggleInProgress
from .listing import RoomFilter, SortCriteria, SortState

logger = logging.getLogger(__name__)

ExpandKind = Literal["agent", "room"]


@dataclass
class DashboardSession:
    sort: SortState = field(default_factory=SortState)
    include_inactive: bool = True
    include_unverified: bool = True
    room_filter: RoomFilter = RoomFilter.ALL
    booking_filter: str = "all"
    current_page: int = 1
    expanded_agents: set[int] = field(default_factory=set)
    expanded_rooms: set[int] = field(default_factory=set)
    processing_agent_id: Optional[int] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def select_sort(self, criteria: SortCriteria | str) -> SortState:
        self.sort = self.sort.select(criteria)
        return self.sort

    def set_agent_filters(self, include_inactive: Optional[bool] = None,
                          include_unverified: Optional[bool] = None) -> None:
        changed = False
        if include_inactive is not None and include_inactive != self.include_inactive:
            self.include_inactive = include_inactive
            changed = True
        if include_unverified is not None and include_unverified != self.include_unverified:
            self.include_unverified = include_unverified
            changed = True
        if changed:
            self.current_page = 1

    def toggle_expanded(self, kind: ExpandKind, item_id: int) -> bool:
        """Flip a row open/closed; returns True when it is now expanded."""
        rows = self.expanded_agents if kind == "agent" else self.expanded_rooms
        if item_id in rows:
            rows.discard(item_id)
            return False
        rows.add(item_id)
        return True

    @contextmanager
    def agent_toggle(self, agent_id: int) -> Iterator[None]:
        """
        Hold the processing marker for the duration of a status change.

        Raises ToggleInProgress when another change from this session has not
        finished yet. The marker is released on success and on failure.
        """
        with self._lock:
            if self.processing_agent_id is not None:
                raise ToggleInProgress(
                    f"Agent {self.processing_agent_id} is still being updated"
                )
            self.processing_agent_id = agent_id
        try:
            yield
        finally:
            with self._lock:
                self.processing_agent_id = None


class SessionRegistry:
    def __init__(self):
        self._sessions: dict[int, DashboardSession] = {}
        self._lock = threading.Lock()

    def get(self, key: int) -> DashboardSession:
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = DashboardSession()
                self._sessions[key] = session
                logger.debug("Created dashboard session for %s", key)
            return session

    def discard(self, key: int) -> bool:
        """
        Drop the session for key. A session whose agent toggle is still in
        flight is kept so the marker keeps guarding that agent; returns False
        in that case.
        """
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                return True
            if session.processing_agent_id is not None:
                logger.info("Keeping dashboard session for %s: agent %s is still being updated",
                            key, session.processing_agent_id)
                return False
            del self._sessions[key]
            return True
