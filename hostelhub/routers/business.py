from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..models import PaymentStatus, User
from ..security import require_business
from ..services.activity import ActivityOut, get_recent_activities
from ..services.business import (
    AgentDetail, AgentHostel, AgentSummary, BookingSummary, BusinessService, DashboardStats,
)
from ..services.commissions import AgentCommission
from ..services.hostels import HostelDetail, HostelIn, HostelSummary, HostelUpdateIn
from ..services.listing import (
    BookingFilter, Direction, Page, RoomFilter, SortCriteria, SortState, filter_agents, filter_rooms,
    paginate, sort_agents,
)
from ..services.occupancy import OccupancySummary, RoomOccupancy, summarize_rooms
from ..services.reporting import generate_commission_csv, generate_commission_pdf
from ..services.session_state import DashboardSession, ExpandKind

router = APIRouter(prefix="/api/v1/business", tags=["business"])


def get_service(db: Session = Depends(get_db), business: User = Depends(require_business)) -> BusinessService:
    return BusinessService(db, business)


def get_dashboard_session(request: Request, business: User = Depends(require_business)) -> DashboardSession:
    return request.app.state.sessions.get(business.id)


# ==== Schemas ====

class AgentListOut(BaseModel):
    sort: SortState
    include_inactive: bool
    include_unverified: bool
    items: List[AgentCommission]
    page: int
    per_page: int
    total_items: int
    total_pages: int
    page_numbers: List[int]


class AgentStatusIn(BaseModel):
    make_active: bool = Field(alias="makeActive")

    class Config:
        populate_by_name = True


class AgentStatusOut(BaseModel):
    agent: Optional[AgentCommission] = None
    agents: List[AgentCommission]


class AgentIn(BaseModel):
    display_name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=255)
    phone: Optional[str] = None
    profile_image: Optional[str] = None


class RoomListOut(BaseModel):
    filter: RoomFilter
    summary: OccupancySummary
    rooms: List[RoomOccupancy]


class RoomIn(BaseModel):
    room_number: str = Field(min_length=1, max_length=20)
    room_type: str = "Standard"
    capacity: int = Field(default=1, ge=1)


class OccupantIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    lease_end: date
    payment_status: PaymentStatus = PaymentStatus.PENDING
    agent_name: Optional[str] = None


class CreatedOut(BaseModel):
    id: int


class SortIn(BaseModel):
    criteria: SortCriteria


class FiltersIn(BaseModel):
    include_inactive: Optional[bool] = None
    include_unverified: Optional[bool] = None
    room_filter: Optional[RoomFilter] = None
    booking_filter: Optional[BookingFilter] = None


class ExpandIn(BaseModel):
    kind: ExpandKind
    id: int


class SessionOut(BaseModel):
    sort: SortState
    include_inactive: bool
    include_unverified: bool
    room_filter: RoomFilter
    booking_filter: str
    current_page: int
    expanded_agents: List[int]
    expanded_rooms: List[int]
    processing_agent_id: Optional[int] = None


def _session_out(session: DashboardSession) -> SessionOut:
    return SessionOut(
        sort=session.sort,
        include_inactive=session.include_inactive,
        include_unverified=session.include_unverified,
        room_filter=session.room_filter,
        booking_filter=session.booking_filter,
        current_page=session.current_page,
        expanded_agents=sorted(session.expanded_agents),
        expanded_rooms=sorted(session.expanded_rooms),
        processing_agent_id=session.processing_agent_id,
    )


def _agent_page(agents: list[AgentCommission], session: DashboardSession, page: int | None = None,
                per_page: int | None = None) -> Page:
    visible = filter_agents(agents, session.include_inactive, session.include_unverified)
    ordered = sort_agents(visible, session.sort)
    result = paginate(ordered, page or session.current_page, per_page or settings.ITEMS_PER_PAGE)
    session.current_page = result.page
    return result


async def _read_uploads(files: list[UploadFile]) -> list[tuple[bytes, str]]:
    return [(await f.read(), f.filename or "upload") for f in files]


# ==== Dashboard ====

@router.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(service: BusinessService = Depends(get_service)):
    return service.get_dashboard_stats()


@router.get("/dashboard/occupancy-chart")
def occupancy_chart(service: BusinessService = Depends(get_service)):
    return service.get_occupancy_chart_data()


@router.get("/activities", response_model=List[ActivityOut])
def activities(limit: int = 5, type: Optional[str] = None, db: Session = Depends(get_db),
               business: User = Depends(require_business)):
    return get_recent_activities(db, business.id, limit=limit, type=type)


# ==== Agents & commissions ====

@router.get("/agents", response_model=AgentListOut)
def list_agent_commissions(
    limit: Optional[int] = Query(default=None, ge=1),
    hostel_id: Optional[int] = None,
    include_inactive: Optional[bool] = None,
    include_unverified: Optional[bool] = None,
    sort: Optional[SortCriteria] = None,
    direction: Optional[Direction] = None,
    page: Optional[int] = Query(default=None, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1, le=100),
    service: BusinessService = Depends(get_service),
    session: DashboardSession = Depends(get_dashboard_session),
):
    """
    Agents with commission aggregates, filtered, sorted and paginated.
    Explicit query values are remembered in the dashboard session; omitted
    ones fall back to it.
    """
    session.set_agent_filters(include_inactive, include_unverified)
    if sort is not None:
        session.sort = SortState(criteria=sort, direction=direction or "desc")
    elif direction is not None:
        session.sort = SortState(criteria=session.sort.criteria, direction=direction)
    agents = service.get_agent_commissions(limit=limit or settings.AGENT_COMMISSIONS_MAX_LIMIT, hostel_id=hostel_id)
    result = _agent_page(agents, session, page, per_page)
    return AgentListOut(
        sort=session.sort,
        include_inactive=session.include_inactive,
        include_unverified=session.include_unverified,
        items=result.items,
        page=result.page,
        per_page=result.per_page,
        total_items=result.total_items,
        total_pages=result.total_pages,
        page_numbers=result.page_numbers,
    )


@router.post("/agents", response_model=CreatedOut, status_code=201)
def create_agent(payload: AgentIn, service: BusinessService = Depends(get_service)):
    return CreatedOut(id=service.add_agent(payload.display_name, payload.email, payload.phone, payload.profile_image))


@router.get("/agents/all", response_model=List[AgentSummary])
def list_business_agents(limit: int = 50, service: BusinessService = Depends(get_service)):
    return service.get_business_agents(limit=limit)


@router.get("/agents/{agent_id}", response_model=AgentDetail)
def agent_detail(agent_id: int, service: BusinessService = Depends(get_service)):
    return service.get_agent_by_id(agent_id)


@router.get("/agents/{agent_id}/hostels", response_model=List[AgentHostel])
def agent_hostels(agent_id: int, service: BusinessService = Depends(get_service)):
    return service.get_hostels_for_agent(agent_id)


@router.post("/agents/{agent_id}/status", response_model=AgentStatusOut)
def set_agent_status(
    agent_id: int,
    payload: AgentStatusIn,
    service: BusinessService = Depends(get_service),
    session: DashboardSession = Depends(get_dashboard_session),
):
    agents = service.reconcile_agent_status(session, agent_id, payload.make_active)
    refreshed = next((a for a in agents if a.agent_id == agent_id), None)
    return AgentStatusOut(agent=refreshed, agents=agents)


@router.get("/agents/{agent_id}/statement.csv")
def agent_statement_csv(agent_id: int, service: BusinessService = Depends(get_service)):
    detail = service.get_agent_by_id(agent_id)
    return Response(
        content=generate_commission_csv(detail.agent),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=commissions_agent_{agent_id}.csv"},
    )


@router.get("/agents/{agent_id}/statement.pdf")
def agent_statement_pdf(agent_id: int, service: BusinessService = Depends(get_service)):
    detail = service.get_agent_by_id(agent_id)
    return Response(
        content=generate_commission_pdf(detail.agent, service.business),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=commissions_agent_{agent_id}.pdf"},
    )


# ==== Bookings ====

@router.get("/bookings/recent", response_model=List[BookingSummary])
def recent_bookings(
    limit: int = Query(default=3, ge=1),
    status: Optional[BookingFilter] = None,
    service: BusinessService = Depends(get_service),
    session: DashboardSession = Depends(get_dashboard_session),
):
    if status is not None:
        session.booking_filter = status
    return service.get_recent_bookings(limit=limit, status=session.booking_filter)


@router.post("/bookings/{booking_id}/commission/paid", status_code=204)
def mark_commission_paid(booking_id: int, service: BusinessService = Depends(get_service)):
    service.mark_commission_paid(booking_id)
    return Response(status_code=204)


# ==== Hostels ====

@router.get("/hostels", response_model=List[HostelSummary])
def list_hostels(service: BusinessService = Depends(get_service)):
    return service.get_business_hostels()


@router.post("/hostels", response_model=CreatedOut, status_code=201)
def create_hostel(payload: HostelIn, service: BusinessService = Depends(get_service)):
    return CreatedOut(id=service.add_hostel(payload))


@router.get("/hostels/{hostel_id}", response_model=HostelDetail)
def hostel_detail(hostel_id: int, service: BusinessService = Depends(get_service)):
    return service.get_hostel_details(hostel_id)


@router.patch("/hostels/{hostel_id}", response_model=HostelDetail)
def edit_hostel(hostel_id: int, payload: HostelUpdateIn, service: BusinessService = Depends(get_service)):
    return service.update_hostel(hostel_id, payload)


@router.post("/hostels/{hostel_id}/images", response_model=HostelDetail)
async def upload_hostel_images(hostel_id: int, files: List[UploadFile] = File(...),
                               service: BusinessService = Depends(get_service)):
    images = await _read_uploads(files)
    return service.update_hostel(hostel_id, HostelUpdateIn(), new_images=images)


@router.delete("/hostels/{hostel_id}", status_code=204)
def remove_hostel(hostel_id: int, service: BusinessService = Depends(get_service)):
    service.delete_hostel(hostel_id)
    return Response(status_code=204)


@router.get("/hostels/{hostel_id}/agents", response_model=List[AgentSummary])
def hostel_agents(hostel_id: int, service: BusinessService = Depends(get_service)):
    return service.get_assigned_agents(hostel_id)


@router.put("/hostels/{hostel_id}/agents/{agent_id}", status_code=204)
def assign_agent(hostel_id: int, agent_id: int, service: BusinessService = Depends(get_service)):
    service.assign_agent_to_hostel(hostel_id, agent_id)
    return Response(status_code=204)


@router.delete("/hostels/{hostel_id}/agents/{agent_id}", status_code=204)
def unassign_agent(hostel_id: int, agent_id: int, service: BusinessService = Depends(get_service)):
    service.remove_agent_from_hostel(hostel_id, agent_id)
    return Response(status_code=204)


# ==== Rooms ====

@router.get("/hostels/{hostel_id}/rooms", response_model=RoomListOut)
def list_rooms(
    hostel_id: int,
    limit: Optional[int] = Query(default=None, ge=1),
    filter: Optional[RoomFilter] = None,
    service: BusinessService = Depends(get_service),
    session: DashboardSession = Depends(get_dashboard_session),
):
    if filter is not None:
        session.room_filter = filter
    rooms = service.get_room_occupancy(hostel_id, limit=limit)
    return RoomListOut(
        filter=session.room_filter,
        summary=summarize_rooms(rooms),
        rooms=filter_rooms(rooms, session.room_filter),
    )


@router.post("/hostels/{hostel_id}/rooms", response_model=CreatedOut, status_code=201)
def create_room(hostel_id: int, payload: RoomIn, service: BusinessService = Depends(get_service)):
    return CreatedOut(id=service.add_room(hostel_id, payload.room_number, payload.room_type, payload.capacity))


@router.post("/rooms/{room_id}/occupants", response_model=CreatedOut, status_code=201)
def create_occupant(room_id: int, payload: OccupantIn, service: BusinessService = Depends(get_service)):
    return CreatedOut(id=service.add_occupant(room_id, payload.name, payload.lease_end, payload.payment_status, payload.agent_name))


# ==== Dashboard session state ====

@router.get("/session", response_model=SessionOut)
def dashboard_session(session: DashboardSession = Depends(get_dashboard_session)):
    return _session_out(session)


@router.post("/session/sort", response_model=SessionOut)
def select_sort(payload: SortIn, session: DashboardSession = Depends(get_dashboard_session)):
    session.select_sort(payload.criteria)
    return _session_out(session)


@router.post("/session/filters", response_model=SessionOut)
def set_filters(payload: FiltersIn, session: DashboardSession = Depends(get_dashboard_session)):
    session.set_agent_filters(payload.include_inactive, payload.include_unverified)
    if payload.room_filter is not None:
        session.room_filter = payload.room_filter
    if payload.booking_filter is not None:
        session.booking_filter = payload.booking_filter
    return _session_out(session)


@router.post("/session/expand", response_model=SessionOut)
def toggle_expanded(payload: ExpandIn, session: DashboardSession = Depends(get_dashboard_session)):
    session.toggle_expanded(payload.kind, payload.id)
    return _session_out(session)
