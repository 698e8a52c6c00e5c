from datetime import date, timedelta
from decimal import Decimal

import pytest

from hostelhub.models import PaymentStatus
from hostelhub.services.commissions import AgentCommission, Flag
from hostelhub.services.listing import (
    RoomFilter, SortCriteria, SortState, clamp_page, filter_agents, filter_bookings, filter_rooms,
    page_window, paginate, sort_agents, total_pages,
)
from hostelhub.services.occupancy import OccupantView, build_room_occupancy

TODAY = date(2025, 6, 1)


def _agent(agent_id, name="Agent", total="0", paid="0", bookings=0, active=Flag.UNSET, verified=Flag.UNSET):
    total, paid = Decimal(total), Decimal(paid)
    return AgentCommission(
        agent_id=agent_id,
        agent_name=name,
        profile_image="a.jpg",
        active=active,
        verified=verified,
        total_commission=total,
        paid_commission=paid,
        pending_commission=total - paid,
        bookings_count=bookings,
    )


def _ids(agents):
    return [a.agent_id for a in agents]


# ==== filters ====

@pytest.fixture
def mixed_agents():
    return [
        _agent(1, active=Flag.TRUE, verified=Flag.TRUE),
        _agent(2, active=Flag.FALSE, verified=Flag.TRUE),
        _agent(3, active=Flag.TRUE, verified=Flag.FALSE),
        _agent(4),
        _agent(5, active=Flag.FALSE, verified=Flag.FALSE),
    ]


def test_filter_excludes_only_explicit_false(mixed_agents):
    assert _ids(filter_agents(mixed_agents)) == [1, 4]


def test_filter_toggles_relax_independently(mixed_agents):
    assert _ids(filter_agents(mixed_agents, include_inactive=True)) == [1, 2, 4]
    assert _ids(filter_agents(mixed_agents, include_unverified=True)) == [1, 3, 4]
    assert _ids(filter_agents(mixed_agents, True, True)) == [1, 2, 3, 4, 5]


@pytest.mark.parametrize("inactive,unverified", [(False, False), (False, True), (True, False)])
def test_relaxing_a_filter_never_shrinks_the_result(mixed_agents, inactive, unverified):
    narrow = set(_ids(filter_agents(mixed_agents, inactive, unverified)))
    assert narrow <= set(_ids(filter_agents(mixed_agents, True, unverified)))
    assert narrow <= set(_ids(filter_agents(mixed_agents, inactive, True)))


def test_filter_does_not_mutate_input(mixed_agents):
    before = list(mixed_agents)
    filter_agents(mixed_agents)
    assert mixed_agents == before


def _room(room_id, capacity, days_left):
    occupants = [
        OccupantView(id=room_id * 10 + i, name="x", lease_end=TODAY + timedelta(days=d),
                     payment_status=PaymentStatus.PAID)
        for i, d in enumerate(days_left)
    ]
    return build_room_occupancy(room_id=room_id, room_number=str(room_id), room_type="Shared",
                                capacity=capacity, occupants=occupants)


def test_room_filters():
    rooms = [_room(1, 2, []), _room(2, 2, [200]), _room(3, 1, [10]), _room(4, 2, [200, 200])]
    assert [r.room_id for r in filter_rooms(rooms, RoomFilter.ALL, TODAY)] == [1, 2, 3, 4]
    assert [r.room_id for r in filter_rooms(rooms, "vacant", TODAY)] == [1, 2]
    assert [r.room_id for r in filter_rooms(rooms, RoomFilter.OCCUPIED, TODAY)] == [3, 4]
    assert [r.room_id for r in filter_rooms(rooms, RoomFilter.EXPIRING, TODAY)] == [3]


def test_booking_filter():
    class B:
        def __init__(self, status):
            self.status = status

    bookings = [B("pending"), B("confirmed"), B("pending")]
    assert len(filter_bookings(bookings, "all")) == 3
    assert len(filter_bookings(bookings, "pending")) == 2
    assert filter_bookings(bookings, "cancelled") == []


# ==== sorting ====

def test_default_sort_is_total_commission_desc():
    agents = [_agent(1, total="100"), _agent(2, total="300"), _agent(3, total="200")]
    assert _ids(sort_agents(agents)) == [2, 3, 1]


def test_sort_by_name_is_case_sensitive():
    agents = [_agent(1, name="bola"), _agent(2, name="Chidi"), _agent(3, name="Ade")]
    assert _ids(sort_agents(agents, SortState(criteria=SortCriteria.NAME, direction="asc"))) == [3, 2, 1]


def test_sort_numeric_criteria():
    agents = [
        _agent(1, total="500", paid="100", bookings=3),
        _agent(2, total="400", paid="400", bookings=1),
        _agent(3, total="300", paid="0", bookings=2),
    ]
    assert _ids(sort_agents(agents, SortState(criteria="pending"))) == [1, 3, 2]
    assert _ids(sort_agents(agents, SortState(criteria="paid"))) == [2, 1, 3]
    assert _ids(sort_agents(agents, SortState(criteria="bookings", direction="asc"))) == [2, 3, 1]


def test_status_sort_is_stable_and_active_first():
    agents = [
        _agent(1, active=Flag.FALSE),
        _agent(2, active=Flag.TRUE),
        _agent(3),
        _agent(4, active=Flag.FALSE),
        _agent(5, active=Flag.TRUE),
    ]
    assert _ids(sort_agents(agents, SortState(criteria="status", direction="desc"))) == [2, 3, 5, 1, 4]
    assert _ids(sort_agents(agents, SortState(criteria="status", direction="asc"))) == [1, 4, 2, 3, 5]


def test_selecting_same_criteria_flips_direction():
    state = SortState()
    assert (state.criteria, state.direction) == (SortCriteria.COMMISSION, "desc")
    state = state.select("commission")
    assert state.direction == "asc"
    state = state.select("commission")
    assert state.direction == "desc"


def test_selecting_new_criteria_resets_to_desc():
    state = SortState(criteria="name", direction="asc").select("bookings")
    assert (state.criteria, state.direction) == (SortCriteria.BOOKINGS, "desc")


# ==== pagination ====

def test_twenty_three_items_make_three_pages():
    items = list(range(23))
    assert total_pages(len(items), 10) == 3
    assert [len(paginate(items, p, 10).items) for p in (1, 2, 3)] == [10, 10, 3]


def test_out_of_range_page_is_clamped():
    items = list(range(23))
    assert paginate(items, 4, 10).page == 3
    assert paginate(items, 4, 10).items == list(range(20, 23))
    assert paginate(items, 0, 10).page == 1


def test_empty_list_has_zero_pages():
    page = paginate([], 1, 10)
    assert page.total_pages == 0
    assert page.items == []
    assert page.page == 1
    assert page.page_numbers == []


def test_total_pages_rejects_bad_page_size():
    with pytest.raises(ValueError):
        total_pages(5, 0)


def test_clamp_page():
    assert clamp_page(-3, 5) == 1
    assert clamp_page(9, 5) == 5
    assert clamp_page(2, 0) == 1


@pytest.mark.parametrize("current,expected", [
    (1, [1, 2, 3, 4, 5]),
    (3, [1, 2, 3, 4, 5]),
    (4, [2, 3, 4, 5, 6]),
    (7, [5, 6, 7, 8, 9]),
    (8, [6, 7, 8, 9, 10]),
    (10, [6, 7, 8, 9, 10]),
])
def test_page_window(current, expected):
    assert page_window(current, 10) == expected


def test_page_window_shows_all_when_few_pages():
    assert page_window(2, 4) == [1, 2, 3, 4]
