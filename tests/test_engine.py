import uuid
from datetime import date
from types import SimpleNamespace

import pytest
from sqlalchemy import delete

from hms.availability.engine import (
    Accept, AvailabilityEngine, Reject, accumulate_demand, effective_allotment, effective_price,
)
from hms.availability.calendar import nights_in_range
from hms.exceptions import BookingValidationException, RoomTypeNotFoundException
from hms.hotels.repository import HotelRepository
from hms.reservations.models import Reservation
from hms.rooms.models import InventoryDay
from hms.rooms.repository import InventoryRepository


def MAR(day):
    return date(2030, 3, day)


async def book(session, hotel, room_type, check_in, check_out, rooms=1, status="confirmed"):
    reservation = Reservation(
        hotel_id=hotel.id,
        room_type_id=room_type.id if room_type is not None else None,
        guest_name="Guest",
        check_in=check_in,
        check_out=check_out,
        rooms=rooms,
        status=status,
        total_price=0,
    )
    session.add(reservation)
    await session.commit()
    return reservation


# ---------- pure rules ----------

def test_effective_allotment_rules():
    room_type = SimpleNamespace(total_rooms=2, base_price=100.0)
    assert effective_allotment(room_type, None) == 2
    assert effective_allotment(room_type, SimpleNamespace(stop_sell=False, allotment=None)) == 2
    assert effective_allotment(room_type, SimpleNamespace(stop_sell=False, allotment=5)) == 5
    assert effective_allotment(room_type, SimpleNamespace(stop_sell=True, allotment=5)) == 0


def test_effective_price_rules():
    room_type = SimpleNamespace(total_rooms=2, base_price=100.0)
    assert effective_price(room_type, None) == 100.0
    assert effective_price(room_type, SimpleNamespace(price=None)) == 100.0
    assert effective_price(room_type, SimpleNamespace(price=140.0)) == 140.0


def test_demand_only_counts_requested_nights():
    nights = nights_in_range(MAR(11), MAR(13))
    reservations = [
        SimpleNamespace(check_in=MAR(10), check_out=MAR(12), rooms=2),
        SimpleNamespace(check_in=MAR(12), check_out=MAR(15), rooms=1),
    ]
    assert accumulate_demand(nights, reservations) == {MAR(11): 2, MAR(12): 1}


def test_reject_message():
    reject = Reject(night=MAR(11), requested=1, remaining=0, capacity=2)
    assert reject.message == "Insufficient allotment (2030-03-11): requested 1, remaining 0, capacity 2"
    assert not reject.accepted
    assert Accept().accepted


# ---------- engine against the database ----------

async def test_rejects_first_full_night(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=2)
    await book(session, hotel, room_type, MAR(10), MAR(12), rooms=2)

    decision = await AvailabilityEngine(session).check_and_reserve(hotel.id, room_type.id, MAR(11), MAR(13), 1)

    assert decision == Reject(night=MAR(11), requested=1, remaining=0, capacity=2)


async def test_checkout_day_is_free_for_next_checkin(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=2)
    await book(session, hotel, room_type, MAR(10), MAR(12), rooms=2)

    decision = await AvailabilityEngine(session).check_and_reserve(hotel.id, room_type.id, MAR(12), MAR(14), 1)

    assert decision == Accept()


async def test_back_to_back_stays_at_full_capacity(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=3)
    await book(session, hotel, room_type, MAR(5), MAR(8), rooms=3)
    await book(session, hotel, room_type, MAR(10), MAR(12), rooms=3)

    decision = await AvailabilityEngine(session).check_and_reserve(hotel.id, room_type.id, MAR(8), MAR(10), 3)

    assert decision.accepted


async def test_earliest_violating_night_wins(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=3)
    await book(session, hotel, room_type, MAR(11), MAR(12), rooms=2)
    await book(session, hotel, room_type, MAR(13), MAR(14), rooms=3)

    decision = await AvailabilityEngine(session).check_and_reserve(hotel.id, room_type.id, MAR(10), MAR(15), 2)

    assert decision == Reject(night=MAR(11), requested=2, remaining=1, capacity=3)


async def test_override_allotment_raises_capacity(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=2)
    await InventoryRepository(session).bulk_upsert(hotel.id, room_type.id, MAR(15), MAR(16), allotment=5, stop_sell=False)

    decision = await AvailabilityEngine(session).check_and_reserve(hotel.id, room_type.id, MAR(15), MAR(16), 4)

    assert decision.accepted


async def test_stop_sell_rejects_any_request(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=10)
    await InventoryRepository(session).bulk_upsert(hotel.id, room_type.id, MAR(20), MAR(21), allotment=8, stop_sell=True)

    decision = await AvailabilityEngine(session).check_and_reserve(hotel.id, room_type.id, MAR(19), MAR(22), 1)

    assert decision == Reject(night=MAR(20), requested=1, remaining=0, capacity=0)


async def test_removing_overrides_falls_back_to_total_rooms(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=2)
    engine = AvailabilityEngine(session)
    await InventoryRepository(session).bulk_upsert(hotel.id, room_type.id, MAR(1), MAR(5), allotment=0)
    assert not (await engine.check_and_reserve(hotel.id, room_type.id, MAR(1), MAR(5), 1)).accepted

    await session.execute(delete(InventoryDay).where(InventoryDay.room_type_id == room_type.id))
    await session.commit()

    loads, unlimited = await engine.night_loads(hotel.id, room_type, MAR(1), MAR(5))
    assert not unlimited
    assert [load.capacity for load in loads] == [2, 2, 2, 2]
    assert (await engine.check_and_reserve(hotel.id, room_type.id, MAR(1), MAR(5), 2)).accepted
    assert not (await engine.check_and_reserve(hotel.id, room_type.id, MAR(1), MAR(5), 3)).accepted


async def test_pending_counts_and_cancelled_does_not(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=2)
    await book(session, hotel, room_type, MAR(10), MAR(11), rooms=1, status="pending")
    await book(session, hotel, room_type, MAR(10), MAR(11), rooms=1, status="cancelled")
    engine = AvailabilityEngine(session)

    assert (await engine.check_and_reserve(hotel.id, room_type.id, MAR(10), MAR(11), 1)).accepted
    assert not (await engine.check_and_reserve(hotel.id, room_type.id, MAR(10), MAR(11), 2)).accepted


async def test_exclude_id_ignores_the_edited_reservation(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=2)
    existing = await book(session, hotel, room_type, MAR(10), MAR(12), rooms=2)
    engine = AvailabilityEngine(session)

    assert not (await engine.check_and_reserve(hotel.id, room_type.id, MAR(10), MAR(13), 2)).accepted
    decision = await engine.check_and_reserve(hotel.id, room_type.id, MAR(10), MAR(13), 2, exclude_id=existing.id)
    assert decision.accepted


async def test_other_room_types_and_unassigned_reservations_do_not_count(session, hotel, make_room_type):
    standard = await make_room_type(code="STD", total_rooms=1)
    deluxe = await make_room_type(code="DLX", total_rooms=1)
    await book(session, hotel, deluxe, MAR(10), MAR(12), rooms=1)
    await book(session, hotel, None, MAR(10), MAR(12), rooms=4)

    decision = await AvailabilityEngine(session).check_and_reserve(hotel.id, standard.id, MAR(10), MAR(12), 1)

    assert decision.accepted


async def test_unconfigured_capacity_is_rejected_by_default(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=0)

    decision = await AvailabilityEngine(session, allow_unconfigured_capacity=False).check_and_reserve(
        hotel.id, room_type.id, MAR(10), MAR(11), 1
    )

    assert decision == Reject(night=MAR(10), requested=1, remaining=0, capacity=0)


async def test_unconfigured_capacity_escape_hatch(session, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=0)
    engine = AvailabilityEngine(session, allow_unconfigured_capacity=True)

    assert await engine.check_and_reserve(hotel.id, room_type.id, MAR(10), MAR(11), 50) == Accept(unlimited=True)

    # Any override row switches back to counted capacity
    await InventoryRepository(session).bulk_upsert(hotel.id, room_type.id, MAR(10), MAR(11), allotment=1)
    decision = await engine.check_and_reserve(hotel.id, room_type.id, MAR(10), MAR(12), 1)
    assert decision == Reject(night=MAR(11), requested=1, remaining=0, capacity=0)


@pytest.mark.parametrize(
    "check_in, check_out, rooms",
    [
        (MAR(12), MAR(12), 1),
        (MAR(13), MAR(12), 1),
        (MAR(10), MAR(12), 0),
        (MAR(10), MAR(12), -1),
    ],
)
async def test_invalid_requests(session, hotel, make_room_type, check_in, check_out, rooms):
    room_type = await make_room_type()

    with pytest.raises(BookingValidationException):
        await AvailabilityEngine(session).check_and_reserve(hotel.id, room_type.id, check_in, check_out, rooms)


async def test_missing_room_type(session, hotel, make_room_type):
    with pytest.raises(RoomTypeNotFoundException):
        await AvailabilityEngine(session).check_and_reserve(hotel.id, uuid.uuid4(), MAR(10), MAR(11), 1)


async def test_room_type_of_another_hotel_is_not_found(session, hotel, make_room_type):
    room_type = await make_room_type()
    other = await HotelRepository(session).create({"code": "ank1", "name": "Ankara Hotel"})

    with pytest.raises(RoomTypeNotFoundException):
        await AvailabilityEngine(session).check_and_reserve(other.id, room_type.id, MAR(10), MAR(11), 1)
