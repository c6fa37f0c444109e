import asyncio
from collections import Counter
from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from hms.availability.calendar import nights_in_range
from hms.exceptions import CapacityExceededException, ConcurrentBookingException
from hms.reservations.models import Reservation
from hms.reservations.service import BookingService


async def test_simultaneous_posts_for_last_room(client, hotel, make_room_type, staff_headers):
    room_type = await make_room_type(total_rooms=1)
    body = {
        "guest_name": "Guest",
        "room_type_id": str(room_type.id),
        "check_in": "2030-09-01",
        "check_out": "2030-09-03",
    }

    responses = await asyncio.gather(
        client.post("/api/reservations", json=body, headers=staff_headers),
        client.post("/api/reservations", json=body, headers=staff_headers),
    )

    assert sorted(response.status_code for response in responses) == [201, 409]


async def test_many_bookings_never_oversell(session_factory, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=2)
    hotel_id, room_type_id = hotel.id, room_type.id
    stays = [
        (date(2030, 9, 1), date(2030, 9, 4)),
        (date(2030, 9, 2), date(2030, 9, 3)),
        (date(2030, 9, 3), date(2030, 9, 5)),
        (date(2030, 9, 1), date(2030, 9, 2)),
        (date(2030, 9, 2), date(2030, 9, 5)),
    ]

    async def attempt(check_in, check_out):
        async with session_factory() as s:
            return await BookingService(s).create_reservation(hotel_id, {
                "room_type_id": room_type_id,
                "guest_name": "Guest",
                "check_in": check_in,
                "check_out": check_out,
                "rooms": 1,
            })

    results = await asyncio.gather(*(attempt(*stay) for stay in stays), return_exceptions=True)

    rejected = [r for r in results if isinstance(r, Exception)]
    assert all(isinstance(r, CapacityExceededException) for r in rejected)
    assert len(rejected) < len(stays)

    async with session_factory() as s:
        booked = (await s.execute(select(Reservation))).scalars().all()
    load = Counter()
    for reservation in booked:
        for night in nights_in_range(reservation.check_in, reservation.check_out):
            load[night] += reservation.rooms
    assert len(booked) == len(stays) - len(rejected)
    assert max(load.values()) <= 2


async def test_same_stay_five_times_fills_exactly_capacity(session_factory, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=2)
    hotel_id, room_type_id = hotel.id, room_type.id

    async def attempt():
        async with session_factory() as s:
            return await BookingService(s).create_reservation(hotel_id, {
                "room_type_id": room_type_id,
                "guest_name": "Guest",
                "check_in": date(2030, 10, 1),
                "check_out": date(2030, 10, 3),
                "rooms": 1,
            })

    results = await asyncio.gather(*(attempt() for _ in range(5)), return_exceptions=True)

    accepted = [r for r in results if isinstance(r, Reservation)]
    rejected = [r for r in results if isinstance(r, CapacityExceededException)]
    assert len(accepted) == 2
    assert len(rejected) == 3
    assert {r.rejection.night for r in rejected} == {date(2030, 10, 1)}


def write_conflict():
    return OperationalError("SELECT room_types", {}, Exception("database is locked"))


async def test_write_conflict_reruns_the_booking(session_factory, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=1)
    hotel_id, room_type_id = hotel.id, room_type.id

    async with session_factory() as s:
        service = BookingService(s, max_retries=3)
        check = service.engine.check_and_reserve
        calls = []

        async def flaky_check(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise write_conflict()
            return await check(*args, **kwargs)

        service.engine.check_and_reserve = flaky_check
        reservation = await service.create_reservation(hotel_id, {
            "room_type_id": room_type_id,
            "guest_name": "Guest",
            "check_in": date(2030, 11, 1),
            "check_out": date(2030, 11, 2),
        })
        reservation_id = reservation.id

    assert len(calls) == 2
    async with session_factory() as s:
        booked = (await s.execute(select(Reservation))).scalars().all()
    assert [r.id for r in booked] == [reservation_id]
    assert booked[0].rooms == 1


async def test_exhausted_retries_return_409(session_factory, hotel, make_room_type):
    room_type = await make_room_type(total_rooms=1)
    hotel_id, room_type_id = hotel.id, room_type.id

    async with session_factory() as s:
        service = BookingService(s, max_retries=2)
        calls = []

        async def always_conflicts(*args, **kwargs):
            calls.append(args)
            raise write_conflict()

        service.engine.check_and_reserve = always_conflicts
        with pytest.raises(ConcurrentBookingException) as excinfo:
            await service.create_reservation(hotel_id, {
                "room_type_id": room_type_id,
                "guest_name": "Guest",
                "check_in": date(2030, 11, 1),
                "check_out": date(2030, 11, 2),
                "rooms": 1,
            })

    assert len(calls) == 2
    assert excinfo.value.status_code == 409
    assert excinfo.value.detail["status"] == "fail"
    async with session_factory() as s:
        assert (await s.execute(select(Reservation))).scalars().all() == []
