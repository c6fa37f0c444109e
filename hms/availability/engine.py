"""
Availability decisions for room-type bookings.

Capacity is counted in room-nights: for every night of the requested stay the
rooms already taken by overlapping non-cancelled reservations plus the
requested rooms must fit into that night's effective allotment.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from hms import config
from hms.availability.calendar import nights_in_range, to_day
from hms.exceptions import BookingValidationException, RoomTypeNotFoundException
from hms.reservations.repository import ReservationRepository
from hms.rooms.repository import InventoryRepository, RoomTypeRepository

logger = logging.getLogger(__name__)


def effective_allotment(room_type, override=None) -> int:
    if override is not None:
        if override.stop_sell:
            return 0
        if override.allotment is not None:
            return override.allotment
    return room_type.total_rooms or 0


def effective_price(room_type, override=None) -> float:
    if override is not None and override.price is not None:
        return override.price
    return room_type.base_price or 0


def accumulate_demand(nights, reservations) -> dict[date, int]:
    """Rooms already taken on each of ``nights`` by ``reservations``."""
    demand = {night: 0 for night in nights}
    for reservation in reservations:
        for night in nights_in_range(reservation.check_in, reservation.check_out):
            if night in demand:
                demand[night] += reservation.rooms
    return demand


@dataclass(frozen=True)
class NightLoad:
    night: date
    capacity: Optional[int]
    used: int
    price: float
    stop_sell: bool

    @property
    def remaining(self) -> Optional[int]:
        if self.capacity is None:
            return None
        return max(self.capacity - self.used, 0)


@dataclass(frozen=True)
class Accept:
    unlimited: bool = False
    accepted = True


@dataclass(frozen=True)
class Reject:
    night: date
    requested: int
    remaining: int
    capacity: int
    accepted = False

    @property
    def message(self) -> str:
        return (
            f"Insufficient allotment ({self.night.isoformat()}): "
            f"requested {self.requested}, remaining {self.remaining}, capacity {self.capacity}"
        )


class AvailabilityEngine:
    def __init__(self, db: AsyncSession, allow_unconfigured_capacity: Optional[bool] = None):
        self.db = db
        self.room_types = RoomTypeRepository(db)
        self.inventory = InventoryRepository(db)
        self.reservations = ReservationRepository(db)
        if allow_unconfigured_capacity is None:
            allow_unconfigured_capacity = config.ALLOW_UNCONFIGURED_CAPACITY
        self.allow_unconfigured_capacity = allow_unconfigured_capacity

    async def load_room_type(self, hotel_id, room_type_id, for_update: bool = False):
        room_type = None
        if room_type_id is not None:
            room_type = await self.room_types.get(hotel_id, room_type_id, for_update=for_update)
        if room_type is None:
            raise RoomTypeNotFoundException()
        return room_type

    @staticmethod
    def validate_request(check_in, check_out, rooms) -> tuple[date, date]:
        start, end = to_day(check_in), to_day(check_out)
        if end <= start:
            raise BookingValidationException("Check-out must be after check-in.")
        if rooms is None or rooms <= 0:
            raise BookingValidationException("Field 'rooms' must be at least 1.")
        return start, end

    async def night_loads(self, hotel_id, room_type, start: date, end: date, exclude_id=None):
        """
        Per-night capacity and usage for [start, end).

        Returns ``(loads, unlimited)``; ``unlimited`` is set when the room type has
        no capacity configured at all and unconfigured capacity is allowed. Loads
        of an unlimited range carry the real usage and ``capacity=None``.
        """
        overrides = await self.inventory.get_overrides_for_range(hotel_id, room_type.id, start, end)
        unlimited = bool(self.allow_unconfigured_capacity and not room_type.total_rooms and not overrides)

        nights = nights_in_range(start, end)
        overlapping = await self.reservations.find_overlapping(
            hotel_id, room_type.id, start, end, exclude_id=exclude_id
        )
        demand = accumulate_demand(nights, overlapping)

        loads = []
        for night in nights:
            override = overrides.get(night)
            loads.append(NightLoad(
                night=night,
                capacity=None if unlimited else effective_allotment(room_type, override),
                used=demand[night],
                price=effective_price(room_type, override),
                stop_sell=bool(override is not None and override.stop_sell),
            ))
        return loads, unlimited

    async def check_and_reserve(
        self,
        hotel_id,
        room_type_id,
        check_in,
        check_out,
        rooms: int,
        exclude_id=None,
        for_update: bool = False,
    ):
        """
        Decide whether ``rooms`` rooms of the room type can be booked for the stay.

        Only reads; persisting the reservation is up to the caller, which must hold
        the booking guard for (hotel, room type) across this call and its write.
        The earliest night that does not fit is reported, not the worst one.
        """
        room_type = await self.load_room_type(hotel_id, room_type_id, for_update=for_update)
        start, end = self.validate_request(check_in, check_out, rooms)

        loads, unlimited = await self.night_loads(hotel_id, room_type, start, end, exclude_id=exclude_id)
        if unlimited:
            logger.info("Room type %s has no configured capacity, accepting %s room(s)", room_type.id, rooms)
            return Accept(unlimited=True)

        for load in loads:
            if load.used + rooms > load.capacity:
                return Reject(
                    night=load.night,
                    requested=rooms,
                    remaining=load.remaining,
                    capacity=load.capacity,
                )
        return Accept()
