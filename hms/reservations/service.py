"""
Booking workflow: every write that can consume room-nights runs the
availability check and the write under the same (hotel, room type) guard and
in the same transaction, so concurrent requests cannot oversell a night.
"""
import logging
from datetime import datetime

from fastapi import Depends
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from hms import config
from hms.availability.calendar import nights_in_range
from hms.availability.engine import AvailabilityEngine, effective_price
from hms.availability.locks import booking_guard
from hms.database.engine import get_async_session
from hms.exceptions import (
    BookingValidationException, CapacityExceededException, ConcurrentBookingException, ReservationNotFoundException,
)
from hms.guests.repository import GuestRepository
from hms.hotels.repository import HotelRepository
from hms.reservations.models import OutboxEvent, Reservation, STATUS_CANCELLED
from hms.reservations.repository import ReservationRepository

logger = logging.getLogger(__name__)

BOOKING_FIELDS = ("room_type_id", "check_in", "check_out", "rooms")


class BookingService:
    def __init__(self, db: AsyncSession, allow_unconfigured_capacity=None, max_retries=None):
        self.db = db
        self.hotels = HotelRepository(db)
        self.guests = GuestRepository(db)
        self.reservations = ReservationRepository(db)
        self.engine = AvailabilityEngine(db, allow_unconfigured_capacity=allow_unconfigured_capacity)
        self.max_retries = max(1, max_retries if max_retries is not None else config.BOOKING_MAX_RETRIES)

    async def _with_retry(self, operation, *args):
        # A write conflict restarts the whole check-and-write sequence
        for attempt in range(1, self.max_retries + 1):
            try:
                return await operation(*args)
            except OperationalError as e:
                await self.db.rollback()
                logger.warning("Booking attempt %s/%s hit a write conflict: %s", attempt, self.max_retries, e)
        raise ConcurrentBookingException()

    def _add_event(self, event_type: str, reservation: Reservation):
        self.db.add(OutboxEvent(
            event_type=event_type,
            payload={
                "reservation_id": str(reservation.id),
                "hotel_id": str(reservation.hotel_id),
                "room_type_id": str(reservation.room_type_id) if reservation.room_type_id else None,
                "check_in": reservation.check_in.isoformat(),
                "check_out": reservation.check_out.isoformat(),
                "rooms": reservation.rooms,
                "status": reservation.status,
                "timestamp": datetime.utcnow().isoformat(),
            },
        ))

    async def _stay_price(self, hotel_id, room_type_id, check_in, check_out, rooms) -> float:
        room_type = await self.engine.load_room_type(hotel_id, room_type_id)
        overrides = await self.engine.inventory.get_overrides_for_range(hotel_id, room_type_id, check_in, check_out)
        nightly = sum(effective_price(room_type, overrides.get(night)) for night in nights_in_range(check_in, check_out))
        return nightly * rooms

    async def _ensure_fits(self, hotel_id, room_type_id, check_in, check_out, rooms, exclude_id=None):
        decision = await self.engine.check_and_reserve(
            hotel_id, room_type_id, check_in, check_out, rooms, exclude_id=exclude_id, for_update=True
        )
        if not decision.accepted:
            await self.db.rollback()
            logger.info("Booking rejected for room type %s: %s", room_type_id, decision.message)
            raise CapacityExceededException(decision)

    async def _save(self, reservation: Reservation, event_type: str):
        self._add_event(event_type, reservation)
        await self.db.commit()
        await self.db.refresh(reservation)
        return reservation

    async def _bind_guest(self, hotel_id, data: dict) -> dict:
        """Resolve inline guest details or a guest id into ``guest_id``; fills a missing guest name."""
        data = dict(data)
        details = data.pop("guest", None)
        if details:
            guest = await self.guests.find_or_create(hotel_id, details)
            data["guest_id"] = guest.id
            if not data.get("guest_name"):
                data["guest_name"] = guest.name
        elif data.get("guest_id") is not None:
            await self.guests.get(hotel_id, data["guest_id"])
        if "guest_name" in data and not data["guest_name"]:
            del data["guest_name"]
        return data

    async def create_reservation(self, hotel_id, data: dict) -> Reservation:
        data = dict(data)
        data.setdefault("rooms", 1)
        return await self._with_retry(self._create_once, hotel_id, data)

    async def _create_once(self, hotel_id, data: dict) -> Reservation:
        await self.hotels.get(hotel_id)
        room_type_id = data.get("room_type_id")

        if room_type_id is None:
            return await self._insert(hotel_id, data)

        # Cancelled rows take no room-nights
        if data.get("status") == STATUS_CANCELLED:
            await self.engine.load_room_type(hotel_id, room_type_id)
            return await self._insert(hotel_id, data)

        async with booking_guard(hotel_id, room_type_id):
            await self._ensure_fits(hotel_id, room_type_id, data["check_in"], data["check_out"], data["rooms"])
            return await self._insert(hotel_id, data)

    async def _insert(self, hotel_id, data: dict) -> Reservation:
        data = await self._bind_guest(hotel_id, data)
        reservation = Reservation(hotel_id=hotel_id, **data)
        if reservation.total_price is None:
            if reservation.room_type_id is None:
                reservation.total_price = 0
            else:
                reservation.total_price = await self._stay_price(
                    hotel_id, reservation.room_type_id, reservation.check_in, reservation.check_out, reservation.rooms,
                )
        self.db.add(reservation)
        await self.db.flush()
        saved = await self._save(reservation, "reservation_created")
        logger.info(
            "Reservation %s booked: room type %s, %s..%s, %s room(s)",
            saved.id, saved.room_type_id, saved.check_in, saved.check_out, saved.rooms,
        )
        return saved

    async def update_reservation(self, hotel_id, reservation_id, changes: dict) -> Reservation:
        return await self._with_retry(self._update_once, hotel_id, reservation_id, changes, "reservation_updated")

    async def set_status(self, hotel_id, reservation_id, status: str) -> Reservation:
        return await self._with_retry(
            self._update_once, hotel_id, reservation_id, {"status": status}, "reservation_status_changed"
        )

    async def _update_once(self, hotel_id, reservation_id, changes: dict, event_type: str) -> Reservation:
        current = await self.reservations.get(hotel_id, reservation_id)
        if current is None:
            raise ReservationNotFoundException()

        merged = {field: changes.get(field, getattr(current, field)) for field in BOOKING_FIELDS}
        merged["status"] = changes.get("status", current.status)
        if merged["check_out"] <= merged["check_in"]:
            raise BookingValidationException("Check-out must be after check-in.")

        booking_changed = any(merged[field] != getattr(current, field) for field in BOOKING_FIELDS)
        reactivated = current.status == STATUS_CANCELLED and merged["status"] != STATUS_CANCELLED
        room_type_id = merged["room_type_id"]

        if room_type_id is not None and merged["status"] != STATUS_CANCELLED and (booking_changed or reactivated):
            async with booking_guard(current.hotel_id, room_type_id):
                await self._ensure_fits(
                    current.hotel_id, room_type_id, merged["check_in"], merged["check_out"], merged["rooms"],
                    exclude_id=current.id,
                )
                return await self._apply(current, changes, event_type)

        if room_type_id is not None and room_type_id != current.room_type_id:
            await self.engine.load_room_type(current.hotel_id, room_type_id)
        return await self._apply(current, changes, event_type)

    async def _apply(self, reservation: Reservation, changes: dict, event_type: str) -> Reservation:
        changes = await self._bind_guest(reservation.hotel_id, changes)
        for field, value in changes.items():
            setattr(reservation, field, value)
        return await self._save(reservation, event_type)

    async def delete_reservation(self, hotel_id, reservation_id):
        reservation = await self.reservations.get(hotel_id, reservation_id)
        if reservation is None:
            raise ReservationNotFoundException()
        self._add_event("reservation_deleted", reservation)
        await self.db.delete(reservation)
        await self.db.commit()


async def get_booking_service(db: AsyncSession = Depends(get_async_session)):
    return BookingService(db)
