from datetime import date

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hms.guests.models import Guest
from hms.guests.repository import guest_search_condition
from hms.reservations.models import Reservation, STATUS_CANCELLED


class ReservationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_overlapping(self, hotel_id, room_type_id, check_in: date, check_out: date, exclude_id=None):
        """
        Non-cancelled reservations of the room type intersecting [check_in, check_out).

        Intervals are half-open: a stay checking out on ``check_in`` does not overlap.
        """
        query = select(Reservation).where(
            Reservation.hotel_id == hotel_id,
            Reservation.room_type_id == room_type_id,
            Reservation.status != STATUS_CANCELLED,
            Reservation.check_in < check_out,
            Reservation.check_out > check_in,
        )
        if exclude_id is not None:
            query = query.where(Reservation.id != exclude_id)
        result = await self.db.execute(query)
        return result.scalars().all()

    async def get(self, hotel_id, reservation_id):
        query = select(Reservation).where(Reservation.id == reservation_id)
        if hotel_id is not None:
            query = query.where(Reservation.hotel_id == hotel_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list(
        self,
        hotel_id=None,
        status=None,
        channel=None,
        start: date = None,
        end: date = None,
        guest=None,
        page: int = 1,
        limit: int = 20,
    ):
        """Page of reservations, newest check-in first, plus the total match count."""
        conditions = []
        if hotel_id is not None:
            conditions.append(Reservation.hotel_id == hotel_id)
        if status:
            conditions.append(Reservation.status == status)
        if channel:
            conditions.append(Reservation.channel == channel)
        # Stays touching the [start, end] window
        if end is not None:
            conditions.append(Reservation.check_in <= end)
        if start is not None:
            conditions.append(Reservation.check_out >= start)
        if guest and guest.strip():
            pattern = f"%{guest.strip()}%"
            # Matches the inline name or any contact field of the bound guest
            guests = select(Guest.id).where(guest_search_condition(pattern))
            if hotel_id is not None:
                guests = guests.where(Guest.hotel_id == hotel_id)
            conditions.append(or_(Reservation.guest_name.ilike(pattern), Reservation.guest_id.in_(guests)))

        total = await self.db.scalar(select(func.count()).select_from(Reservation).where(*conditions))
        query = (
            select(Reservation)
            .where(*conditions)
            .order_by(Reservation.check_in.desc(), Reservation.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return result.scalars().all(), total or 0
