from datetime import date

from fastapi import Depends
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hms.database.engine import get_async_session
from hms.exceptions import GuestNotFoundException
from hms.guests.models import Guest
from hms.reservations.models import Reservation

GUEST_FIELDS = ("name", "email", "phone", "country", "document_no", "notes")
MIN_SEARCH_LENGTH = 2


def normalize_guest_fields(data: dict) -> dict:
    """Trimmed text, lower-case email, blanks dropped."""
    normalized = {}
    for field in GUEST_FIELDS:
        value = data.get(field)
        if value is None:
            continue
        value = str(value).strip()
        if not value:
            continue
        normalized[field] = value.lower() if field == "email" else value
    return normalized


def guest_search_condition(pattern: str):
    return or_(Guest.name.ilike(pattern), Guest.email.ilike(pattern), Guest.phone.ilike(pattern))


class GuestRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, hotel_id, guest_id):
        guest = await self.db.scalar(select(Guest).where(Guest.id == guest_id, Guest.hotel_id == hotel_id))
        if guest is None:
            raise GuestNotFoundException()
        return guest

    async def find_or_create(self, hotel_id, data: dict):
        """
        Bind guest details to a guest record of the hotel.

        An existing guest with the same email or phone is updated, otherwise a new
        one is added. Only flushes; the caller's transaction commits.
        """
        data = normalize_guest_fields(data)
        matches = []
        if data.get("email"):
            matches.append(Guest.email == data["email"])
        if data.get("phone"):
            matches.append(Guest.phone == data["phone"])

        guest = None
        if matches:
            guest = await self.db.scalar(
                select(Guest).where(Guest.hotel_id == hotel_id, or_(*matches)).order_by(Guest.created_at).limit(1)
            )
        if guest is None:
            guest = Guest(hotel_id=hotel_id)
            self.db.add(guest)

        for field, value in data.items():
            setattr(guest, field, value)
        await self.db.flush()
        return guest

    async def search(self, hotel_id, q: str, limit: int = 20):
        q = (q or "").strip()
        if len(q) < MIN_SEARCH_LENGTH:
            return []
        query = (
            select(Guest)
            .where(Guest.hotel_id == hotel_id, guest_search_condition(f"%{q}%"))
            .order_by(Guest.updated_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return result.scalars().all()

    async def stats(self, hotel_id, guest_id, today: date = None) -> dict:
        today = today or date.today()
        result = await self.db.execute(
            select(Reservation)
            .where(Reservation.hotel_id == hotel_id, Reservation.guest_id == guest_id)
            .order_by(Reservation.check_in.desc())
        )
        stays = result.scalars().all()
        upcoming = [stay for stay in stays if stay.check_in > today]
        return {
            "stays": len(stays),
            "total_nights": sum(max(1, (stay.check_out - stay.check_in).days) for stay in stays),
            "total_revenue": sum(stay.total_price or 0 for stay in stays),
            "last_stay": stays[0] if stays else None,
            "next_stay": upcoming[-1] if upcoming else None,
        }


async def get_guest_repository(db: AsyncSession = Depends(get_async_session)):
    return GuestRepository(db)
