import logging

from fastapi import Depends
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hms.database.engine import get_async_session
from hms.exceptions import HotelCodeTakenException, HotelNotFoundException
from hms.guests.models import Guest
from hms.hotels.models import Hotel
from hms.reservations.models import Reservation
from hms.rooms.models import InventoryDay, RoomType

logger = logging.getLogger(__name__)

# Rows owned by a hotel, in delete order
HOTEL_OWNED = (Reservation, InventoryDay, RoomType, Guest)


def normalize_hotel_fields(data: dict) -> dict:
    """Applied to every hotel write: upper-case code and currency, trimmed text."""
    data = dict(data)
    for field in ("code", "currency"):
        if data.get(field) is not None:
            data[field] = str(data[field]).strip().upper()
    for field in ("name", "city", "address", "phone", "timezone"):
        if data.get(field) is not None:
            data[field] = str(data[field]).strip()
    return data


class HotelRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, hotel_id=None, q=None, page: int = 1, limit: int = 20):
        """Page of hotels, newest first, optionally matching ``q`` in name, code or city."""
        conditions = []
        if hotel_id is not None:
            conditions.append(Hotel.id == hotel_id)
        if q and q.strip():
            pattern = f"%{q.strip()}%"
            conditions.append(or_(Hotel.name.ilike(pattern), Hotel.code.ilike(pattern), Hotel.city.ilike(pattern)))

        total = await self.db.scalar(select(func.count()).select_from(Hotel).where(*conditions))
        query = (
            select(Hotel)
            .where(*conditions)
            .order_by(Hotel.created_at.desc(), Hotel.name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return result.scalars().all(), total or 0

    async def get(self, hotel_id):
        hotel = await self.db.get(Hotel, hotel_id)
        if hotel is None:
            raise HotelNotFoundException()
        return hotel

    async def _ensure_code_free(self, code, exclude_id=None):
        query = select(Hotel.id).where(Hotel.code == code)
        if exclude_id is not None:
            query = query.where(Hotel.id != exclude_id)
        if await self.db.scalar(query) is not None:
            raise HotelCodeTakenException()

    async def create(self, data: dict):
        data = normalize_hotel_fields(data)
        await self._ensure_code_free(data["code"])

        hotel = Hotel(**data)
        self.db.add(hotel)
        await self.db.commit()
        await self.db.refresh(hotel)
        return hotel

    async def update(self, hotel_id, data: dict):
        hotel = await self.get(hotel_id)
        data = normalize_hotel_fields(data)
        if data.get("code") and data["code"] != hotel.code:
            await self._ensure_code_free(data["code"], exclude_id=hotel.id)

        for field, value in data.items():
            setattr(hotel, field, value)
        await self.db.commit()
        await self.db.refresh(hotel)
        return hotel

    async def set_active(self, hotel_id, active: bool):
        return await self.update(hotel_id, {"active": active})

    async def delete(self, hotel_id):
        hotel = await self.get(hotel_id)
        code = hotel.code
        for model in HOTEL_OWNED:
            await self.db.execute(delete(model).where(model.hotel_id == hotel_id))
        await self.db.delete(hotel)
        await self.db.commit()
        logger.info("Hotel %s (%s) deleted", hotel_id, code)


async def get_hotel_repository(db: AsyncSession = Depends(get_async_session)):
    return HotelRepository(db)
