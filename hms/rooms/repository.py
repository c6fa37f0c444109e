import logging
from datetime import date

from fastapi import Depends
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hms.availability.calendar import nights_in_range
from hms.database.engine import get_async_session
from hms.exceptions import (
    InventoryRangeException, InventoryWriteException, RoomTypeCodeTakenException, RoomTypeInUseException,
    RoomTypeNotFoundException,
)
from hms.hotels.repository import HotelRepository
from hms.reservations.models import Reservation, STATUS_CANCELLED
from hms.rooms.models import InventoryDay, RoomType

logger = logging.getLogger(__name__)

INVENTORY_FIELDS = ("price", "allotment", "stop_sell")


def normalize_room_type_fields(data: dict) -> dict:
    """Applied to every room type write: trimmed upper-case code, trimmed name."""
    data = dict(data)
    if data.get("code") is not None:
        data["code"] = str(data["code"]).strip().upper()
    if data.get("name") is not None:
        data["name"] = str(data["name"]).strip()
    return data


class RoomTypeRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, hotel_id):
        query = select(RoomType).where(RoomType.hotel_id == hotel_id).order_by(RoomType.created_at.desc())
        result = await self.db.execute(query)
        return result.scalars().all()

    async def get(self, hotel_id, room_type_id, for_update: bool = False):
        query = select(RoomType).where(RoomType.id == room_type_id, RoomType.hotel_id == hotel_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _ensure_code_free(self, hotel_id, code, exclude_id=None):
        query = select(RoomType.id).where(RoomType.hotel_id == hotel_id, RoomType.code == code)
        if exclude_id is not None:
            query = query.where(RoomType.id != exclude_id)
        if await self.db.scalar(query) is not None:
            raise RoomTypeCodeTakenException()

    async def create(self, hotel_id, data: dict):
        await HotelRepository(self.db).get(hotel_id)
        data = normalize_room_type_fields(data)
        await self._ensure_code_free(hotel_id, data["code"])

        room_type = RoomType(hotel_id=hotel_id, **data)
        self.db.add(room_type)
        await self.db.commit()
        await self.db.refresh(room_type)
        return room_type

    async def update(self, hotel_id, room_type_id, data: dict):
        room_type = await self.get(hotel_id, room_type_id)
        if room_type is None:
            raise RoomTypeNotFoundException()

        data = normalize_room_type_fields(data)
        if data.get("code") and data["code"] != room_type.code:
            await self._ensure_code_free(hotel_id, data["code"], exclude_id=room_type.id)

        for field, value in data.items():
            setattr(room_type, field, value)
        await self.db.commit()
        await self.db.refresh(room_type)
        return room_type

    async def delete(self, hotel_id, room_type_id):
        room_type = await self.get(hotel_id, room_type_id)
        if room_type is None:
            raise RoomTypeNotFoundException()

        active = await self.db.scalar(
            select(Reservation.id).where(
                Reservation.hotel_id == hotel_id,
                Reservation.room_type_id == room_type_id,
                Reservation.status != STATUS_CANCELLED,
            ).limit(1)
        )
        if active is not None:
            raise RoomTypeInUseException()

        # Inventory rows live and die with their room type
        await self.db.execute(
            delete(InventoryDay).where(
                InventoryDay.hotel_id == hotel_id,
                InventoryDay.room_type_id == room_type_id,
            )
        )
        await self.db.delete(room_type)
        await self.db.commit()


class InventoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _range_query(self, hotel_id, room_type_id, start: date, end: date):
        return select(InventoryDay).where(
            InventoryDay.hotel_id == hotel_id,
            InventoryDay.room_type_id == room_type_id,
            InventoryDay.date >= start,
            InventoryDay.date < end,
        )

    async def get_overrides_for_range(self, hotel_id, room_type_id, start: date, end: date) -> dict:
        """Explicit override rows in [start, end), keyed by night."""
        result = await self.db.execute(self._range_query(hotel_id, room_type_id, start, end))
        return {row.date: row for row in result.scalars().all()}

    async def list_for_range(self, hotel_id, room_type_id, start: date, end: date):
        query = self._range_query(hotel_id, room_type_id, start, end).order_by(InventoryDay.date)
        result = await self.db.execute(query)
        return result.scalars().all()

    async def _upsert_day(self, hotel_id, room_type_id, night: date, changes: dict):
        row = await self.db.scalar(
            select(InventoryDay).where(
                InventoryDay.hotel_id == hotel_id,
                InventoryDay.room_type_id == room_type_id,
                InventoryDay.date == night,
            )
        )
        if row is None:
            row = InventoryDay(hotel_id=hotel_id, room_type_id=room_type_id, date=night, stop_sell=False)
            self.db.add(row)
        for field, value in changes.items():
            setattr(row, field, value)

    async def bulk_upsert(self, hotel_id, room_type_id, start: date, end: date, **fields) -> dict:
        """
        Write one inventory row per night of [start, end).

        Only the given fields (price, allotment, stop_sell) change on existing
        rows. Nights are written independently, so a failure on one night does not
        undo the others; the result tells how many nights were written.
        """
        nights = nights_in_range(start, end)
        if not nights:
            raise InventoryRangeException()

        changes = {field: fields[field] for field in INVENTORY_FIELDS if fields.get(field) is not None}

        written = 0
        failed = []
        for night in nights:
            try:
                await self._upsert_day(hotel_id, room_type_id, night, changes)
                await self.db.commit()
                written += 1
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.warning("Inventory upsert failed for room type %s on %s: %s", room_type_id, night, e)
                failed.append(night)

        if written == 0:
            raise InventoryWriteException()
        if failed:
            logger.warning("Inventory bulk upsert wrote %s of %s nights", written, len(nights))
        return {"ok": not failed, "days": written, "requested": len(nights), "failed": failed}


async def get_room_type_repository(db: AsyncSession = Depends(get_async_session)):
    return RoomTypeRepository(db)


async def get_inventory_repository(db: AsyncSession = Depends(get_async_session)):
    return InventoryRepository(db)
