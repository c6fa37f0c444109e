import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hms.auth.dependencies import (
    CurrentUser, HOTEL_ADMIN, HOTEL_STAFF, get_current_user, require_hotel, require_role,
)
from hms.availability.quote import QuoteService
from hms.database.engine import get_async_session
from hms.exceptions import InventoryRangeException, RoomTypeNotFoundException
from hms.hotels.repository import HotelRepository
from hms.rooms.repository import (
    InventoryRepository, RoomTypeRepository, get_inventory_repository, get_room_type_repository,
)
from hms.rooms.schemas import (
    SInventoryBulkResult, SInventoryBulkUpsert, SInventoryDay, SInventoryRangeParams, SQuote, SQuoteParams,
    SRoomType, SRoomTypeCreate, SRoomTypeUpdate,
)

router = APIRouter(
    prefix="/rooms",
    tags=["Rooms"]
)


@router.get("/types", response_model=list[SRoomType])
async def list_room_types(
    hotel_id: uuid.UUID | None = None,
    user: CurrentUser = Depends(get_current_user),
    repo: RoomTypeRepository = Depends(get_room_type_repository),
):
    return await repo.list(require_hotel(user, hotel_id))


@router.post("/types", status_code=201, response_model=SRoomType)
async def create_room_type(
    data: SRoomTypeCreate,
    user: CurrentUser = Depends(require_role(HOTEL_ADMIN)),
    repo: RoomTypeRepository = Depends(get_room_type_repository),
):
    hotel_id = require_hotel(user, data.hotel_id)
    return await repo.create(hotel_id, data.model_dump(exclude={"hotel_id"}))


@router.put("/types/{room_type_id}", response_model=SRoomType)
async def update_room_type(
    room_type_id: uuid.UUID,
    data: SRoomTypeUpdate,
    hotel_id: uuid.UUID | None = None,
    user: CurrentUser = Depends(require_role(HOTEL_ADMIN)),
    repo: RoomTypeRepository = Depends(get_room_type_repository),
):
    changes = {field: value for field, value in data.model_dump(exclude_unset=True).items() if value is not None}
    return await repo.update(require_hotel(user, hotel_id), room_type_id, changes)


@router.delete("/types/{room_type_id}")
async def delete_room_type(
    room_type_id: uuid.UUID,
    hotel_id: uuid.UUID | None = None,
    user: CurrentUser = Depends(require_role(HOTEL_ADMIN)),
    repo: RoomTypeRepository = Depends(get_room_type_repository),
):
    await repo.delete(require_hotel(user, hotel_id), room_type_id)
    return {"ok": True}


@router.get("/inventory", response_model=list[SInventoryDay])
async def list_inventory(
    params: SInventoryRangeParams = Depends(),
    user: CurrentUser = Depends(get_current_user),
    repo: InventoryRepository = Depends(get_inventory_repository),
):
    hotel_id = require_hotel(user, params.hotel_id)
    return await repo.list_for_range(hotel_id, params.room_type_id, params.start, params.end)


@router.post("/inventory/bulk", response_model=SInventoryBulkResult)
async def bulk_upsert_inventory(
    data: SInventoryBulkUpsert,
    user: CurrentUser = Depends(require_role(HOTEL_ADMIN, HOTEL_STAFF)),
    db: AsyncSession = Depends(get_async_session),
):
    """Set price, allotment and/or stop-sell for every night in [start, end)."""
    hotel_id = require_hotel(user, data.hotel_id)
    if data.end <= data.start:
        raise InventoryRangeException()
    await HotelRepository(db).get(hotel_id)
    if await RoomTypeRepository(db).get(hotel_id, data.room_type_id) is None:
        raise RoomTypeNotFoundException()

    return await InventoryRepository(db).bulk_upsert(
        hotel_id,
        data.room_type_id,
        data.start,
        data.end,
        price=data.price,
        allotment=data.allotment,
        stop_sell=data.stop_sell,
    )


@router.get("/availability/quote", response_model=SQuote)
async def availability_quote(
    params: SQuoteParams = Depends(),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Per-night allotment, usage and price; nothing is reserved."""
    hotel_id = require_hotel(user, params.hotel_id)
    return await QuoteService(db).quote(hotel_id, params.room_type_id, params.start, params.end, params.rooms)
