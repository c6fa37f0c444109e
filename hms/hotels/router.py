import math
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from hms.auth.dependencies import (
    CurrentUser, HOTEL_ADMIN, MASTER_ADMIN, get_current_user, hotel_scope, require_role,
)
from hms.exceptions import ForbiddenException
from hms.hotels.repository import HotelRepository, get_hotel_repository
from hms.hotels.schemas import (
    HotelCreateSchema, HotelPageSchema, HotelResponseSchema, HotelStatusSchema, HotelUpdateSchema,
)

router = APIRouter(prefix="/hotels", tags=["Hotels"])


@router.get("", response_model=HotelPageSchema)
async def list_hotels(
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=1000),
    user: CurrentUser = Depends(get_current_user),
    repo: HotelRepository = Depends(get_hotel_repository),
):
    """MASTER_ADMIN sees every hotel, other users only their own."""
    if not user.is_master and user.hotel_id is None:
        return {"items": [], "total": 0, "page": page, "pages": 0}

    hotel_id = None if user.is_master else user.hotel_id
    items, total = await repo.list(hotel_id=hotel_id, q=q, page=page, limit=limit)
    return {
        "items": [HotelResponseSchema.model_validate(item) for item in items],
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit),
    }


@router.post("", status_code=201, response_model=HotelResponseSchema)
async def create_hotel(
    data: HotelCreateSchema,
    user: CurrentUser = Depends(require_role(MASTER_ADMIN)),
    repo: HotelRepository = Depends(get_hotel_repository),
):
    return await repo.create(data.model_dump())


@router.get("/{hotel_id}", response_model=HotelResponseSchema)
async def get_hotel(
    hotel_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    repo: HotelRepository = Depends(get_hotel_repository),
):
    if hotel_scope(user, hotel_id) != hotel_id:
        raise ForbiddenException()
    return await repo.get(hotel_id)


@router.put("/{hotel_id}", response_model=HotelResponseSchema)
async def update_hotel(
    hotel_id: uuid.UUID,
    data: HotelUpdateSchema,
    user: CurrentUser = Depends(require_role(HOTEL_ADMIN)),
    repo: HotelRepository = Depends(get_hotel_repository),
):
    if hotel_scope(user, hotel_id) != hotel_id:
        raise ForbiddenException()
    changes = {field: value for field, value in data.model_dump(exclude_unset=True).items() if value is not None}
    return await repo.update(hotel_id, changes)


@router.patch("/{hotel_id}/status", response_model=HotelResponseSchema)
async def set_hotel_status(
    hotel_id: uuid.UUID,
    data: HotelStatusSchema,
    user: CurrentUser = Depends(require_role(MASTER_ADMIN)),
    repo: HotelRepository = Depends(get_hotel_repository),
):
    return await repo.set_active(hotel_id, data.active)


@router.delete("/{hotel_id}")
async def delete_hotel(
    hotel_id: uuid.UUID,
    user: CurrentUser = Depends(require_role(MASTER_ADMIN)),
    repo: HotelRepository = Depends(get_hotel_repository),
):
    """Delete the hotel together with its room types, inventory, guests and reservations."""
    await repo.delete(hotel_id)
    return {"ok": True}
