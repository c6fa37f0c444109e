import math
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hms.auth.dependencies import (
    CurrentUser, HOTEL_ADMIN, HOTEL_STAFF, get_current_user, hotel_scope, require_hotel, require_role,
)
from hms.database.engine import get_async_session
from hms.exceptions import ReservationNotFoundException
from hms.reservations.repository import ReservationRepository
from hms.reservations.schemas import (
    ReservationCreateSchema, ReservationPageSchema, ReservationResponseSchema, ReservationStatusSchema,
    ReservationUpdateSchema,
)
from hms.reservations.service import BookingService, get_booking_service

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.get("", response_model=ReservationPageSchema)
async def list_reservations(
    hotel_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    channel: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    guest: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Reservations of the caller's hotel; MASTER_ADMIN without hotel_id sees all hotels."""
    scope = hotel_scope(user, hotel_id)
    if scope is None and not user.is_master:
        return {"items": [], "total": 0, "page": page, "pages": 0}

    items, total = await ReservationRepository(db).list(
        hotel_id=scope, status=status, channel=channel, start=start, end=end, guest=guest, page=page, limit=limit,
    )
    return {
        "items": [ReservationResponseSchema.model_validate(item) for item in items],
        "total": total,
        "page": page,
        "pages": math.ceil(total / limit),
    }


@router.post("", status_code=201, response_model=ReservationResponseSchema)
async def create_reservation(
    data: ReservationCreateSchema,
    user: CurrentUser = Depends(require_role(HOTEL_ADMIN, HOTEL_STAFF)),
    service: BookingService = Depends(get_booking_service),
):
    """
    Book a stay. With a room type the stay must fit every night's allotment,
    otherwise 409 is returned with the first night that does not fit.
    """
    hotel_id = require_hotel(user, data.hotel_id)
    return await service.create_reservation(hotel_id, data.model_dump(exclude={"hotel_id"}))


@router.get("/{reservation_id}", response_model=ReservationResponseSchema)
async def get_reservation(
    reservation_id: uuid.UUID,
    hotel_id: Optional[uuid.UUID] = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    reservation = await ReservationRepository(db).get(_scope_for_item(user, hotel_id), reservation_id)
    if reservation is None:
        raise ReservationNotFoundException()
    return reservation


@router.put("/{reservation_id}", response_model=ReservationResponseSchema)
async def update_reservation(
    reservation_id: uuid.UUID,
    data: ReservationUpdateSchema,
    hotel_id: Optional[uuid.UUID] = None,
    user: CurrentUser = Depends(require_role(HOTEL_ADMIN, HOTEL_STAFF)),
    service: BookingService = Depends(get_booking_service),
):
    """Edit a reservation; changed dates, rooms or room type are re-checked against availability."""
    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field == "room_type_id"
    }
    return await service.update_reservation(_scope_for_item(user, hotel_id), reservation_id, changes)


@router.patch("/{reservation_id}/status", response_model=ReservationResponseSchema)
async def set_reservation_status(
    reservation_id: uuid.UUID,
    data: ReservationStatusSchema,
    hotel_id: Optional[uuid.UUID] = None,
    user: CurrentUser = Depends(require_role(HOTEL_ADMIN, HOTEL_STAFF)),
    service: BookingService = Depends(get_booking_service),
):
    return await service.set_status(_scope_for_item(user, hotel_id), reservation_id, data.status)


@router.delete("/{reservation_id}")
async def delete_reservation(
    reservation_id: uuid.UUID,
    hotel_id: Optional[uuid.UUID] = None,
    user: CurrentUser = Depends(require_role(HOTEL_ADMIN)),
    service: BookingService = Depends(get_booking_service),
):
    await service.delete_reservation(_scope_for_item(user, hotel_id), reservation_id)
    return {"ok": True}


def _scope_for_item(user: CurrentUser, hotel_id):
    # MASTER_ADMIN may address any reservation by id; others stay inside their hotel
    if user.is_master:
        return hotel_scope(user, hotel_id)
    return require_hotel(user)
