import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from hms.auth.dependencies import CurrentUser, get_current_user, require_hotel
from hms.guests.repository import GuestRepository, get_guest_repository
from hms.guests.schemas import GuestCardSchema, GuestResponseSchema

router = APIRouter(prefix="/guests", tags=["Guests"])


@router.get("/search", response_model=list[GuestResponseSchema])
async def search_guests(
    q: str = "",
    hotel_id: Optional[uuid.UUID] = None,
    user: CurrentUser = Depends(get_current_user),
    repo: GuestRepository = Depends(get_guest_repository),
):
    """Guests whose name, email or phone contains ``q`` (at least 2 characters)."""
    return await repo.search(require_hotel(user, hotel_id), q)


@router.get("/{guest_id}", response_model=GuestCardSchema)
async def get_guest(
    guest_id: uuid.UUID,
    hotel_id: Optional[uuid.UUID] = None,
    user: CurrentUser = Depends(get_current_user),
    repo: GuestRepository = Depends(get_guest_repository),
):
    scope = require_hotel(user, hotel_id)
    guest = await repo.get(scope, guest_id)
    return {"guest": guest, "stats": await repo.stats(scope, guest.id)}
