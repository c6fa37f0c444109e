from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from hms.reservations.schemas import ReservationResponseSchema


class GuestResponseSchema(BaseModel):
    id: UUID
    hotel_id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    document_no: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GuestStatsSchema(BaseModel):
    stays: int
    total_nights: int
    total_revenue: float
    last_stay: Optional[ReservationResponseSchema] = None
    next_stay: Optional[ReservationResponseSchema] = None


# Guest card: the guest plus a summary of their stays
class GuestCardSchema(BaseModel):
    guest: GuestResponseSchema
    stats: GuestStatsSchema
