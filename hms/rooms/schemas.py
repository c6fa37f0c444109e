from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SRoomTypeCreate(BaseModel):
    hotel_id: Optional[UUID] = None
    code: str
    name: str
    base_price: float = Field(default=0, ge=0)
    capacity_adults: int = Field(default=2, ge=1)
    capacity_children: int = Field(default=0, ge=0)
    total_rooms: int = Field(default=0, ge=0)
    bed_type: Optional[str] = None
    description: Optional[str] = None

    @field_validator("code", "name")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v


class SRoomTypeUpdate(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    base_price: Optional[float] = Field(default=None, ge=0)
    capacity_adults: Optional[int] = Field(default=None, ge=1)
    capacity_children: Optional[int] = Field(default=None, ge=0)
    total_rooms: Optional[int] = Field(default=None, ge=0)
    bed_type: Optional[str] = None
    description: Optional[str] = None


class SRoomType(BaseModel):
    id: UUID
    hotel_id: UUID
    code: str
    name: str
    base_price: float
    capacity_adults: int
    capacity_children: int
    total_rooms: int
    bed_type: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SInventoryRangeParams(BaseModel):
    room_type_id: UUID
    start: date
    end: date
    hotel_id: Optional[UUID] = None


class SInventoryBulkUpsert(BaseModel):
    hotel_id: Optional[UUID] = None
    room_type_id: UUID
    start: date
    end: date
    price: Optional[float] = Field(default=None, ge=0)
    allotment: Optional[int] = Field(default=None, ge=0)
    stop_sell: Optional[bool] = None


class SInventoryDay(BaseModel):
    date: date
    price: Optional[float] = None
    allotment: Optional[int] = None
    stop_sell: bool

    model_config = ConfigDict(from_attributes=True)


class SInventoryBulkResult(BaseModel):
    ok: bool
    days: int
    requested: int
    failed: list[date] = []


class SQuoteParams(BaseModel):
    room_type_id: UUID
    start: date
    end: date
    rooms: int = 1
    hotel_id: Optional[UUID] = None


class SQuoteNight(BaseModel):
    date: date
    allotment: Optional[int] = None
    used: int
    remaining: Optional[int] = None
    price: float
    stop_sell: bool


class SQuote(BaseModel):
    nights: int
    remaining_per_day: list[SQuoteNight]
    available: bool
    unlimited: bool
    suggested_total_price: float
