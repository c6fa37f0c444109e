from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

Currency = Literal["TRY", "USD", "EUR", "GBP"]


def _upper(v):
    return v.strip().upper() if isinstance(v, str) else v


class HotelCreateSchema(BaseModel):
    code: str
    name: str
    city: str = ""
    address: str = ""
    phone: str = ""
    currency: Currency = "TRY"
    timezone: str = "Europe/Istanbul"
    active: bool = True

    @field_validator("currency", mode="before")
    @classmethod
    def currency_upper(cls, v):
        return _upper(v)

    @field_validator("code", "name")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v


class HotelUpdateSchema(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    currency: Optional[Currency] = None
    timezone: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("currency", mode="before")
    @classmethod
    def currency_upper(cls, v):
        return _upper(v)


class HotelResponseSchema(BaseModel):
    id: UUID
    code: str
    name: str
    city: str
    address: str
    phone: str
    currency: str
    timezone: str
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HotelStatusSchema(BaseModel):
    active: bool


class HotelPageSchema(BaseModel):
    items: list[HotelResponseSchema]
    total: int
    page: int
    pages: int
