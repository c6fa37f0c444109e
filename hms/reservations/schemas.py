from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ReservationStatus = Literal["pending", "confirmed", "cancelled"]
ReservationChannel = Literal["direct", "airbnb", "booking", "etstur"]
PaymentMethod = Literal["", "cash", "pos", "transfer", "online"]
PaymentStatus = Literal["unpaid", "partial", "paid"]


# Inline guest details; bound to an existing guest by email or phone
class ReservationGuestSchema(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    document_no: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("guest name is required.")
        return v.strip()


# Create payload; hotel_id is only honoured for MASTER_ADMIN tokens
class ReservationCreateSchema(BaseModel):
    hotel_id: Optional[UUID] = None
    room_type_id: Optional[UUID] = None
    guest_name: Optional[str] = None
    guest_id: Optional[UUID] = None
    guest: Optional[ReservationGuestSchema] = None
    check_in: date
    check_out: date
    adults: int = Field(default=2, ge=0)
    children: int = Field(default=0, ge=0)
    rooms: int = Field(default=1, ge=1)
    channel: ReservationChannel = "direct"
    status: ReservationStatus = "confirmed"
    total_price: Optional[float] = Field(default=None, ge=0)
    deposit_amount: float = Field(default=0, ge=0)
    payment_method: PaymentMethod = ""
    payment_status: PaymentStatus = "unpaid"
    arrival_time: str = ""
    notes: str = ""

    @field_validator("guest_name")
    @classmethod
    def strip_guest_name(cls, v):
        return v.strip() if v is not None else v

    @model_validator(mode="after")
    def validate_reservation(self):
        if not self.guest_name and self.guest is None:
            raise ValueError("guest_name or guest.name is required.")
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be strictly after check_in date.")
        return self


class ReservationUpdateSchema(BaseModel):
    room_type_id: Optional[UUID] = None
    guest_name: Optional[str] = None
    guest_id: Optional[UUID] = None
    guest: Optional[ReservationGuestSchema] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    adults: Optional[int] = Field(default=None, ge=0)
    children: Optional[int] = Field(default=None, ge=0)
    rooms: Optional[int] = Field(default=None, ge=1)
    channel: Optional[ReservationChannel] = None
    status: Optional[ReservationStatus] = None
    total_price: Optional[float] = Field(default=None, ge=0)
    deposit_amount: Optional[float] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    arrival_time: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_dates(self):
        if self.check_in and self.check_out and self.check_out <= self.check_in:
            raise ValueError("check_out must be strictly after check_in date.")
        return self


class ReservationStatusSchema(BaseModel):
    status: ReservationStatus


class ReservationResponseSchema(BaseModel):
    id: UUID
    hotel_id: UUID
    room_type_id: Optional[UUID] = None
    guest_name: str
    guest_id: Optional[UUID] = None
    check_in: date
    check_out: date
    adults: int
    children: int
    rooms: int
    channel: str
    status: str
    total_price: float
    deposit_amount: float
    payment_method: str
    payment_status: str
    arrival_time: str
    notes: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReservationPageSchema(BaseModel):
    items: list[ReservationResponseSchema]
    total: int
    page: int
    pages: int
