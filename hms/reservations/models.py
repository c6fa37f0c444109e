import uuid

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text, Uuid, func

from hms.database.engine import Base

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED)

CHANNELS = ("direct", "airbnb", "booking", "etstur")
PAYMENT_METHODS = ("", "cash", "pos", "transfer", "online")
PAYMENT_STATUSES = ("unpaid", "partial", "paid")


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    hotel_id = Column(ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True)

    # Optional: reservations without a room type are not capacity-checked
    room_type_id = Column(ForeignKey("room_types.id"), nullable=True, index=True)

    guest_name = Column(String, default="Guest", nullable=False)
    guest_id = Column(ForeignKey("guests.id", ondelete="SET NULL"), nullable=True, index=True)

    # Stay is [check_in, check_out)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)

    adults = Column(Integer, default=2, nullable=False)
    children = Column(Integer, default=0, nullable=False)
    rooms = Column(Integer, default=1, nullable=False)

    channel = Column(String, default="direct", nullable=False, index=True)
    status = Column(String, default=STATUS_CONFIRMED, nullable=False, index=True)

    total_price = Column(Float, default=0, nullable=False)
    deposit_amount = Column(Float, default=0, nullable=False)
    payment_method = Column(String, default="", nullable=False)
    payment_status = Column(String, default="unpaid", nullable=False)

    # Free text, e.g. "around 22:00"
    arrival_time = Column(String, default="", nullable=False)
    notes = Column(Text, default="", nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        # Overlap lookups filter on these
        Index("idx_reservations_room_type_range", hotel_id, room_type_id, check_in, check_out),
        Index("idx_reservations_hotel_status", hotel_id, status, channel),
    )


class OutboxEvent(Base):
    __tablename__ = "outbox_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String, nullable=False)  # e.g. "reservation_created"
    payload = Column(JSON, nullable=False)
    status = Column(String, default="PENDING", nullable=False)  # PENDING, PROCESSED
    created_at = Column(DateTime, server_default=func.now())
