import uuid

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid, func,
)

from hms.database.engine import Base


class RoomType(Base):
    __tablename__ = "room_types"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    hotel_id = Column(ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True)

    code = Column(String, nullable=False)
    name = Column(String, nullable=False)

    base_price = Column(Float, default=0, nullable=False)
    capacity_adults = Column(Integer, default=2, nullable=False)
    capacity_children = Column(Integer, default=0, nullable=False)

    # Physical room count, the capacity ceiling when no inventory override exists
    total_rooms = Column(Integer, default=0, nullable=False)

    bed_type = Column(String, nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("hotel_id", "code", name="uq_room_types_hotel_code"),
    )


class InventoryDay(Base):
    __tablename__ = "inventory_days"

    id = Column(Integer, primary_key=True, autoincrement=True)
    hotel_id = Column(ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True)
    room_type_id = Column(ForeignKey("room_types.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    # NULL means "use the room type's value"
    price = Column(Float, nullable=True)
    allotment = Column(Integer, nullable=True)
    stop_sell = Column(Boolean, default=False, nullable=False)

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("hotel_id", "room_type_id", "date", name="uq_inventory_day"),
    )
