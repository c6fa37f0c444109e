import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, Uuid, func

from hms.database.engine import Base


class Guest(Base):
    __tablename__ = "guests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    hotel_id = Column(ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    email = Column(String, nullable=True)  # stored lower-case
    phone = Column(String, nullable=True)
    country = Column(String, nullable=True)
    document_no = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        # Guests are matched by email or phone within a hotel
        Index("idx_guests_hotel_email", hotel_id, email),
        Index("idx_guests_hotel_phone", hotel_id, phone),
    )
