import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Uuid, func

from hms.database.engine import Base


class Hotel(Base):
    __tablename__ = "hotels"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Unique, stored upper-case
    code = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)

    city = Column(String, default="", nullable=False, index=True)
    address = Column(String, default="", nullable=False)
    phone = Column(String, default="", nullable=False)

    # TRY, USD, EUR, GBP
    currency = Column(String, default="TRY", nullable=False)
    timezone = Column(String, default="Europe/Istanbul", nullable=False)
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
