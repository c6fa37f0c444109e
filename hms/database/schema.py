"""Schema bootstrap: ``python -m hms.database.schema`` creates every table."""
import asyncio
import logging

from hms.database.engine import Base, engine
from hms.guests.models import Guest  # noqa: F401
from hms.hotels.models import Hotel  # noqa: F401
from hms.reservations.models import OutboxEvent, Reservation  # noqa: F401
from hms.rooms.models import InventoryDay, RoomType  # noqa: F401

logger = logging.getLogger(__name__)


async def create_schema(bind=None):
    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Created %s tables", len(Base.metadata.tables))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_schema())
