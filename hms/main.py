import asyncio
import logging

import uvicorn
from fastapi import FastAPI

from hms import config
from hms.guests.router import router as guests_router
from hms.hotels.router import router as hotels_router
from hms.reservations.publisher import publish_outbox_events
from hms.reservations.router import router as reservations_router
from hms.rooms.router import router as rooms_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Hotel Management Service",
    description="Hotels, room types, daily inventory, guests and reservations with per-night availability control.",
    version="1.0.0",
)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "hms"}


@app.on_event("startup")
async def startup_event():
    if config.OUTBOX_PUBLISHER_ENABLED:
        asyncio.create_task(publish_outbox_events())
        logger.info("Outbox publisher started")
    if config.ALLOW_UNCONFIGURED_CAPACITY:
        logger.warning("Room types without configured capacity accept unlimited bookings")


app.include_router(hotels_router, prefix="/api")
app.include_router(rooms_router, prefix="/api")
app.include_router(reservations_router, prefix="/api")
app.include_router(guests_router, prefix="/api")


if __name__ == "__main__":
    uvicorn.run("hms.main:app", reload=True)
