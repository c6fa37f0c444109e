from sqlalchemy.ext.asyncio import AsyncSession

from hms.availability.engine import AvailabilityEngine


class QuoteService:
    """Read-only availability breakdown, computed exactly like a booking check."""

    def __init__(self, db: AsyncSession, allow_unconfigured_capacity=None):
        self.engine = AvailabilityEngine(db, allow_unconfigured_capacity=allow_unconfigured_capacity)

    async def quote(self, hotel_id, room_type_id, start, end, rooms: int = 1) -> dict:
        room_type = await self.engine.load_room_type(hotel_id, room_type_id)
        start, end = self.engine.validate_request(start, end, rooms)
        loads, unlimited = await self.engine.night_loads(hotel_id, room_type, start, end)

        # Unlimited nights report allotment and remaining as None
        days = [
            {
                "date": load.night,
                "allotment": load.capacity,
                "used": load.used,
                "remaining": load.remaining,
                "price": load.price,
                "stop_sell": load.stop_sell,
            }
            for load in loads
        ]
        return {
            "nights": len(days),
            "remaining_per_day": days,
            "available": unlimited or all(load.remaining >= rooms for load in loads),
            "unlimited": unlimited,
            "suggested_total_price": sum(load.price for load in loads) * rooms,
        }
