import asyncio
import weakref
from contextlib import asynccontextmanager

# One lock per (hotel, room type); entries go away once no booking holds them
_locks: "weakref.WeakValueDictionary[tuple, asyncio.Lock]" = weakref.WeakValueDictionary()


def lock_for(hotel_id, room_type_id) -> asyncio.Lock:
    key = (str(hotel_id), str(room_type_id))
    lock = _locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _locks[key] = lock
    return lock


@asynccontextmanager
async def booking_guard(hotel_id, room_type_id):
    """
    Serialize check-and-create for one (hotel, room type) inside this process.

    Across processes the engine additionally locks the room type row
    (SELECT ... FOR UPDATE) in the booking transaction.
    """
    lock = lock_for(hotel_id, room_type_id)
    async with lock:
        yield
