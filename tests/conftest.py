"""
Shared fixtures: a throw-away SQLite database per test, an ASGI client bound
to it, and bearer tokens for the three roles.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./hms_test.db")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ALLOW_UNCONFIGURED_CAPACITY"] = "false"

import httpx
import pytest
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hms import config
from hms.database.engine import get_async_session
from hms.database.schema import create_schema
from hms.hotels.repository import HotelRepository
from hms.main import app
from hms.rooms.repository import RoomTypeRepository


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hms.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
async def client(session_factory):
    async def override_get_async_session():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_async_session] = override_get_async_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_token(role, hotel_id=None, user_id="user-1"):
    payload = {"sub": user_id, "role": role}
    if hotel_id is not None:
        payload["hotel"] = str(hotel_id)
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def hotel(session):
    return await HotelRepository(session).create({"code": "ist1", "name": "Bosphorus Hotel"})


@pytest.fixture
def make_room_type(session, hotel):
    async def factory(code="STD", total_rooms=2, base_price=100.0, **extra):
        return await RoomTypeRepository(session).create(
            hotel.id,
            {"code": code, "name": f"{code} room", "total_rooms": total_rooms, "base_price": base_price, **extra},
        )

    return factory


@pytest.fixture
def admin_headers(hotel):
    return bearer(make_token("HOTEL_ADMIN", hotel.id))


@pytest.fixture
def staff_headers(hotel):
    return bearer(make_token("HOTEL_STAFF", hotel.id))


@pytest.fixture
def master_headers():
    return bearer(make_token("MASTER_ADMIN"))
