"""
Request identity and hotel scoping.

Tokens are issued by the auth service; here they are only verified. The
payload carries the user id (``sub``, ``userId`` or ``id``), a ``role`` and,
for hotel users, the ``hotel`` id.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from hms import config
from hms.exceptions import AuthException, ForbiddenException, HotelContextException

logger = logging.getLogger(__name__)

MASTER_ADMIN = "MASTER_ADMIN"
HOTEL_ADMIN = "HOTEL_ADMIN"
HOTEL_STAFF = "HOTEL_STAFF"

bearer = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: Optional[str]
    role: str
    hotel_id: Optional[uuid.UUID]

    @property
    def is_master(self) -> bool:
        return self.role == MASTER_ADMIN


def _as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError as e:
        logger.debug("Rejected token: %s", e)
        raise AuthException()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> CurrentUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthException()
    payload = decode_token(credentials.credentials)
    return CurrentUser(
        id=payload.get("userId") or payload.get("id") or payload.get("sub"),
        role=payload.get("role") or HOTEL_ADMIN,
        hotel_id=_as_uuid(payload.get("hotel")),
    )


def require_role(*roles):
    """Dependency factory; MASTER_ADMIN passes every role check."""
    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.is_master and user.role not in roles:
            raise ForbiddenException()
        return user

    return checker


def hotel_scope(user: CurrentUser, requested_hotel_id=None) -> Optional[uuid.UUID]:
    """Hotel a request acts on: the token's hotel, or the requested one for MASTER_ADMIN."""
    if user.is_master:
        return _as_uuid(requested_hotel_id)
    return user.hotel_id


def require_hotel(user: CurrentUser, requested_hotel_id=None) -> uuid.UUID:
    hotel_id = hotel_scope(user, requested_hotel_id)
    if hotel_id is None:
        raise HotelContextException()
    return hotel_id
