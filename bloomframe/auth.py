"""
BloomFrame Backend — Bearer Token Auth
========================================

What:  FastAPI dependency guarding every /api route.
How:   Reads `Authorization: Bearer <token>`, compares it in constant time
       against the tokens configured in API_TOKENS, and returns the user
       the token belongs to. The user id is recorded as `sentBy` on email logs.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bloomframe.config import settings
from bloomframe.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthUser:
    id: str


def authenticate_token(token: str) -> Optional[AuthUser]:
    """Returns the user for a configured token, or None."""
    for known, user_id in settings.api_token_map.items():
        if secrets.compare_digest(known.encode(), token.encode()):
            return AuthUser(id=user_id)
    return None


async def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthUser:
    """
    Raises:
        AuthenticationError: no bearer token, or an unknown one.
    """
    if credentials is None or not credentials.credentials.strip():
        raise AuthenticationError()

    user = authenticate_token(credentials.credentials.strip())
    if user is None:
        logger.warning("Rejected unknown API token")
        raise AuthenticationError()
    return user
