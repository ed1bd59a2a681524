"""
AskBoard Backend: Authenticated Request Context
================================================

What:  Resolves the acting user of a request from its bearer token.
How:   `get_current_user` is a FastAPI dependency. It reads
       `Authorization: Bearer <jwt>`, verifies the signature and expiry with
       PyJWT and returns a CurrentUser built from the `sub` / `name` claims.
Who:   Every mutating question route depends on it. List and detail
       routes are public and never call it.

Token issuance belongs to whatever identity provider fronts this API;
`create_access_token` exists for local development and the test suite.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from askboard.config import settings
from askboard.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# auto_error=False: a missing header becomes our AuthenticationError (401
# with the standard error body) instead of FastAPI's bare 403.
bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """The acting user of a request."""
    id: str
    name: Optional[str] = None


def create_access_token(
    user_id: str,
    name: Optional[str] = None,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Sign a token whose `sub` claim is `user_id`."""
    now = datetime.now(timezone.utc)
    expires = now + (expires_in or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {"sub": user_id, "iat": now, "exp": expires}
    if name:
        payload["name"] = name
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> CurrentUser:
    """
    Verify `token` and return the user it identifies.

    Raises:
        AuthenticationError: expired, badly signed, malformed, or no `sub`.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token has expired")
    except jwt.InvalidTokenError as e:
        logger.info("Rejected bearer token: %s", str(e))
        raise AuthenticationError(message="Token is invalid")

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError(message="Token has no subject")
    return CurrentUser(id=str(subject), name=payload.get("name"))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """FastAPI dependency returning the acting user, or raising 401."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return decode_access_token(credentials.credentials)
