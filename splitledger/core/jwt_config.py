"""
Access token verification.

Tokens are issued by the account service. This side only checks signature
and expiry, then reads the caller id from the `sub` claim.
"""

import logging
import jwt
from fastapi import Request
from splitledger.core.config import settings
from splitledger.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "access_token"


def read_access_token(request: Request) -> str:
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    cookie = request.cookies.get(ACCESS_COOKIE)
    if cookie:
        return cookie.strip()

    raise AuthenticationError("Missing access token")


def verify_access_token(token: str) -> int:
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGO],
            options={"require": ["sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Access token has expired")
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected access token: %s", exc)
        raise AuthenticationError("Invalid access token")

    try:
        return int(claims["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Token subject is not a user id")
