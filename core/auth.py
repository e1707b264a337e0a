"""Authentication dependency for API endpoints."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.errors import Unauthorized
from core.security import decode_access_token

# auto_error=False so missing credentials go through the error envelope
_bearer = HTTPBearer(auto_error=False)


async def current_user_id(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> int:
    """
    Resolve the authenticated caller from a bearer token.

    Args:
        credentials: Parsed ``Authorization: Bearer`` header

    Returns:
        Account ID of the caller

    Raises:
        Unauthorized: If the header is missing or the token is invalid/expired
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized()

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise Unauthorized("Invalid or expired token", code="INVALID_TOKEN")
    return user_id
