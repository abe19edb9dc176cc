"""Auth dependency -- resolves the request to a trusted user.

The JWT is read from the ``Authorization: Bearer`` header, falling back to
the session cookie set at login.
"""

import jwt as pyjwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from formbuilder.auth import decode_token
from formbuilder.config import settings
from formbuilder.errors import AuthError
from formbuilder.repos.user_repo import get_user_by_id

_bearer_scheme = HTTPBearer(auto_error=False)

# Primary keys are SERIAL (int4); larger ids are rejected before reaching the DB.
MAX_ID = 2**31 - 1


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is not None and credentials.credentials.strip():
        return credentials.credentials
    cookie = request.cookies.get(settings.AUTH_COOKIE_NAME, "").strip()
    return cookie or None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> dict:
    """Extract and validate the current user from the session token.

    Returns the user dict from the database (password hash removed).
    Raises AuthError (401) if the token is missing, invalid, expired, or
    names a user that no longer exists.
    """
    token = _extract_token(request, credentials)
    if token is None:
        raise AuthError("Missing authentication token")

    try:
        payload = decode_token(token)
    except pyjwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except pyjwt.PyJWTError:
        raise AuthError("Invalid authentication token")

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthError("Invalid token payload")

    user = await get_user_by_id(user_id)
    if user is None:
        raise AuthError("User not found")

    user.pop("password", None)
    return user
