"""Users router -- registration, login, logout and the current user."""

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field

from formbuilder.api.deps import get_current_user
from formbuilder.api.rate_limit import login_limiter
from formbuilder.auth import create_token
from formbuilder.config import settings
from formbuilder.errors import FormBuilderError
from formbuilder.services.user_service import authenticate_user, register_user

router = APIRouter(prefix="/api/v1/user", tags=["users"])


class RegisterRequest(BaseModel):
    """Request body for creating an account."""

    email: str = Field(..., max_length=255)
    username: str = Field(..., max_length=255)
    password: str = Field(..., max_length=255)


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=255)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.TOKEN_EXPIRY_HOURS * 3600,
        path="/",
        httponly=True,
        samesite="lax",
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, response: Response) -> dict:
    """Create an account and start a session for it."""
    user = await register_user(body.username, body.email, body.password)
    token = create_token(user["id"], user["username"])
    _set_session_cookie(response, token)
    return {"message": "user registered successfully", "user": user, "token": token}


@router.post("/login")
async def login(body: LoginRequest, request: Request, response: Response) -> dict:
    """Exchange email/password for a session token."""
    client_ip = request.client.host if request.client else "unknown"
    if not login_limiter.is_allowed(client_ip):
        raise FormBuilderError("Too many login attempts, try again later", status_code=429)

    user = await authenticate_user(body.email, body.password)
    token = create_token(user["id"], user["username"])
    _set_session_cookie(response, token)
    return {"message": "user logged in successfully", "user": user, "token": token}


@router.get("/authenticated")
async def authenticated(current_user: dict = Depends(get_current_user)) -> dict:
    """Return the user the session belongs to."""
    return current_user


@router.get("/logout")
async def logout(
    response: Response,
    current_user: dict = Depends(get_current_user),
) -> dict:
    """Clear the session cookie."""
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
    )
    return {"message": "logged out successfully"}
