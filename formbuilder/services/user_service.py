"""User service -- registration and login."""

import logging

from formbuilder.auth import hash_password, verify_password
from formbuilder.errors import AuthError, BadRequestError, ConflictError
from formbuilder.repos.user_repo import (
    create_user as repo_create_user,
    get_user_by_email,
    get_users_by_username_or_email,
)

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6
# bcrypt only looks at the first 72 bytes; longer passwords are refused.
PASSWORD_MAX_BYTES = 72
PASSWORD_SPECIAL_CHARS = "@#$%&!"

PASSWORD_POLICY_MESSAGE = (
    "password should have atleast 6 characters,"
    "password should have atleast 1 special character,"
    "password should have atleast 1 uppercase character"
)


def validate_email(email: str) -> bool:
    """Accept ``local@domain`` where both parts are non-empty."""
    local, sep, domain = email.partition("@")
    return bool(sep) and bool(local) and bool(domain)


def validate_password(password: str) -> bool:
    if len(password) < PASSWORD_MIN_LENGTH:
        return False
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False
    if not any(c in PASSWORD_SPECIAL_CHARS for c in password):
        return False
    return any("A" <= c <= "Z" for c in password)


def public_user(user: dict) -> dict:
    """Strip the password hash before a user row leaves the service layer."""
    return {k: v for k, v in user.items() if k != "password"}


async def register_user(username: str, email: str, password: str) -> dict:
    """Create a new account. Returns the public user dict.

    Raises BadRequestError on missing/invalid input and ConflictError when
    the email or username is already registered.
    """
    email = email.strip().lower()
    username = username.strip()
    password = password.strip()

    if not email or not username or not password:
        raise BadRequestError("email,username and password are compulsory fields")
    if not validate_email(email):
        raise BadRequestError("Invalid email")
    if not validate_password(password):
        raise BadRequestError(PASSWORD_POLICY_MESSAGE)

    existing = await get_users_by_username_or_email(username, email)
    if existing:
        logger.warning("Registration rejected: %s / %s already taken", username, email)
        raise ConflictError("user already exists")

    user = await repo_create_user(username, email, hash_password(password))
    if user is None:
        # Lost a race with a concurrent registration; the unique index decided.
        raise ConflictError("user already exists")

    logger.info("Registered user %d (%s)", user["id"], username)
    return public_user(user)


async def authenticate_user(email: str, password: str) -> dict:
    """Check credentials. Returns the public user dict or raises AuthError."""
    email = email.strip().lower()
    password = password.strip()
    if not email or not password:
        raise BadRequestError("email and password are required fields")

    user = await get_user_by_email(email)
    if user is None or not verify_password(password, user["password"]):
        raise AuthError("invalid email or password")
    return public_user(user)
