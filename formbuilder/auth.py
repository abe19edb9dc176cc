"""JWT encode/decode utilities and password hashing for session management."""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from formbuilder.config import settings

ALGORITHM = "HS256"
_JWT_AUD = "formbuilder"
_JWT_ISS = "formbuilder"


def create_token(user_id: int, username: str) -> str:
    """Create a JWT token for the given user."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "username": username,
        "aud": _JWT_AUD,
        "iss": _JWT_ISS,
        "exp": now + timedelta(hours=settings.TOKEN_EXPIRY_HOURS),
        "iat": now,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[ALGORITHM],
        audience=_JWT_AUD,
        issuer=_JWT_ISS,
        options={"require": ["exp", "iat", "sub", "aud", "iss"]},
    )


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check *password* against a stored bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
