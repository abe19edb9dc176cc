"""User repository -- database reads and writes for the users table."""

import asyncpg

from formbuilder.repos.db import get_pool

_USER_COLUMNS = "id, email, username, password, created_at, updated_at"


async def create_user(username: str, email: str, password_hash: str) -> dict | None:
    """Insert a user. Returns the new row, or None if the email or username is taken."""
    pool = await get_pool()
    try:
        row = await pool.fetchrow(
            f"""
            INSERT INTO users (email, username, password)
            VALUES ($1, $2, $3)
            RETURNING {_USER_COLUMNS}
            """,
            email,
            username,
            password_hash,
        )
    except asyncpg.UniqueViolationError:
        return None
    return dict(row)


async def get_user_by_id(user_id: int) -> dict | None:
    """Fetch a user by primary key. Returns None if not found."""
    pool = await get_pool()
    row = await pool.fetchrow(
        f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1",
        user_id,
    )
    return dict(row) if row else None


async def get_user_by_email(email: str) -> dict | None:
    pool = await get_pool()
    row = await pool.fetchrow(
        f"SELECT {_USER_COLUMNS} FROM users WHERE email = $1",
        email,
    )
    return dict(row) if row else None


async def get_users_by_username_or_email(username: str, email: str) -> list[dict]:
    """Return every user whose email or username collides with the given pair."""
    pool = await get_pool()
    rows = await pool.fetch(
        f"SELECT {_USER_COLUMNS} FROM users WHERE email = $1 OR username = $2",
        email,
        username,
    )
    return [dict(r) for r in rows]
