"""Form field repository -- form_fields CRUD and form readiness upkeep.

Every field insert or delete runs in one transaction together with the
readiness recompute for the owning form.  The form row is locked
``FOR UPDATE`` first, so concurrent field mutations on the same form are
applied one after another and each recompute sees the committed field
set of the ones before it.
"""

import logging

import asyncpg

from formbuilder.repos.db import get_pool, transaction

logger = logging.getLogger(__name__)

_FIELD_COLUMNS = "id, field_title, required, form_id"


# ---------------------------------------------------------------------------
# readiness
# ---------------------------------------------------------------------------


async def recompute_form_readiness(
    form_id: int,
    conn: asyncpg.Connection | None = None,
) -> bool | None:
    """Persist ``forms.is_ready = (form has at least one field)``.

    The existence check runs inside the UPDATE itself, against the stored
    field rows, so calling this redundantly is harmless.  Pass *conn* to
    run it inside an open transaction.  Returns the new flag, or None if
    the form does not exist.
    """
    query = """
        UPDATE forms
        SET is_ready = EXISTS (SELECT 1 FROM form_fields WHERE form_id = $1)
        WHERE id = $1
        RETURNING is_ready
    """
    if conn is None:
        pool = await get_pool()
        return await pool.fetchval(query, form_id)
    return await conn.fetchval(query, form_id)


async def _lock_form(conn: asyncpg.Connection, form_id: int) -> bool:
    locked = await conn.fetchval(
        "SELECT id FROM forms WHERE id = $1 FOR UPDATE",
        form_id,
    )
    return locked is not None


# ---------------------------------------------------------------------------
# form_fields
# ---------------------------------------------------------------------------


async def create_form_field(field_title: str, required: bool, form_id: int) -> dict | None:
    """Add a field to a form and mark the form ready, atomically.

    Returns the new field row, or None if the form no longer exists.
    """
    async with transaction() as conn:
        if not await _lock_form(conn, form_id):
            return None
        row = await conn.fetchrow(
            f"""
            INSERT INTO form_fields (field_title, required, form_id)
            VALUES ($1, $2, $3)
            RETURNING {_FIELD_COLUMNS}
            """,
            field_title,
            required,
            form_id,
        )
        is_ready = await recompute_form_readiness(form_id, conn=conn)
    logger.debug("Form %d readiness after field insert: %s", form_id, is_ready)
    return dict(row)


async def delete_form_field(field_id: int, form_id: int) -> bool:
    """Remove a field from its form and recompute readiness, atomically.

    Returns True if the field was deleted, False if no such field belongs
    to *form_id* (nothing is changed in that case).
    """
    async with transaction() as conn:
        if not await _lock_form(conn, form_id):
            return False
        result = await conn.execute(
            "DELETE FROM form_fields WHERE id = $1 AND form_id = $2",
            field_id,
            form_id,
        )
        if result != "DELETE 1":
            return False
        is_ready = await recompute_form_readiness(form_id, conn=conn)
    logger.debug("Form %d readiness after field delete: %s", form_id, is_ready)
    return True


async def get_form_field_by_id(field_id: int) -> dict | None:
    """Fetch a field by primary key. Returns None if not found."""
    pool = await get_pool()
    row = await pool.fetchrow(
        f"SELECT {_FIELD_COLUMNS} FROM form_fields WHERE id = $1",
        field_id,
    )
    return dict(row) if row else None


async def get_form_fields_by_form_id(form_id: int) -> list[dict]:
    """Return a form's fields in creation order."""
    pool = await get_pool()
    rows = await pool.fetch(
        f"SELECT {_FIELD_COLUMNS} FROM form_fields WHERE form_id = $1 ORDER BY id",
        form_id,
    )
    return [dict(r) for r in rows]


async def update_form_field(field_id: int, field_title: str, required: bool) -> dict | None:
    """Rename a field / toggle its required flag. Returns None if the field is gone."""
    pool = await get_pool()
    row = await pool.fetchrow(
        f"""
        UPDATE form_fields
        SET field_title = $2, required = $3
        WHERE id = $1
        RETURNING {_FIELD_COLUMNS}
        """,
        field_id,
        field_title,
        required,
    )
    return dict(row) if row else None
