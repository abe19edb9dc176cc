"""Form repository -- database reads and writes for the forms table."""

from formbuilder.repos.db import get_pool

_FORM_COLUMNS = "id, form_title, form_description, is_ready, user_id, created_at"

# Form joined with its owner; owner columns are prefixed so they can be
# split back out into a nested ``user`` dict.
_FORM_WITH_OWNER = """
    SELECT f.id, f.form_title, f.form_description, f.is_ready, f.user_id, f.created_at,
           u.id AS owner_id, u.email AS owner_email, u.username AS owner_username,
           u.created_at AS owner_created_at, u.updated_at AS owner_updated_at
    FROM forms AS f
    INNER JOIN users AS u ON f.user_id = u.id
"""


async def create_form(form_title: str, form_description: str, user_id: int) -> dict:
    """Insert a new form owned by *user_id*. New forms are never ready."""
    pool = await get_pool()
    row = await pool.fetchrow(
        f"""
        INSERT INTO forms (form_title, form_description, user_id)
        VALUES ($1, $2, $3)
        RETURNING {_FORM_COLUMNS}
        """,
        form_title,
        form_description,
        user_id,
    )
    return dict(row)


async def get_form_by_id(form_id: int) -> dict | None:
    """Fetch a form by primary key. Returns None if not found."""
    pool = await get_pool()
    row = await pool.fetchrow(
        f"SELECT {_FORM_COLUMNS} FROM forms WHERE id = $1",
        form_id,
    )
    return dict(row) if row else None


async def get_forms_by_user_id(user_id: int) -> list[dict]:
    """Return all forms owned by a user, newest first, each with its owner."""
    pool = await get_pool()
    rows = await pool.fetch(
        _FORM_WITH_OWNER + " WHERE f.user_id = $1 ORDER BY f.created_at DESC, f.id DESC",
        user_id,
    )
    return [_form_with_owner(r) for r in rows]


async def get_all_forms() -> list[dict]:
    """Return every form, newest first, each with its owner."""
    pool = await get_pool()
    rows = await pool.fetch(
        _FORM_WITH_OWNER + " ORDER BY f.created_at DESC, f.id DESC",
    )
    return [_form_with_owner(r) for r in rows]


async def get_form_with_fields_and_user(form_id: int) -> dict | None:
    """Fetch a form with its owner and its fields (in creation order)."""
    pool = await get_pool()
    row = await pool.fetchrow(_FORM_WITH_OWNER + " WHERE f.id = $1", form_id)
    if row is None:
        return None
    form = _form_with_owner(row)
    fields = await pool.fetch(
        """
        SELECT id, field_title, required, form_id
        FROM form_fields
        WHERE form_id = $1
        ORDER BY id
        """,
        form_id,
    )
    form["form_fields"] = [dict(f) for f in fields]
    return form


async def delete_form(form_id: int) -> bool:
    """Delete a form by primary key. Returns True if a row was deleted.

    Fields, responses and response values go with it (ON DELETE CASCADE).
    """
    pool = await get_pool()
    result = await pool.execute(
        "DELETE FROM forms WHERE id = $1",
        form_id,
    )
    return result == "DELETE 1"


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _form_with_owner(row) -> dict:
    """Convert a joined form/owner row into a form dict with a nested ``user``."""
    d = dict(row)
    d["user"] = {
        "id": d.pop("owner_id"),
        "email": d.pop("owner_email"),
        "username": d.pop("owner_username"),
        "created_at": d.pop("owner_created_at"),
        "updated_at": d.pop("owner_updated_at"),
    }
    return d
