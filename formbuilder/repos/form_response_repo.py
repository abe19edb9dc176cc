"""Form response repository -- form_responses and response_fields.

Responses are write-once: there are no update or delete operations.
"""

from formbuilder.repos.db import get_pool, transaction

_RESPONSE_COLUMNS = "id, form_id, respondent_id, submitted_at"
_RESPONSE_FIELD_COLUMNS = "id, field_value, form_response_id, form_field_id"

_RESPONSE_WITH_RESPONDENT = """
    SELECT fr.id, fr.form_id, fr.respondent_id, fr.submitted_at,
           u.id AS respondent_user_id, u.email AS respondent_email,
           u.username AS respondent_username,
           u.created_at AS respondent_created_at, u.updated_at AS respondent_updated_at
    FROM form_responses AS fr
    INNER JOIN users AS u ON fr.respondent_id = u.id
"""


async def create_form_response(
    form_id: int,
    respondent_id: int,
    response_fields: list[dict],
) -> dict | None:
    """Persist one response and all of its field values in a single transaction.

    *response_fields* items carry ``field_value`` and ``form_field_id``.
    The form row is held ``FOR SHARE`` for the duration, so no field can be
    added to or removed from the form mid-insert.  Readiness and field
    membership are re-checked under that lock; if either no longer holds,
    nothing is written and None is returned.

    Returns ``{"form_response": {...}, "response_fields": [...]}``.
    """
    field_ids = sorted({item["form_field_id"] for item in response_fields})
    async with transaction() as conn:
        is_ready = await conn.fetchval(
            "SELECT is_ready FROM forms WHERE id = $1 FOR SHARE",
            form_id,
        )
        if not is_ready:
            return None
        if field_ids:
            matched = await conn.fetchval(
                """
                SELECT COUNT(*) FROM form_fields
                WHERE form_id = $1 AND id = ANY($2::int[])
                """,
                form_id,
                field_ids,
            )
            if matched != len(field_ids):
                return None

        response = await conn.fetchrow(
            f"""
            INSERT INTO form_responses (form_id, respondent_id)
            VALUES ($1, $2)
            RETURNING {_RESPONSE_COLUMNS}
            """,
            form_id,
            respondent_id,
        )
        created: list[dict] = []
        for item in response_fields:
            row = await conn.fetchrow(
                f"""
                INSERT INTO response_fields (form_response_id, form_field_id, field_value)
                VALUES ($1, $2, $3)
                RETURNING {_RESPONSE_FIELD_COLUMNS}
                """,
                response["id"],
                item["form_field_id"],
                item["field_value"],
            )
            created.append(dict(row))
    return {"form_response": dict(response), "response_fields": created}


async def get_form_response_by_id(form_response_id: int) -> dict | None:
    """Fetch a response by primary key. Returns None if not found."""
    pool = await get_pool()
    row = await pool.fetchrow(
        f"SELECT {_RESPONSE_COLUMNS} FROM form_responses WHERE id = $1",
        form_response_id,
    )
    return dict(row) if row else None


async def get_form_responses_by_form_id(form_id: int) -> list[dict]:
    """Return all responses to a form, oldest first, each with its respondent."""
    pool = await get_pool()
    rows = await pool.fetch(
        _RESPONSE_WITH_RESPONDENT + " WHERE fr.form_id = $1 ORDER BY fr.submitted_at, fr.id",
        form_id,
    )
    return [_response_with_respondent(r) for r in rows]


async def get_form_responses_by_respondent_id(respondent_id: int) -> list[dict]:
    """Return every response a user has submitted, newest first."""
    pool = await get_pool()
    rows = await pool.fetch(
        _RESPONSE_WITH_RESPONDENT
        + " WHERE fr.respondent_id = $1 ORDER BY fr.submitted_at DESC, fr.id DESC",
        respondent_id,
    )
    return [_response_with_respondent(r) for r in rows]


async def get_response_fields_by_form_response_id(form_response_id: int) -> list[dict]:
    """Return a response's values, each joined with the field it answers."""
    pool = await get_pool()
    rows = await pool.fetch(
        """
        SELECT rf.id, rf.field_value, rf.form_response_id, rf.form_field_id,
               ff.field_title, ff.required, ff.form_id
        FROM response_fields AS rf
        INNER JOIN form_fields AS ff ON rf.form_field_id = ff.id
        WHERE rf.form_response_id = $1
        ORDER BY ff.id
        """,
        form_response_id,
    )
    result = []
    for r in rows:
        d = dict(r)
        d["form_field"] = {
            "id": d["form_field_id"],
            "field_title": d.pop("field_title"),
            "required": d.pop("required"),
            "form_id": d.pop("form_id"),
        }
        result.append(d)
    return result


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _response_with_respondent(row) -> dict:
    d = dict(row)
    d["respondent"] = {
        "id": d.pop("respondent_user_id"),
        "email": d.pop("respondent_email"),
        "username": d.pop("respondent_username"),
        "created_at": d.pop("respondent_created_at"),
        "updated_at": d.pop("respondent_updated_at"),
    }
    return d
