"""Baseline schema — users, forms, fields, responses.

Revision ID: 0001_baseline
Revises: None
Create Date: 2026-10-19

Idempotent (IF NOT EXISTS everywhere) so it can be applied to a database
that was created by hand from the same DDL.
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_baseline"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id              SERIAL PRIMARY KEY,
            email           VARCHAR(255) NOT NULL UNIQUE,
            username        VARCHAR(255) NOT NULL UNIQUE,
            password        TEXT NOT NULL,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at      TIMESTAMPTZ
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS forms (
            id                SERIAL PRIMARY KEY,
            form_title        VARCHAR(255) NOT NULL,
            form_description  TEXT NOT NULL,
            is_ready          BOOLEAN NOT NULL DEFAULT false,
            user_id           INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_forms_user_id ON forms(user_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS form_fields (
            id              SERIAL PRIMARY KEY,
            field_title     VARCHAR(255) NOT NULL CHECK (length(trim(field_title)) > 0),
            required        BOOLEAN NOT NULL DEFAULT false,
            form_id         INTEGER NOT NULL REFERENCES forms(id) ON DELETE CASCADE
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_form_fields_form_id ON form_fields(form_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS form_responses (
            id              SERIAL PRIMARY KEY,
            form_id         INTEGER NOT NULL REFERENCES forms(id) ON DELETE CASCADE,
            respondent_id   INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            submitted_at    TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_form_responses_form_id ON form_responses(form_id)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_form_responses_respondent_id "
        "ON form_responses(respondent_id)"
    )

    op.execute("""
        CREATE TABLE IF NOT EXISTS response_fields (
            id                SERIAL PRIMARY KEY,
            field_value       TEXT NOT NULL,
            form_response_id  INTEGER NOT NULL REFERENCES form_responses(id) ON DELETE CASCADE,
            form_field_id     INTEGER NOT NULL REFERENCES form_fields(id) ON DELETE CASCADE
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_response_fields_form_response_id "
        "ON response_fields(form_response_id)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_response_fields_form_field_id "
        "ON response_fields(form_field_id)"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS response_fields")
    op.execute("DROP TABLE IF EXISTS form_responses")
    op.execute("DROP TABLE IF EXISTS form_fields")
    op.execute("DROP TABLE IF EXISTS forms")
    op.execute("DROP TABLE IF EXISTS users")
