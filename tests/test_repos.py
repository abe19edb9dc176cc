"""Tests for the user and form repositories and the transaction helper."""

from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from formbuilder.repos import db, form_repo, user_repo

from conftest import FORM_ID, NOW, OWNER_ID, form_row


def _fake_pool():
    return AsyncMock()


def _user_row(**overrides):
    defaults = {
        "id": OWNER_ID,
        "email": "owner@example.com",
        "username": "owner",
        "password": "$2b$12$hash",
        "created_at": NOW,
        "updated_at": None,
    }
    defaults.update(overrides)
    return defaults


def _joined_form_row(**overrides):
    row = form_row(**overrides)
    row.update({
        "owner_id": row["user_id"],
        "owner_email": "owner@example.com",
        "owner_username": "owner",
        "owner_created_at": NOW,
        "owner_updated_at": None,
    })
    return row


# ---------------------------------------------------------------------------
# transaction()
# ---------------------------------------------------------------------------


def _pool_with_conn():
    conn = MagicMock()
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    return pool, conn


@pytest.mark.asyncio
@patch("formbuilder.repos.db.get_pool", new_callable=AsyncMock)
async def test_transaction_yields_connection_inside_transaction(mock_get_pool):
    pool, conn = _pool_with_conn()
    mock_get_pool.return_value = pool

    async with db.transaction() as tx_conn:
        assert tx_conn is conn

    conn.transaction.assert_called_once()
    conn.transaction.return_value.__aexit__.assert_awaited_once()
    exit_args = conn.transaction.return_value.__aexit__.await_args.args
    assert exit_args[0] is None


@pytest.mark.asyncio
@patch("formbuilder.repos.db.get_pool", new_callable=AsyncMock)
async def test_transaction_propagates_errors_to_rollback(mock_get_pool):
    pool, conn = _pool_with_conn()
    conn.transaction.return_value.__aexit__.return_value = False
    mock_get_pool.return_value = pool

    with pytest.raises(RuntimeError):
        async with db.transaction():
            raise RuntimeError("insert failed")

    exit_args = conn.transaction.return_value.__aexit__.await_args.args
    assert exit_args[0] is RuntimeError


# ---------------------------------------------------------------------------
# dropped-connection replay
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@patch("formbuilder.repos.db.asyncio.sleep", new_callable=AsyncMock)
async def test_pool_replays_statement_after_dropped_connection(mock_sleep):
    raw = AsyncMock()
    raw.fetchval.side_effect = [ConnectionResetError("reset by peer"), 1]

    assert await db._RetryingPool(raw).fetchval("SELECT 1") == 1
    assert raw.fetchval.await_count == 2
    mock_sleep.assert_awaited_once()


@pytest.mark.asyncio
@patch("formbuilder.repos.db.asyncio.sleep", new_callable=AsyncMock)
async def test_pool_gives_up_and_forgets_pool(mock_sleep, monkeypatch):
    raw = AsyncMock()
    raw.execute.side_effect = ConnectionResetError("reset by peer")
    monkeypatch.setattr(db, "_pool", raw)
    monkeypatch.setattr(db, "_facade", db._RetryingPool(raw))

    with pytest.raises(ConnectionResetError):
        await db._RetryingPool(raw).execute("DELETE FROM forms WHERE id = $1", 1)

    assert raw.execute.await_count == len(db._BACKOFF_SECONDS) + 1
    assert db._pool is None


@pytest.mark.asyncio
@patch("formbuilder.repos.db.asyncio.sleep", new_callable=AsyncMock)
async def test_pool_does_not_replay_query_errors(mock_sleep):
    raw = AsyncMock()
    raw.fetchrow.side_effect = asyncpg.PostgresError("syntax error")

    with pytest.raises(asyncpg.PostgresError):
        await db._RetryingPool(raw).fetchrow("SELEC 1")
    assert raw.fetchrow.await_count == 1
    mock_sleep.assert_not_called()


# ---------------------------------------------------------------------------
# users
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@patch("formbuilder.repos.user_repo.get_pool")
async def test_create_user(mock_get_pool):
    pool = _fake_pool()
    pool.fetchrow.return_value = _user_row()
    mock_get_pool.return_value = pool

    result = await user_repo.create_user("owner", "owner@example.com", "$2b$12$hash")

    assert result["id"] == OWNER_ID
    args = pool.fetchrow.call_args.args
    assert args[1:] == ("owner@example.com", "owner", "$2b$12$hash")


@pytest.mark.asyncio
@patch("formbuilder.repos.user_repo.get_pool")
async def test_create_user_duplicate_returns_none(mock_get_pool):
    pool = _fake_pool()
    pool.fetchrow.side_effect = asyncpg.UniqueViolationError("duplicate key")
    mock_get_pool.return_value = pool

    assert await user_repo.create_user("owner", "owner@example.com", "x") is None


@pytest.mark.asyncio
@patch("formbuilder.repos.user_repo.get_pool")
async def test_get_user_by_id_not_found(mock_get_pool):
    pool = _fake_pool()
    pool.fetchrow.return_value = None
    mock_get_pool.return_value = pool

    assert await user_repo.get_user_by_id(99) is None


@pytest.mark.asyncio
@patch("formbuilder.repos.user_repo.get_pool")
async def test_get_users_by_username_or_email(mock_get_pool):
    pool = _fake_pool()
    pool.fetch.return_value = [_user_row(), _user_row(id=2, username="other")]
    mock_get_pool.return_value = pool

    result = await user_repo.get_users_by_username_or_email("owner", "owner@example.com")

    assert [u["id"] for u in result] == [OWNER_ID, 2]
    assert pool.fetch.call_args.args[1:] == ("owner@example.com", "owner")


# ---------------------------------------------------------------------------
# forms
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@patch("formbuilder.repos.form_repo.get_pool")
async def test_create_form_starts_not_ready(mock_get_pool):
    pool = _fake_pool()
    pool.fetchrow.return_value = form_row()
    mock_get_pool.return_value = pool

    result = await form_repo.create_form("Feedback", "Tell us", OWNER_ID)

    assert result["is_ready"] is False
    sql = pool.fetchrow.call_args.args[0]
    assert "is_ready" not in sql.split("VALUES")[0]


@pytest.mark.asyncio
@patch("formbuilder.repos.form_repo.get_pool")
async def test_get_forms_by_user_id_nests_owner(mock_get_pool):
    pool = _fake_pool()
    pool.fetch.return_value = [_joined_form_row()]
    mock_get_pool.return_value = pool

    result = await form_repo.get_forms_by_user_id(OWNER_ID)

    assert len(result) == 1
    form = result[0]
    assert form["user"] == {
        "id": OWNER_ID,
        "email": "owner@example.com",
        "username": "owner",
        "created_at": NOW,
        "updated_at": None,
    }
    assert "owner_id" not in form
    assert "password" not in form["user"]


@pytest.mark.asyncio
@patch("formbuilder.repos.form_repo.get_pool")
async def test_get_form_with_fields_and_user(mock_get_pool):
    pool = _fake_pool()
    pool.fetchrow.return_value = _joined_form_row(is_ready=True)
    pool.fetch.return_value = [
        {"id": 1, "field_title": "Name", "required": True, "form_id": FORM_ID},
        {"id": 2, "field_title": "Email", "required": False, "form_id": FORM_ID},
    ]
    mock_get_pool.return_value = pool

    result = await form_repo.get_form_with_fields_and_user(FORM_ID)

    assert [f["field_title"] for f in result["form_fields"]] == ["Name", "Email"]
    assert result["user"]["username"] == "owner"


@pytest.mark.asyncio
@patch("formbuilder.repos.form_repo.get_pool")
async def test_get_form_with_fields_missing_form(mock_get_pool):
    pool = _fake_pool()
    pool.fetchrow.return_value = None
    mock_get_pool.return_value = pool

    assert await form_repo.get_form_with_fields_and_user(FORM_ID) is None
    pool.fetch.assert_not_called()


@pytest.mark.asyncio
@patch("formbuilder.repos.form_repo.get_pool")
async def test_delete_form_reports_missing_row(mock_get_pool):
    pool = _fake_pool()
    pool.execute.return_value = "DELETE 0"
    mock_get_pool.return_value = pool

    assert await form_repo.delete_form(FORM_ID) is False


@pytest.mark.asyncio
@patch("formbuilder.repos.form_repo.get_pool")
async def test_delete_form_success(mock_get_pool):
    pool = _fake_pool()
    pool.execute.return_value = "DELETE 1"
    mock_get_pool.return_value = pool

    assert await form_repo.delete_form(FORM_ID) is True


@pytest.mark.asyncio
@patch("formbuilder.repos.form_repo.get_pool")
async def test_delete_form_propagates_db_errors(mock_get_pool):
    pool = _fake_pool()
    pool.execute.side_effect = asyncpg.PostgresError("boom")
    mock_get_pool.return_value = pool

    with pytest.raises(asyncpg.PostgresError):
        await form_repo.delete_form(FORM_ID)
