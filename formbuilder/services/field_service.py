"""Field service -- add, edit and remove fields on a user's own forms."""

import logging

from formbuilder.errors import BadRequestError, NotFoundError
from formbuilder.repos.form_field_repo import (
    create_form_field as repo_create_form_field,
    delete_form_field as repo_delete_form_field,
    get_form_field_by_id,
    update_form_field as repo_update_form_field,
)
from formbuilder.services.authorization import can_manage_form, enforce
from formbuilder.services.form_service import load_form

logger = logging.getLogger(__name__)


def _clean_title(field_title: str) -> str:
    field_title = field_title.strip()
    if not field_title:
        raise BadRequestError("field title cannot be empty")
    return field_title


async def _load_field(field_id: int) -> dict:
    field = await get_form_field_by_id(field_id)
    if field is None:
        raise NotFoundError(f"field with id {field_id} not found")
    return field


async def create_field(user_id: int, form_id: int, field_title: str, required: bool) -> dict:
    """Add a field to a form owned by *user_id*; the form becomes ready."""
    field_title = _clean_title(field_title)
    form = await load_form(form_id)
    enforce(can_manage_form(user_id, form))

    field = await repo_create_form_field(field_title, required, form_id)
    if field is None:
        raise NotFoundError(f"form with id {form_id} not found")
    logger.info("User %d added field %d to form %d", user_id, field["id"], form_id)
    return field


async def update_field(user_id: int, field_id: int, field_title: str, required: bool) -> dict:
    """Rename a field or change its required flag. Readiness is unaffected."""
    field_title = _clean_title(field_title)
    field = await _load_field(field_id)
    form = await load_form(field["form_id"])
    enforce(can_manage_form(user_id, form))

    updated = await repo_update_form_field(field_id, field_title, required)
    if updated is None:
        raise NotFoundError(f"field with id {field_id} not found")
    return updated


async def delete_field(user_id: int, field_id: int) -> None:
    """Remove a field; deleting the last one makes the form not ready."""
    field = await _load_field(field_id)
    form = await load_form(field["form_id"])
    enforce(can_manage_form(user_id, form))

    if not await repo_delete_form_field(field_id, form["id"]):
        raise NotFoundError(f"field with id {field_id} not found")
    logger.info("User %d deleted field %d from form %d", user_id, field_id, form["id"])
