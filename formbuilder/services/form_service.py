"""Form service -- form CRUD scoped to the requesting user."""

import logging

from formbuilder.errors import BadRequestError, NotFoundError
from formbuilder.repos.form_repo import (
    create_form as repo_create_form,
    delete_form as repo_delete_form,
    get_all_forms,
    get_form_by_id,
    get_form_with_fields_and_user,
    get_forms_by_user_id,
)
from formbuilder.services.authorization import can_manage_form, enforce

logger = logging.getLogger(__name__)


async def load_form(form_id: int) -> dict:
    """Fetch a form or raise NotFoundError."""
    form = await get_form_by_id(form_id)
    if form is None:
        raise NotFoundError(f"form with id {form_id} not found")
    return form


async def create_new_form(user_id: int, form_title: str, form_description: str) -> dict:
    """Create a form owned by *user_id*. The form starts out not ready."""
    form_title = form_title.strip()
    form_description = form_description.strip()
    if not form_title:
        raise BadRequestError("form title is required")
    if not form_description:
        raise BadRequestError("form description is required")

    form = await repo_create_form(form_title, form_description, user_id)
    logger.info("User %d created form %d", user_id, form["id"])
    return form


async def list_all_forms() -> list[dict]:
    return await get_all_forms()


async def list_user_forms(user_id: int) -> list[dict]:
    """Forms owned by *user_id*."""
    return await get_forms_by_user_id(user_id)


async def get_form_detail(form_id: int) -> dict:
    """Form with its owner and fields. Any authenticated user may view it."""
    form = await get_form_with_fields_and_user(form_id)
    if form is None:
        raise NotFoundError(f"form with id {form_id} not found")
    return form


async def delete_user_form(user_id: int, form_id: int) -> None:
    """Delete a form owned by *user_id*, along with its fields and responses."""
    form = await load_form(form_id)
    enforce(can_manage_form(user_id, form))

    if not await repo_delete_form(form_id):
        # Deleted concurrently between the lookup and the delete.
        raise NotFoundError(f"form with id {form_id} not found")
    logger.info("User %d deleted form %d", user_id, form_id)
