"""Response service -- validate and store submissions, and read them back.

Submission is all-or-nothing: the payload is checked against the form's
current field set before anything is written, and the response row plus
every value row are then inserted in one transaction.
"""

import logging

from formbuilder.errors import BadRequestError, NotFoundError
from formbuilder.repos.form_field_repo import get_form_fields_by_form_id
from formbuilder.repos.form_response_repo import (
    create_form_response,
    get_form_response_by_id,
    get_form_responses_by_form_id,
    get_form_responses_by_respondent_id,
    get_response_fields_by_form_response_id,
)
from formbuilder.services.authorization import (
    can_read_responses,
    can_submit_response,
    enforce,
)
from formbuilder.services.form_service import load_form

logger = logging.getLogger(__name__)


async def submit_response(
    user_id: int,
    form_id: int,
    response_fields: list[dict],
) -> dict:
    """Record *user_id*'s answers to a form.

    *response_fields* items carry ``field_value`` and ``form_field_id``.
    Returns ``{"form_response_id": ..., "response_fields": [...]}``.
    """
    form = await load_form(form_id)
    enforce(can_submit_response(form))

    fields = await get_form_fields_by_form_id(form_id)
    valid_ids = {f["id"] for f in fields}
    unknown = [
        item["form_field_id"]
        for item in response_fields
        if item["form_field_id"] not in valid_ids
    ]
    if unknown:
        logger.warning(
            "Rejected response to form %d from user %d: foreign field ids %s",
            form_id, user_id, unknown,
        )
        raise BadRequestError("invalid field id")

    created = await create_form_response(form_id, user_id, response_fields)
    if created is None:
        # The form was deleted, or its field set changed, between validation
        # and the locked insert.
        await load_form(form_id)
        raise BadRequestError("form changed while submitting, please retry")

    response_id = created["form_response"]["id"]
    logger.info(
        "User %d submitted response %d to form %d (%d values)",
        user_id, response_id, form_id, len(created["response_fields"]),
    )
    return {
        "form_response_id": response_id,
        "response_fields": created["response_fields"],
    }


async def list_form_responses(user_id: int, form_id: int) -> list[dict]:
    """All responses to a form owned by *user_id*."""
    form = await load_form(form_id)
    enforce(can_read_responses(user_id, form))
    return await get_form_responses_by_form_id(form_id)


async def list_my_responses(user_id: int) -> list[dict]:
    """Responses *user_id* has submitted to any form."""
    return await get_form_responses_by_respondent_id(user_id)


async def get_response_fields(user_id: int, form_response_id: int) -> list[dict]:
    """Values of one response, each with its field definition.

    Only the owner of the form the response belongs to may read them.
    """
    response = await get_form_response_by_id(form_response_id)
    if response is None:
        raise NotFoundError(f"response with id {form_response_id} not found")
    form = await load_form(response["form_id"])
    enforce(can_read_responses(user_id, form))
    return await get_response_fields_by_form_response_id(form_response_id)
