"""Forms router -- form CRUD and field management."""

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field

from formbuilder.api.deps import MAX_ID, get_current_user
from formbuilder.services.field_service import create_field, delete_field, update_field
from formbuilder.services.form_service import (
    create_new_form,
    delete_user_form,
    get_form_detail,
    list_all_forms,
    list_user_forms,
)

router = APIRouter(prefix="/api/v1/form", tags=["forms"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CreateFormRequest(BaseModel):
    """Request body for creating a form."""

    form_title: str = Field(..., max_length=255, description="Form title")
    form_description: str = Field(..., max_length=2000, description="Form description")


class CreateFormFieldRequest(BaseModel):
    """Request body for adding a field to a form."""

    field_title: str = Field(..., max_length=255, description="Question shown to respondents")
    required: bool = Field(False, description="Whether respondents must answer")
    form_id: int = Field(..., ge=1, le=MAX_ID, description="Form to add the field to")


class UpdateFormFieldRequest(BaseModel):
    """Request body for editing a field."""

    field_title: str = Field(..., max_length=255)
    required: bool = False


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------
# Registered before /{form_id} so "fields" is never parsed as a form id.


@router.post("/fields", status_code=status.HTTP_201_CREATED)
async def add_field(
    body: CreateFormFieldRequest,
    current_user: dict = Depends(get_current_user),
) -> dict:
    """Add a field to one of the user's forms."""
    return await create_field(
        user_id=current_user["id"],
        form_id=body.form_id,
        field_title=body.field_title,
        required=body.required,
    )


@router.put("/fields/{field_id}")
async def edit_field(
    body: UpdateFormFieldRequest,
    field_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: dict = Depends(get_current_user),
) -> dict:
    """Update a field on one of the user's forms."""
    return await update_field(
        user_id=current_user["id"],
        field_id=field_id,
        field_title=body.field_title,
        required=body.required,
    )


@router.delete("/fields/{field_id}")
async def remove_field(
    field_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: dict = Depends(get_current_user),
) -> dict:
    """Delete a field from one of the user's forms."""
    await delete_field(current_user["id"], field_id)
    return {"message": f"field with id {field_id} deleted"}


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_form(
    body: CreateFormRequest,
    current_user: dict = Depends(get_current_user),
) -> dict:
    """Create a new (not yet ready) form."""
    return await create_new_form(
        user_id=current_user["id"],
        form_title=body.form_title,
        form_description=body.form_description,
    )


@router.get("")
async def list_forms(current_user: dict = Depends(get_current_user)) -> list[dict]:
    """List every form."""
    return await list_all_forms()


@router.get("/my-forms")
async def my_forms(current_user: dict = Depends(get_current_user)) -> list[dict]:
    """List the forms the user owns."""
    return await list_user_forms(current_user["id"])


@router.get("/{form_id}")
async def get_form(
    form_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: dict = Depends(get_current_user),
) -> dict:
    """Form detail with owner and fields."""
    return await get_form_detail(form_id)


@router.delete("/{form_id}")
async def remove_form(
    form_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: dict = Depends(get_current_user),
) -> dict:
    """Delete one of the user's forms."""
    await delete_user_form(current_user["id"], form_id)
    return {"message": f"form with id {form_id} deleted"}
