"""Form responses router -- submit answers and read them back."""

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field

from formbuilder.api.deps import MAX_ID, get_current_user
from formbuilder.services.response_service import (
    get_response_fields,
    list_form_responses,
    list_my_responses,
    submit_response,
)

router = APIRouter(prefix="/api/v1/form-responses", tags=["form-responses"])


class ResponseFieldItem(BaseModel):
    field_value: str = Field(..., max_length=10_000)
    form_field_id: int = Field(..., ge=1, le=MAX_ID)


class CreateFormResponseRequest(BaseModel):
    """Request body for submitting a response."""

    form_id: int = Field(..., ge=1, le=MAX_ID)
    response_fields: list[ResponseFieldItem] = Field(default_factory=list)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_response(
    body: CreateFormResponseRequest,
    current_user: dict = Depends(get_current_user),
) -> dict:
    """Submit a response to a ready form."""
    return await submit_response(
        user_id=current_user["id"],
        form_id=body.form_id,
        response_fields=[item.model_dump() for item in body.response_fields],
    )


@router.get("")
async def my_responses(current_user: dict = Depends(get_current_user)) -> list[dict]:
    """Responses the user has submitted."""
    return await list_my_responses(current_user["id"])


@router.get("/response-fields/{form_response_id}")
async def response_fields(
    form_response_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: dict = Depends(get_current_user),
) -> list[dict]:
    """Values of one response to a form the user owns."""
    return await get_response_fields(current_user["id"], form_response_id)


@router.get("/{form_id}")
async def form_responses(
    form_id: int = Path(..., ge=1, le=MAX_ID),
    current_user: dict = Depends(get_current_user),
) -> list[dict]:
    """All responses to a form the user owns."""
    return await list_form_responses(current_user["id"], form_id)
