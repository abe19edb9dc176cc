"""Authorization rules -- who may mutate a form, read its responses, or respond.

Every rule is a pure function of the requester id and an already-loaded
form row, returning :class:`Allowed` or :class:`Denied`.  Services load
the form first (so a missing form is reported as not found before any
ownership decision) and then call :func:`enforce`.
"""

from dataclasses import dataclass
from typing import Union

from formbuilder.errors import BadRequestError, FormBuilderError, UnauthorizedError


@dataclass(frozen=True)
class Allowed:
    pass


@dataclass(frozen=True)
class Denied:
    reason: str
    # Error raised by enforce(); ownership failures are authorization errors,
    # readiness failures are invalid input.
    error: type[FormBuilderError] = UnauthorizedError


Decision = Union[Allowed, Denied]

ALLOWED = Allowed()


def is_owner(requester_id: int, form: dict) -> bool:
    return form["user_id"] == requester_id


def can_manage_form(requester_id: int, form: dict) -> Decision:
    """Create/update/delete fields on a form, or delete the form itself."""
    if is_owner(requester_id, form):
        return ALLOWED
    return Denied("user not authorized to modify this form")


def can_read_responses(requester_id: int, form: dict) -> Decision:
    """List a form's responses or read the values of one of them."""
    if is_owner(requester_id, form):
        return ALLOWED
    return Denied("user not authorized to read responses to this form")


def can_submit_response(form: dict) -> Decision:
    """Any authenticated user may respond, but only to a ready form."""
    if form["is_ready"]:
        return ALLOWED
    return Denied("form is not ready to accept responses", error=BadRequestError)


def enforce(decision: Decision) -> None:
    """Raise the denial's error; do nothing when allowed."""
    if isinstance(decision, Denied):
        raise decision.error(decision.reason)
