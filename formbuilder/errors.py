"""Domain exception hierarchy for the form builder.

Services raise these so that the global exception handler can map them to
the correct HTTP status code without fragile string matching.  Every
subclass carries a single human-readable message; nothing internal is
exposed to the client.
"""


class FormBuilderError(Exception):
    """Base for all domain exceptions (500 when raised directly)."""

    def __init__(self, message: str = "An unexpected error occurred", *, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(FormBuilderError):
    """Resource not found (404)."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class BadRequestError(FormBuilderError):
    """Client sent an invalid request (400)."""

    def __init__(self, message: str = "Bad request"):
        super().__init__(message, status_code=400)


class AuthError(FormBuilderError):
    """Missing or invalid identity (401)."""

    def __init__(self, message: str = "Not authenticated", *, status_code: int = 401):
        super().__init__(message, status_code=status_code)


class UnauthorizedError(FormBuilderError):
    """Authenticated, but not entitled to the resource (401)."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, status_code=401)


class ConflictError(FormBuilderError):
    """Resource already exists (409)."""

    def __init__(self, message: str = "Already exists"):
        super().__init__(message, status_code=409)


def format_error_response(
    *,
    error: str,
    detail: object = None,
    request_id: str = "",
) -> dict:
    """Build a structured error response dict.

    Parameters
    ----------
    error : str
        Short error title (e.g. ``"Internal Server Error"``).
    detail : object
        Human-readable detail string or validation error list.
    request_id : str
        The request ID for tracing.

    Returns
    -------
    dict
        ``{"error": ..., "detail": ..., "request_id": ...}``
    """
    return {
        "error": error,
        "detail": detail if detail is not None else error,
        "request_id": request_id,
    }
