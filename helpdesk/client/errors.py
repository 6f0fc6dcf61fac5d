"""Client-side failure kinds. The UI shows all of them as a toast."""


class ApiError(Exception):
    """Server answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkUnavailableError(ApiError):
    """Server could not be reached."""


class UnauthorizedError(ApiError):
    """Bad credentials or missing/invalid token."""


class NotFoundError(ApiError):
    """Referenced user or ticket does not exist."""


class ValidationFailure(ApiError):
    """Input rejected, locally (password form) or by the server (422)."""
