"""Error kinds raised by the kiosk services.

Services raise these; the API layer maps them to HTTP responses in ``main.py``.
"""
from __future__ import annotations


class KioskError(Exception):
    """Base class for every error surfaced to the kiosk user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(KioskError):
    """A required form value is missing. Raised before any network call."""

    def __init__(self, field_id: str, message: str) -> None:
        super().__init__(message)
        self.field_id = field_id


class RemoteServiceError(KioskError):
    def __init__(self, action: str, status_code: int, body: str) -> None:
        super().__init__(f"Failed to {action}: {status_code} - {body}")
        self.action = action
        self.status_code = status_code
        self.body = body


class RemoteWriteError(RemoteServiceError):
    """Non-success status on create, patch or attachment upload."""


class RemoteQueryError(RemoteServiceError):
    """Non-success status on a table query."""


class NotFoundError(KioskError):
    """No sign-in record matched the visitor name."""


class AlreadySignedOutError(KioskError):
    """The matching record already carries a sign-out timestamp."""


class InvalidTransitionError(KioskError):
    pass


class SubmissionInProgressError(KioskError):
    pass


_HTTP_STATUS: list[tuple[type[Exception], int]] = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (AlreadySignedOutError, 409),
    (InvalidTransitionError, 409),
    (SubmissionInProgressError, 409),
    (RemoteServiceError, 502),
]


def http_status_for(exc: Exception) -> int:
    """HTTP status reported to the kiosk front end; transport failures count as a bad gateway."""
    for error_type, code in _HTTP_STATUS:
        if isinstance(exc, error_type):
            return code
    return 400 if isinstance(exc, KioskError) else 502
