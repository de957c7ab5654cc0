"""Error taxonomy for the scheduling core.

Every refusal maps to exactly one of these kinds. Each carries a stable
``code`` for clients and the HTTP status it is reported with.
"""


class SchedulingError(Exception):
    """Base exception for expected, recoverable scheduling failures."""

    code = 'scheduling_error'
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed or out-of-policy input."""

    code = 'validation_error'
    status_code = 400


class ConflictError(SchedulingError):
    """The slot is already held by an active appointment."""

    code = 'conflict'
    status_code = 409


class Unauthorized(SchedulingError):
    """The actor has no standing on the appointment or organization."""

    code = 'unauthorized'
    status_code = 403


class InvalidTransition(SchedulingError):
    """Status preconditions for a transition are not met."""

    code = 'invalid_transition'
    status_code = 400


class TooEarly(SchedulingError):
    """Completion attempted before the scheduled time."""

    code = 'too_early'
    status_code = 400


class NotFound(SchedulingError):
    code = 'not_found'
    status_code = 404
