"""
Error kinds raised by the data-access layer.

Callers (typically a web layer) translate these into responses; `status`
is the suggested HTTP status for that translation.
"""


class JoblyError(Exception):
    """Base class for all jobly errors."""

    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(JoblyError):
    """Raised when caller input is malformed (e.g. an empty update)."""

    status = 400


class NotFoundError(JoblyError):
    """Raised when no row matches the requested id."""

    status = 404


class AlreadyExistsError(JoblyError):
    """Raised when creating a record whose id is already taken."""

    status = 409
