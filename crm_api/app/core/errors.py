"""
Error taxonomy shared by the services and the API layer.

Services raise these exceptions; ``main.py`` registers a single handler
that turns them into ``{"message": ...}`` JSON responses with the
matching status code.
"""


class CRMError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CRMError):
    """Missing or malformed input."""

    status_code = 400


class AuthError(CRMError):
    """Bad credentials or a missing, invalid or expired token."""

    status_code = 401


class NotFoundError(CRMError):
    status_code = 404


class ConflictError(CRMError):
    """Duplicate registration or an enquiry owned by someone else."""

    status_code = 409


class ConfigError(CRMError):
    """The server is misconfigured (e.g. no signing secret)."""

    status_code = 500
