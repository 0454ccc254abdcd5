"""Error taxonomy shared by every component.

Each error carries the HTTP status the API surface answers with, so handlers
only need to raise; the app-level exception handler renders the body.
"""


class AppError(Exception):
    """Base class for errors that map to a client-visible response."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(AppError):
    """Missing or malformed required fields."""

    status_code = 400


class AuthenticationError(AppError):
    """Missing, expired or invalid bearer token / credentials."""

    status_code = 401


class ForbiddenError(AppError):
    """Authenticated caller referenced a store it does not own."""

    status_code = 403


class NotFoundError(AppError):
    """Unknown correlation handle or store id."""

    status_code = 404


class ConfigurationError(AppError):
    """A feature was invoked without its required configuration."""

    status_code = 500


class IntegrityError(AppError):
    """Ciphertext failed authentication (tampering or wrong key)."""

    status_code = 500


class UpstreamError(AppError):
    """Non-2xx or transport failure from an external HTTP dependency."""

    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status

    def to_dict(self) -> dict:
        return {"error": self.message, "upstream_status": self.upstream_status}
