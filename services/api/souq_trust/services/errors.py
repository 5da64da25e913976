"""Typed failures raised by the trust services.

Routes translate these into the structured error response; the event
handlers catch everything and log it instead.
"""


class TrustError(RuntimeError):
    """Base class for trust service failures."""

    code = "TRUST_ERROR"

    def __init__(self, message: str, *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(TrustError):
    code = "NOT_FOUND"


class ForbiddenError(TrustError):
    code = "FORBIDDEN"


class AlreadyExistsError(TrustError):
    code = "ALREADY_EXISTS"


class InvalidStateError(TrustError):
    code = "INVALID_STATE"


class NotReadyError(InvalidStateError):
    code = "REVIEW_REQUEST_NOT_READY"


class ExpiredError(InvalidStateError):
    code = "REVIEW_REQUEST_EXPIRED"


class CannotReviewOwnListingError(InvalidStateError):
    code = "CANNOT_REVIEW_OWN_LISTING"


class StoreFailureError(TrustError):
    code = "DATABASE_ERROR"
