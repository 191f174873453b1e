class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is the stable machine-readable name sent to clients and
    ``http_status`` the status controllers answer with.
    """

    code = "domain_error"
    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or a required field is missing."""

    code = "validation_error"


class NotFoundError(DomainError):
    """Raised when a beneficiary (or its public code) is unknown."""

    code = "not_found"
    http_status = 404


class ForbiddenError(DomainError):
    """Raised when the presented tap secret does not match."""

    code = "forbidden"
    http_status = 403


class InvalidTimestampError(DomainError):
    """Raised when a client timestamp is outside the accepted clock skew."""

    code = "invalid_timestamp"


class ExpiredError(DomainError):
    """Raised when a tap is too old to be submitted."""

    code = "expired"


class AlreadyUsedError(DomainError):
    """Raised when a challenge token is replayed."""

    code = "already_used"


class MissingLocationError(DomainError):
    """Raised when the verification method requires coordinates."""

    code = "missing_location"


class TransientStoreFailure(DomainError):
    """Raised when a storage collaborator fails; safe to retry."""

    code = "transient_store_failure"
    http_status = 503
