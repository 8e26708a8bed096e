"""
Domain-specific exceptions for the FraudBucket API.

These exceptions represent business logic violations and are mapped
to appropriate HTTP status codes in the API layer. Messages are short
and client-safe; store-internal detail never goes into them.
"""

from typing import Any


class FraudBucketError(Exception):
    """Base exception for all FraudBucket domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(FraudBucketError):
    """
    Raised when input data fails validation.

    Examples:
    - Malformed request body
    - Unknown role value
    - No fields provided for update

    HTTP Status: 400 Bad Request
    """

    pass


class MissingFieldError(ValidationError):
    """
    Raised when a required request field is absent or empty.

    HTTP Status: 400 Bad Request
    """

    pass


class InvalidCredentialError(FraudBucketError):
    """
    Raised by sign-in when the password does not match.

    HTTP Status: 400 Bad Request
    """

    pass


class InvalidOrExpiredLinkError(FraudBucketError):
    """
    Raised when a password-reset passcode is unknown, expired or already used.

    The three cases are reported identically.

    HTTP Status: 400 Bad Request
    """

    pass


class UnauthorizedError(FraudBucketError):
    """
    Raised when a request lacks valid authentication.

    Examples:
    - Missing bearer token
    - Garbled, expired or wrongly signed access token

    HTTP Status: 401 Unauthorized
    """

    pass


class InvalidOrExpiredTokenError(FraudBucketError):
    """
    Raised when a refresh token cannot be exchanged.

    Bad signature, expiry, unknown user and a rotated-away token all
    produce this same error.

    HTTP Status: 403 Forbidden
    """

    pass


class ForbiddenError(FraudBucketError):
    """
    Raised when user is authenticated but not allowed to perform action.

    HTTP Status: 403 Forbidden
    """

    pass


class NotFoundError(FraudBucketError):
    """
    Raised when a requested resource does not exist.

    Examples:
    - User ID not found
    - No account for a password-reset email

    HTTP Status: 404 Not Found
    """

    pass


class CredentialNotFoundError(NotFoundError):
    """
    Raised by sign-in when no account matches the email.

    Reported as 400 like the other sign-in credential failures.
    """

    pass


class ConflictError(FraudBucketError):
    """
    Raised when operation conflicts with current state.

    Examples:
    - Email already registered

    HTTP Status: 409 Conflict
    """

    pass


class InternalError(FraudBucketError):
    """
    Raised when a backing store or network collaborator fails.

    HTTP Status: 500 Internal Server Error
    """

    pass


ERROR_STATUS_MAP = {
    ValidationError: 400,
    InvalidCredentialError: 400,
    CredentialNotFoundError: 400,
    InvalidOrExpiredLinkError: 400,
    UnauthorizedError: 401,
    InvalidOrExpiredTokenError: 403,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    InternalError: 500,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    The most specific class in the exception's MRO wins.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS_MAP:
            return ERROR_STATUS_MAP[cls]
    return 500
