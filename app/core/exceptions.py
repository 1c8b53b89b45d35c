"""
Domain exceptions.

Services raise these; the handlers in app.core.errors turn them into
localized JSON responses. Each carries a message key from the i18n
catalog plus the parameters used to fill it in.
"""


class BloomhabitError(Exception):
    """Base exception for all Bloomhabit errors"""

    status_code = 500
    message_key = "errors.internal"

    def __init__(self, message: str | None = None, message_key: str | None = None, **params):
        self.message_key = message_key or self.message_key
        self.params = params
        self.message = message
        super().__init__(message or self.message_key)


class NotFoundError(BloomhabitError):
    """Raised when a record does not exist or belongs to another user"""

    status_code = 404
    message_key = "errors.not_found"


class ConflictError(BloomhabitError):
    """Raised when creating a record that would violate a uniqueness rule"""

    status_code = 409
    message_key = "errors.conflict"


class AuthenticationError(BloomhabitError):
    """Raised for bad credentials or invalid tokens"""

    status_code = 401
    message_key = "errors.unauthorized"


class BadRequestError(BloomhabitError):
    """Raised when a request is well-formed but cannot be honoured"""

    status_code = 400
    message_key = "errors.bad_request"


class ServiceUnavailableError(BloomhabitError):
    """Raised when a feature is switched off in configuration"""

    status_code = 503
    message_key = "errors.service_unavailable"
