from typing import Optional


class LoanLinkError(Exception):
    """Base class for errors the API reports to callers."""

    status_code: int = 500
    code: str = "internal_server_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(LoanLinkError):
    """Required process configuration is missing or invalid. Fatal at startup."""

    code = "configuration_error"


class ValidationFailedError(LoanLinkError):
    """Caller input was rejected before any store mutation."""

    status_code = 400
    code = "validation_error"


class NotFoundError(LoanLinkError):
    status_code = 404
    code = "not_found"


class StoreError(LoanLinkError):
    """The document store could not be reached or rejected an operation."""

    status_code = 503
    code = "store_unavailable"


class GatewayError(LoanLinkError):
    """The payment processor failed. The message is the processor's own."""

    status_code = 502
    code = "payment_gateway_error"


class AuthenticationError(LoanLinkError):
    status_code = 401
    code = "not_authenticated"


class PermissionDeniedError(LoanLinkError):
    status_code = 403
    code = "forbidden"
