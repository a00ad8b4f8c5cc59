from loanlink.core.config import Settings, settings
from loanlink.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    GatewayError,
    LoanLinkError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    ValidationFailedError,
)
