import logging
from typing import Optional

from fastapi import Depends, Request

from loanlink.core.auth_dependencies import get_current_email
from loanlink.core.authorization import AllowAllPolicy, AuthorizationPolicy, RoleBasedPolicy
from loanlink.core.config import Settings
from loanlink.core.exceptions import StoreError
from loanlink.services.loan_application_service import LoanApplicationService
from loanlink.services.loan_service import LoanService
from loanlink.services.payment_service import PaymentService
from loanlink.services.user_service import UserService

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# Returns the application's store handle or reports the store as unavailable
def get_store(request: Request):
    store = getattr(request.app.state, "store", None)
    if store is None:
        logger.error("Store handle is not initialized")
        raise StoreError("Database service unavailable: store is not initialized")
    return store


def get_user_service(store=Depends(get_store), settings: Settings = Depends(get_settings)) -> UserService:
    return UserService(store, default_role=settings.DEFAULT_USER_ROLE)


def get_loan_service(store=Depends(get_store), settings: Settings = Depends(get_settings)) -> LoanService:
    return LoanService(store, search_enabled=settings.LOAN_SEARCH_ENABLED)


def get_loan_application_service(store=Depends(get_store)) -> LoanApplicationService:
    return LoanApplicationService(store)


def get_payment_service(settings: Settings = Depends(get_settings)) -> PaymentService:
    return PaymentService(settings.STRIPE_SECRET_KEY)


def get_authorization_policy(
    settings: Settings = Depends(get_settings),
    user_service: UserService = Depends(get_user_service),
) -> AuthorizationPolicy:
    if settings.AUTHORIZATION_MODE == "roles":
        return RoleBasedPolicy(user_service)
    return AllowAllPolicy()


def require(action: str):
    """Route dependency that runs the configured policy for ``action``."""

    async def check(
        caller_email: Optional[str] = Depends(get_current_email),
        policy: AuthorizationPolicy = Depends(get_authorization_policy),
    ) -> Optional[str]:
        await policy.authorize(caller_email, action)
        return caller_email

    return check
