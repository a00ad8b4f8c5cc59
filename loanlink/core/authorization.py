"""Pluggable access control consulted by the routers before dispatch.

Two policies are provided. ``AllowAllPolicy`` is the default and lets every
request through. ``RoleBasedPolicy`` looks up the caller's stored role and
applies the marketplace rules: only admins list users and applications,
admins and managers change roles and edit the loan catalog, and an
application can be cancelled by its owner or an admin.
"""

import logging
from typing import Awaitable, Callable, Dict, FrozenSet, Optional

from loanlink.core.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)

USERS_LIST = "users:list"
USERS_SET_ROLE = "users:set-role"
LOANS_WRITE = "loans:write"
APPLICATIONS_LIST = "loan-applications:list"
APPLICATIONS_CANCEL = "loan-applications:cancel"

ROLE_RULES: Dict[str, FrozenSet[str]] = {
    USERS_LIST: frozenset({"admin"}),
    USERS_SET_ROLE: frozenset({"admin", "manager"}),
    LOANS_WRITE: frozenset({"admin", "manager"}),
    APPLICATIONS_LIST: frozenset({"admin"}),
    APPLICATIONS_CANCEL: frozenset({"admin"}),
}

# Actions the owner of the target resource may perform regardless of role
OWNER_ACTIONS = frozenset({APPLICATIONS_CANCEL})

OwnerLookup = Callable[[], Awaitable[Optional[str]]]


class AuthorizationPolicy:
    """Decides whether a caller may perform an action. Raises on denial."""

    requires_identity = False

    async def authorize(self, caller_email: Optional[str], action: str, owner_lookup: Optional[OwnerLookup] = None) -> None:
        raise NotImplementedError


class AllowAllPolicy(AuthorizationPolicy):

    async def authorize(self, caller_email, action, owner_lookup=None) -> None:
        return None


class RoleBasedPolicy(AuthorizationPolicy):

    requires_identity = True

    def __init__(self, user_service):
        self.user_service = user_service

    async def authorize(self, caller_email, action, owner_lookup=None) -> None:
        if not caller_email:
            raise AuthenticationError("Could not validate credentials")

        if action in OWNER_ACTIONS and owner_lookup is not None:
            owner_email = await owner_lookup()
            if owner_email and owner_email == caller_email:
                return None

        try:
            role = (await self.user_service.get_role(caller_email)).get("role")
        except NotFoundError:
            logger.warning(f"Unknown caller {caller_email} attempted {action}")
            raise PermissionDeniedError("Caller is not a registered user")

        allowed = ROLE_RULES.get(action)
        if allowed is None or role not in allowed:
            logger.warning(f"Denied {action} for {caller_email} with role {role}")
            raise PermissionDeniedError(f"Role '{role}' may not perform {action}")
        return None
