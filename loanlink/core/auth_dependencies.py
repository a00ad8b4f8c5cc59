from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing import Optional
import logging

from loanlink.core.security import decode_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# Extracts the caller's email from an optional bearer token; None when absent or invalid
async def get_current_email(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if credentials is None:
        return None

    settings = request.app.state.settings
    payload = decode_token(credentials.credentials, settings.JWT_SECRET_KEY, settings.JWT_ALGORITHM)
    if payload is None:
        logger.warning("Token validation failed")
        return None

    email = payload.get("sub")
    if email is None:
        logger.debug("No 'sub' field in token payload.")
    return email
