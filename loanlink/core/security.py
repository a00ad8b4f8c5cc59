from jose import jwt, JWTError
from typing import Optional, Dict, Any

from loanlink.core.config import settings


# Decodes and validates a JWT token returning its payload
def decode_token(token: str, secret_key: Optional[str] = None, algorithm: Optional[str] = None) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(
            token,
            secret_key or settings.JWT_SECRET_KEY,
            algorithms=[algorithm or settings.JWT_ALGORITHM],
        )
    except JWTError:
        return None
