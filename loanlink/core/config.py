import os
from dotenv import load_dotenv

from loanlink.core.exceptions import ConfigurationError
from loanlink.schemas.user_schemas import UserRoleEnum

load_dotenv()

USER_ROLES = tuple(role.value for role in UserRoleEnum)
AUTHORIZATION_MODES = ("disabled", "roles")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME: str = "LoanLink"
    MONGODB_URI: str = os.getenv("MONGODB_URI")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "loanlink")
    MONGODB_TIMEOUT_MS: int = int(os.getenv("MONGODB_TIMEOUT_MS", "10000"))
    STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY")
    DEFAULT_USER_ROLE: str = os.getenv("DEFAULT_USER_ROLE", "borrower")
    LOAN_SEARCH_ENABLED: bool = _env_flag("LOAN_SEARCH_ENABLED", True)
    AUTHORIZATION_MODE: str = os.getenv("AUTHORIZATION_MODE", "disabled")
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:5173")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Raises ConfigurationError for settings the server cannot run without
    def validate(self) -> None:
        if not self.MONGODB_URI:
            raise ConfigurationError("MONGODB_URI is not set in environment variables")
        if self.DEFAULT_USER_ROLE not in USER_ROLES:
            raise ConfigurationError(
                f"DEFAULT_USER_ROLE must be one of {', '.join(USER_ROLES)}, got '{self.DEFAULT_USER_ROLE}'"
            )
        if self.AUTHORIZATION_MODE not in AUTHORIZATION_MODES:
            raise ConfigurationError(
                f"AUTHORIZATION_MODE must be one of {', '.join(AUTHORIZATION_MODES)}, got '{self.AUTHORIZATION_MODE}'"
            )
        if self.AUTHORIZATION_MODE == "roles" and not self.JWT_SECRET_KEY:
            raise ConfigurationError("JWT_SECRET_KEY is required when AUTHORIZATION_MODE is 'roles'")

    @property
    def allowed_origins(self) -> list:
        raw_origins = self.CLIENT_URL or ""
        return [o.strip() for o in raw_origins.split(",") if o.strip()]


settings = Settings()
