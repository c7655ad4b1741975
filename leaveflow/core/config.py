import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

# base64 of "dev-only-leaveflow-key-32-bytes-"
_DEV_ENCRYPTION_KEY = "ZGV2LW9ubHktbGVhdmVmbG93LWtleS0zMi1ieXRlcy0="

class PasswordPolicy(BaseModel):
    min_length: int = Field(default=int(os.getenv("PASSWORD_MIN_LENGTH", "8")))
    require_mixed: bool = Field(default=os.getenv("PASSWORD_REQUIRE_MIXED", "false").lower() == "true")
    bcrypt_rounds: int = Field(default=int(os.getenv("BCRYPT_ROUNDS", "12")))

class BootstrapAdmin(BaseModel):
    employee_id: Optional[str] = Field(default=os.getenv("BOOTSTRAP_ADMIN_EMPLOYEE_ID"))
    email: Optional[str] = Field(default=os.getenv("BOOTSTRAP_ADMIN_EMAIL"))
    password: Optional[str] = Field(default=os.getenv("BOOTSTRAP_ADMIN_PASSWORD"))

    @property
    def configured(self) -> bool:
        return bool(self.employee_id and self.email and self.password)

class Config(BaseModel):
    app_name: str = "LeaveFlow"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./leaveflow.db")

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    rate_limit_login: str = os.getenv("RATE_LIMIT_LOGIN", "10/minute")
    passwords: PasswordPolicy = PasswordPolicy()
    bootstrap_admin: BootstrapAdmin = BootstrapAdmin()

    # Remote identity directory (optional). When unset, accounts live only in the local store.
    identity_directory_url: Optional[str] = os.getenv("IDENTITY_DIRECTORY_URL")
    identity_directory_token: Optional[str] = os.getenv("IDENTITY_DIRECTORY_TOKEN")
    identity_directory_timeout: int = int(os.getenv("IDENTITY_DIRECTORY_TIMEOUT", "10"))

    version: str = "1.0.0"
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    # Fernet key used for sensitive HR attributes (national id)
    encryption_key: str = os.getenv("ENCRYPTION_KEY", _DEV_ENCRYPTION_KEY)

settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment not in ("development", "testing"):
    _critical_missing = []
    if "dev-only" in settings.secret_key:
        _critical_missing.append("SECRET_KEY")
    if settings.encryption_key == _DEV_ENCRYPTION_KEY:
        _critical_missing.append("ENCRYPTION_KEY")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set for non-development environments: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
else:
    if "dev-only" in settings.secret_key:
        _logger.warning("Using insecure default SECRET_KEY - only acceptable in development.")
