import re
import secrets
import string
import logging
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken
from leaveflow.core.config import settings
from leaveflow.core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{7,14}$")

_cipher = Fernet(settings.encryption_key)

def encrypt_data(data: Optional[str]) -> Optional[str]:
    """Encrypt sensitive string data."""
    if not data:
        return data
    try:
        return _cipher.encrypt(data.encode()).decode()
    except Exception as e:
        logger.error(f"Encryption failed: {e}")
        raise ValueError(f"Encryption failed - refusing to store plaintext: {e}") from e

def decrypt_data(encrypted_data: Optional[str]) -> Optional[str]:
    """Decrypt sensitive string data."""
    if not encrypted_data:
        return encrypted_data
    try:
        return _cipher.decrypt(encrypted_data.encode()).decode()
    except InvalidToken:
        logger.warning("Decryption failed (possibly not encrypted)")
        return encrypted_data

def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))

def is_valid_phone(phone: str) -> bool:
    cleaned = re.sub(r"[\s\-().]", "", phone or "")
    return bool(PHONE_PATTERN.match(cleaned))

def validate_password_strength(password: Optional[str], field: str = "password") -> None:
    """
    Enforce the configured password policy.
    Length is always checked; mixed case and a digit only when PASSWORD_REQUIRE_MIXED is on.
    """
    policy = settings.passwords
    if not password:
        raise InvalidInputError("Password is required.", field=field)
    if len(password) < policy.min_length:
        raise InvalidInputError(
            f"Password must be at least {policy.min_length} characters long.", field=field
        )
    if policy.require_mixed:
        if not re.search(r"[a-z]", password):
            raise InvalidInputError("Password must contain at least one lowercase letter.", field=field)
        if not re.search(r"[A-Z]", password):
            raise InvalidInputError("Password must contain at least one uppercase letter.", field=field)
        if not re.search(r"\d", password):
            raise InvalidInputError("Password must contain at least one number.", field=field)

def generate_temporary_password(length: int = 12) -> str:
    """Random password that satisfies the strictest policy (upper, lower, digit)."""
    length = max(length, settings.passwords.min_length)
    alphabet = string.ascii_letters + string.digits
    while True:
        candidate = "".join(secrets.choice(alphabet) for _ in range(length))
        if (any(c.islower() for c in candidate)
                and any(c.isupper() for c in candidate)
                and any(c.isdigit() for c in candidate)):
            return candidate
