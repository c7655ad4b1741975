"""
Credential handling and identity resolution.

Passwords are hashed with bcrypt through passlib. Sessions are stateless
HS256 bearer tokens carrying the user id as subject. Route code never reads
the token directly: it asks an IdentityResolver who is calling.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Request
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from leaveflow.core.config import settings
from leaveflow.core.exceptions import AuthenticationError
from leaveflow.models.user import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
INVALID_CREDENTIALS = "Invalid employee ID or password"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.passwords.bcrypt_rounds,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed or unknown hash format stored for this user
        return False


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = dict(data)
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Session expired. Please sign in again.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError() from exc


def issue_token_for(user: User) -> str:
    return create_access_token(data={
        "sub": str(user.id),
        "role": user.role.value,
        "employee_id": user.employee_id,
    })


def authenticate(db: Session, employee_id: str, password: str) -> User:
    """
    Resolve credentials to a user. Any mismatch yields the same generic error
    so the caller cannot tell which field was wrong.
    """
    user = db.query(User).filter(User.employee_id == (employee_id or "").strip()).first()
    if not user or not verify_password(password or "", user.hashed_password):
        logger.info("Authentication failed", extra={"reason": "invalid_credentials"})
        raise AuthenticationError(INVALID_CREDENTIALS)
    return user


class IdentityResolver(ABC):
    """Answers "who is making this call" for whichever credential backend is in use."""

    @abstractmethod
    def resolve_identity(self, request: Request) -> int:
        """Return the internal user id of the caller or raise AuthenticationError."""


class BearerTokenResolver(IdentityResolver):
    scheme = "bearer"

    def resolve_identity(self, request: Request) -> int:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != self.scheme or not token:
            raise AuthenticationError("Not authenticated")

        payload = decode_access_token(token.strip())
        if payload.get("type") != "access":
            raise AuthenticationError("Invalid token type")

        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError) as exc:
            raise AuthenticationError("Missing subject in token") from exc
