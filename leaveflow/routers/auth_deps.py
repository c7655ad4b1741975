"""
RBAC dependencies.
Every route receives the acting User explicitly through these dependencies.
"""
import logging
from typing import Callable, Iterable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from leaveflow.core.exceptions import AccessDeniedError, AuthenticationError
from leaveflow.database import get_db
from leaveflow.models.user import User, UserRole
from leaveflow.services.auth import BearerTokenResolver, IdentityResolver

logger = logging.getLogger(__name__)

_resolver = BearerTokenResolver()


def get_identity_resolver() -> IdentityResolver:
    return _resolver


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> User:
    """
    Resolves the caller and loads their row fresh, so role and supervisor
    are always the stored ones and never token claims.
    """
    user_id = resolver.resolve_identity(request)
    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"Authentication failed: user {user_id} no longer exists")
        raise AuthenticationError("User not found")
    return user


def require_role(allowed_roles: Iterable[UserRole]) -> Callable:
    """
    Dependency factory that checks if the user has one of the allowed roles.

    Usage:
        @router.get("/all")
        def all_requests(user: User = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    allowed = tuple(allowed_roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.info(
                f"Access denied for user {current_user.id}",
                extra={"role": current_user.role.value, "required": [r.value for r in allowed]},
            )
            raise AccessDeniedError()
        return current_user

    return role_checker


def require_admin():
    return require_role([UserRole.ADMIN])


def require_supervisor():
    """SUPERVISOR or ADMIN."""
    return require_role([UserRole.SUPERVISOR, UserRole.ADMIN])
