import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from leaveflow.core.config import settings
from leaveflow.database import SessionLocal
from leaveflow.models.user import User, UserRole
from leaveflow.services import auth as auth_service

logger = logging.getLogger(__name__)


def init_system_data(session_factory: Callable[[], Session] = SessionLocal) -> Optional[User]:
    """
    Creates the bootstrap administrator from BOOTSTRAP_ADMIN_* settings when
    they are set and no administrator exists yet. Returns the created user.
    """
    bootstrap = settings.bootstrap_admin
    if not bootstrap.configured:
        logger.info("Bootstrap admin not configured; skipping system initialization")
        return None

    db = session_factory()
    try:
        admin_count = db.query(User).filter(User.role == UserRole.ADMIN).count()
        if admin_count:
            logger.info(f"System initialization check: {admin_count} administrator(s) found.")
            return None

        taken = db.query(User).filter(
            (User.employee_id == bootstrap.employee_id) | (User.email == bootstrap.email.lower())
        ).first()
        if taken is not None:
            logger.warning(
                f"Bootstrap admin not created: employee ID or email already used by user {taken.id}"
            )
            return None

        admin = User(
            first_name="System",
            last_name="Administrator",
            employee_id=bootstrap.employee_id,
            email=bootstrap.email.lower(),
            role=UserRole.ADMIN,
            hashed_password=auth_service.get_password_hash(bootstrap.password),
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info(f"Created bootstrap admin {admin.employee_id}")
        return admin
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization: {e}", exc_info=True)
        raise
    finally:
        db.close()
