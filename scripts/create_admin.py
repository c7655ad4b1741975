import argparse
import getpass
import logging
import os
import sys
from typing import Optional

from sqlalchemy.orm import Session

# Ensure we can import leaveflow modules
sys.path.append(os.getcwd())

from leaveflow.core.security import validate_password_strength
from leaveflow.database import SessionLocal, init_db
from leaveflow.models.user import User, UserRole
from leaveflow.services.auth import get_password_hash

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_admin_user(
    db: Session,
    employee_id: str,
    email: str,
    password: str,
    first_name: str = "System",
    last_name: str = "Administrator",
) -> Optional[User]:
    """Creates an ADMIN account. Returns None when the employee ID or email is taken."""
    email = email.strip().lower()
    existing_user = db.query(User).filter(
        (User.employee_id == employee_id) | (User.email == email)
    ).first()
    if existing_user:
        logger.warning(f"User with employee ID '{employee_id}' or email '{email}' already exists.")
        return None

    validate_password_strength(password)
    admin_user = User(
        first_name=first_name,
        last_name=last_name,
        employee_id=employee_id,
        email=email,
        role=UserRole.ADMIN,
        hashed_password=get_password_hash(password),
    )
    db.add(admin_user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(admin_user)
    logger.info(f"Admin user {employee_id} created successfully. You can now login.")
    return admin_user


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create an administrator account")
    parser.add_argument("--employee-id", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--first-name", default="System")
    parser.add_argument("--last-name", default="Administrator")
    args = parser.parse_args(argv)

    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")

    init_db()
    db = SessionLocal()
    try:
        user = create_admin_user(
            db,
            employee_id=args.employee_id,
            email=args.email,
            password=password,
            first_name=args.first_name,
            last_name=args.last_name,
        )
    finally:
        db.close()
    return 0 if user else 1


if __name__ == "__main__":
    sys.exit(main())
