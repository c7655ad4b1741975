"""Demo data: one admin, two supervisors, and employees split between them."""
import logging
import os
import sys
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

sys.path.append(os.getcwd())

from leaveflow.database import SessionLocal, init_db
from leaveflow.models.leave_request import LeaveRequest, LeaveStatus
from leaveflow.models.user import SocialInsuranceType, User, UserRole
from leaveflow.services.auth import get_password_hash

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

DEMO_USERS = [
    # employee_id, first, last, role, supervisor employee_id
    ("ADM001", "Amal", "Haddad", UserRole.ADMIN, None),
    ("SUP001", "Omar", "Saleh", UserRole.SUPERVISOR, None),
    ("SUP002", "Lina", "Farah", UserRole.SUPERVISOR, None),
    ("EMP001", "Karim", "Nasser", UserRole.EMPLOYEE, "SUP001"),
    ("EMP002", "Maya", "Khoury", UserRole.EMPLOYEE, "SUP001"),
    ("EMP003", "Rami", "Aziz", UserRole.EMPLOYEE, "SUP002"),
    ("EMP004", "Noor", "Issa", UserRole.EMPLOYEE, None),
]


def create_user(db: Session, employee_id, first_name, last_name, role, password_hash):
    existing_user = db.query(User).filter(User.employee_id == employee_id).first()
    if existing_user:
        logger.info(f"User {employee_id} already exists. Skipping.")
        return existing_user

    user = User(
        first_name=first_name,
        last_name=last_name,
        employee_id=employee_id,
        email=f"{employee_id.lower()}@example.com",
        role=role,
        hashed_password=password_hash,
        social_insurance_type=SocialInsuranceType.LOCAL,
    )
    db.add(user)
    db.flush()
    logger.info(f"Created {role.value} -> {employee_id}")
    return user


def seed(db: Session, password: str) -> dict:
    password_hash = get_password_hash(password)
    users = {}
    for employee_id, first_name, last_name, role, _ in DEMO_USERS:
        users[employee_id] = create_user(db, employee_id, first_name, last_name, role, password_hash)
    for employee_id, _, _, _, supervisor in DEMO_USERS:
        if supervisor:
            users[employee_id].supervisor_id = users[supervisor].id

    now = datetime.now(timezone.utc)
    if not db.query(LeaveRequest).count():
        db.add_all([
            LeaveRequest(
                user_id=users["EMP001"].id,
                start_date=now + timedelta(days=7),
                end_date=now + timedelta(days=9),
                reason="Family visit",
                status=LeaveStatus.PENDING,
            ),
            LeaveRequest(
                user_id=users["EMP002"].id,
                start_date=now - timedelta(days=10),
                end_date=now - timedelta(days=8),
                reason="Medical appointment",
                status=LeaveStatus.APPROVED,
            ),
            LeaveRequest(
                user_id=users["EMP003"].id,
                start_date=now + timedelta(days=1, hours=2),
                end_date=now + timedelta(days=1, hours=6),
                reason="Personal errand",
                status=LeaveStatus.PENDING,
            ),
        ])
    db.commit()
    return users


if __name__ == "__main__":
    init_db()
    db = SessionLocal()
    try:
        seed(db, os.getenv("SEED_PASSWORD", "ChangeMe123"))
        logger.info("Demo users seeded; passwords taken from SEED_PASSWORD")
    except Exception as e:
        db.rollback()
        logger.error(f"Seeding failed: {e}")
        raise
    finally:
        db.close()
