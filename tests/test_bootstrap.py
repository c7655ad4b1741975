import pytest

from leaveflow.core.config import BootstrapAdmin, settings
from leaveflow.core.exceptions import InvalidInputError
from leaveflow.core.init_system import init_system_data
from leaveflow.database import SessionLocal
from leaveflow.models.leave_request import LeaveRequest
from leaveflow.models.user import User, UserRole
from leaveflow.services import auth as auth_service
from scripts.create_admin import create_admin_user
from scripts.seed_users import seed


@pytest.fixture
def bootstrap_admin(monkeypatch):
    monkeypatch.setattr(
        settings,
        "bootstrap_admin",
        BootstrapAdmin(employee_id="ROOT", email="Root@Example.com", password="RootPass123"),
    )


def test_bootstrap_admin_created_once(db_session, bootstrap_admin):
    created = init_system_data(SessionLocal)
    assert created is not None
    assert init_system_data(SessionLocal) is None

    admins = db_session.query(User).filter(User.role == UserRole.ADMIN).all()
    assert [a.employee_id for a in admins] == ["ROOT"]
    assert admins[0].email == "root@example.com"
    assert auth_service.verify_password("RootPass123", admins[0].hashed_password)


def test_bootstrap_skipped_when_admin_exists(db_session, admin_user, bootstrap_admin):
    assert init_system_data(SessionLocal) is None
    assert db_session.query(User).filter(User.employee_id == "ROOT").count() == 0


def test_bootstrap_skipped_when_not_configured(db_session):
    assert init_system_data(SessionLocal) is None
    assert db_session.query(User).count() == 0


def test_create_admin_script(db_session):
    user = create_admin_user(db_session, "OPS1", "ops@example.com", "OpsPass123")
    assert user.role == UserRole.ADMIN
    assert create_admin_user(db_session, "OPS1", "other@example.com", "OpsPass123") is None


def test_create_admin_script_enforces_password_policy(db_session):
    with pytest.raises(InvalidInputError):
        create_admin_user(db_session, "OPS2", "ops2@example.com", "short")


def test_seed_users_builds_hierarchy(db_session):
    users = seed(db_session, "SeedPass123")
    assert users["EMP001"].supervisor_id == users["SUP001"].id
    assert users["EMP004"].supervisor_id is None
    assert db_session.query(LeaveRequest).count() == 3

    seed(db_session, "SeedPass123")
    assert db_session.query(User).count() == 7
