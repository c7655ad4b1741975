import os

import pytest

# Set env before importing leaveflow components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["IDENTITY_DIRECTORY_URL"] = ""
os.environ["BOOTSTRAP_ADMIN_EMPLOYEE_ID"] = ""
os.environ["BOOTSTRAP_ADMIN_EMAIL"] = ""
os.environ["BOOTSTRAP_ADMIN_PASSWORD"] = ""

from fastapi.testclient import TestClient

from leaveflow.database import Base, SessionLocal, engine, get_db
from leaveflow.main import app
from leaveflow.models.user import User, UserRole
from leaveflow.services import auth as auth_service
from leaveflow.services.notification import view_notifier

DEFAULT_PASSWORD = "Password123"


@pytest.fixture(scope="function", autouse=True)
def database():
    """Fresh schema for every test; the in-memory engine shares one connection."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(database):
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def make_user(db_session):
    """Factory creating users directly in the store."""
    counter = {"n": 0}

    def _make_user(
        role=UserRole.EMPLOYEE,
        supervisor=None,
        first_name=None,
        last_name="Tester",
        employee_id=None,
        email=None,
        password=DEFAULT_PASSWORD,
    ):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            first_name=first_name or f"{role.value.title()}{n}",
            last_name=last_name,
            employee_id=employee_id or f"{role.value[0]}{n:04d}",
            email=email or f"{role.value.lower()}{n}@example.com",
            role=role,
            supervisor_id=supervisor.id if supervisor else None,
            hashed_password=auth_service.get_password_hash(password),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture(scope="function")
def admin_user(make_user):
    return make_user(UserRole.ADMIN, first_name="Ada", last_name="Admin", employee_id="ADM001")


@pytest.fixture(scope="function")
def supervisor_user(make_user):
    return make_user(UserRole.SUPERVISOR, first_name="Sam", last_name="Super", employee_id="SUP001")


@pytest.fixture(scope="function")
def employee_user(make_user, supervisor_user):
    return make_user(
        UserRole.EMPLOYEE,
        supervisor=supervisor_user,
        first_name="Eve",
        last_name="Worker",
        employee_id="EMP001",
    )


@pytest.fixture(scope="function")
def auth_headers():
    """Builds an Authorization header for a user."""

    def _auth_headers(user):
        return {"Authorization": f"Bearer {auth_service.issue_token_for(user)}"}

    return _auth_headers


@pytest.fixture(scope="function")
def client(db_session):
    """TestClient sharing the test session via dependency override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_view_listeners():
    yield
    view_notifier._listeners.clear()
