import pytest
import requests

from leaveflow.core.exceptions import ConflictError, ServiceUnavailableError
from leaveflow.models.user import User
from leaveflow.schemas.auth import RegisterRequest
from leaveflow.services import identity_directory
from leaveflow.services.identity_directory import (
    LocalIdentityDirectory,
    RemoteIdentityDirectory,
    get_identity_directory,
)
from leaveflow.services.users import UserService


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


IDENTITY = dict(
    employee_id="E1",
    email="e1@example.com",
    password="Password123",
    first_name="Ed",
    last_name="One",
)


@pytest.fixture
def directory():
    return RemoteIdentityDirectory("https://idp.example.com/", api_token="secret", timeout=3)


def test_create_identity_posts_to_directory(directory, monkeypatch):
    seen = {}

    def fake_post(url, json, headers, timeout):
        seen.update(url=url, json=json, headers=headers, timeout=timeout)
        return FakeResponse(201, {"id": "user_abc"})

    monkeypatch.setattr(identity_directory.requests, "post", fake_post)
    assert directory.create_identity(**IDENTITY) == "user_abc"
    assert seen["url"] == "https://idp.example.com/users"
    assert seen["json"]["username"] == "E1"
    assert seen["headers"]["Authorization"] == "Bearer secret"
    assert seen["timeout"] == 3


def test_conflict_from_directory(directory, monkeypatch):
    monkeypatch.setattr(identity_directory.requests, "post", lambda *a, **kw: FakeResponse(409))
    with pytest.raises(ConflictError):
        directory.create_identity(**IDENTITY)


def test_directory_failure_is_service_unavailable(directory, monkeypatch):
    monkeypatch.setattr(identity_directory.requests, "post", lambda *a, **kw: FakeResponse(500))
    with pytest.raises(ServiceUnavailableError):
        directory.create_identity(**IDENTITY)


def test_unreachable_directory(directory, monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("no route")

    monkeypatch.setattr(identity_directory.requests, "post", boom)
    with pytest.raises(ServiceUnavailableError):
        directory.create_identity(**IDENTITY)


def test_delete_identity(directory, monkeypatch):
    deleted = []
    monkeypatch.setattr(
        identity_directory.requests,
        "delete",
        lambda url, headers, timeout: deleted.append(url) or FakeResponse(204),
    )
    directory.delete_identity("user_abc")
    directory.delete_identity(None)
    assert deleted == ["https://idp.example.com/users/user_abc"]


def test_local_directory_is_default():
    assert isinstance(get_identity_directory(), LocalIdentityDirectory)


def test_registration_stores_external_id(db_session, directory, monkeypatch):
    monkeypatch.setattr(identity_directory.requests, "post", lambda *a, **kw: FakeResponse(201, {"id": "user_xyz"}))
    user = UserService(db_session, directory).register(RegisterRequest(
        first_name="Ed", last_name="One", employee_id="E1", email="e1@example.com", password="Password123",
    ))
    assert user.external_id == "user_xyz"


def test_failed_local_insert_removes_remote_identity(db_session, directory, employee_user, monkeypatch):
    deleted = []
    monkeypatch.setattr(identity_directory.requests, "post", lambda *a, **kw: FakeResponse(201, {"id": "user_dup"}))
    monkeypatch.setattr(
        identity_directory.requests,
        "delete",
        lambda url, headers, timeout: deleted.append(url) or FakeResponse(204),
    )
    service = UserService(db_session, directory)
    monkeypatch.setattr(service, "_ensure_unique", lambda *args, **kwargs: None)

    with pytest.raises(ConflictError):
        service.register(RegisterRequest(
            first_name="Dup",
            employee_id=employee_user.employee_id,
            email="dup@example.com",
            password="Password123",
        ))
    assert deleted == ["https://idp.example.com/users/user_dup"]
    assert db_session.query(User).filter(User.email == "dup@example.com").count() == 0


def test_register_endpoint_uses_configured_directory(client, monkeypatch):
    from leaveflow.main import app

    class RejectingDirectory(LocalIdentityDirectory):
        def create_identity(self, **kwargs):
            raise ServiceUnavailableError("Authentication service unavailable. Please try again later.")

    app.dependency_overrides[get_identity_directory] = RejectingDirectory
    response = client.post("/api/register", json={
        "first_name": "Ed", "employee_id": "E1", "email": "e1@example.com", "password": "Password123",
    })
    assert response.status_code == 503
    assert response.json()["code"] == "SERVICE_UNAVAILABLE"
