import pytest

from leaveflow.core.exceptions import AccessDeniedError, InvalidInputError, NotFoundError
from leaveflow.models.user import User, UserRole
from leaveflow.services.hierarchy import HierarchyService


def _assign(client, headers, employee_id, supervisor_id=""):
    return client.post(
        "/api/assign-supervisor",
        headers=headers,
        data={"employeeId": str(employee_id), "supervisorId": str(supervisor_id)},
    )


def test_assign_and_clear_supervisor(client, db_session, admin_user, make_user, auth_headers):
    employee = make_user(UserRole.EMPLOYEE)
    supervisor = make_user(UserRole.SUPERVISOR)
    headers = auth_headers(admin_user)

    response = _assign(client, headers, employee.id, supervisor.id)
    assert response.status_code == 200
    assert response.json()["data"]["supervisor_id"] == supervisor.id

    cleared = _assign(client, headers, employee.id, "")
    assert cleared.status_code == 200
    assert cleared.json()["data"]["supervisor_id"] is None


def test_admin_may_supervise(client, admin_user, make_user, auth_headers):
    employee = make_user(UserRole.EMPLOYEE)
    response = _assign(client, auth_headers(admin_user), employee.id, admin_user.id)
    assert response.status_code == 200


def test_employee_cannot_be_supervisor(client, admin_user, make_user, auth_headers):
    employee = make_user(UserRole.EMPLOYEE)
    peer = make_user(UserRole.EMPLOYEE)
    response = _assign(client, auth_headers(admin_user), employee.id, peer.id)
    assert response.status_code == 400
    assert response.json()["field"] == "supervisor_id"


def test_missing_employee_id(client, admin_user, auth_headers):
    response = client.post("/api/assign-supervisor", headers=auth_headers(admin_user), data={})
    assert response.status_code == 400
    assert response.json()["field"] == "employeeId"


def test_non_numeric_employee_id(client, admin_user, auth_headers):
    response = _assign(client, auth_headers(admin_user), "abc")
    assert response.status_code == 400


def test_unknown_employee(client, admin_user, auth_headers):
    assert _assign(client, auth_headers(admin_user), 9999).status_code == 404


def test_only_admin_assigns(client, supervisor_user, make_user, auth_headers):
    employee = make_user(UserRole.EMPLOYEE)
    response = _assign(client, auth_headers(supervisor_user), employee.id, supervisor_user.id)
    assert response.status_code == 403


def test_self_assignment_rejected(db_session, admin_user, make_user):
    supervisor = make_user(UserRole.SUPERVISOR)
    with pytest.raises(InvalidInputError):
        HierarchyService(db_session).assign_supervisor(admin_user, supervisor.id, supervisor.id)


def test_cycle_rejected(db_session, admin_user, make_user):
    top = make_user(UserRole.SUPERVISOR)
    middle = make_user(UserRole.SUPERVISOR, supervisor=top)
    bottom = make_user(UserRole.SUPERVISOR, supervisor=middle)
    service = HierarchyService(db_session)

    with pytest.raises(InvalidInputError) as exc:
        service.assign_supervisor(admin_user, top.id, bottom.id)
    assert "cycle" in exc.value.message
    db_session.expire_all()
    assert db_session.get(User, top.id).supervisor_id is None


def test_admin_cannot_report_to_anyone(db_session, admin_user, make_user):
    supervisor = make_user(UserRole.SUPERVISOR)
    with pytest.raises(InvalidInputError):
        HierarchyService(db_session).assign_supervisor(admin_user, admin_user.id, supervisor.id)


def test_service_rechecks_actor_role(db_session, supervisor_user, make_user):
    employee = make_user(UserRole.EMPLOYEE)
    with pytest.raises(AccessDeniedError):
        HierarchyService(db_session).assign_supervisor(supervisor_user, employee.id, supervisor_user.id)


def test_unknown_employee_service(db_session, admin_user):
    with pytest.raises(NotFoundError):
        HierarchyService(db_session).assign_supervisor(admin_user, 12345, None)


def test_direct_report_counts_are_one_level(db_session, make_user):
    top = make_user(UserRole.SUPERVISOR)
    middle = make_user(UserRole.SUPERVISOR, supervisor=top)
    make_user(UserRole.EMPLOYEE, supervisor=middle)
    make_user(UserRole.EMPLOYEE, supervisor=middle)
    service = HierarchyService(db_session)
    assert service.direct_report_count(top.id) == 1
    assert service.direct_report_count(middle.id) == 2


def test_unassigned_employees(client, admin_user, supervisor_user, employee_user, make_user, auth_headers):
    loner = make_user(UserRole.EMPLOYEE)
    make_user(UserRole.SUPERVISOR)
    response = client.get("/api/org/unassigned", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert [u["id"] for u in response.json()["data"]] == [loner.id]


def test_supervisor_candidates(client, admin_user, supervisor_user, employee_user, auth_headers):
    response = client.get("/api/org/supervisors", headers=auth_headers(admin_user))
    assert {u["role"] for u in response.json()["data"]} == {"ADMIN", "SUPERVISOR"}
    assert client.get("/api/org/supervisors", headers=auth_headers(employee_user)).status_code == 403


def test_team_lists_direct_reports(client, supervisor_user, employee_user, auth_headers):
    response = client.get("/api/org/team", headers=auth_headers(supervisor_user))
    assert response.status_code == 200
    assert [u["employee_id"] for u in response.json()["data"]] == ["EMP001"]
