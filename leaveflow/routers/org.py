from typing import Optional

from fastapi import APIRouter, Depends, Form
from sqlalchemy.orm import Session

from leaveflow.core.exceptions import InvalidInputError
from leaveflow.database import get_db
from leaveflow.models.user import User
from leaveflow.routers.auth_deps import require_admin, require_supervisor
from leaveflow.schemas.auth import UserList, UserResult
from leaveflow.services.hierarchy import HierarchyService

router = APIRouter(tags=["organization"])


def _form_id(value: Optional[str], field: str) -> Optional[int]:
    """Form fields arrive as text; blank means "not given"."""
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        raise InvalidInputError(f"{field} must be a numeric user id.", field=field) from None


@router.post("/assign-supervisor", response_model=UserResult)
def assign_supervisor(
    employee_id: Optional[str] = Form(None, alias="employeeId"),
    supervisor_id: Optional[str] = Form(None, alias="supervisorId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    """Form-encoded. An empty supervisorId clears the assignment."""
    employee_pk = _form_id(employee_id, "employeeId")
    if employee_pk is None:
        raise InvalidInputError("Employee ID is required", field="employeeId")
    employee = HierarchyService(db).assign_supervisor(
        current_user, employee_pk, _form_id(supervisor_id, "supervisorId")
    )
    return {"success": True, "data": employee}


@router.get("/org/supervisors", response_model=UserList)
def list_supervisor_candidates(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    return {"success": True, "data": HierarchyService(db).supervisor_candidates()}


@router.get("/org/unassigned", response_model=UserList)
def list_unassigned_employees(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    return {"success": True, "data": HierarchyService(db).unassigned_employees()}


@router.get("/org/team", response_model=UserList)
def list_direct_reports(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor()),
):
    return {"success": True, "data": HierarchyService(db).direct_reports(current_user)}
