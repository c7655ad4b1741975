from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from leaveflow.core.exceptions import InvalidInputError
from leaveflow.database import get_db
from leaveflow.models.leave_request import LeaveStatus
from leaveflow.models.user import User
from leaveflow.routers.auth_deps import get_current_user, require_admin, require_supervisor
from leaveflow.schemas.leave import (
    LeaveRequestCreate,
    LeaveRequestList,
    LeaveRequestResult,
    LeaveStatusUpdate,
)
from leaveflow.services.leave import LeaveService

router = APIRouter(
    prefix="/leave-requests",
    tags=["leave"]
)


def _status_filter(value: Optional[str]) -> Optional[LeaveStatus]:
    """Case-insensitive; "all" or blank means no filter."""
    if value is None or not value.strip() or value.strip().lower() == "all":
        return None
    try:
        return LeaveStatus(value.strip().upper())
    except ValueError:
        raise InvalidInputError(
            "status must be one of PENDING, APPROVED, REJECTED or ALL.", field="status"
        ) from None


@router.post("", response_model=LeaveRequestResult, status_code=status.HTTP_201_CREATED)
def submit_leave_request(
    data: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    leave = LeaveService(db).create(current_user, data.start_date, data.end_date, data.reason)
    return {"success": True, "data": leave}


@router.get("", response_model=LeaveRequestList)
def list_my_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"success": True, "data": LeaveService(db).list_own(current_user)}


@router.get("/team", response_model=LeaveRequestList)
def list_team_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor()),
):
    """Requests of the caller's direct reports, newest first."""
    return {"success": True, "data": LeaveService(db).list_team(current_user)}


@router.get("/all", response_model=LeaveRequestList)
def list_all_requests(
    search: Optional[str] = Query(None, max_length=100),
    status_filter: Optional[str] = Query(None, alias="status", max_length=20),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    requests = LeaveService(db).list_all(current_user, search, _status_filter(status_filter))
    return {"success": True, "data": requests}


@router.get("/{request_id}", response_model=LeaveRequestResult)
def get_leave_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"success": True, "data": LeaveService(db).get(current_user, request_id)}


@router.patch("/{request_id}/status", response_model=LeaveRequestResult)
def update_leave_status(
    request_id: int,
    data: LeaveStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor()),
):
    leave = LeaveService(db).change_status(current_user, request_id, data.status)
    return {"success": True, "data": leave}


@router.delete("/{request_id}")
def delete_leave_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    LeaveService(db).delete(current_user, request_id)
    return {"success": True, "message": "Leave request deleted"}
