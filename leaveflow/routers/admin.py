from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from leaveflow.database import get_db
from leaveflow.models.user import User
from leaveflow.routers.auth_deps import get_current_user, require_admin
from leaveflow.schemas.auth import PasswordReset, UserCreate, UserCreated, UserListItem, UserListing, UserResponse
from leaveflow.services.identity_directory import IdentityDirectory, get_identity_directory
from leaveflow.services.users import UserService

router = APIRouter(
    prefix="/admin",
    tags=["admin"]
)


@router.post("/users", response_model=UserCreated, status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    directory: IdentityDirectory = Depends(get_identity_directory),
    current_user: User = Depends(require_admin()),
):
    user, temporary_password = UserService(db, directory).create_user(current_user, data)
    return UserCreated(
        message="User created successfully",
        user=UserResponse.model_validate(user),
        temporary_password=temporary_password,
    )


@router.get("/users", response_model=UserListing)
def list_users(
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    ADMIN: every non-admin account. SUPERVISOR: direct reports.
    Matches search against name, employee ID and email.
    """
    rows = UserService(db).list_users(current_user, search)
    items = [
        UserListItem(
            **UserResponse.model_validate(user).model_dump(),
            total_leave_requests=leave_count,
            direct_report_count=report_count,
        )
        for user, leave_count, report_count in rows
    ]
    return {"success": True, "data": items}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    directory: IdentityDirectory = Depends(get_identity_directory),
    current_user: User = Depends(require_admin()),
):
    UserService(db, directory).delete_user(current_user, user_id)
    return {"success": True, "message": "User deleted successfully"}


@router.post("/users/{user_id}/reset-password", response_model=PasswordReset)
def reset_password(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    return PasswordReset(temporary_password=UserService(db).reset_password(current_user, user_id))
