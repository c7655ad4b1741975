import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from leaveflow.core.config import settings
from leaveflow.core.limiter import limiter
from leaveflow.database import get_db
from leaveflow.models.user import User
from leaveflow.routers.auth_deps import get_current_user
from leaveflow.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    Token,
    UserCreated,
    UserResult,
    UserResponse,
)
from leaveflow.services import auth as auth_service
from leaveflow.services.identity_directory import IdentityDirectory, get_identity_directory
from leaveflow.services.users import UserService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

# Self-registration lives outside /auth to keep the public path short
registration_router = APIRouter(tags=["auth"])


@router.post("/login", response_model=Token)
@limiter.limit(settings.rate_limit_login)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, login_data.employee_id, login_data.password)
    logger.info(f"User {user.id} signed in", extra={"role": user.role.value})
    return Token(
        access_token=auth_service.issue_token_for(user),
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResult)
def read_current_user(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": current_user}


@router.patch("/profile", response_model=UserResult)
def update_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"success": True, "data": UserService(db).update_profile(current_user, data)}


@router.post("/change-password")
@limiter.limit(settings.rate_limit_login)
def change_password(request: Request, data: PasswordChange, db: Session = Depends(get_db)):
    """Unauthenticated: the employee id and current password act as the credential."""
    UserService(db).change_password(data)
    return {"success": True, "message": "Password updated successfully"}


@router.post("/forgot-password")
@limiter.limit(settings.rate_limit_login)
def forgot_password(request: Request, data: ForgotPasswordRequest, db: Session = Depends(get_db)):
    UserService(db).request_password_reset(data.employee_id)
    return {
        "success": True,
        "message": "Password reset request submitted. An administrator will contact you shortly.",
    }


@registration_router.post("/register", response_model=UserCreated, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    directory: IdentityDirectory = Depends(get_identity_directory),
):
    user = UserService(db, directory).register(data)
    return UserCreated(message="User registered successfully", user=UserResponse.model_validate(user))
