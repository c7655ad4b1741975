from pydantic import BaseModel, EmailStr, ConfigDict
from typing import List, Optional
from leaveflow.models.user import UserRole, SocialInsuranceType
from datetime import datetime

class SupervisorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: str
    full_name: str

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    full_name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    supervisor_id: Optional[int] = None
    supervisor: Optional[SupervisorSummary] = None
    job_title: Optional[str] = None
    created_at: Optional[datetime] = None

class UserListItem(UserResponse):
    total_leave_requests: int = 0
    direct_report_count: int = 0

class LoginRequest(BaseModel):
    employee_id: str
    password: str

class Token(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse

class RegisterRequest(BaseModel):
    first_name: str
    middle_name: Optional[str] = None
    last_name: str = ""
    employee_id: str
    email: EmailStr
    phone: Optional[str] = None
    password: str
    role: UserRole = UserRole.EMPLOYEE

class UserCreate(BaseModel):
    """Admin-side account creation. A temporary password is generated when none is given."""
    first_name: str
    middle_name: Optional[str] = None
    last_name: str = ""
    employee_id: str
    email: EmailStr
    phone: Optional[str] = None
    password: Optional[str] = None
    role: UserRole = UserRole.EMPLOYEE
    supervisor_id: Optional[int] = None
    nationality: Optional[str] = None
    job_title: Optional[str] = None
    store_code: Optional[str] = None
    national_id: Optional[str] = None
    social_insurance_type: Optional[SocialInsuranceType] = None

class UserCreated(BaseModel):
    success: bool = True
    message: str
    user: UserResponse
    temporary_password: Optional[str] = None

class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

class PasswordChange(BaseModel):
    employee_id: str
    old_password: str
    new_password: str

class ForgotPasswordRequest(BaseModel):
    employee_id: str

class PasswordReset(BaseModel):
    success: bool = True
    temporary_password: str

class UserResult(BaseModel):
    success: bool = True
    data: UserResponse

class UserList(BaseModel):
    success: bool = True
    data: List[UserResponse]

class UserListing(BaseModel):
    success: bool = True
    data: List[UserListItem]
