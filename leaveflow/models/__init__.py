# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, leave_request

# Explicit class exports for cleaner imports
from .user import User, UserRole, SocialInsuranceType
from .leave_request import LeaveRequest, LeaveStatus

__all__ = [
    "User",
    "UserRole",
    "SocialInsuranceType",
    "LeaveRequest",
    "LeaveStatus",
]
