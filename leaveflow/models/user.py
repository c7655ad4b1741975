"""
User Model with role-based hierarchy.
Every user may report to one supervisor; the link is a self-referential foreign key.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from leaveflow.database import Base


class UserRole(str, enum.Enum):
    """
    Closed set of roles.

    - ADMIN: manages accounts and supervisor assignments, sees every request
    - SUPERVISOR: approves or rejects requests of direct reports
    - EMPLOYEE: self-service access to their own requests
    """
    EMPLOYEE = "EMPLOYEE"
    SUPERVISOR = "SUPERVISOR"
    ADMIN = "ADMIN"


class SocialInsuranceType(str, enum.Enum):
    LOCAL = "LOCAL"
    EXPATRIATE = "EXPATRIATE"


SUPERVISOR_ROLES = (UserRole.SUPERVISOR, UserRole.ADMIN)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Reference into a remote identity directory, when one is configured
    external_id = Column(String, unique=True, nullable=True)

    first_name = Column(String, nullable=False)
    middle_name = Column(String, nullable=True)
    last_name = Column(String, nullable=False, default="")
    employee_id = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)

    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)
    supervisor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # HR enrichment, no effect on the leave workflow
    nationality = Column(String, nullable=True)
    job_title = Column(String, nullable=True)
    store_code = Column(String, nullable=True)
    national_id_encrypted = Column(String, nullable=True)
    social_insurance_type = Column(Enum(SocialInsuranceType), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    supervisor = relationship("User", remote_side=[id], back_populates="direct_reports")
    direct_reports = relationship("User", back_populates="supervisor")
    leave_requests = relationship(
        "LeaveRequest",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<User {self.employee_id} ({self.role.value})>"

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.middle_name, self.last_name) if part)

    @property
    def can_supervise(self) -> bool:
        return self.role in SUPERVISOR_ROLES

    @property
    def national_id(self):
        from leaveflow.core.security import decrypt_data
        return decrypt_data(self.national_id_encrypted)

    @national_id.setter
    def national_id(self, value):
        from leaveflow.core.security import encrypt_data
        self.national_id_encrypted = encrypt_data(value)
