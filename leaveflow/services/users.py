"""
Account provisioning and credential management.

Uniqueness of employee_id and email is pre-checked for a friendly message, but
the unique constraints in the store are the authoritative guard: an
IntegrityError raised by a concurrent insert is mapped to the same 409.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, aliased

from leaveflow.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from leaveflow.core.security import (
    generate_temporary_password,
    is_valid_email,
    is_valid_phone,
    validate_password_strength,
)
from leaveflow.models.leave_request import LeaveRequest
from leaveflow.models.user import User, UserRole
from leaveflow.schemas.auth import PasswordChange, ProfileUpdate, RegisterRequest, UserCreate
from leaveflow.services import auth as auth_service
from leaveflow.services.base import BaseService
from leaveflow.services.hierarchy import HierarchyService
from leaveflow.services.identity_directory import IdentityDirectory, LocalIdentityDirectory
from leaveflow.services.leave import name_search_clause
from leaveflow.services.saga import TwoStepSaga

logger = logging.getLogger(__name__)

EMPLOYEE_ID_TAKEN = "An account with this employee ID already exists."
EMAIL_TAKEN = "An account with this email address already exists."
SELF_SERVICE_ROLES = (UserRole.EMPLOYEE, UserRole.SUPERVISOR)


def conflict_from_integrity_error(exc: IntegrityError) -> ConflictError:
    """Attribute a unique-constraint violation to the field the store reports, when it does."""
    text = str(getattr(exc, "orig", exc)).lower()
    if "employee_id" in text:
        return ConflictError(EMPLOYEE_ID_TAKEN, field="employee_id")
    if "email" in text:
        return ConflictError(EMAIL_TAKEN, field="email")
    if "external_id" in text:
        return ConflictError("This user account already exists in the system.")
    return ConflictError("This information is already in use. Please check your details.")


def users_with_counts(db: Session) -> Query:
    """Rows of (User, leave request count, direct report count)."""
    reports = aliased(User)
    leave_count = (
        db.query(func.count(LeaveRequest.id))
        .filter(LeaveRequest.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    report_count = (
        db.query(func.count(reports.id))
        .filter(reports.supervisor_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    return db.query(User, leave_count, report_count)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class UserService(BaseService):
    def __init__(self, db: Session, directory: Optional[IdentityDirectory] = None):
        super().__init__(db)
        self.directory = directory or LocalIdentityDirectory()
        self.hierarchy = HierarchyService(db)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    def _require(self, **fields):
        for name, value in fields.items():
            if not value or not str(value).strip():
                raise InvalidInputError(f"{name.replace('_', ' ').capitalize()} is required.", field=name)

    def _validate_contact(self, email: Optional[str], phone: Optional[str]):
        if email is not None and not is_valid_email(email):
            raise InvalidInputError("Please enter a valid email address.", field="email")
        if phone and not is_valid_phone(phone):
            raise InvalidInputError("Please enter a valid phone number.", field="phone")

    def _ensure_unique(self, employee_id: str, email: str, exclude_id: Optional[int] = None):
        query = self.db.query(User).filter(or_(User.employee_id == employee_id, User.email == email))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        existing = query.first()
        if existing is None:
            return
        if existing.employee_id == employee_id:
            raise ConflictError(EMPLOYEE_ID_TAKEN, field="employee_id")
        raise ConflictError(EMAIL_TAKEN, field="email")

    def _persist(self, user: User) -> User:
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Unique constraint violated while saving user: {exc.orig}")
            raise conflict_from_integrity_error(exc) from exc
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user

    def _provision(self, user: User, password: str) -> User:
        """Create the directory identity and the local row as one compensated unit."""
        saga = TwoStepSaga(
            name=f"provision:{user.employee_id}",
            reserve=lambda: self.directory.create_identity(
                employee_id=user.employee_id,
                email=user.email,
                password=password,
                first_name=user.first_name,
                last_name=user.last_name,
            ),
            commit=lambda external_id: self._persist_with_external_id(user, external_id),
            compensate=self.directory.delete_identity,
        )
        return saga.run()

    def _persist_with_external_id(self, user: User, external_id: Optional[str]) -> User:
        user.external_id = external_id
        return self._persist(user)

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------
    def create_user(self, actor: User, data: UserCreate) -> Tuple[User, Optional[str]]:
        """
        Admin-side account creation.

        Returns the new user and, when no password was supplied, the generated
        temporary password. The plaintext is handed back once and never stored.
        """
        if actor.role != UserRole.ADMIN:
            raise AccessDeniedError("Forbidden. Only administrators can create users.")

        employee_id = _clean(data.employee_id)
        email = (data.email or "").strip().lower()
        self._require(first_name=data.first_name, employee_id=employee_id, email=email)
        self._validate_contact(email, _clean(data.phone))

        temporary_password = None
        password = data.password
        if password:
            validate_password_strength(password)
        else:
            password = temporary_password = generate_temporary_password()

        self._ensure_unique(employee_id, email)

        supervisor_id = None
        if data.supervisor_id is not None:
            if data.role == UserRole.ADMIN:
                raise InvalidInputError("Administrators do not report to a supervisor.", field="supervisor_id")
            supervisor_id = self.hierarchy.validate_supervisor(data.supervisor_id).id

        user = User(
            first_name=data.first_name.strip(),
            middle_name=_clean(data.middle_name),
            last_name=(data.last_name or "").strip(),
            employee_id=employee_id,
            email=email,
            phone=_clean(data.phone),
            role=data.role,
            supervisor_id=supervisor_id,
            hashed_password=auth_service.get_password_hash(password),
            nationality=_clean(data.nationality),
            job_title=_clean(data.job_title),
            store_code=_clean(data.store_code),
            social_insurance_type=data.social_insurance_type,
        )
        if data.national_id:
            user.national_id = data.national_id.strip()

        user = self._provision(user, password)
        self.log_info(f"User {user.employee_id} created", actor_id=actor.id, role=user.role.value)
        return user, temporary_password

    def register(self, data: RegisterRequest) -> User:
        """Self-service registration. Administrators can only be created by administrators."""
        employee_id = _clean(data.employee_id)
        email = (data.email or "").strip().lower()
        self._require(first_name=data.first_name, employee_id=employee_id, email=email)
        self._validate_contact(email, _clean(data.phone))
        if data.role not in SELF_SERVICE_ROLES:
            raise InvalidInputError("Self-registration is limited to employee and supervisor accounts.", field="role")
        validate_password_strength(data.password)
        self._ensure_unique(employee_id, email)

        user = User(
            first_name=data.first_name.strip(),
            middle_name=_clean(data.middle_name),
            last_name=(data.last_name or "").strip(),
            employee_id=employee_id,
            email=email,
            phone=_clean(data.phone),
            role=data.role,
            hashed_password=auth_service.get_password_hash(data.password),
        )
        user = self._provision(user, data.password)
        self.log_info(f"User {user.employee_id} registered")
        return user

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------
    def change_password(self, data: PasswordChange) -> User:
        self._require(
            employee_id=data.employee_id,
            old_password=data.old_password,
            new_password=data.new_password,
        )
        # The old password is the credential here; mismatches get the generic message
        user = auth_service.authenticate(self.db, data.employee_id, data.old_password)

        if auth_service.verify_password(data.new_password, user.hashed_password):
            raise InvalidInputError(
                "New password must be different from current password.", field="new_password"
            )
        validate_password_strength(data.new_password, field="new_password")

        user.hashed_password = auth_service.get_password_hash(data.new_password)
        self._commit()
        self.log_info(f"Password changed for user {user.id}")
        return user

    def reset_password(self, actor: User, user_id: int) -> str:
        """Replace the user's password with a random one and return it; only the hash is stored."""
        if actor.role != UserRole.ADMIN:
            raise AccessDeniedError()
        user = self.get(user_id)
        temporary_password = generate_temporary_password()
        user.hashed_password = auth_service.get_password_hash(temporary_password)
        self._commit()
        self.log_info(f"Password reset for user {user.id}", actor_id=actor.id)
        return temporary_password

    def request_password_reset(self, employee_id: str) -> User:
        self._require(employee_id=employee_id)
        user = self.db.query(User).filter(User.employee_id == employee_id.strip()).first()
        if user is None:
            raise NotFoundError("Employee ID not found")
        self.log_info(f"Password reset requested for user {user.id}")
        return user

    # ------------------------------------------------------------------
    # Profile and directory
    # ------------------------------------------------------------------
    def get(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, actor: User, data: ProfileUpdate) -> User:
        changes = data.model_dump(exclude_unset=True)
        if "email" in changes and changes["email"] is not None:
            email = changes["email"].strip().lower()
            self._validate_contact(email, None)
            self._ensure_unique(actor.employee_id, email, exclude_id=actor.id)
            actor.email = email
        if "phone" in changes:
            phone = _clean(changes["phone"])
            self._validate_contact(None, phone)
            actor.phone = phone
        if _clean(changes.get("first_name")):
            actor.first_name = changes["first_name"].strip()
        if "middle_name" in changes:
            actor.middle_name = _clean(changes["middle_name"])
        if changes.get("last_name") is not None:
            actor.last_name = changes["last_name"].strip()
        return self._persist(actor)

    def delete_user(self, actor: User, user_id: int) -> None:
        if actor.role != UserRole.ADMIN:
            raise AccessDeniedError()
        if user_id == actor.id:
            raise InvalidInputError("You cannot delete your own account.", field="id")
        user = self.get(user_id)
        external_id = user.external_id
        self.db.delete(user)
        self._commit()
        self.log_info(f"User {user_id} deleted", actor_id=actor.id)
        if external_id:
            try:
                self.directory.delete_identity(external_id)
            except Exception as e:
                logger.error(f"Failed to remove identity {external_id} from directory: {e}")

    def list_users(self, actor: User, search: Optional[str] = None) -> List[Tuple[User, int, int]]:
        """
        Users visible to the actor with their request and direct-report counts.
        ADMIN: every non-admin account. SUPERVISOR: direct reports.
        """
        if actor.role == UserRole.EMPLOYEE:
            raise AccessDeniedError()

        query = users_with_counts(self.db)
        if actor.role == UserRole.ADMIN:
            query = query.filter(User.role != UserRole.ADMIN)
        else:
            query = query.filter(User.supervisor_id == actor.id)

        if search and search.strip():
            term = search.strip()
            query = query.filter(or_(
                name_search_clause(term),
                User.employee_id.icontains(term, autoescape=True),
                User.email.icontains(term, autoescape=True),
            ))
        return [tuple(row) for row in query.order_by(User.created_at.desc(), User.id.desc()).all()]
