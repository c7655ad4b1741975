"""
Supervisor assignment.

A supervisor link is a directed edge employee -> supervisor stored on
users.supervisor_id. Writes keep the graph acyclic and only point at users
who may supervise. Visibility is one level deep: a supervisor sees direct
reports, never reports-of-reports.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from leaveflow.core.exceptions import AccessDeniedError, InvalidInputError, NotFoundError
from leaveflow.models.user import User, UserRole, SUPERVISOR_ROLES
from leaveflow.services.base import BaseService
from leaveflow.services.notification import DASHBOARD, TEAM, view_notifier


class HierarchyService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)

    def validate_supervisor(self, supervisor_id: int, employee: Optional[User] = None) -> User:
        """
        Check that supervisor_id may supervise employee.
        employee is None for accounts that do not exist yet (nothing can cycle back to them).
        """
        supervisor = self.db.get(User, supervisor_id)
        if supervisor is None:
            raise InvalidInputError(
                "Invalid supervisor selected. Please choose a valid supervisor.", field="supervisor_id"
            )
        if not supervisor.can_supervise:
            raise InvalidInputError(
                "Selected user is not authorized to be a supervisor.", field="supervisor_id"
            )
        if employee is None:
            return supervisor
        if supervisor.id == employee.id:
            raise InvalidInputError("A user cannot supervise themselves.", field="supervisor_id")
        if self._reports_up_to(supervisor, employee.id):
            raise InvalidInputError(
                "This assignment would create a supervision cycle.", field="supervisor_id"
            )
        return supervisor

    def _reports_up_to(self, start: User, target_id: int) -> bool:
        """True when target_id appears in start's chain of supervisors."""
        seen = set()
        node = start
        while node is not None and node.id not in seen:
            if node.supervisor_id == target_id:
                return True
            seen.add(node.id)
            node = node.supervisor
        return False

    def assign_supervisor(self, actor: User, employee_id: int, supervisor_id: Optional[int]) -> User:
        if actor.role != UserRole.ADMIN:
            raise AccessDeniedError("Only administrators can assign supervisors.")

        employee = self.db.get(User, employee_id)
        if employee is None:
            raise NotFoundError("User not found")
        if employee.role == UserRole.ADMIN:
            raise InvalidInputError("Administrators do not report to a supervisor.", field="employee_id")

        if supervisor_id is None:
            employee.supervisor_id = None
        else:
            supervisor = self.validate_supervisor(supervisor_id, employee)
            employee.supervisor_id = supervisor.id

        self._commit()
        self.db.refresh(employee)
        self.log_info(
            f"Supervisor of user {employee.id} set to {employee.supervisor_id}",
            actor_id=actor.id,
        )
        view_notifier.notify([DASHBOARD, TEAM])
        return employee

    def direct_report_count(self, user_id: int) -> int:
        return self.db.query(User).filter(User.supervisor_id == user_id).count()

    def direct_reports(self, supervisor: User) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.supervisor_id == supervisor.id)
            .order_by(User.first_name, User.last_name)
            .all()
        )

    def unassigned_employees(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.role == UserRole.EMPLOYEE, User.supervisor_id.is_(None))
            .order_by(User.first_name, User.last_name)
            .all()
        )

    def unassigned_count(self) -> int:
        return (
            self.db.query(User)
            .filter(User.role == UserRole.EMPLOYEE, User.supervisor_id.is_(None))
            .count()
        )

    def supervisor_candidates(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.role.in_(SUPERVISOR_ROLES))
            .order_by(User.first_name, User.last_name)
            .all()
        )
