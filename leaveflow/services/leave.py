"""
Leave request lifecycle.

    PENDING --approve--> APPROVED
    PENDING --reject---> REJECTED

APPROVED and REJECTED are terminal. Authorization is re-checked here against
the acting user's current role and the owner's current supervisor, so callers
cannot bypass it by reaching the service directly.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, contains_eager

from leaveflow.core.exceptions import (
    AccessDeniedError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
)
from leaveflow.models.leave_request import LeaveRequest, LeaveStatus, TERMINAL_STATUSES
from leaveflow.models.user import User, UserRole
from leaveflow.services.base import BaseService
from leaveflow.services.durations import as_utc
from leaveflow.services.notification import (
    ALL_REQUESTS,
    DASHBOARD,
    MY_REQUESTS,
    TEAM,
    view_notifier,
)


def name_search_clause(term: str):
    """Case-insensitive substring match over the parts of a user's name. Wildcards in term are literal."""
    term = term.strip()
    return or_(
        User.first_name.icontains(term, autoescape=True),
        User.middle_name.icontains(term, autoescape=True),
        User.last_name.icontains(term, autoescape=True),
        (User.first_name + " " + User.last_name).icontains(term, autoescape=True),
    )


class LeaveService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def _base_query(self) -> Query:
        return (
            self.db.query(LeaveRequest)
            .join(User, LeaveRequest.user_id == User.id)
            .options(contains_eager(LeaveRequest.user))
        )

    @staticmethod
    def _ordered(query: Query) -> Query:
        return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())

    def scoped_query(self, actor: User) -> Query:
        """Requests the actor may see: own (EMPLOYEE), direct reports' (SUPERVISOR), all (ADMIN)."""
        query = self._base_query()
        if actor.role == UserRole.ADMIN:
            return query
        if actor.role == UserRole.SUPERVISOR:
            return query.filter(User.supervisor_id == actor.id)
        return query.filter(LeaveRequest.user_id == actor.id)

    def list_own(self, actor: User) -> List[LeaveRequest]:
        query = self._base_query().filter(LeaveRequest.user_id == actor.id)
        return self._ordered(query).all()

    def list_team(self, actor: User) -> List[LeaveRequest]:
        if actor.role not in (UserRole.SUPERVISOR, UserRole.ADMIN):
            raise AccessDeniedError("Only supervisors can view team requests.")
        query = self._base_query().filter(User.supervisor_id == actor.id)
        return self._ordered(query).all()

    def list_all(
        self,
        actor: User,
        search: Optional[str] = None,
        status: Optional[LeaveStatus] = None,
    ) -> List[LeaveRequest]:
        if actor.role != UserRole.ADMIN:
            raise AccessDeniedError("Only administrators can view all requests.")
        query = self._base_query()
        if search and search.strip():
            query = query.filter(name_search_clause(search))
        if status is not None:
            query = query.filter(LeaveRequest.status == status)
        return self._ordered(query).all()

    def get(self, actor: User, request_id: int) -> LeaveRequest:
        """Fetch a request the actor may see. Invisible and missing requests look the same."""
        leave = self.scoped_query(actor).filter(LeaveRequest.id == request_id).first()
        if leave is None and actor.role != UserRole.ADMIN:
            # Owners always see their own requests, whatever their role
            leave = (
                self._base_query()
                .filter(LeaveRequest.id == request_id, LeaveRequest.user_id == actor.id)
                .first()
            )
        if leave is None:
            raise NotFoundError("Leave request not found")
        return leave

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def create(self, actor: User, start_date: datetime, end_date: datetime, reason: str) -> LeaveRequest:
        reason = (reason or "").strip()
        if not reason:
            raise InvalidInputError("Reason is required.", field="reason")
        start = as_utc(start_date)
        end = as_utc(end_date)
        if start >= end:
            raise InvalidInputError("End date must be after start date.", field="end_date")

        leave = LeaveRequest(
            user_id=actor.id,
            start_date=start,
            end_date=end,
            reason=reason,
            status=LeaveStatus.PENDING,
        )
        self.db.add(leave)
        self._commit()
        self.db.refresh(leave)
        self.log_info(f"Leave request {leave.id} created", user_id=actor.id)
        view_notifier.notify([DASHBOARD, MY_REQUESTS])
        return leave

    def _can_review(self, actor: User, leave: LeaveRequest) -> bool:
        if actor.role == UserRole.ADMIN:
            return True
        return actor.role == UserRole.SUPERVISOR and leave.user.supervisor_id == actor.id

    def change_status(self, actor: User, request_id: int, status: LeaveStatus) -> LeaveRequest:
        if status not in TERMINAL_STATUSES:
            raise InvalidInputError("Status must be APPROVED or REJECTED.", field="status")

        leave = self.get(actor, request_id)
        if not self._can_review(actor, leave):
            raise AccessDeniedError("You are not allowed to review this leave request.")
        if leave.status != LeaveStatus.PENDING:
            raise InvalidTransitionError(
                f"Leave request has already been {leave.status.value.lower()}."
            )

        leave.status = status
        self._commit()
        self.db.refresh(leave)
        self.log_info(
            f"Leave request {leave.id} {status.value.lower()}",
            reviewer_id=actor.id,
            owner_id=leave.user_id,
        )
        view_notifier.notify([DASHBOARD, TEAM, ALL_REQUESTS])
        return leave

    def approve(self, actor: User, request_id: int) -> LeaveRequest:
        return self.change_status(actor, request_id, LeaveStatus.APPROVED)

    def reject(self, actor: User, request_id: int) -> LeaveRequest:
        return self.change_status(actor, request_id, LeaveStatus.REJECTED)

    def delete(self, actor: User, request_id: int) -> None:
        leave = self.get(actor, request_id)
        if leave.user_id != actor.id:
            raise AccessDeniedError("Only the owner can delete a leave request.")
        if leave.status != LeaveStatus.PENDING:
            raise InvalidTransitionError("Only pending leave requests can be deleted.")

        self.db.delete(leave)
        self._commit()
        self.log_info(f"Leave request {request_id} deleted", user_id=actor.id)
        view_notifier.notify([DASHBOARD, MY_REQUESTS])
