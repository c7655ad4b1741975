from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from leaveflow.models.leave_request import LeaveRequest, LeaveStatus
from leaveflow.models.user import User, UserRole
from leaveflow.schemas.leave import DashboardStats
from leaveflow.services.base import BaseService
from leaveflow.services.hierarchy import HierarchyService
from leaveflow.services.leave import LeaveService


def _month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _next_month_start(now: datetime) -> datetime:
    start = _month_start(now)
    return (start + timedelta(days=32)).replace(day=1)


class DashboardService(BaseService):
    """Headline counts for the dashboard, scoped the same way as the request listings."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.leave = LeaveService(db)
        self.hierarchy = HierarchyService(db)

    def stats(self, actor: User, now: Optional[datetime] = None) -> DashboardStats:
        now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
        scoped = self.leave.scoped_query(actor)

        stats = DashboardStats(
            pending=scoped.filter(LeaveRequest.status == LeaveStatus.PENDING).count(),
            approved_this_month=scoped.filter(
                LeaveRequest.status == LeaveStatus.APPROVED,
                LeaveRequest.created_at >= _month_start(now),
                LeaveRequest.created_at < _next_month_start(now),
            ).count(),
            rejected=scoped.filter(LeaveRequest.status == LeaveStatus.REJECTED).count(),
            total=scoped.count(),
        )

        if actor.role == UserRole.SUPERVISOR:
            today = now.replace(hour=0, minute=0, second=0, microsecond=0)
            stats.employees_under = self.hierarchy.direct_report_count(actor.id)
            stats.requests_today = scoped.filter(
                LeaveRequest.created_at >= today,
                LeaveRequest.created_at < today + timedelta(days=1),
            ).count()

        if actor.role == UserRole.ADMIN:
            stats.total_employees = self.db.query(User).filter(User.role != UserRole.ADMIN).count()
            stats.unassigned_employees = self.hierarchy.unassigned_count()

        return stats
