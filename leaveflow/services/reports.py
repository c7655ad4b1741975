"""Read-only CSV/JSON projections of leave requests and accounts."""
import csv
import io
import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from leaveflow.core.exceptions import AccessDeniedError, InvalidInputError
from leaveflow.models.leave_request import LeaveRequest
from leaveflow.models.user import User, UserRole
from leaveflow.services.base import BaseService
from leaveflow.services.durations import inclusive_day_span
from leaveflow.services.leave import LeaveService
from leaveflow.services.users import users_with_counts

FORMATS = {"csv": "text/csv", "json": "application/json"}
REPORT_TYPES = ("leave-requests", "users")

LEAVE_COLUMNS = [
    "Request ID", "Employee Name", "Employee ID", "Email", "Role", "Supervisor",
    "Start Date", "End Date", "Reason", "Status", "Created At", "Days Requested",
]
USER_COLUMNS = [
    "User ID", "Name", "Employee ID", "Email", "Phone", "Role", "Supervisor",
    "Total Leave Requests", "Employees Under Management", "Created At",
]


@dataclass
class ExportFile:
    content: str
    media_type: str
    filename: str


def _day(value: Optional[datetime]) -> str:
    return value.date().isoformat() if value else ""


def _supervisor_name(user: User) -> str:
    return user.supervisor.full_name if user.supervisor else "N/A"


def to_csv(columns: List[str], rows: List[Dict[str, Any]]) -> str:
    """Every field double-quoted, embedded quotes doubled; an empty report is just the header."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([row[column] for column in columns])
    return buffer.getvalue()


class ReportService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.leave = LeaveService(db)

    def leave_rows(
        self,
        actor: User,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        query = self.leave.scoped_query(actor)
        if start_date:
            query = query.filter(
                LeaveRequest.created_at >= datetime.combine(start_date, datetime.min.time(), timezone.utc)
            )
        if end_date:
            query = query.filter(
                LeaveRequest.created_at <= datetime.combine(end_date, datetime.max.time(), timezone.utc)
            )
        requests = query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()
        return [
            {
                "Request ID": leave.id,
                "Employee Name": leave.user.full_name,
                "Employee ID": leave.user.employee_id,
                "Email": leave.user.email,
                "Role": leave.user.role.value,
                "Supervisor": _supervisor_name(leave.user),
                "Start Date": _day(leave.start_date),
                "End Date": _day(leave.end_date),
                "Reason": leave.reason,
                "Status": leave.status.value,
                "Created At": _day(leave.created_at),
                "Days Requested": inclusive_day_span(leave.start_date, leave.end_date),
            }
            for leave in requests
        ]

    def user_rows(self) -> List[Dict[str, Any]]:
        rows = users_with_counts(self.db).order_by(User.created_at.desc(), User.id.desc()).all()
        return [
            {
                "User ID": user.id,
                "Name": user.full_name,
                "Employee ID": user.employee_id,
                "Email": user.email,
                "Phone": user.phone or "N/A",
                "Role": user.role.value,
                "Supervisor": _supervisor_name(user),
                "Total Leave Requests": requests,
                "Employees Under Management": direct_reports,
                "Created At": _day(user.created_at),
            }
            for user, requests, direct_reports in rows
        ]

    def export(
        self,
        actor: User,
        fmt: str = "csv",
        report_type: str = "leave-requests",
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> ExportFile:
        if actor.role not in (UserRole.ADMIN, UserRole.SUPERVISOR):
            raise AccessDeniedError("Unauthorized. Only admins and supervisors can export reports.")
        if fmt not in FORMATS:
            raise InvalidInputError("Invalid format. Use csv or json.", field="format")
        if report_type not in REPORT_TYPES:
            raise InvalidInputError("Invalid report type. Use leave-requests or users.", field="type")

        if report_type == "users":
            if actor.role != UserRole.ADMIN:
                raise AccessDeniedError("Only administrators can export the user report.")
            columns, rows, stem = USER_COLUMNS, self.user_rows(), "users-report"
        else:
            columns, rows, stem = LEAVE_COLUMNS, self.leave_rows(actor, start_date, end_date), "leave-requests"

        if fmt == "csv":
            content = to_csv(columns, rows)
        else:
            content = json.dumps(rows, indent=2)

        stamp = (today or datetime.now(timezone.utc).date()).isoformat()
        self.log_info(f"Exported {len(rows)} {report_type} rows as {fmt}", actor_id=actor.id)
        return ExportFile(content=content, media_type=FORMATS[fmt], filename=f"{stem}-{stamp}.{fmt}")
