from pydantic import BaseModel, ConfigDict, computed_field
from datetime import datetime
from typing import List, Optional

from leaveflow.models.leave_request import LeaveStatus
from leaveflow.services.durations import format_duration, inclusive_day_span

class LeaveRequestCreate(BaseModel):
    start_date: datetime
    end_date: datetime
    reason: str

class LeaveStatusUpdate(BaseModel):
    status: LeaveStatus

class LeaveOwner(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: str
    full_name: str

class LeaveRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    start_date: datetime
    end_date: datetime
    reason: str
    status: LeaveStatus
    created_at: datetime
    user: Optional[LeaveOwner] = None

    @computed_field
    @property
    def days_requested(self) -> int:
        return inclusive_day_span(self.start_date, self.end_date)

    @computed_field
    @property
    def duration(self) -> str:
        return format_duration(self.start_date, self.end_date)

class LeaveRequestResult(BaseModel):
    success: bool = True
    data: LeaveRequestResponse

class LeaveRequestList(BaseModel):
    success: bool = True
    data: List[LeaveRequestResponse]

class DashboardStats(BaseModel):
    pending: int
    approved_this_month: int
    rejected: int
    total: int
    employees_under: Optional[int] = None
    requests_today: Optional[int] = None
    total_employees: Optional[int] = None
    unassigned_employees: Optional[int] = None

class DashboardStatsResult(BaseModel):
    success: bool = True
    data: DashboardStats
