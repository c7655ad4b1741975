from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from leaveflow.database import get_db
from leaveflow.models.user import User
from leaveflow.routers.auth_deps import get_current_user
from leaveflow.schemas.leave import DashboardStatsResult
from leaveflow.services.dashboard import DashboardService

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"]
)


@router.get("/stats", response_model=DashboardStatsResult, response_model_exclude_none=True)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Role-scoped counts. Supervisor and admin extras are omitted for other roles."""
    return {"success": True, "data": DashboardService(db).stats(current_user)}
