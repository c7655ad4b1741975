from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from leaveflow.database import get_db
from leaveflow.models.user import User
from leaveflow.routers.auth_deps import require_supervisor
from leaveflow.services.reports import ReportService

router = APIRouter(
    prefix="/reports",
    tags=["reports"]
)


@router.get("/export")
def export_report(
    fmt: str = Query("csv", alias="format"),
    report_type: str = Query("leave-requests", alias="type"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor()),
):
    export = ReportService(db).export(
        current_user,
        fmt=fmt,
        report_type=report_type,
        start_date=start_date,
        end_date=end_date,
    )
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
