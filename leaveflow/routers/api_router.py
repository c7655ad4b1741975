from fastapi import APIRouter

from leaveflow.routers import admin, auth, dashboard, leave, org, reports

# Routers are aggregated here; main.py only imports this hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(auth.registration_router, tags=["Authentication"])
api_router.include_router(admin.router, tags=["Administration"])
api_router.include_router(org.router, tags=["Organization"])
api_router.include_router(leave.router, tags=["Leave"])
api_router.include_router(dashboard.router, tags=["Dashboard"])
api_router.include_router(reports.router, tags=["Reports"])
