from fastapi import APIRouter
from app.api.v1.endpoints.assets import assets
from app.api.v1.endpoints.audit import audit_logs
from app.api.v1.endpoints.auth import login, users
from app.api.v1.endpoints.hr import attendance, holidays
from app.api.v1.endpoints.leave import leave_allocations, leave_requests, leave_types
from app.api.v1.endpoints.notices import notices
from app.api.v1.endpoints.notification import logs, preferences, queue, rules, templates
from app.api.v1.endpoints.organization import branches, departments, settings, teams
from app.api.v1.endpoints.requests import employee_requests

api_router = APIRouter()

# Authentication routes
api_router.include_router(login.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])

# Organization routes
api_router.include_router(branches.router, prefix="/branches", tags=["Organization"])
api_router.include_router(departments.router, prefix="/departments", tags=["Organization"])
api_router.include_router(teams.router, prefix="/teams", tags=["Organization"])
api_router.include_router(settings.router, prefix="/settings", tags=["Organization"])

# Leave routes
api_router.include_router(leave_types.router, prefix="/leave-types", tags=["Leave"])
api_router.include_router(leave_allocations.router, prefix="/leave-allocations", tags=["Leave"])
api_router.include_router(leave_requests.router, prefix="/leave-requests", tags=["Leave"])

# HR routes
api_router.include_router(attendance.router, prefix="/attendance", tags=["Human Resource"])
api_router.include_router(holidays.router, prefix="/holidays", tags=["Human Resource"])
api_router.include_router(assets.router, prefix="/assets", tags=["Assets"])
api_router.include_router(employee_requests.router, prefix="/requests", tags=["Requests"])
api_router.include_router(notices.router, prefix="/notices", tags=["Notices"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Audit"])

# Notification routes
api_router.include_router(rules.router, prefix="/notifications/rules", tags=["Notifications"])
api_router.include_router(templates.router, prefix="/notifications/templates", tags=["Notifications"])
api_router.include_router(preferences.router, prefix="/notifications/preferences", tags=["Notifications"])
api_router.include_router(queue.router, prefix="/notifications/queue", tags=["Notifications"])
api_router.include_router(logs.router, prefix="/notifications/logs", tags=["Notifications"])
