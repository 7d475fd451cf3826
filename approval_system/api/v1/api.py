from fastapi import APIRouter, Depends

from approval_system.api.dependencies import require_permission
from approval_system.api.v1.endpoints.auth import login, register
from approval_system.api.v1.endpoints.approval import applications, tasks
from approval_system.api.v1.endpoints.admin import (
    applications as admin_applications,
    dashboard,
    departments,
    permissions,
    posts,
    users,
)

api_router = APIRouter()

# Authentication routes
api_router.include_router(login.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(register.router, prefix="/auth", tags=["Authentication"])

# Approval routes
api_router.include_router(applications.router, prefix="/applications", tags=["Applications"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["Approval Tasks"])

# Administration routes
admin_only = [Depends(require_permission("system", "admin"))]
api_router.include_router(users.router, prefix="/admin/users", tags=["Administration"], dependencies=admin_only)
api_router.include_router(departments.router, prefix="/admin/departments", tags=["Administration"], dependencies=admin_only)
api_router.include_router(posts.router, prefix="/admin/posts", tags=["Administration"], dependencies=admin_only)
api_router.include_router(permissions.router, prefix="/admin/permissions", tags=["Administration"], dependencies=admin_only)
api_router.include_router(admin_applications.router, prefix="/admin/applications", tags=["Administration"], dependencies=admin_only)
api_router.include_router(dashboard.router, prefix="/admin/dashboard", tags=["Administration"], dependencies=admin_only)
