from fastapi import APIRouter

from kaziconnect.api.routes import admin, applications, auth, disputes, health, jobs, notifications, profile, saved_jobs

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/api/auth", tags=["auth"])
api_router.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
api_router.include_router(applications.router, prefix="/api/applications", tags=["applications"])
api_router.include_router(saved_jobs.router, prefix="/api/saved-jobs", tags=["saved-jobs"])
api_router.include_router(profile.router, prefix="/api/profile", tags=["profile"])
api_router.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
api_router.include_router(disputes.router, prefix="/api/disputes", tags=["disputes"])
api_router.include_router(admin.router, prefix="/api/admin", tags=["admin"])
