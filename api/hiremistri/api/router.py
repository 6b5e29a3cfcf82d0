from fastapi import APIRouter

from hiremistri.api.routes import applications, channel, health, jobs, messages, notifications, saved_jobs, users

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
api_router.include_router(applications.router, prefix="/applications", tags=["applications"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(saved_jobs.router, prefix="/saved-jobs", tags=["saved-jobs"])
api_router.include_router(channel.router, tags=["live"])
