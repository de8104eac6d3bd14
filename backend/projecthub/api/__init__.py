"""API router package."""

from fastapi import APIRouter

from projecthub.api.v1 import (
    auth,
    blockers,
    health,
    member,
    notifications,
    profiles,
    projects,
    search,
    stage_approvals,
    tasks,
)

router = APIRouter()

# Include all API routers
router.include_router(health.router, tags=["Health"])
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(profiles.router, tags=["Profiles"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(tasks.router, prefix="/project-tasks", tags=["Tasks"])
router.include_router(tasks.deliverables_router, prefix="/deliverables", tags=["Tasks"])
router.include_router(
    stage_approvals.router, prefix="/project-stage-approvals", tags=["Stage Approvals"]
)
router.include_router(blockers.router, prefix="/blockers", tags=["Blockers"])
router.include_router(member.router, prefix="/member", tags=["Member"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(search.router, prefix="/search", tags=["Search"])
