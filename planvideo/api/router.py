from fastapi import APIRouter

from planvideo.api.routes import health, projections, render_jobs

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(render_jobs.router, prefix="/render-jobs", tags=["render-jobs"])
api_router.include_router(projections.router, prefix="/projections", tags=["projections"])
