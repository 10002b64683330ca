"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from modules.backend.api.v1.endpoints import auth, favicon, opportunities, submissions, sync

router = APIRouter()

router.include_router(opportunities.router, prefix="/opportunities", tags=["opportunities"])
router.include_router(submissions.router, prefix="/submissions", tags=["submissions"])
router.include_router(sync.router, prefix="/sync", tags=["sync"])
router.include_router(favicon.router, prefix="/favicon", tags=["favicon"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
