"""API routes."""

from fastapi import APIRouter

from smartlink.api import ai, auth, health, sites

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(sites.router, prefix="/sites", tags=["sites"])
router.include_router(ai.router, prefix="/ai", tags=["ai"])
