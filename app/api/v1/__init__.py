"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import admin, auth, entries, health

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/user", tags=["user"])
router.include_router(entries.router, prefix="/user/entries", tags=["entries"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
