"""
Admin API module.

Modular structure:
- auth.py: Authentication endpoints (login, verify)
- translations.py: System message management
- cache.py: Cache version refresh and inspection

All endpoints require admin authentication except /auth/login.
"""
from fastapi import APIRouter

from .auth import router as auth_router
from .translations import router as translations_router
from .cache import router as cache_router

# Main admin router
router = APIRouter()

# Include all sub-routers
router.include_router(auth_router, tags=["auth"])
router.include_router(translations_router, tags=["translations"])
router.include_router(cache_router, tags=["cache"])

__all__ = ["router"]
