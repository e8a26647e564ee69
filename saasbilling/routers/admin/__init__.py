"""Admin API routers."""

from fastapi import APIRouter

from .dashboard import router as dashboard_router
from .refunds import router as refunds_router
from .users import router as users_router

router = APIRouter(prefix="/admin", tags=["Admin"])

router.include_router(dashboard_router)
router.include_router(users_router)
router.include_router(refunds_router)
