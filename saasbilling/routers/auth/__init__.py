"""Authentication router module."""

from fastapi import APIRouter

from .login import router as login_router
from .logout import router as logout_router
from .session import router as session_router

router = APIRouter(prefix="/auth", tags=["Auth"])

router.include_router(login_router)
router.include_router(logout_router)
router.include_router(session_router)
