"""HTTP routers."""

from .admin import router as admin_router
from .auth import router as auth_router
from .billing import router as billing_router
from .status import router as status_router
from .usage import router as usage_router
from .webhooks import router as webhooks_router

__all__ = [
  "admin_router",
  "auth_router",
  "billing_router",
  "status_router",
  "usage_router",
  "webhooks_router",
]
