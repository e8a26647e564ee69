"""
Authentication dependencies for FastAPI.

The session token is read from the session cookie, or from an
``Authorization: Bearer`` header for API clients. Every failure is a 401;
permission failures on admin routes are a 403.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ...config import env
from ...database import get_db_session
from ...exceptions import InsufficientPermissionsError
from ...logger import logger, log_auth_event
from ...models.iam import User
from .jwt import verify_session_token
from .rbac import Permission, require_permission


def get_token_from_request(request: Request) -> Optional[str]:
  """Extract the session token from the cookie or the Authorization header."""
  token = request.cookies.get(env.SESSION_COOKIE_NAME)
  if token:
    return token

  auth_header = request.headers.get("Authorization", "")
  if auth_header.startswith("Bearer "):
    return auth_header[len("Bearer ") :].strip() or None
  return None


def get_client_ip(request: Request) -> Optional[str]:
  """Client address, preferring the first X-Forwarded-For hop."""
  forwarded = request.headers.get("x-forwarded-for")
  if forwarded:
    return forwarded.split(",")[0].strip()
  return request.client.host if request.client else None


async def get_optional_user(
  request: Request, db: Session = Depends(get_db_session)
) -> Optional[User]:
  """Return the session's user, or None when there is no valid session."""
  payload = verify_session_token(get_token_from_request(request))
  if not payload:
    return None

  user = User.get_by_id(payload["userId"], db)
  if not user or not user.is_active:
    logger.info(f"Session rejected for missing or inactive user {payload['userId']}")
    return None
  return user


async def get_current_user(
  user: Optional[User] = Depends(get_optional_user),
) -> User:
  """Require an authenticated user."""
  if user is None:
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED,
      detail="Authentication required",
    )
  return user


def require_admin_permission(permission: Permission):
  """
  Build a dependency that admits only users whose role grants ``permission``.

  Usage:
      @router.get("/dashboard")
      async def dashboard(
        admin: User = Depends(require_admin_permission(Permission.VIEW_ANALYTICS)),
      ): ...
  """

  async def dependency(
    request: Request, user: User = Depends(get_current_user)
  ) -> User:
    try:
      require_permission(user.role, permission)
    except InsufficientPermissionsError as e:
      log_auth_event(
        "permission_denied",
        user_id=user.id,
        ip_address=get_client_ip(request),
        success=False,
        metadata={"permission": permission.value, "path": request.url.path},
      )
      raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=e.public_message,
      )
    return user

  return dependency
