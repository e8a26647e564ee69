from .dependencies import (
  get_client_ip,
  get_current_user,
  get_optional_user,
  get_token_from_request,
  require_admin_permission,
)
from .jwt import create_session_token, verify_session_token
from .rbac import Permission, ROLE_PERMISSIONS, has_permission, require_permission

__all__ = [
  "Permission",
  "ROLE_PERMISSIONS",
  "create_session_token",
  "get_client_ip",
  "get_current_user",
  "get_optional_user",
  "get_token_from_request",
  "has_permission",
  "require_admin_permission",
  "require_permission",
  "verify_session_token",
]
