"""
Role-based access control.

Permissions are a static function of role: ADMIN holds every permission and
USER holds none. ``require_permission`` raises instead of returning False so
callers cannot forget to act on a denial.
"""

from enum import Enum
from typing import Dict, FrozenSet

from ...exceptions import InsufficientPermissionsError
from ...models.iam import UserRole


class Permission(str, Enum):
  """Administrative permissions."""

  MANAGE_USERS = "manage_users"
  MANAGE_SUBSCRIPTIONS = "manage_subscriptions"
  VIEW_ANALYTICS = "view_analytics"
  MANAGE_BILLING = "manage_billing"


ROLE_PERMISSIONS: Dict[str, FrozenSet[Permission]] = {
  UserRole.ADMIN.value: frozenset(Permission),
  UserRole.USER.value: frozenset(),
}


def has_permission(role: str, permission: Permission) -> bool:
  """Check whether a role holds a permission. Unknown roles hold nothing."""
  return permission in ROLE_PERMISSIONS.get(role, frozenset())


def require_permission(role: str, permission: Permission) -> None:
  """Raise InsufficientPermissionsError when the role lacks the permission."""
  if not has_permission(role, permission):
    raise InsufficientPermissionsError(permission.value, role=role)
