"""Tests for role permissions."""

import pytest

from saasbilling.exceptions import InsufficientPermissionsError
from saasbilling.middleware.auth.rbac import (
  Permission,
  has_permission,
  require_permission,
)


class TestRolePermissions:
  @pytest.mark.parametrize("permission", list(Permission))
  def test_admin_holds_every_permission(self, permission):
    assert has_permission("ADMIN", permission)
    require_permission("ADMIN", permission)

  @pytest.mark.parametrize("permission", list(Permission))
  def test_user_holds_none(self, permission):
    assert not has_permission("USER", permission)
    with pytest.raises(InsufficientPermissionsError):
      require_permission("USER", permission)

  def test_unknown_role_holds_none(self):
    assert not has_permission("SUPERUSER", Permission.MANAGE_USERS)

  def test_denial_is_403(self):
    with pytest.raises(InsufficientPermissionsError) as exc_info:
      require_permission("USER", Permission.MANAGE_BILLING)
    assert exc_info.value.status_code == 403
