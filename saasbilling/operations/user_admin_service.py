"""Admin-side user provisioning."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import DuplicateEntityError, ValidationError
from ..logger import get_logger
from ..models.billing import AuditAction, AuditLog
from ..models.iam import User, UserRole
from ..security import PasswordSecurity
from .aws.ses import SESEmailService

logger = get_logger(__name__)


@dataclass
class ProvisionedUser:
  user: User
  temporary_password: str
  invite_sent: bool


class UserAdminService:
  """Create user accounts on behalf of an administrator."""

  def __init__(self, session: Session, email_service: Optional[SESEmailService] = None):
    self.session = session
    self.email_service = email_service

  async def create_user(
    self,
    admin: User,
    name: str,
    email: str,
    role: str = UserRole.USER.value,
    send_invite: bool = True,
    ip_address: Optional[str] = None,
  ) -> ProvisionedUser:
    """
    Create a user with a random temporary password.

    When ``send_invite`` is set the password is emailed; a failed send is
    logged and the user is kept.

    Raises:
        ValidationError: Unknown role or blank name
        DuplicateEntityError: A user with this email already exists
    """
    role = (role or UserRole.USER.value).upper()
    if role not in {r.value for r in UserRole}:
      raise ValidationError("Role must be USER or ADMIN", field="role")
    if not name or not name.strip():
      raise ValidationError("Name is required", field="name")

    if User.get_by_email(email, self.session) is not None:
      raise DuplicateEntityError(email, "User", message="User already exists")

    temporary_password = PasswordSecurity.generate_temporary_password()
    try:
      user = User.create(
        email=email,
        name=name.strip(),
        password_hash=PasswordSecurity.hash_password(temporary_password),
        session=self.session,
        role=role,
      )
    except IntegrityError:
      raise DuplicateEntityError(email, "User", message="User already exists")

    AuditLog.log_event(
      self.session,
      action=AuditAction.USER_CREATED,
      entity="User",
      entity_id=user.id,
      user_id=admin.id,
      new_values={"email": user.email, "role": user.role, "invited": send_invite},
      ip_address=ip_address,
    )

    invite_sent = False
    if send_invite and self.email_service is not None:
      try:
        invite_sent = await self.email_service.send_invitation(
          user.email, user.name, temporary_password
        )
      except Exception as e:
        logger.warning(f"Failed to send invitation to {user.id}: {e}")

    logger.info(f"Admin {admin.id} created user {user.id} with role {role}")
    return ProvisionedUser(
      user=user, temporary_password=temporary_password, invite_sent=invite_sent
    )
