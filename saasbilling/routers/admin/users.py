"""Admin API for user management."""

import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from ...config.constants import (
  ADMIN_DEFAULT_PAGE_SIZE,
  ADMIN_MAX_PAGE_SIZE,
  ADMIN_RECENT_ROWS,
)
from ...database import get_db_session
from ...exceptions import SaaSBillingError, to_http_exception
from ...logger import get_logger
from ...middleware.auth import Permission, get_client_ip, require_admin_permission
from ...models.api.admin import (
  AdminCreateUserRequest,
  AdminCreateUserResponse,
  AdminUserDetailResponse,
  AdminUserListResponse,
  AdminUserSummary,
  Pagination,
)
from ...models.api.billing import (
  InvoiceResponse,
  PaymentMethodResponse,
  SubscriptionResponse,
)
from ...models.billing import Invoice, PaymentMethod, UsageRecord
from ...models.iam import User
from ...operations.aws.ses import SESEmailService, get_email_service
from ...operations.user_admin_service import UserAdminService

logger = get_logger(__name__)

router = APIRouter(prefix="/users")


def user_summary(user: User) -> AdminUserSummary:
  subscription = user.subscription
  return AdminUserSummary(
    id=user.id,
    email=user.email,
    name=user.name,
    role=user.role,
    is_active=user.is_active,
    created_at=user.created_at,
    subscription_status=subscription.status if subscription else None,
    tier_name=subscription.tier.name if subscription and subscription.tier else None,
  )


@router.get(
  "",
  response_model=AdminUserListResponse,
  summary="List Users",
  description="Page through users, newest first, with optional search and role filter.",
  operation_id="adminListUsers",
)
async def list_users(
  page: int = Query(1, ge=1),
  limit: int = Query(
    ADMIN_DEFAULT_PAGE_SIZE,
    ge=1,
    description=f"Page size, capped at {ADMIN_MAX_PAGE_SIZE}",
  ),
  search: Optional[str] = Query(None, description="Match email or name"),
  role: str = Query("all", description="'USER', 'ADMIN' or 'all'"),
  admin: User = Depends(require_admin_permission(Permission.MANAGE_USERS)),
  db: Session = Depends(get_db_session),
) -> AdminUserListResponse:
  limit = min(limit, ADMIN_MAX_PAGE_SIZE)
  users, total = User.search(db, page=page, limit=limit, search=search, role=role)

  logger.info(
    f"Admin {admin.id} listed {len(users)} users",
    extra={"user_id": admin.id, "metadata": {"search": search, "role": role}},
  )
  return AdminUserListResponse(
    users=[user_summary(user) for user in users],
    pagination=Pagination(
      page=page,
      limit=limit,
      total=total,
      total_pages=math.ceil(total / limit) if total else 0,
    ),
  )


@router.post(
  "",
  response_model=AdminCreateUserResponse,
  status_code=status.HTTP_201_CREATED,
  summary="Create User",
  description="""Create an account with a random temporary password.

With `send_invite` the password is emailed to the user; otherwise it is
returned once in the response.""",
  operation_id="adminCreateUser",
)
async def create_user(
  body: AdminCreateUserRequest,
  request: Request,
  admin: User = Depends(require_admin_permission(Permission.MANAGE_USERS)),
  db: Session = Depends(get_db_session),
  email_service: SESEmailService = Depends(get_email_service),
) -> AdminCreateUserResponse:
  try:
    service = UserAdminService(db, email_service)
    result = await service.create_user(
      admin,
      name=body.name,
      email=body.email,
      role=body.role,
      send_invite=body.send_invite,
      ip_address=get_client_ip(request),
    )
  except SaaSBillingError as e:
    raise to_http_exception(e)
  except HTTPException:
    raise
  except Exception as e:
    logger.error(f"Failed to create user {body.email}: {e}", exc_info=True)
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to create user",
    )

  if body.send_invite:
    message = (
      "User created and invitation sent"
      if result.invite_sent
      else "User created but the invitation email could not be sent"
    )
  else:
    message = "User created"

  return AdminCreateUserResponse(
    user=user_summary(result.user),
    message=message,
    temporary_password=None if body.send_invite else result.temporary_password,
  )


@router.get(
  "/{user_id}",
  response_model=AdminUserDetailResponse,
  summary="Get User",
  description="A user with subscription, recent invoices, payment methods and totals.",
  operation_id="adminGetUser",
)
async def get_user(
  user_id: str,
  admin: User = Depends(require_admin_permission(Permission.MANAGE_USERS)),
  db: Session = Depends(get_db_session),
) -> AdminUserDetailResponse:
  user = User.get_by_id(user_id, db)
  if user is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

  logger.info(f"Admin {admin.id} retrieved user {user_id}")
  return AdminUserDetailResponse(
    user=user_summary(user),
    subscription=(
      SubscriptionResponse.from_model(user.subscription) if user.subscription else None
    ),
    invoices=[
      InvoiceResponse.from_model(i)
      for i in Invoice.get_for_user(user.id, db, limit=ADMIN_RECENT_ROWS)
    ],
    payment_methods=[
      PaymentMethodResponse.from_model(m) for m in PaymentMethod.get_for_user(user.id, db)
    ],
    invoice_count=Invoice.count_for_user(user.id, db),
    usage_count=UsageRecord.count_for_user(user.id, db),
    total_spent=Invoice.total_paid_cents(db, user_id=user.id) / 100,
  )
