"""API models for admin endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .billing import (
  CamelModel,
  InvoiceResponse,
  PaymentMethodResponse,
  RefundResponse,
  SubscriptionResponse,
)


class PendingRefundSummary(BaseModel):
  id: str
  amount: float
  reason: str
  created_at: datetime
  user_email: str
  user_name: str


class AdminDashboardResponse(BaseModel):
  total_users: int
  active_subscriptions: int
  total_revenue: float
  pending_refunds: int
  recent_refund_requests: List[PendingRefundSummary]


class AdminUserSummary(BaseModel):
  id: str
  email: str
  name: str
  role: str
  is_active: bool
  created_at: datetime
  subscription_status: Optional[str] = None
  tier_name: Optional[str] = None


class Pagination(BaseModel):
  page: int
  limit: int
  total: int
  total_pages: int


class AdminUserListResponse(BaseModel):
  users: List[AdminUserSummary]
  pagination: Pagination


class AdminCreateUserRequest(CamelModel):
  """Invite a new user."""

  name: str = Field(..., min_length=1, max_length=100)
  email: EmailStr
  role: str = Field("USER", description="'USER' or 'ADMIN'")
  send_invite: bool = Field(
    True, description="Email the temporary password to the new user"
  )


class AdminCreateUserResponse(BaseModel):
  user: AdminUserSummary
  message: str
  temporary_password: Optional[str] = Field(
    None, description="Only returned when no invitation email is sent"
  )


class AdminUserDetailResponse(BaseModel):
  user: AdminUserSummary
  subscription: Optional[SubscriptionResponse] = None
  invoices: List[InvoiceResponse]
  payment_methods: List[PaymentMethodResponse]
  invoice_count: int
  usage_count: int
  total_spent: float


class RefundApproveRequest(CamelModel):
  refund_id: str = Field(..., description="Refund request to approve")


class RefundRejectRequest(CamelModel):
  refund_id: str = Field(..., description="Refund request to reject")
  reason: Optional[str] = Field(None, description="Note recorded on the request")


class RefundActionResponse(BaseModel):
  message: str
  refund: RefundResponse
