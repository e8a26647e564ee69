"""Admin analytics dashboard."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...config.constants import ADMIN_RECENT_ROWS
from ...database import get_db_session
from ...logger import get_logger
from ...middleware.auth import Permission, require_admin_permission
from ...models.api.admin import AdminDashboardResponse, PendingRefundSummary
from ...models.billing import Invoice, RefundRequest, Subscription
from ...models.iam import User

logger = get_logger(__name__)

router = APIRouter()


@router.get(
  "/dashboard",
  response_model=AdminDashboardResponse,
  summary="Admin Dashboard",
  description="""Platform-wide billing totals.

`total_revenue` sums PAID invoices; `recent_refund_requests` lists the 10
newest PENDING requests with the requesting user.""",
  operation_id="getAdminDashboard",
)
async def get_dashboard(
  admin: User = Depends(require_admin_permission(Permission.VIEW_ANALYTICS)),
  db: Session = Depends(get_db_session),
) -> AdminDashboardResponse:
  try:
    recent = RefundRequest.get_recent_pending(db, limit=ADMIN_RECENT_ROWS)
    response = AdminDashboardResponse(
      total_users=User.count(db),
      active_subscriptions=Subscription.count_active(db),
      total_revenue=Invoice.total_paid_cents(db) / 100,
      pending_refunds=RefundRequest.count_pending(db),
      recent_refund_requests=[
        PendingRefundSummary(
          id=refund.id,
          amount=refund.amount,
          reason=refund.reason,
          created_at=refund.created_at,
          user_email=refund.user.email,
          user_name=refund.user.name,
        )
        for refund in recent
      ],
    )
    logger.info(f"Admin {admin.id} viewed dashboard")
    return response
  except Exception as e:
    logger.error(f"Failed to build admin dashboard: {e}", exc_info=True)
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail="Failed to load dashboard",
    )
