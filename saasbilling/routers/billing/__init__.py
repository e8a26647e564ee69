"""Billing router module."""

from fastapi import APIRouter

from .invoices import router as invoices_router
from .payment_methods import router as payment_methods_router
from .refunds import router as refunds_router
from .subscriptions import router as subscriptions_router
from .tiers import router as tiers_router

router = APIRouter(prefix="/billing", tags=["Billing"])

router.include_router(tiers_router)
router.include_router(subscriptions_router)
router.include_router(invoices_router)
router.include_router(payment_methods_router)
router.include_router(refunds_router)
