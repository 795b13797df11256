from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from freelance_credits.services.credits.models import (
    CreditHistoryEntry,
    CreditPackage,
    RefundReason,
)


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------


class CreditBalanceResponse(BaseModel):
    credits_balance: int
    total_credits_purchased: int
    credits_used: int
    signup_bonus_claimed: bool
    price_per_credit: float
    currency: str


# ---------------------------------------------------------------------------
# Packages
# ---------------------------------------------------------------------------


class PurchaseLimits(BaseModel):
    min_purchase: int
    max_purchase: int
    max_balance: int


class PackagesResponse(BaseModel):
    packages: list[CreditPackage]
    price_per_credit: float
    currency: str
    limits: PurchaseLimits


# ---------------------------------------------------------------------------
# Purchase
# ---------------------------------------------------------------------------


class CreditPurchaseRequest(BaseModel):
    """A completed gateway payment, with the signature the gateway returned."""

    package_id: int | None = None
    credits: int | None = Field(None, gt=0)
    order_id: str = Field(..., min_length=1, max_length=255)
    payment_id: str = Field(..., min_length=1, max_length=255)
    signature: str = Field(..., min_length=1)
    amount: Decimal | None = Field(None, ge=0)


class CreditPurchaseResponse(BaseModel):
    credits_balance: int
    total_credits_purchased: int | None
    credits_added: int
    already_processed: bool


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


class CreditHistoryResponse(BaseModel):
    items: list[CreditHistoryEntry]
    total: int
    limit: int
    offset: int


# ---------------------------------------------------------------------------
# Refunds
# ---------------------------------------------------------------------------


class RefundEligibilityResponse(BaseModel):
    application_id: int
    eligible: bool
    refund_amount: int
    refund_percent: int
    reason: str
    original_credits: int


class RefundRecord(BaseModel):
    applied_projects_id: int
    projects_task_id: int
    project_title: str
    credits_spent: int | None
    refund_amount: int
    refund_reason: str | None
    refunded_at: datetime | None


class UserRefundsResponse(BaseModel):
    items: list[RefundRecord]
    total: int


class AdminRefundRequest(BaseModel):
    user_id: int
    reason: RefundReason = RefundReason.ADMIN_REFUND
    note: str | None = Field(None, max_length=500)


class RefundResponse(BaseModel):
    success: bool
    refund_amount: int
    new_balance: int
    message: str


class ProjectRefundResponse(BaseModel):
    project_id: int
    refunded: int
    total: int
    failed_application_ids: list[int]


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class AdminAdjustRequest(BaseModel):
    user_id: int
    amount: int
    reason: str = Field(..., min_length=1, max_length=500)


class AdminAdjustResponse(BaseModel):
    user_id: int
    previous_balance: int
    adjustment: int
    new_balance: int


class AdminTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_id: int
    user_id: int
    email: str | None
    first_name: str | None
    last_name: str | None
    transaction_type: str
    amount: int
    balance_before: int
    balance_after: int
    reference_type: str | None
    reference_id: int | None
    payment_transaction_id: str | None
    payment_amount: Decimal | None
    admin_user_id: int | None
    admin_reason: str | None
    description: str | None
    created_at: datetime


class AdminTransactionListResponse(BaseModel):
    items: list[AdminTransactionResponse]
    total: int
    page: int
    limit: int


class PriceUpdateRequest(BaseModel):
    price_per_credit: float = Field(..., gt=0)


class PriceUpdateResponse(BaseModel):
    price_per_credit: float
    updated_by: int | None
    updated_at: datetime | None
