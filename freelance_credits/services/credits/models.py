"""Credits domain models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    DEDUCTION = "deduction"
    REFUND = "refund"
    ADMIN_ADD = "admin_add"
    ADMIN_DEDUCT = "admin_deduct"
    EXPIRY = "expiry"
    SIGNUP_BONUS = "signup_bonus"


class ReferenceKind(str, Enum):
    PAYMENT = "payment"
    APPLICATION = "application"
    ADMIN = "admin"
    SYSTEM = "system"
    SIGNUP = "signup"


class RefundReason(str, Enum):
    WITHDRAWAL = "withdrawal"
    PROJECT_CANCELLED = "project_cancelled"
    PROJECT_EXPIRED = "project_expired"
    TECHNICAL_ERROR = "technical_error"
    ADMIN_REFUND = "admin_refund"
    DUPLICATE_APPLICATION = "duplicate_application"


# Reasons that always return everything that was spent
FULL_REFUND_REASONS = frozenset(
    {
        RefundReason.PROJECT_CANCELLED,
        RefundReason.PROJECT_EXPIRED,
        RefundReason.TECHNICAL_ERROR,
        RefundReason.ADMIN_REFUND,
        RefundReason.DUPLICATE_APPLICATION,
    }
)


class CreditReference(BaseModel):
    """What caused a ledger entry. Persisted as reference_type + reference_id."""

    kind: ReferenceKind
    id: int | None = None


class PaymentDetails(BaseModel):
    """Gateway metadata recorded on purchase entries."""

    gateway: str = "razorpay"
    order_id: str | None = None
    transaction_id: str | None = None
    amount: Decimal | None = None
    currency: str = "INR"


class CreditLogEntry(BaseModel):
    user_id: int
    transaction_type: TransactionType
    amount: int
    balance_before: int
    balance_after: int
    reference: CreditReference | None = None
    payment: PaymentDetails | None = None
    package_id: int | None = None
    package_name: str | None = None
    admin_user_id: int | None = None
    admin_reason: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    description: str | None = None


class CreditBalance(BaseModel):
    credits_balance: int
    total_credits_purchased: int
    credits_used: int
    signup_bonus_claimed: bool = False


class CreditOperationResult(BaseModel):
    credits_balance: int
    credits_used: int | None = None
    total_credits_purchased: int | None = None


class AdminAdjustmentResult(BaseModel):
    previous_balance: int
    adjustment: int
    new_balance: int


class CreditPackage(BaseModel):
    id: int
    name: str
    credits: int
    description: str
    price: float | None = None


class RefundEligibility(BaseModel):
    eligible: bool
    refund_amount: int
    refund_percent: int
    reason: str
    original_credits: int


class RefundResult(BaseModel):
    success: bool
    refund_amount: int
    new_balance: int
    message: str


class SignupBonusResult(BaseModel):
    success: bool
    credits_added: int = 0
    message: str


class BatchRefundResult(BaseModel):
    refunded: int = 0
    total: int = 0
    failed_application_ids: list[int] = Field(default_factory=list)


class CreditHistoryEntry(BaseModel):
    """A ledger row as shown to its owner, with a description always present."""

    transaction_id: int
    transaction_type: TransactionType
    amount: int
    balance_before: int
    balance_after: int
    reference_type: str | None = None
    reference_id: int | None = None
    description: str
    package_name: str | None = None
    payment_amount: Decimal | None = None
    created_at: datetime
