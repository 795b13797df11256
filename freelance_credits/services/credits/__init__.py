"""Credits service — freelancer balances, the credit ledger, and refunds.

Public API:
    - add_credits / deduct_credits / admin_adjust_credits: locked balance mutations.
    - purchase_with_payment: at-most-once credit for a gateway payment.
    - process_refund / process_project_cancellation_refunds: refund engine.
    - give_signup_bonus: one-time welcome credits.
    - log_transaction / get_history / is_payment_processed: ledger store.
    - get_price_per_credit / get_packages: pricing.
    - verify_payment_signature: gateway signature check before a purchase.
"""

from freelance_credits.services.credits.balance import (
    add_credits,
    admin_adjust_credits,
    can_purchase,
    deduct_credits,
    get_credits_balance,
    has_enough_credits,
    lock_profile,
    purchase_with_payment,
)
from freelance_credits.services.credits.exceptions import (
    AlreadyRefundedError,
    CreditError,
    InsufficientCreditsError,
    InvalidAmountError,
    LedgerInvariantError,
    MaxBalanceExceededError,
    PaymentAlreadyProcessedError,
    PaymentVerificationError,
    PaymentVerificationUnavailableError,
    ProfileNotFoundError,
    RefundNotEligibleError,
)
from freelance_credits.services.credits.ledger import (
    get_by_payment_id,
    get_history,
    get_history_count,
    is_payment_processed,
    log_transaction,
    replay_balance,
)
from freelance_credits.services.credits.models import (
    CreditBalance,
    CreditHistoryEntry,
    CreditLogEntry,
    CreditOperationResult,
    CreditPackage,
    CreditReference,
    PaymentDetails,
    ReferenceKind,
    RefundEligibility,
    RefundReason,
    RefundResult,
    SignupBonusResult,
    TransactionType,
)
from freelance_credits.services.credits.payments import verify_payment_signature
from freelance_credits.services.credits.pricing import (
    calculate_price,
    get_package_by_id,
    get_packages,
    get_price_per_credit,
    update_price_per_credit,
    validate_package,
)
from freelance_credits.services.credits.refunds import (
    check_refund_eligibility,
    get_user_refunds,
    process_project_cancellation_refunds,
    process_refund,
)
from freelance_credits.services.credits.signup_bonus import give_signup_bonus, has_claimed_bonus

__all__ = [
    "AlreadyRefundedError",
    "CreditBalance",
    "CreditError",
    "CreditHistoryEntry",
    "CreditLogEntry",
    "CreditOperationResult",
    "CreditPackage",
    "CreditReference",
    "InsufficientCreditsError",
    "InvalidAmountError",
    "LedgerInvariantError",
    "MaxBalanceExceededError",
    "PaymentAlreadyProcessedError",
    "PaymentDetails",
    "PaymentVerificationError",
    "PaymentVerificationUnavailableError",
    "ProfileNotFoundError",
    "ReferenceKind",
    "RefundEligibility",
    "RefundNotEligibleError",
    "RefundReason",
    "RefundResult",
    "SignupBonusResult",
    "TransactionType",
    "add_credits",
    "admin_adjust_credits",
    "calculate_price",
    "can_purchase",
    "check_refund_eligibility",
    "deduct_credits",
    "get_by_payment_id",
    "get_credits_balance",
    "get_history",
    "get_history_count",
    "get_package_by_id",
    "get_packages",
    "get_price_per_credit",
    "get_user_refunds",
    "give_signup_bonus",
    "has_claimed_bonus",
    "has_enough_credits",
    "is_payment_processed",
    "lock_profile",
    "log_transaction",
    "process_project_cancellation_refunds",
    "process_refund",
    "purchase_with_payment",
    "replay_balance",
    "update_price_per_credit",
    "validate_package",
    "verify_payment_signature",
]
