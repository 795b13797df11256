"""Credits service exceptions.

Every error carries an HTTP-style ``status_code`` and a machine-readable
``code`` so the API layer can render them uniformly.
"""

from typing import Any


class CreditError(Exception):
    """Base exception for all credit operations."""

    status_code: int = 400
    code: str = "CREDIT_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class InvalidAmountError(CreditError):
    """Raised when an amount is not a positive integer or breaks a purchase limit."""

    code = "INVALID_AMOUNT"


class ProfileNotFoundError(CreditError):
    """Raised when a user has no freelancer profile (and so no balance)."""

    status_code = 404
    code = "PROFILE_NOT_FOUND"

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__("Freelancer profile not found")


class InsufficientCreditsError(CreditError):
    """Raised when a deduction exceeds the available balance."""

    code = "INSUFFICIENT_CREDITS"

    def __init__(self, required: int, available: int, purchase_url: str) -> None:
        self.required = required
        self.available = available
        self.shortfall = required - available
        self.purchase_url = purchase_url
        super().__init__("Insufficient credits balance")

    def details(self) -> dict[str, Any]:
        return {
            **super().details(),
            "required": self.required,
            "available": self.available,
            "shortfall": self.shortfall,
            "purchase_url": self.purchase_url,
        }


class MaxBalanceExceededError(CreditError):
    """Raised when an addition would push the balance past the ceiling."""

    code = "MAX_BALANCE_EXCEEDED"

    def __init__(self, current_balance: int, attempted_add: int, max_balance: int) -> None:
        self.current_balance = current_balance
        self.attempted_add = attempted_add
        self.max_balance = max_balance
        self.max_allowed = max(0, max_balance - current_balance)
        super().__init__(f"Cannot exceed maximum balance of {max_balance} credits")

    def details(self) -> dict[str, Any]:
        return {
            **super().details(),
            "current_balance": self.current_balance,
            "attempted_add": self.attempted_add,
            "max_allowed": self.max_allowed,
        }


class RefundNotEligibleError(CreditError):
    """Raised when a refund is requested for an ineligible application."""

    code = "REFUND_NOT_ELIGIBLE"

    def __init__(self, reason: str, original_credits: int) -> None:
        self.original_credits = original_credits
        super().__init__(reason)

    def details(self) -> dict[str, Any]:
        return {**super().details(), "original_credits": self.original_credits}


class AlreadyRefundedError(CreditError):
    """Raised when a concurrent refund got to the application first."""

    status_code = 409
    code = "ALREADY_REFUNDED"

    def __init__(self, application_id: int) -> None:
        self.application_id = application_id
        super().__init__("Application already refunded")


class LedgerInvariantError(CreditError):
    """Raised when ledger snapshots do not add up."""

    status_code = 500
    code = "LEDGER_INVARIANT_VIOLATION"


class PaymentAlreadyProcessedError(CreditError):
    """Raised when credits for a gateway payment were already granted."""

    status_code = 409
    code = "PAYMENT_ALREADY_PROCESSED"

    def __init__(self, payment_transaction_id: str) -> None:
        self.payment_transaction_id = payment_transaction_id
        super().__init__(f"Payment {payment_transaction_id} already processed")


class PaymentVerificationError(CreditError):
    """Raised when a gateway payment signature does not match."""

    code = "INVALID_PAYMENT_SIGNATURE"


class PaymentVerificationUnavailableError(CreditError):
    """Raised when no gateway key secret is configured to check signatures."""

    status_code = 503
    code = "PAYMENT_VERIFICATION_UNAVAILABLE"
