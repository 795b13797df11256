"""Gateway payment signature checks.

The gateway signs ``"{order_id}|{payment_id}"`` with HMAC-SHA256 under the
merchant key secret; a payment is only credited once that signature matches.
"""

import hashlib
import hmac

from freelance_credits.core.config import settings
from freelance_credits.services.credits.exceptions import (
    PaymentVerificationError,
    PaymentVerificationUnavailableError,
)


def payment_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_payment_signature(order_id: str, payment_id: str, signature: str) -> None:
    """Raise unless ``signature`` is the gateway's signature for this order and payment."""
    secret = settings.PAYMENT_KEY_SECRET
    if not secret:
        raise PaymentVerificationUnavailableError("Payment verification not configured")

    expected = payment_signature(order_id, payment_id, secret)
    if not hmac.compare_digest(expected, signature):
        raise PaymentVerificationError("Invalid payment signature")
