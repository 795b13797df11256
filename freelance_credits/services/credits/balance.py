"""Credit balance mutations — purchase, deduction, and admin adjustment.

Every mutation locks the freelancer's profile row with ``SELECT ... FOR UPDATE``
before reading the balance and writes the balance change and its ledger row in
the same transaction. A failure anywhere rolls both back.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from freelance_credits.core.config import settings
from freelance_credits.models.freelancer_profile import FreelancerProfile
from freelance_credits.services.credits.exceptions import (
    InsufficientCreditsError,
    InvalidAmountError,
    MaxBalanceExceededError,
    PaymentAlreadyProcessedError,
    ProfileNotFoundError,
)
from freelance_credits.services.credits.ledger import is_payment_processed, log_transaction
from freelance_credits.services.credits.models import (
    AdminAdjustmentResult,
    CreditBalance,
    CreditLogEntry,
    CreditOperationResult,
    CreditPackage,
    CreditReference,
    PaymentDetails,
    ReferenceKind,
    TransactionType,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def lock_profile(db: Session, user_id: int) -> FreelancerProfile:
    """Lock and return a freelancer's profile row for the current transaction.

    ``populate_existing`` makes sure the balance is re-read after the lock is
    granted, even if the profile was already loaded in this session.
    """
    profile = db.execute(
        select(FreelancerProfile)
        .where(FreelancerProfile.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()

    if profile is None:
        raise ProfileNotFoundError(user_id)
    return profile


# ---------------------------------------------------------------------------
# Balance queries
# ---------------------------------------------------------------------------


def get_credits_balance(db: Session, user_id: int) -> CreditBalance:
    """Return a freelancer's balance and lifetime counters."""
    profile = db.execute(
        select(FreelancerProfile).where(FreelancerProfile.user_id == user_id)
    ).scalar_one_or_none()

    if profile is None:
        raise ProfileNotFoundError(user_id)

    return CreditBalance(
        credits_balance=profile.credits_balance,
        total_credits_purchased=profile.total_credits_purchased,
        credits_used=profile.credits_used,
        signup_bonus_claimed=profile.signup_bonus_claimed,
    )


def has_enough_credits(db: Session, user_id: int, required: int) -> bool:
    """Best-effort balance check; False on any lookup failure.

    Not authoritative: callers must still attempt deduct_credits and handle
    InsufficientCreditsError.
    """
    try:
        with db.begin_nested():
            balance = db.execute(
                select(FreelancerProfile.credits_balance).where(
                    FreelancerProfile.user_id == user_id
                )
            ).scalar_one_or_none()
    except SQLAlchemyError:
        logger.exception("Balance lookup failed for user %s", user_id)
        return False
    return balance is not None and balance >= required


def can_purchase(db: Session, user_id: int, credits: int) -> tuple[bool, str | None]:
    """Check a prospective purchase against the purchase and balance limits."""
    if credits < settings.CREDITS_MIN_PURCHASE:
        return False, f"Minimum {settings.CREDITS_MIN_PURCHASE} credit(s) required"

    if credits > settings.CREDITS_MAX_SINGLE_PURCHASE:
        return False, f"Maximum {settings.CREDITS_MAX_SINGLE_PURCHASE} credits per purchase"

    balance = get_credits_balance(db, user_id)
    if balance.credits_balance + credits > settings.CREDITS_MAX_BALANCE:
        return False, f"Cannot exceed maximum balance of {settings.CREDITS_MAX_BALANCE} credits"

    return True, None


# ---------------------------------------------------------------------------
# Credit mutations
# ---------------------------------------------------------------------------


def add_credits(
    db: Session,
    user_id: int,
    credits: int,
    payment_reference: str | None = None,
    *,
    payment: PaymentDetails | None = None,
    package: CreditPackage | None = None,
) -> CreditOperationResult:
    """Add purchased credits to a freelancer's balance.

    Without a payment reference the max-balance ceiling is enforced. With one
    the credits were already paid for, so the ceiling is only logged.
    """
    if not _is_positive_int(credits):
        raise InvalidAmountError("Credits must be a positive integer")
    if credits > settings.CREDITS_MAX_SINGLE_PURCHASE:
        raise InvalidAmountError(
            f"Maximum {settings.CREDITS_MAX_SINGLE_PURCHASE} credits per purchase"
        )

    if payment_reference is not None:
        payment = (payment or PaymentDetails()).model_copy(
            update={"transaction_id": payment_reference}
        )

    try:
        profile = lock_profile(db, user_id)

        # Re-checked under the row lock so concurrent webhook retries credit once
        if payment_reference is not None and is_payment_processed(db, payment_reference):
            raise PaymentAlreadyProcessedError(payment_reference)

        balance_before = profile.credits_balance
        new_balance = balance_before + credits

        if new_balance > settings.CREDITS_MAX_BALANCE:
            if payment_reference is None:
                raise MaxBalanceExceededError(
                    current_balance=balance_before,
                    attempted_add=credits,
                    max_balance=settings.CREDITS_MAX_BALANCE,
                )
            logger.warning(
                "User %s exceeded max balance via paid transaction %s (new balance: %d)",
                user_id,
                payment_reference,
                new_balance,
            )

        profile.credits_balance = new_balance
        profile.total_credits_purchased += credits
        total_purchased = profile.total_credits_purchased

        if package is not None:
            description = f"Purchased {package.name} package (+{credits} credits)"
        else:
            description = f"Purchased {credits} credits"

        log_transaction(
            db,
            CreditLogEntry(
                user_id=user_id,
                transaction_type=TransactionType.PURCHASE,
                amount=credits,
                balance_before=balance_before,
                balance_after=new_balance,
                reference=CreditReference(kind=ReferenceKind.PAYMENT),
                payment=payment,
                package_id=package.id if package else None,
                package_name=package.name if package else None,
                description=description,
            ),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Added %d credits for user %s (new balance: %d)", credits, user_id, new_balance)
    return CreditOperationResult(
        credits_balance=new_balance,
        total_credits_purchased=total_purchased,
    )


def purchase_with_payment(
    db: Session,
    user_id: int,
    credits: int,
    payment: PaymentDetails,
    package: CreditPackage | None = None,
) -> tuple[CreditOperationResult, bool]:
    """Grant credits for a verified gateway payment at most once.

    Returns ``(result, credited)``; ``credited`` is False when the payment had
    already been processed and the current balance is returned unchanged.
    """
    if not payment.transaction_id:
        raise InvalidAmountError("Payment transaction id is required")

    if not is_payment_processed(db, payment.transaction_id):
        try:
            result = add_credits(
                db, user_id, credits, payment.transaction_id, payment=payment, package=package
            )
            return result, True
        except PaymentAlreadyProcessedError:
            pass

    logger.info("Payment %s already processed, skipping credit", payment.transaction_id)
    balance = get_credits_balance(db, user_id)
    return (
        CreditOperationResult(
            credits_balance=balance.credits_balance,
            total_credits_purchased=balance.total_credits_purchased,
        ),
        False,
    )


def deduct_credits(
    db: Session,
    user_id: int,
    credits: int,
    project_id: int,
) -> CreditOperationResult:
    """Spend credits on a project application."""
    if not _is_positive_int(credits):
        raise InvalidAmountError("Credits to deduct must be a positive integer")

    try:
        profile = lock_profile(db, user_id)

        balance_before = profile.credits_balance
        if balance_before < credits:
            raise InsufficientCreditsError(
                required=credits,
                available=balance_before,
                purchase_url=settings.CREDITS_PURCHASE_URL,
            )

        new_balance = balance_before - credits
        profile.credits_balance = new_balance
        profile.credits_used += credits
        credits_used = profile.credits_used

        log_transaction(
            db,
            CreditLogEntry(
                user_id=user_id,
                transaction_type=TransactionType.DEDUCTION,
                amount=-credits,
                balance_before=balance_before,
                balance_after=new_balance,
                reference=CreditReference(kind=ReferenceKind.APPLICATION, id=project_id),
                description=f"Applied to project #{project_id}",
            ),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Deducted %d credits from user %s for project %s (new balance: %d)",
        credits,
        user_id,
        project_id,
        new_balance,
    )
    return CreditOperationResult(credits_balance=new_balance, credits_used=credits_used)


def admin_adjust_credits(
    db: Session,
    user_id: int,
    amount: int,
    admin_user_id: int,
    reason: str,
) -> AdminAdjustmentResult:
    """Manually add (positive amount) or remove (negative amount) credits."""
    if not isinstance(amount, int) or isinstance(amount, bool) or amount == 0:
        raise InvalidAmountError("Amount must be a non-zero integer")
    if not reason or not reason.strip():
        raise InvalidAmountError("A reason is required for admin adjustments")

    try:
        profile = lock_profile(db, user_id)

        balance_before = profile.credits_balance
        new_balance = balance_before + amount

        if new_balance < 0:
            raise InvalidAmountError("Adjustment would result in negative balance")
        if amount > 0 and new_balance > settings.CREDITS_MAX_BALANCE:
            raise MaxBalanceExceededError(
                current_balance=balance_before,
                attempted_add=amount,
                max_balance=settings.CREDITS_MAX_BALANCE,
            )

        profile.credits_balance = new_balance
        if amount > 0:
            profile.total_credits_purchased += amount
        else:
            profile.credits_used += abs(amount)

        verb = "added" if amount > 0 else "deducted"
        log_transaction(
            db,
            CreditLogEntry(
                user_id=user_id,
                transaction_type=TransactionType.ADMIN_ADD if amount > 0 else TransactionType.ADMIN_DEDUCT,
                amount=amount,
                balance_before=balance_before,
                balance_after=new_balance,
                reference=CreditReference(kind=ReferenceKind.ADMIN, id=admin_user_id),
                admin_user_id=admin_user_id,
                admin_reason=reason,
                description=f"Admin {verb} {abs(amount)} credits",
            ),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Admin %s adjusted credits for user %s by %+d (new balance: %d)",
        admin_user_id,
        user_id,
        amount,
        new_balance,
    )
    return AdminAdjustmentResult(
        previous_balance=balance_before,
        adjustment=amount,
        new_balance=new_balance,
    )
