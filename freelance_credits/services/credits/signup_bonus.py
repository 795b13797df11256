"""One-time welcome credits for new freelancer accounts."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from freelance_credits.core.config import settings
from freelance_credits.models.freelancer_profile import FreelancerProfile
from freelance_credits.models.user import User
from freelance_credits.services.credits.ledger import log_transaction
from freelance_credits.services.credits.models import (
    CreditLogEntry,
    CreditReference,
    ReferenceKind,
    SignupBonusResult,
    TransactionType,
)

logger = logging.getLogger(__name__)


def get_bonus_amount() -> int:
    return settings.CREDITS_SIGNUP_BONUS


def has_claimed_bonus(db: Session, user_id: int) -> bool:
    claimed = db.execute(
        select(FreelancerProfile.signup_bonus_claimed).where(FreelancerProfile.user_id == user_id)
    ).scalar_one_or_none()
    return bool(claimed)


def _credit_bonus(db: Session, user_id: int, role_name: str, bonus: int) -> str | None:
    """Lock the profile and credit the bonus; return a refusal message, or None on success."""
    profile = db.execute(
        select(FreelancerProfile)
        .where(FreelancerProfile.user_id == user_id)
        .with_for_update()
    ).scalar_one_or_none()

    if profile is None:
        logger.warning("Freelancer profile not found for user %s, no signup bonus", user_id)
        return "Freelancer profile not found"

    if profile.signup_bonus_claimed:
        logger.info("Signup bonus already claimed for user %s", user_id)
        return "Signup bonus already claimed"

    balance_before = profile.credits_balance or 0
    new_balance = balance_before + bonus

    profile.credits_balance = new_balance
    profile.signup_bonus_claimed = True

    role_label = role_name.lower().replace("_", " ")
    log_transaction(
        db,
        CreditLogEntry(
            user_id=user_id,
            transaction_type=TransactionType.SIGNUP_BONUS,
            amount=bonus,
            balance_before=balance_before,
            balance_after=new_balance,
            reference=CreditReference(kind=ReferenceKind.SIGNUP),
            description=f"Welcome bonus: {bonus} free keys for new {role_label} registration",
        ),
    )
    return None


def give_signup_bonus(
    db: Session,
    user_id: int,
    role_name: str,
    commit: bool = True,
) -> SignupBonusResult:
    """Credit the signup bonus to a new freelancer, at most once.

    Registration calls this with ``commit=False`` inside the transaction that
    creates the profile. The bonus then runs in a savepoint: on failure only
    the savepoint is rolled back, and the caller's pending registration stays
    committable. Errors never propagate.
    """
    try:
        if role_name.upper() not in User.FREELANCER_ROLES:
            return SignupBonusResult(
                success=False,
                message="Signup bonus is only available for freelancers (Videographer/Video Editor)",
            )

        bonus = get_bonus_amount()

        if commit:
            refusal = _credit_bonus(db, user_id, role_name, bonus)
            if refusal is None:
                db.commit()
            else:
                db.rollback()
        else:
            # Flushes pending registration objects before the savepoint opens
            with db.begin_nested():
                refusal = _credit_bonus(db, user_id, role_name, bonus)
    except Exception:
        if commit:
            db.rollback()
        logger.exception("Failed to give signup bonus to user %s", user_id)
        return SignupBonusResult(success=False, message="Failed to apply signup bonus")

    if refusal is not None:
        return SignupBonusResult(success=False, message=refusal)

    logger.info("Gave %d signup bonus credits to user %s (%s)", bonus, user_id, role_name)
    return SignupBonusResult(
        success=True,
        credits_added=bonus,
        message=f"Welcome! You've received {bonus} free keys to get started.",
    )
