"""Credit ledger — append-only audit log of balance changes and its query surface."""

import logging
from datetime import datetime

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from freelance_credits.models.credit_transaction import CreditTransaction
from freelance_credits.services.credits.exceptions import LedgerInvariantError
from freelance_credits.services.credits.models import (
    CreditHistoryEntry,
    CreditLogEntry,
    TransactionType,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def log_transaction(db: Session, entry: CreditLogEntry) -> CreditTransaction:
    """Append one ledger row inside the caller's transaction.

    Only flushes; committing (or rolling back) is left to whoever owns the
    balance mutation, so the balance update and its ledger row land together.
    """
    if entry.balance_after != entry.balance_before + entry.amount:
        raise LedgerInvariantError(
            f"Ledger entry does not add up: {entry.balance_before} + {entry.amount} "
            f"!= {entry.balance_after}"
        )

    payment = entry.payment
    transaction = CreditTransaction(
        user_id=entry.user_id,
        transaction_type=entry.transaction_type.value,
        amount=entry.amount,
        balance_before=entry.balance_before,
        balance_after=entry.balance_after,
        reference_type=entry.reference.kind.value if entry.reference else None,
        reference_id=entry.reference.id if entry.reference else None,
        payment_gateway=payment.gateway if payment else None,
        payment_order_id=payment.order_id if payment else None,
        payment_transaction_id=payment.transaction_id if payment else None,
        payment_amount=payment.amount if payment else None,
        payment_currency=payment.currency if payment else "INR",
        package_id=entry.package_id,
        package_name=entry.package_name,
        admin_user_id=entry.admin_user_id,
        admin_reason=entry.admin_reason,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        description=entry.description,
    )
    db.add(transaction)
    db.flush()
    return transaction


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def _filtered(
    query: Select,
    user_id: int,
    type: TransactionType | str | None,
    from_: datetime | None,
    to: datetime | None,
) -> Select:
    query = query.where(CreditTransaction.user_id == user_id)
    if type:
        query = query.where(CreditTransaction.transaction_type == TransactionType(type).value)
    if from_:
        query = query.where(CreditTransaction.created_at >= from_)
    if to:
        query = query.where(CreditTransaction.created_at <= to)
    return query


def default_description(transaction: CreditTransaction) -> str:
    """Human-readable fallback for rows logged without a description."""
    amount = abs(transaction.amount)
    match transaction.transaction_type:
        case "purchase":
            if transaction.package_name:
                return f"Purchased {transaction.package_name} package (+{amount} credits)"
            return f"Purchased {amount} credits"
        case "deduction":
            return f"Applied to project #{transaction.reference_id} (-{amount} credit)"
        case "refund":
            return f"Refund for application #{transaction.reference_id} (+{amount} credit)"
        case "admin_add":
            return f"Admin credit adjustment (+{amount} credits)"
        case "admin_deduct":
            return f"Admin credit adjustment (-{amount} credits)"
        case "expiry":
            return f"Credits expired (-{amount} credits)"
        case "signup_bonus":
            return f"Signup bonus (+{amount} credits)"
    sign = "+" if transaction.amount > 0 else ""
    return f"Credit transaction ({sign}{transaction.amount})"


def get_history(
    db: Session,
    user_id: int,
    limit: int = 20,
    offset: int = 0,
    type: TransactionType | str | None = None,
    from_: datetime | None = None,
    to: datetime | None = None,
) -> list[CreditHistoryEntry]:
    """Return a user's ledger entries, newest first."""
    query = _filtered(select(CreditTransaction), user_id, type, from_, to)
    query = (
        query.order_by(CreditTransaction.created_at.desc(), CreditTransaction.transaction_id.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = db.execute(query).scalars().all()

    return [
        CreditHistoryEntry(
            transaction_id=row.transaction_id,
            transaction_type=row.transaction_type,
            amount=row.amount,
            balance_before=row.balance_before,
            balance_after=row.balance_after,
            reference_type=row.reference_type,
            reference_id=row.reference_id,
            description=row.description or default_description(row),
            package_name=row.package_name,
            payment_amount=row.payment_amount,
            created_at=row.created_at,
        )
        for row in rows
    ]


def get_history_count(
    db: Session,
    user_id: int,
    type: TransactionType | str | None = None,
    from_: datetime | None = None,
    to: datetime | None = None,
) -> int:
    """Count a user's ledger entries with the same filters as get_history."""
    query = _filtered(
        select(func.count()).select_from(CreditTransaction), user_id, type, from_, to
    )
    return db.execute(query).scalar_one()


# ---------------------------------------------------------------------------
# Payment idempotency
# ---------------------------------------------------------------------------


def get_by_payment_id(db: Session, payment_transaction_id: str) -> CreditTransaction | None:
    """Return the ledger row recorded for a gateway payment, if any."""
    return db.execute(
        select(CreditTransaction)
        .where(CreditTransaction.payment_transaction_id == payment_transaction_id)
        .limit(1)
    ).scalar_one_or_none()


def is_payment_processed(db: Session, payment_transaction_id: str) -> bool:
    """True if credits were already granted for this gateway payment."""
    return get_by_payment_id(db, payment_transaction_id) is not None


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


def replay_balance(db: Session, user_id: int) -> int:
    """Rebuild a user's balance from the ledger, checking the snapshot chain.

    Raises LedgerInvariantError if any row does not add up or does not start
    where the previous one ended.
    """
    rows = db.execute(
        select(CreditTransaction)
        .where(CreditTransaction.user_id == user_id)
        .order_by(CreditTransaction.transaction_id.asc())
    ).scalars()

    balance = 0
    for row in rows:
        if row.balance_before != balance:
            raise LedgerInvariantError(
                f"Ledger chain broken at transaction {row.transaction_id}: "
                f"expected balance_before {balance}, found {row.balance_before}"
            )
        if row.balance_after != row.balance_before + row.amount:
            raise LedgerInvariantError(
                f"Ledger entry {row.transaction_id} does not add up"
            )
        balance = row.balance_after

    return balance
