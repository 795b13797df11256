"""Admin reporting over the credit ledger — listings, analytics, and CSV export."""

import csv
import io
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from freelance_credits.models.credit_transaction import CreditTransaction
from freelance_credits.models.freelancer_profile import FreelancerProfile
from freelance_credits.models.user import User
from freelance_credits.services.credits.exceptions import ProfileNotFoundError
from freelance_credits.services.credits.models import TransactionType

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
MAX_EXPORT_ROWS = 10_000

SORTABLE_COLUMNS = {
    "created_at": CreditTransaction.created_at,
    "amount": CreditTransaction.amount,
    "transaction_type": CreditTransaction.transaction_type,
    "user_id": CreditTransaction.user_id,
    "transaction_id": CreditTransaction.transaction_id,
}

EXPORT_HEADERS = [
    "Transaction ID",
    "User ID",
    "Email",
    "Name",
    "Type",
    "Amount",
    "Balance After",
    "Date",
]


def _apply_filters(query, user_id, type, from_, to):
    if user_id is not None:
        query = query.where(CreditTransaction.user_id == user_id)
    if type:
        query = query.where(CreditTransaction.transaction_type == TransactionType(type).value)
    if from_:
        query = query.where(CreditTransaction.created_at >= from_)
    if to:
        query = query.where(CreditTransaction.created_at <= to)
    return query


def _transaction_row(tx: CreditTransaction, email: str | None, first: str | None, last: str | None) -> dict:
    return {
        "transaction_id": tx.transaction_id,
        "user_id": tx.user_id,
        "email": email,
        "first_name": first,
        "last_name": last,
        "transaction_type": tx.transaction_type,
        "amount": tx.amount,
        "balance_before": tx.balance_before,
        "balance_after": tx.balance_after,
        "reference_type": tx.reference_type,
        "reference_id": tx.reference_id,
        "payment_transaction_id": tx.payment_transaction_id,
        "payment_amount": tx.payment_amount,
        "admin_user_id": tx.admin_user_id,
        "admin_reason": tx.admin_reason,
        "description": tx.description,
        "created_at": tx.created_at,
    }


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def list_transactions(
    db: Session,
    page: int = 1,
    limit: int = 50,
    user_id: int | None = None,
    type: TransactionType | str | None = None,
    from_: datetime | None = None,
    to: datetime | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> tuple[list[dict], int, int]:
    """Return ``(rows, total, effective_limit)`` across all users."""
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    page = max(page, 1)

    count_query = _apply_filters(
        select(func.count()).select_from(CreditTransaction), user_id, type, from_, to
    )
    total = db.execute(count_query).scalar_one()

    column = SORTABLE_COLUMNS.get(sort_by, CreditTransaction.created_at)
    order = column.asc() if sort_order.lower() == "asc" else column.desc()

    query = _apply_filters(
        select(CreditTransaction, User.email, User.first_name, User.last_name).outerjoin(
            User, CreditTransaction.user_id == User.user_id
        ),
        user_id,
        type,
        from_,
        to,
    )
    rows = db.execute(
        query.order_by(order, CreditTransaction.transaction_id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).all()

    return [_transaction_row(*row) for row in rows], total, limit


def get_user_credits(db: Session, user_id: int) -> dict:
    """Return one freelancer's profile counters, identity, and 20 latest entries."""
    user = db.get(User, user_id)
    profile = db.execute(
        select(FreelancerProfile).where(FreelancerProfile.user_id == user_id)
    ).scalar_one_or_none()
    if user is None or profile is None:
        raise ProfileNotFoundError(user_id)

    recent = db.execute(
        select(CreditTransaction)
        .where(CreditTransaction.user_id == user_id)
        .order_by(CreditTransaction.created_at.desc(), CreditTransaction.transaction_id.desc())
        .limit(20)
    ).scalars().all()

    return {
        "user": {"user_id": user.user_id, "email": user.email, "name": user.full_name},
        "credits": {
            "credits_balance": profile.credits_balance,
            "total_credits_purchased": profile.total_credits_purchased,
            "credits_used": profile.credits_used,
            "signup_bonus_claimed": profile.signup_bonus_claimed,
        },
        "recent_transactions": [
            _transaction_row(tx, user.email, user.first_name, user.last_name) for tx in recent
        ],
    }


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


def get_analytics(
    db: Session,
    from_: datetime | None = None,
    to: datetime | None = None,
    price_per_credit: float | None = None,
) -> dict:
    """Aggregate credit-system figures for the admin dashboard.

    The window defaults to the 30 days ending now. Daily stats always cover
    the last 7 days.
    """
    end = to or datetime.now(timezone.utc)
    start = from_ or end - timedelta(days=30)

    in_circulation = db.execute(
        select(func.coalesce(func.sum(FreelancerProfile.credits_balance), 0))
    ).scalar_one()

    revenue = db.execute(
        select(func.coalesce(func.sum(CreditTransaction.payment_amount), 0)).where(
            CreditTransaction.transaction_type == TransactionType.PURCHASE.value
        )
    ).scalar_one()

    by_type = db.execute(
        select(
            CreditTransaction.transaction_type,
            func.count().label("count"),
            func.sum(CreditTransaction.amount).label("total_amount"),
        )
        .where(CreditTransaction.created_at.between(start, end))
        .group_by(CreditTransaction.transaction_type)
    ).all()

    day = func.date(CreditTransaction.created_at)
    week_ago = datetime.now(timezone.utc) - timedelta(days=7)
    daily = db.execute(
        select(day.label("date"), func.count().label("transactions"))
        .where(CreditTransaction.created_at >= week_ago)
        .group_by(day)
        .order_by(day.desc())
    ).all()

    top_users = db.execute(
        select(
            FreelancerProfile.user_id,
            User.email,
            FreelancerProfile.total_credits_purchased,
        )
        .join(User, FreelancerProfile.user_id == User.user_id)
        .order_by(FreelancerProfile.total_credits_purchased.desc())
        .limit(10)
    ).all()

    return {
        "overview": {
            "credits_in_circulation": int(in_circulation or 0),
            "total_revenue": float(revenue or 0),
            "price_per_credit": price_per_credit,
        },
        "transactions_by_type": [
            {"transaction_type": t, "count": c, "total_amount": int(total or 0)}
            for t, c, total in by_type
        ],
        "daily_stats": [{"date": str(d), "transactions": n} for d, n in daily],
        "top_users": [row._asdict() for row in top_users],
        "period": {"from": start, "to": end},
    }


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def export_transactions_csv(
    db: Session,
    from_: datetime | None = None,
    to: datetime | None = None,
    type: TransactionType | str | None = None,
) -> str:
    """Render matching ledger rows as CSV, newest first."""
    query = _apply_filters(
        select(CreditTransaction, User.email, User.first_name, User.last_name).join(
            User, CreditTransaction.user_id == User.user_id
        ),
        None,
        type,
        from_,
        to,
    )
    rows = db.execute(
        query.order_by(CreditTransaction.created_at.desc(), CreditTransaction.transaction_id.desc())
        .limit(MAX_EXPORT_ROWS)
    ).all()

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for tx, email, first, last in rows:
        writer.writerow(
            [
                tx.transaction_id,
                tx.user_id,
                email,
                f"{first} {last}",
                tx.transaction_type,
                tx.amount,
                tx.balance_after,
                tx.created_at.isoformat() if tx.created_at else "",
            ]
        )

    logger.info("Exported %d credit transactions", len(rows))
    return buf.getvalue()
