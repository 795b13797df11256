"""Credit refunds for withdrawn applications and cancelled projects.

An application moves from not refunded to refunded exactly once. Withdrawals
are refunded on a sliding scale by application age; project-side failures
(cancellation, expiry, technical errors, duplicates, admin decisions) always
return everything that was spent.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from freelance_credits.core.config import settings
from freelance_credits.models.applied_project import AppliedProject
from freelance_credits.models.project_task import ProjectTask
from freelance_credits.services.credits.balance import lock_profile
from freelance_credits.services.credits.exceptions import (
    AlreadyRefundedError,
    RefundNotEligibleError,
)
from freelance_credits.services.credits.ledger import log_transaction
from freelance_credits.services.credits.models import (
    FULL_REFUND_REASONS,
    BatchRefundResult,
    CreditLogEntry,
    CreditReference,
    ReferenceKind,
    RefundEligibility,
    RefundReason,
    RefundResult,
    TransactionType,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calculate_refund_amount(
    credits_spent: int,
    created_at: datetime,
    reason: RefundReason | str,
    now: datetime | None = None,
) -> tuple[int, int, str]:
    """Return ``(amount, percent, explanation)`` for a refund request."""
    try:
        reason = RefundReason(reason)
    except ValueError:
        return 0, 0, "Unknown refund reason"

    if reason in FULL_REFUND_REASONS:
        return credits_spent, 100, "Full refund approved"

    now = _as_utc(now or datetime.now(timezone.utc))
    minutes_since = (now - _as_utc(created_at)).total_seconds() / 60
    hours_since = minutes_since / 60

    full_minutes = settings.CREDITS_FULL_REFUND_MINUTES
    partial_hours = settings.CREDITS_PARTIAL_REFUND_HOURS
    partial_percent = settings.CREDITS_PARTIAL_REFUND_PERCENT

    if minutes_since <= full_minutes:
        return credits_spent, 100, f"Full refund (within {full_minutes} minutes)"

    if hours_since <= partial_hours:
        amount = credits_spent * partial_percent // 100
        return (
            amount,
            partial_percent,
            f"Partial refund ({partial_percent}% within {partial_hours}h)",
        )

    return 0, 0, f"Refund period expired (over {partial_hours} hours)"


def _eligibility_for(
    application: AppliedProject | None,
    reason: RefundReason | str,
    now: datetime | None,
) -> RefundEligibility:
    if application is None:
        return RefundEligibility(
            eligible=False,
            refund_amount=0,
            refund_percent=0,
            reason="Application not found",
            original_credits=0,
        )

    credits_spent = application.credits_spent or 1

    if application.refunded:
        return RefundEligibility(
            eligible=False,
            refund_amount=0,
            refund_percent=0,
            reason="Application already refunded",
            original_credits=credits_spent,
        )

    amount, percent, explanation = calculate_refund_amount(
        credits_spent, application.created_at, reason, now
    )
    return RefundEligibility(
        eligible=amount > 0,
        refund_amount=amount,
        refund_percent=percent,
        reason=explanation,
        original_credits=credits_spent,
    )


def check_refund_eligibility(
    db: Session,
    application_id: int,
    user_id: int,
    reason: RefundReason | str,
    now: datetime | None = None,
) -> RefundEligibility:
    """Work out whether (and how much) an application's credits can be refunded."""
    application = db.execute(
        select(AppliedProject).where(
            AppliedProject.applied_projects_id == application_id,
            AppliedProject.user_id == user_id,
            AppliedProject.is_deleted.is_(False),
        )
    ).scalar_one_or_none()

    return _eligibility_for(application, reason, now)


# ---------------------------------------------------------------------------
# Refund execution
# ---------------------------------------------------------------------------


def process_refund(
    db: Session,
    application_id: int,
    user_id: int,
    reason: RefundReason | str,
    admin_user_id: int | None = None,
    admin_note: str | None = None,
    now: datetime | None = None,
) -> RefundResult:
    """Refund an application's credits to its freelancer.

    Eligibility is checked up front and again against the locked application
    row, so two concurrent refunds of the same application credit only once.
    """
    eligibility = check_refund_eligibility(db, application_id, user_id, reason, now)
    if not eligibility.eligible:
        raise RefundNotEligibleError(eligibility.reason, eligibility.original_credits)

    try:
        application = db.execute(
            select(AppliedProject)
            .where(
                AppliedProject.applied_projects_id == application_id,
                AppliedProject.user_id == user_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()

        if application.refunded:
            raise AlreadyRefundedError(application_id)

        eligibility = _eligibility_for(application, reason, now)
        if not eligibility.eligible:
            raise RefundNotEligibleError(eligibility.reason, eligibility.original_credits)

        profile = lock_profile(db, user_id)

        refund_amount = eligibility.refund_amount
        balance_before = profile.credits_balance
        new_balance = balance_before + refund_amount

        profile.credits_balance = new_balance
        profile.credits_used = max(0, profile.credits_used - refund_amount)

        application.refunded = True
        application.refund_amount = refund_amount
        application.refund_reason = RefundReason(reason).value
        application.refunded_at = _as_utc(now or datetime.now(timezone.utc)).replace(tzinfo=None)

        log_transaction(
            db,
            CreditLogEntry(
                user_id=user_id,
                transaction_type=TransactionType.REFUND,
                amount=refund_amount,
                balance_before=balance_before,
                balance_after=new_balance,
                reference=CreditReference(kind=ReferenceKind.APPLICATION, id=application_id),
                admin_user_id=admin_user_id,
                admin_reason=admin_note,
                description=f"Refund for application #{application_id}: {eligibility.reason}",
            ),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Refunded %d credits to user %s for application %s (%s)",
        refund_amount,
        user_id,
        application_id,
        RefundReason(reason).value,
    )
    return RefundResult(
        success=True,
        refund_amount=refund_amount,
        new_balance=new_balance,
        message=f"Refunded {refund_amount} credit(s) ({eligibility.refund_percent}%)",
    )


def process_project_cancellation_refunds(
    db: Session,
    project_id: int,
    admin_user_id: int | None = None,
) -> BatchRefundResult:
    """Refund every outstanding application of a cancelled project.

    Each application is refunded in its own transaction; one failure is
    logged and skipped without undoing refunds already made.
    """
    applications = db.execute(
        select(AppliedProject.applied_projects_id, AppliedProject.user_id).where(
            AppliedProject.projects_task_id == project_id,
            AppliedProject.is_deleted.is_(False),
            AppliedProject.refunded.is_(False),
        )
    ).all()

    result = BatchRefundResult(total=len(applications))
    for application_id, user_id in applications:
        try:
            process_refund(
                db,
                application_id,
                user_id,
                RefundReason.PROJECT_CANCELLED,
                admin_user_id=admin_user_id,
                admin_note=f"Project #{project_id} cancelled",
            )
            result.refunded += 1
        except Exception:
            logger.exception("Failed to refund application %s", application_id)
            result.failed_application_ids.append(application_id)

    logger.info(
        "Project %s cancellation refunds: %d of %d applications",
        project_id,
        result.refunded,
        result.total,
    )
    return result


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def get_user_refunds(db: Session, user_id: int) -> list[dict]:
    """Return a freelancer's refunded applications, most recent refund first."""
    rows = db.execute(
        select(
            AppliedProject.applied_projects_id,
            AppliedProject.projects_task_id,
            AppliedProject.credits_spent,
            AppliedProject.refund_amount,
            AppliedProject.refund_reason,
            AppliedProject.refunded_at,
            ProjectTask.project_title,
        )
        .join(ProjectTask, AppliedProject.projects_task_id == ProjectTask.projects_task_id)
        .where(AppliedProject.user_id == user_id, AppliedProject.refunded.is_(True))
        .order_by(AppliedProject.refunded_at.desc())
    ).all()

    return [row._asdict() for row in rows]
