"""Freelancer credits API: balance, packages, purchase, history and refunds."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freelance_credits.core.auth import get_freelancer_user
from freelance_credits.core.config import settings
from freelance_credits.core.database import get_db
from freelance_credits.models.user import User
from freelance_credits.schemas.credits import (
    CreditBalanceResponse,
    CreditHistoryResponse,
    CreditPurchaseRequest,
    CreditPurchaseResponse,
    PackagesResponse,
    RefundEligibilityResponse,
    UserRefundsResponse,
)
from freelance_credits.services.credits import (
    CreditError,
    PaymentDetails,
    RefundReason,
    TransactionType,
    check_refund_eligibility,
    get_credits_balance,
    get_history,
    get_history_count,
    get_packages,
    get_price_per_credit,
    get_user_refunds,
    purchase_with_payment,
    validate_package,
    verify_payment_signature,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------


@router.get("/balance", response_model=CreditBalanceResponse)
def get_credit_balance(
    current_user: User = Depends(get_freelancer_user),
    db: Session = Depends(get_db),
):
    """Get the authenticated freelancer's credit balance and counters."""
    try:
        balance = get_credits_balance(db, current_user.user_id)
    except CreditError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.details())

    return CreditBalanceResponse(
        **balance.model_dump(),
        price_per_credit=get_price_per_credit(db),
        currency=settings.CREDITS_CURRENCY,
    )


# ---------------------------------------------------------------------------
# Packages
# ---------------------------------------------------------------------------


@router.get("/packages", response_model=PackagesResponse)
def list_credit_packages(db: Session = Depends(get_db)):
    """List purchasable credit packages at the current price."""
    return get_packages(db)


# ---------------------------------------------------------------------------
# Purchase
# ---------------------------------------------------------------------------


@router.post("/purchase", response_model=CreditPurchaseResponse)
def purchase_credits(
    body: CreditPurchaseRequest,
    current_user: User = Depends(get_freelancer_user),
    db: Session = Depends(get_db),
):
    """Credit a completed gateway payment to the authenticated freelancer.

    The gateway signature is checked before anything is written, and a payment
    that was already credited is reported rather than credited again.
    """
    package = None
    if body.package_id is not None:
        package, error = validate_package(body.package_id)
        if package is None:
            raise HTTPException(status_code=400, detail={"code": "INVALID_PACKAGE", "message": error})
        credits = package.credits
    elif body.credits is not None:
        credits = body.credits
    else:
        raise HTTPException(
            status_code=400,
            detail={"code": "INVALID_AMOUNT", "message": "Either package_id or credits is required"},
        )

    payment = PaymentDetails(
        order_id=body.order_id,
        transaction_id=body.payment_id,
        amount=body.amount,
        currency=settings.CREDITS_CURRENCY,
    )
    try:
        verify_payment_signature(body.order_id, body.payment_id, body.signature)
        result, credited = purchase_with_payment(
            db, current_user.user_id, credits, payment, package=package
        )
    except CreditError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.details())

    return CreditPurchaseResponse(
        credits_balance=result.credits_balance,
        total_credits_purchased=result.total_credits_purchased,
        credits_added=credits if credited else 0,
        already_processed=not credited,
    )


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@router.get("/history", response_model=CreditHistoryResponse)
def get_credit_history(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    type: TransactionType | None = Query(None),
    from_: datetime | None = Query(None, alias="from"),
    to: datetime | None = Query(None),
    current_user: User = Depends(get_freelancer_user),
    db: Session = Depends(get_db),
):
    """Get the authenticated freelancer's ledger entries, newest first."""
    items = get_history(db, current_user.user_id, limit, offset, type, from_, to)
    total = get_history_count(db, current_user.user_id, type, from_, to)
    return CreditHistoryResponse(items=items, total=total, limit=limit, offset=offset)


# ---------------------------------------------------------------------------
# Refunds
# ---------------------------------------------------------------------------


@router.get("/refund-eligibility/{application_id}", response_model=RefundEligibilityResponse)
def get_refund_eligibility(
    application_id: int,
    reason: RefundReason = Query(RefundReason.WITHDRAWAL),
    current_user: User = Depends(get_freelancer_user),
    db: Session = Depends(get_db),
):
    """Preview how many credits withdrawing an application would return."""
    eligibility = check_refund_eligibility(db, application_id, current_user.user_id, reason)
    return RefundEligibilityResponse(application_id=application_id, **eligibility.model_dump())


@router.get("/refunds", response_model=UserRefundsResponse)
def list_refunds(
    current_user: User = Depends(get_freelancer_user),
    db: Session = Depends(get_db),
):
    """List the authenticated freelancer's refunded applications."""
    refunds = get_user_refunds(db, current_user.user_id)
    return UserRefundsResponse(items=refunds, total=len(refunds))
