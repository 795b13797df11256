"""Admin credits API — ledger listing, adjustments, refunds, analytics, and pricing."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from freelance_credits.core.auth import get_admin_user
from freelance_credits.core.database import get_db
from freelance_credits.models.project_task import ProjectTask
from freelance_credits.models.user import User
from freelance_credits.schemas.credits import (
    AdminAdjustRequest,
    AdminAdjustResponse,
    AdminRefundRequest,
    AdminTransactionListResponse,
    PriceUpdateRequest,
    PriceUpdateResponse,
    ProjectRefundResponse,
    RefundResponse,
)
from freelance_credits.services.credits import (
    CreditError,
    TransactionType,
    admin_adjust_credits,
    get_price_per_credit,
    process_project_cancellation_refunds,
    process_refund,
    update_price_per_credit,
)
from freelance_credits.services.credits.admin import (
    export_transactions_csv,
    get_analytics,
    get_user_credits,
    list_transactions,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


@router.get("/transactions", response_model=AdminTransactionListResponse)
def admin_list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    user_id: int | None = Query(None),
    type: TransactionType | None = Query(None),
    from_: datetime | None = Query(None, alias="from"),
    to: datetime | None = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """List credit transactions across all users."""
    rows, total, limit = list_transactions(
        db, page, limit, user_id, type, from_, to, sort_by, sort_order
    )
    return AdminTransactionListResponse(items=rows, total=total, page=page, limit=limit)


@router.get("/user/{user_id}")
def admin_get_user_credits(
    user_id: int,
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Get one freelancer's credit counters and recent ledger entries."""
    try:
        return get_user_credits(db, user_id)
    except CreditError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.details())


@router.get("/export")
def admin_export_transactions(
    from_: datetime | None = Query(None, alias="from"),
    to: datetime | None = Query(None),
    type: TransactionType | None = Query(None),
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Download matching credit transactions as CSV."""
    content = export_transactions_csv(db, from_, to, type)
    filename = f"credit-transactions-{datetime.now().strftime('%Y%m%d')}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# Adjustments and refunds
# ---------------------------------------------------------------------------


@router.post("/adjust", response_model=AdminAdjustResponse)
def admin_adjust(
    body: AdminAdjustRequest,
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Manually add or remove credits from a freelancer's balance."""
    try:
        result = admin_adjust_credits(db, body.user_id, body.amount, admin_user.user_id, body.reason)
    except CreditError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.details())

    return AdminAdjustResponse(user_id=body.user_id, **result.model_dump())


@router.post("/refund/{application_id}", response_model=RefundResponse)
def admin_refund_application(
    application_id: int,
    body: AdminRefundRequest,
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Refund a single application's credits."""
    try:
        result = process_refund(
            db,
            application_id,
            body.user_id,
            body.reason,
            admin_user_id=admin_user.user_id,
            admin_note=body.note,
        )
    except CreditError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.details())

    return result


@router.post("/refund-project/{project_id}", response_model=ProjectRefundResponse)
def admin_refund_project(
    project_id: int,
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Refund every outstanding application of a cancelled project."""
    project = db.get(ProjectTask, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    result = process_project_cancellation_refunds(db, project_id, admin_user.user_id)
    return ProjectRefundResponse(project_id=project_id, **result.model_dump())


# ---------------------------------------------------------------------------
# Analytics and pricing
# ---------------------------------------------------------------------------


@router.get("/analytics")
def admin_credit_analytics(
    from_: datetime | None = Query(None, alias="from"),
    to: datetime | None = Query(None),
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Aggregate credit-system figures for the admin dashboard."""
    return get_analytics(db, from_, to, price_per_credit=get_price_per_credit(db))


@router.put("/price", response_model=PriceUpdateResponse)
def admin_update_price(
    body: PriceUpdateRequest,
    admin_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Change the price charged per credit."""
    try:
        setting = update_price_per_credit(db, body.price_per_credit, admin_user.user_id)
    except CreditError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.details())

    return PriceUpdateResponse(
        price_per_credit=float(setting.setting_value),
        updated_by=setting.updated_by,
        updated_at=setting.updated_at,
    )
