"""Credit pricing — stored price-per-credit setting and the package catalog."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from freelance_credits.core.config import settings
from freelance_credits.models.credit_setting import CreditSetting
from freelance_credits.services.credits.exceptions import InvalidAmountError
from freelance_credits.services.credits.models import CreditPackage

logger = logging.getLogger(__name__)

CREDIT_PACKAGES: list[CreditPackage] = [
    CreditPackage(id=1, name="Starter", credits=5, description="Try out a few applications"),
    CreditPackage(id=2, name="Basic", credits=10, description="For occasional applicants"),
    CreditPackage(id=3, name="Pro", credits=25, description="For active freelancers"),
    CreditPackage(id=4, name="Business", credits=50, description="For studios applying at volume"),
]


# ---------------------------------------------------------------------------
# Price per credit
# ---------------------------------------------------------------------------


def get_price_per_credit(db: Session) -> float:
    """Return the current price per credit.

    Never raises: a missing, malformed or unreadable setting falls back to
    ``settings.CREDITS_PRICE_PER_CREDIT`` so pricing cannot block a purchase.
    The lookup runs in a savepoint, so a failed read leaves the caller's
    transaction usable.
    """
    try:
        with db.begin_nested():
            setting = db.execute(
                select(CreditSetting).where(
                    CreditSetting.setting_key == CreditSetting.KEY_PRICE_PER_CREDIT
                )
            ).scalar_one_or_none()
    except SQLAlchemyError:
        logger.exception("Failed to read price_per_credit, using default")
        return settings.CREDITS_PRICE_PER_CREDIT

    if setting is None:
        return settings.CREDITS_PRICE_PER_CREDIT

    try:
        price = float(setting.setting_value)
    except ValueError:
        logger.warning("Invalid price_per_credit value %r, using default", setting.setting_value)
        return settings.CREDITS_PRICE_PER_CREDIT

    if price <= 0:
        logger.warning("Non-positive price_per_credit %s, using default", price)
        return settings.CREDITS_PRICE_PER_CREDIT
    return price


def update_price_per_credit(db: Session, price: float, admin_user_id: int) -> CreditSetting:
    """Upsert the price-per-credit setting, recording who changed it."""
    if price <= 0:
        raise InvalidAmountError("Price per credit must be greater than 0")

    setting = db.execute(
        select(CreditSetting).where(
            CreditSetting.setting_key == CreditSetting.KEY_PRICE_PER_CREDIT
        )
    ).scalar_one_or_none()

    if setting is None:
        setting = CreditSetting(setting_key=CreditSetting.KEY_PRICE_PER_CREDIT, setting_value="")
        db.add(setting)

    setting.setting_value = str(price)
    setting.updated_by = admin_user_id
    setting.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(setting)

    logger.info("Price per credit set to %s by admin %s", price, admin_user_id)
    return setting


# ---------------------------------------------------------------------------
# Packages
# ---------------------------------------------------------------------------


def get_packages(db: Session) -> dict:
    """Return the package catalog priced at the current rate, with purchase limits."""
    price_per_credit = get_price_per_credit(db)
    packages = [
        pkg.model_copy(update={"price": pkg.price or pkg.credits * price_per_credit})
        for pkg in CREDIT_PACKAGES
    ]
    return {
        "packages": packages,
        "price_per_credit": price_per_credit,
        "currency": settings.CREDITS_CURRENCY,
        "limits": {
            "min_purchase": settings.CREDITS_MIN_PURCHASE,
            "max_purchase": settings.CREDITS_MAX_SINGLE_PURCHASE,
            "max_balance": settings.CREDITS_MAX_BALANCE,
        },
    }


def get_package_by_id(package_id: int) -> CreditPackage | None:
    return next((pkg for pkg in CREDIT_PACKAGES if pkg.id == package_id), None)


def validate_package(package_id: int) -> tuple[CreditPackage | None, str | None]:
    """Return ``(package, None)`` for a known id, else ``(None, error)``."""
    pkg = get_package_by_id(package_id)
    if pkg is None:
        return None, "Package not found"
    return pkg, None


def calculate_price(db: Session, credits: int) -> dict:
    price = credits * get_price_per_credit(db)
    return {
        "credits": credits,
        "price": price,
        "currency": settings.CREDITS_CURRENCY,
    }


def get_recommended_package(average_monthly_applications: int) -> CreditPackage:
    """Pick the smallest package that covers a month of applications."""
    if average_monthly_applications <= 5:
        return CREDIT_PACKAGES[0]
    if average_monthly_applications <= 10:
        return CREDIT_PACKAGES[1]
    if average_monthly_applications <= 25:
        return CREDIT_PACKAGES[2]
    return CREDIT_PACKAGES[3]
