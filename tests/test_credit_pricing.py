import pytest
from sqlalchemy import func, select, text

from freelance_credits.models import CreditSetting
from freelance_credits.services.credits import (
    InvalidAmountError,
    calculate_price,
    get_credits_balance,
    get_packages,
    get_price_per_credit,
    update_price_per_credit,
)
from freelance_credits.services.credits.pricing import (
    get_recommended_package,
    validate_package,
)


def _store_price(db, value: str) -> None:
    db.add(CreditSetting(setting_key=CreditSetting.KEY_PRICE_PER_CREDIT, setting_value=value))
    db.commit()


class TestPricePerCredit:
    def test_default_when_unset(self, db):
        assert get_price_per_credit(db) == 50.0

    def test_stored_value(self, db):
        _store_price(db, "75.5")
        assert get_price_per_credit(db) == 75.5

    @pytest.mark.parametrize("value", ["abc", "0", "-10"])
    def test_bad_stored_value_falls_back(self, db, value):
        _store_price(db, value)
        assert get_price_per_credit(db) == 50.0

    def test_read_error_falls_back_inside_savepoint(self, db, freelancer, profile, sql_log):
        profile.credits_balance = 3
        db.execute(text("DROP TABLE credit_settings"))

        assert get_price_per_credit(db) == 50.0
        assert any(sql.startswith("ROLLBACK TO SAVEPOINT") for sql in sql_log)

        # The caller's pending work still commits
        db.commit()
        assert get_credits_balance(db, freelancer.user_id).credits_balance == 3

    def test_update_creates_then_overwrites(self, db, admin_user):
        update_price_per_credit(db, 60, admin_user.user_id)
        setting = update_price_per_credit(db, 80.0, admin_user.user_id)

        assert setting.setting_value == "80.0"
        assert setting.updated_by == admin_user.user_id
        assert get_price_per_credit(db) == 80.0
        assert db.execute(select(func.count()).select_from(CreditSetting)).scalar_one() == 1

    @pytest.mark.parametrize("price", [0, -1])
    def test_update_rejects_non_positive(self, db, admin_user, price):
        with pytest.raises(InvalidAmountError):
            update_price_per_credit(db, price, admin_user.user_id)


class TestPackages:
    def test_catalog_priced_at_current_rate(self, db, admin_user):
        update_price_per_credit(db, 40, admin_user.user_id)

        catalog = get_packages(db)

        assert [p.credits for p in catalog["packages"]] == [5, 10, 25, 50]
        assert [p.price for p in catalog["packages"]] == [200.0, 400.0, 1000.0, 2000.0]
        assert catalog["price_per_credit"] == 40.0
        assert catalog["currency"] == "INR"
        assert catalog["limits"] == {"min_purchase": 1, "max_purchase": 200, "max_balance": 1000}

    def test_validate_package(self):
        package, error = validate_package(3)
        assert (package.name, error) == ("Pro", None)
        assert validate_package(99) == (None, "Package not found")

    def test_calculate_price(self, db):
        assert calculate_price(db, 4) == {"credits": 4, "price": 200.0, "currency": "INR"}

    @pytest.mark.parametrize(
        "applications, name",
        [(3, "Starter"), (10, "Basic"), (11, "Pro"), (40, "Business")],
    )
    def test_recommended_package(self, applications, name):
        assert get_recommended_package(applications).name == name
