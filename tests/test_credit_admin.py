"""Tests for admin reporting — ledger listing, user lookup, analytics, CSV export."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from freelance_credits.services.credits import (
    PaymentDetails,
    ProfileNotFoundError,
    add_credits,
    admin_adjust_credits,
    deduct_credits,
    purchase_with_payment,
)
from freelance_credits.services.credits.admin import (
    EXPORT_HEADERS,
    MAX_PAGE_SIZE,
    export_transactions_csv,
    get_analytics,
    get_user_credits,
    list_transactions,
)


@pytest.fixture
def activity(db, freelancer, admin_user):
    """Purchase 10, apply twice, then an admin top-up of 3."""
    purchase_with_payment(
        db,
        freelancer.user_id,
        10,
        PaymentDetails(order_id="order_1", transaction_id="pay_1", amount=Decimal("500.00")),
    )
    deduct_credits(db, freelancer.user_id, 1, project_id=1)
    deduct_credits(db, freelancer.user_id, 1, project_id=2)
    admin_adjust_credits(db, freelancer.user_id, 3, admin_user.user_id, "Support credit")
    return freelancer


class TestListTransactions:
    def test_lists_all_newest_first(self, db, activity):
        rows, total, limit = list_transactions(db)

        assert total == 4
        assert limit == 50
        assert [r["transaction_type"] for r in rows] == [
            "admin_add",
            "deduction",
            "deduction",
            "purchase",
        ]
        assert rows[0]["email"] == "freelancer@example.com"

    def test_filter_and_sort(self, db, activity):
        rows, total, _ = list_transactions(db, type="deduction", sort_by="amount", sort_order="asc")

        assert total == 2
        assert [r["reference_id"] for r in rows] == [2, 1]

    def test_pagination(self, db, activity):
        rows, total, limit = list_transactions(db, page=2, limit=3)

        assert (total, limit) == (4, 3)
        assert [r["transaction_type"] for r in rows] == ["purchase"]

    def test_limit_capped(self, db, activity):
        _, _, limit = list_transactions(db, limit=1000)
        assert limit == MAX_PAGE_SIZE

    def test_filter_by_user(self, db, activity, admin_user):
        _, total, _ = list_transactions(db, user_id=admin_user.user_id)
        assert total == 0


class TestUserCredits:
    def test_returns_counters_and_recent(self, db, activity):
        data = get_user_credits(db, activity.user_id)

        assert data["user"] == {
            "user_id": activity.user_id,
            "email": "freelancer@example.com",
            "name": "Asha Rai",
        }
        assert data["credits"]["credits_balance"] == 11
        assert data["credits"]["total_credits_purchased"] == 13
        assert data["credits"]["credits_used"] == 2
        assert len(data["recent_transactions"]) == 4

    def test_missing_profile(self, db, client_user):
        with pytest.raises(ProfileNotFoundError):
            get_user_credits(db, client_user.user_id)


class TestAnalytics:
    def test_overview_and_breakdown(self, db, activity):
        data = get_analytics(db, price_per_credit=50.0)

        assert data["overview"] == {
            "credits_in_circulation": 11,
            "total_revenue": 500.0,
            "price_per_credit": 50.0,
        }
        by_type = {row["transaction_type"]: row for row in data["transactions_by_type"]}
        assert by_type["deduction"]["count"] == 2
        assert by_type["deduction"]["total_amount"] == -2
        assert by_type["purchase"]["total_amount"] == 10
        assert sum(day["transactions"] for day in data["daily_stats"]) == 4
        assert data["top_users"][0]["user_id"] == activity.user_id

    def test_window_excludes_older_entries(self, db, activity):
        data = get_analytics(
            db,
            from_=datetime(2020, 1, 1, tzinfo=timezone.utc),
            to=datetime(2020, 12, 31, tzinfo=timezone.utc),
        )
        assert data["transactions_by_type"] == []

    def test_empty_system(self, db):
        data = get_analytics(db)
        assert data["overview"]["credits_in_circulation"] == 0
        assert data["overview"]["total_revenue"] == 0.0
        assert data["top_users"] == []


class TestExport:
    def test_csv_contents(self, db, activity):
        content = export_transactions_csv(db)

        lines = content.strip().split("\n")
        assert lines[0] == ",".join(EXPORT_HEADERS)
        assert len(lines) == 5
        assert "admin_add" in lines[1]
        assert "Asha Rai" in lines[1]

    def test_csv_type_filter(self, db, freelancer):
        add_credits(db, freelancer.user_id, 5)
        deduct_credits(db, freelancer.user_id, 1, project_id=9)

        lines = export_transactions_csv(db, type="purchase").strip().split("\n")

        assert len(lines) == 2
        assert ",purchase,5," in lines[1]
