"""Tests for the credit ledger — append invariant, history, idempotency, and replay."""

from datetime import datetime

import pytest
from sqlalchemy import func, select

from freelance_credits.models.credit_transaction import CreditTransaction
from freelance_credits.services.credits import (
    CreditLogEntry,
    CreditReference,
    LedgerInvariantError,
    PaymentDetails,
    ReferenceKind,
    TransactionType,
    add_credits,
    deduct_credits,
    get_by_payment_id,
    get_history,
    get_history_count,
    is_payment_processed,
    log_transaction,
    replay_balance,
)
from freelance_credits.services.credits.ledger import default_description


def _count_rows(db) -> int:
    return db.execute(select(func.count()).select_from(CreditTransaction)).scalar_one()


class TestLogTransaction:
    def test_appends_row_with_reference_and_payment(self, db, freelancer):
        row = log_transaction(
            db,
            CreditLogEntry(
                user_id=freelancer.user_id,
                transaction_type=TransactionType.PURCHASE,
                amount=10,
                balance_before=0,
                balance_after=10,
                reference=CreditReference(kind=ReferenceKind.PAYMENT),
                payment=PaymentDetails(order_id="order_1", transaction_id="pay_1"),
            ),
        )
        db.commit()

        assert row.transaction_id is not None
        assert row.transaction_type == "purchase"
        assert row.reference_type == "payment"
        assert row.reference_id is None
        assert row.payment_gateway == "razorpay"
        assert row.payment_transaction_id == "pay_1"
        assert row.payment_currency == "INR"

    def test_rejects_entry_that_does_not_add_up(self, db, freelancer):
        with pytest.raises(LedgerInvariantError):
            log_transaction(
                db,
                CreditLogEntry(
                    user_id=freelancer.user_id,
                    transaction_type=TransactionType.DEDUCTION,
                    amount=-1,
                    balance_before=3,
                    balance_after=3,
                ),
            )
        assert _count_rows(db) == 0

    def test_does_not_commit(self, db, freelancer):
        log_transaction(
            db,
            CreditLogEntry(
                user_id=freelancer.user_id,
                transaction_type=TransactionType.ADMIN_ADD,
                amount=2,
                balance_before=0,
                balance_after=2,
            ),
        )
        db.rollback()
        assert _count_rows(db) == 0


class TestHistory:
    def test_newest_first(self, db, freelancer):
        add_credits(db, freelancer.user_id, 10)
        deduct_credits(db, freelancer.user_id, 1, project_id=7)
        deduct_credits(db, freelancer.user_id, 1, project_id=8)

        history = get_history(db, freelancer.user_id)
        assert [h.amount for h in history] == [-1, -1, 10]
        assert history[0].reference_id == 8
        assert history[0].balance_after == 8

    def test_limit_and_offset(self, db, freelancer):
        for _ in range(5):
            add_credits(db, freelancer.user_id, 1)

        page = get_history(db, freelancer.user_id, limit=2, offset=1)
        assert [h.balance_after for h in page] == [4, 3]
        assert get_history_count(db, freelancer.user_id) == 5

    def test_filter_by_type(self, db, freelancer):
        add_credits(db, freelancer.user_id, 5)
        deduct_credits(db, freelancer.user_id, 2, project_id=1)

        deductions = get_history(db, freelancer.user_id, type=TransactionType.DEDUCTION)
        assert len(deductions) == 1
        assert deductions[0].transaction_type == TransactionType.DEDUCTION
        assert get_history_count(db, freelancer.user_id, type="purchase") == 1

    def test_filter_by_date_range(self, db, freelancer):
        add_credits(db, freelancer.user_id, 5)
        add_credits(db, freelancer.user_id, 5)
        old = db.execute(
            select(CreditTransaction).order_by(CreditTransaction.transaction_id).limit(1)
        ).scalar_one()
        old.created_at = datetime(2025, 1, 1, 12, 0)
        db.commit()

        in_range = get_history(
            db, freelancer.user_id, from_=datetime(2024, 12, 31), to=datetime(2025, 1, 2)
        )
        assert [h.transaction_id for h in in_range] == [old.transaction_id]
        assert get_history_count(db, freelancer.user_id, from_=datetime(2025, 6, 1)) == 1

    def test_only_own_entries(self, db, freelancer, admin_user):
        add_credits(db, freelancer.user_id, 5)
        assert get_history(db, admin_user.user_id) == []

    def test_default_description_filled_in(self, db, freelancer):
        log_transaction(
            db,
            CreditLogEntry(
                user_id=freelancer.user_id,
                transaction_type=TransactionType.SIGNUP_BONUS,
                amount=5,
                balance_before=0,
                balance_after=5,
            ),
        )
        db.commit()

        [entry] = get_history(db, freelancer.user_id)
        assert entry.description == "Signup bonus (+5 credits)"

    def test_default_descriptions_by_type(self):
        row = CreditTransaction(transaction_type="deduction", amount=-1, reference_id=42)
        assert default_description(row) == "Applied to project #42 (-1 credit)"

        row = CreditTransaction(transaction_type="purchase", amount=10, package_name="Basic")
        assert default_description(row) == "Purchased Basic package (+10 credits)"

        row = CreditTransaction(transaction_type="admin_deduct", amount=-3)
        assert default_description(row) == "Admin credit adjustment (-3 credits)"


class TestPaymentIdempotency:
    def test_unknown_payment_not_processed(self, db):
        assert is_payment_processed(db, "pay_missing") is False
        assert get_by_payment_id(db, "pay_missing") is None

    def test_processed_after_purchase(self, db, freelancer):
        add_credits(db, freelancer.user_id, 5, "pay_abc")

        assert is_payment_processed(db, "pay_abc") is True
        row = get_by_payment_id(db, "pay_abc")
        assert row.user_id == freelancer.user_id
        assert row.amount == 5


class TestReplayBalance:
    def test_replay_matches_profile(self, db, freelancer, profile):
        add_credits(db, freelancer.user_id, 10)
        deduct_credits(db, freelancer.user_id, 3, project_id=1)
        add_credits(db, freelancer.user_id, 2)

        db.refresh(profile)
        assert replay_balance(db, freelancer.user_id) == profile.credits_balance == 9

    def test_empty_ledger_replays_to_zero(self, db, freelancer):
        assert replay_balance(db, freelancer.user_id) == 0

    def test_broken_chain_detected(self, db, freelancer):
        add_credits(db, freelancer.user_id, 10)
        deduct_credits(db, freelancer.user_id, 3, project_id=1)

        last = db.execute(
            select(CreditTransaction).order_by(CreditTransaction.transaction_id.desc()).limit(1)
        ).scalar_one()
        last.balance_before = 9
        last.balance_after = 6
        db.commit()

        with pytest.raises(LedgerInvariantError):
            replay_balance(db, freelancer.user_id)
