from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from freelance_credits.core.database import Base

TRANSACTION_TYPES = (
    "purchase",
    "deduction",
    "refund",
    "admin_add",
    "admin_deduct",
    "expiry",
    "signup_bonus",
)


class CreditTransaction(Base):
    """Immutable audit log of every credit balance change."""

    __tablename__ = "credit_transactions"
    __table_args__ = (
        CheckConstraint(
            "balance_after = balance_before + amount",
            name="ck_credit_transactions_balance_delta",
        ),
        Index("idx_credit_tx_user_date", "user_id", "created_at"),
        Index("idx_credit_tx_type", "transaction_type"),
        Index("idx_credit_tx_reference", "reference_type", "reference_id"),
        Index("idx_credit_tx_payment_id", "payment_transaction_id"),
    )

    transaction_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    transaction_type: Mapped[str] = mapped_column(
        Enum(*TRANSACTION_TYPES, name="credit_transaction_type"),
        nullable=False,
    )
    # Positive for credit, negative for debit
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_before: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)

    # What triggered the transaction: payment, application, admin, system, signup
    reference_type: Mapped[str | None] = mapped_column(String(50))
    reference_id: Mapped[int | None] = mapped_column(Integer)

    payment_gateway: Mapped[str | None] = mapped_column(String(50))
    payment_order_id: Mapped[str | None] = mapped_column(String(255))
    payment_transaction_id: Mapped[str | None] = mapped_column(String(255))
    payment_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    payment_currency: Mapped[str | None] = mapped_column(String(3), server_default="INR")

    package_id: Mapped[int | None] = mapped_column(Integer)
    package_name: Mapped[str | None] = mapped_column(String(100))

    admin_user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.user_id"))
    admin_reason: Mapped[str | None] = mapped_column(Text)

    ip_address: Mapped[str | None] = mapped_column(String(45))
    user_agent: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    def __repr__(self) -> str:
        return f"<CreditTransaction {self.transaction_type} {self.amount}>"
