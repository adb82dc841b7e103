"""
transaction.py — ORM Model for the Money Ledger

Append-only audit trail of every money movement the engine makes:
market revenue/costs, CEO salaries, dividends and admin grants. Balances live on
Corporation.capital and User.cash; this table only explains them.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index

from corpsim.models.base import Base


class Transaction(Base):
    __tablename__ = "transaction_ledger"

    id = Column(Integer, primary_key=True, index=True)

    corporation_id = Column(Integer, ForeignKey("corporation.id"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # market_revenue, market_cost, ceo_salary, dividend, special_dividend, admin_capital, admin_cash
    # job rows store a non-negative amount; the type carries the direction
    transaction_type = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_ledger_corp_time", "corporation_id", "created_at"),
    )

    def __repr__(self):
        return f"<Transaction {self.transaction_type} {self.amount}>"
