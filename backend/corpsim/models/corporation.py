"""
corporation.py — ORM Model for Player-Owned Corporations

Purpose:
- Represent a corporation: its treasury (capital), share structure, sector,
  headquarters, board and CEO, plus its dividend policy.
- Capital and share price are only ever moved through the store's atomic
  operations; jobs never write these columns with read-modify-write.

Important Design Rule:
- capital is never stored below 0 (the store clamps every delta).
- shares > 0 and share_price > 0 at all times.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index

from corpsim.models.base import Base


class Corporation(Base):
    __tablename__ = "corporation"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

    # Treasury & equity
    capital = Column(Float, nullable=False, default=0.0)
    shares = Column(Integer, nullable=False, default=1_000_000)
    share_price = Column(Float, nullable=False, default=1.0)

    # Classification (sector is a SectorConfig subtype name)
    sector = Column(String, nullable=True)
    focus = Column(String, nullable=True)  # e.g. "extraction", "production", "retail", "service"
    hq_state = Column(String(2), nullable=True)  # two-letter US state code

    # Governance
    ceo_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    ceo_salary = Column(Float, nullable=True)  # overrides the configured stipend when set
    board_size = Column(Integer, nullable=False, default=5)

    # Dividend policy: percent of capital paid out by the daily dividend job
    dividend_percentage = Column(Float, nullable=False, default=0.0)
    special_dividend_last_paid_at = Column(DateTime, nullable=True)
    special_dividend_last_amount = Column(Float, nullable=True)

    # Profit applied by the most recent market-revenue pass
    last_profit = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        Index("idx_corporation_ceo", "ceo_id"),
    )

    def __repr__(self):
        return f"<Corporation {self.id} {self.name} | capital={self.capital}>"
