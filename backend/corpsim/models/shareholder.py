"""
shareholder.py — ORM Model for Player Shareholdings

One row per (corporation, user) holding. Outstanding shares not held by any
player form the public float. Dividends are paid per held share; stock
splits scale every holding by the split ratio.
"""

from sqlalchemy import Column, Integer, ForeignKey, Index

from corpsim.models.base import Base


class Shareholder(Base):
    __tablename__ = "shareholder"

    id = Column(Integer, primary_key=True, index=True)

    corporation_id = Column(Integer, ForeignKey("corporation.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    shares = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("idx_shareholder_corp_user", "corporation_id", "user_id", unique=True),
    )

    def __repr__(self):
        return f"<Shareholder corp={self.corporation_id} user={self.user_id} x{self.shares}>"
