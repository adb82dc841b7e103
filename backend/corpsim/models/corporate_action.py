"""
corporate_action.py — ORM Model for Timed Corporate Actions

A corporation buys an action (supply rush, marketing campaign) that stays
active until expires_at. Each active boost type adds a fixed percentage to
the corporation's market-revenue result.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index

from corpsim.models.base import Base


class CorporateAction(Base):
    __tablename__ = "corporate_action"

    id = Column(Integer, primary_key=True, index=True)

    corporation_id = Column(Integer, ForeignKey("corporation.id"), nullable=False)
    action_type = Column(String, nullable=False)  # "supply_rush" | "marketing_campaign"
    cost = Column(Float, nullable=False, default=0.0)

    started_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_corporate_action_expiry", "expires_at"),
    )

    def __repr__(self):
        return f"<CorporateAction {self.action_type} corp={self.corporation_id} until={self.expires_at}>"
