"""
proposal.py — ORM Model for Board Proposals

Purpose:
- Record a shareholder vote on a corporation change (CEO nomination, sector,
  HQ, focus, board size, salary, dividend policy, special dividend, stock split).
- Status lifecycle: "pending" → "approved" | "rejected" | "expired".
  A terminal status is never left; the store guards every transition with a
  conditional UPDATE on the current status.

payload holds the type-specific arguments, e.g. {"nominee_id": 7}.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship

from corpsim.models.base import Base


class Proposal(Base):
    __tablename__ = "proposal"

    id = Column(Integer, primary_key=True, index=True)

    corporation_id = Column(Integer, ForeignKey("corporation.id"), nullable=False)
    proposer_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    proposal_type = Column(String, nullable=False)
    payload = Column(JSON, nullable=False, default=dict)

    votes_for = Column(Integer, nullable=False, default=0)
    votes_against = Column(Integer, nullable=False, default=0)

    status = Column(String, nullable=False, default="pending")

    created_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    corporation = relationship("Corporation", backref="proposals")

    __table_args__ = (
        Index("idx_proposal_status_expiry", "status", "expires_at"),
    )

    def __repr__(self):
        return f"<Proposal {self.id} {self.proposal_type} | {self.status}>"
