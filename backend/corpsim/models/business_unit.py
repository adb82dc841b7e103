"""
business_unit.py — ORM Model for Deployed Business Units

Units are the only driver of supply and demand. A row holds how many units of
one (category, subtype) pair a corporation runs.

- category: one of UnitCategory values ("production", "retail", "service", "extraction")
- subtype: a SectorConfig subtype name, e.g. "Energy"
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from corpsim.models.base import Base


class BusinessUnit(Base):
    __tablename__ = "business_unit"

    id = Column(Integer, primary_key=True, index=True)

    corporation_id = Column(Integer, ForeignKey("corporation.id"), nullable=False)

    category = Column(String, nullable=False)
    subtype = Column(String, nullable=False)
    count = Column(Integer, nullable=False, default=0)

    corporation = relationship("Corporation", backref="units")

    __table_args__ = (
        Index("idx_unit_corp_kind", "corporation_id", "category", "subtype", unique=True),
    )

    def __repr__(self):
        return f"<BusinessUnit corp={self.corporation_id} {self.category}/{self.subtype} x{self.count}>"
