"""
salary_record.py — ORM Model for CEO Salary Payment State

One row per CEO. last_paid_at is the compare-and-set target that keeps
concurrent salary runs from paying the same CEO twice inside the cooldown.
A run that claims the window but pays nothing puts the previous value back,
so a zeroed salary does not start a cooldown.
"""

from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey

from corpsim.models.base import Base


class SalaryRecord(Base):
    __tablename__ = "salary_record"

    ceo_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    corporation_id = Column(Integer, ForeignKey("corporation.id"), nullable=True)

    last_paid_at = Column(DateTime, nullable=True)  # None until a salary is actually paid
    last_amount = Column(Float, nullable=False, default=0.0)

    def __repr__(self):
        return f"<SalaryRecord ceo={self.ceo_id} paid_at={self.last_paid_at} amount={self.last_amount}>"
