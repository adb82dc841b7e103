"""
user.py — ORM Model for Players

Purpose:
- Represent a player: personal cash and action points.
- A user is a CEO when some corporation's ceo_id points at them; there is no
  separate flag to keep in sync.
"""

from sqlalchemy import Column, Integer, String, Float

from corpsim.models.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)

    cash = Column(Float, nullable=False, default=0.0)  # never below 0
    actions = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<User {self.username} | cash={self.cash} actions={self.actions}>"
