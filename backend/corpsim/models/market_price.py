"""
market_price.py — ORM Models for Current Prices and Price History

MarketPrice:
- Current quote per (kind, name); overwritten every market-revenue cycle.

PriceHistory:
- One snapshot per (kind, name, bucket) where bucket is the start of a
  fixed-width period. Recording twice inside a bucket overwrites.

kind is "resource" or "product".
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Index

from corpsim.models.base import Base


class MarketPrice(Base):
    __tablename__ = "market_price"

    id = Column(Integer, primary_key=True, index=True)

    kind = Column(String, nullable=False)
    name = Column(String, nullable=False)

    base_price = Column(Float, nullable=False)
    scarcity_factor = Column(Float, nullable=False)
    price = Column(Float, nullable=False)
    supply = Column(Float, nullable=False, default=0.0)
    demand = Column(Float, nullable=False, default=0.0)

    updated_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_market_price_kind_name", "kind", "name", unique=True),
    )

    def __repr__(self):
        return f"<MarketPrice {self.kind}:{self.name} = {self.price}>"


class PriceHistory(Base):
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, index=True)

    kind = Column(String, nullable=False)
    name = Column(String, nullable=False)
    bucket = Column(DateTime, nullable=False)

    price = Column(Float, nullable=False)
    supply = Column(Float, nullable=False, default=0.0)
    demand = Column(Float, nullable=False, default=0.0)

    recorded_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_price_history_bucket", "kind", "name", "bucket", unique=True),
        Index("idx_price_history_bucket_only", "bucket"),  # market-wide charts
    )

    def __repr__(self):
        return f"<PriceHistory {self.kind}:{self.name} @ {self.bucket} = {self.price}>"
