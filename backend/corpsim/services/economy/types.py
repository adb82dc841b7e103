"""
types.py — Shared Data Layer for the Economy Services

Purpose:
- Define the value types passed between the calculator, the pricing engine,
  the jobs and the store contract.
- Store implementations return these plain records rather than ORM objects, so
  the economy logic never depends on a session being open.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from corpsim.core.errors import InvalidInput


class UnitCategory(str, Enum):
    """Closed set of business-unit categories."""

    PRODUCTION = "production"
    RETAIL = "retail"
    SERVICE = "service"
    EXTRACTION = "extraction"

    @classmethod
    def parse(cls, value: Any) -> "UnitCategory":
        """Accept a member or its case-insensitive name/value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
        raise InvalidInput(f"Unknown unit category: {value!r}")


# Categories whose inputs create demand / whose outputs create supply
COMMODITY_SUPPLY_CATEGORIES = (UnitCategory.EXTRACTION,)
COMMODITY_DEMAND_CATEGORIES = (UnitCategory.PRODUCTION, UnitCategory.RETAIL, UnitCategory.SERVICE)
PRODUCT_SUPPLY_CATEGORIES = (UnitCategory.PRODUCTION,)
PRODUCT_DEMAND_CATEGORIES = (UnitCategory.RETAIL, UnitCategory.SERVICE)


class ProposalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not ProposalStatus.PENDING


CORPORATION_FOCUSES = ("extraction", "production", "retail", "service", "diversified")

# Corporate actions that add MARKET_BOOST_PER_ACTION to market revenue while active
BOOST_ACTION_TYPES = ("supply_rush", "marketing_campaign")

BOARD_SIZE_RANGE = (3, 7)

US_STATE_CODES = frozenset((
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "FL", "GA", "HI", "ID",
    "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO",
    "MT", "NE", "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA",
    "RI", "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
))

# unit_maps: category -> {subtype -> count}
UnitMaps = Dict[UnitCategory, Dict[str, float]]


@dataclass
class SupplyDemand:
    """
    Market-wide supply and demand keyed by resource/product name.

    Every requested name is present in both maps (0.0 when nothing moves it).
    """
    supply: Dict[str, float] = field(default_factory=dict)
    demand: Dict[str, float] = field(default_factory=dict)


@dataclass
class PriceQuote:
    name: str
    base_price: float
    scarcity_factor: float
    price: float
    supply: float
    demand: float
    kind: str = "resource"  # "resource" | "product"


@dataclass
class CorporationRecord:
    id: int
    name: str
    capital: float
    shares: int
    share_price: float
    sector: Optional[str] = None
    focus: Optional[str] = None
    ceo_id: Optional[int] = None
    ceo_salary: Optional[float] = None
    last_profit: float = 0.0
    hq_state: Optional[str] = None
    board_size: int = 5
    dividend_percentage: float = 0.0
    special_dividend_last_paid_at: Optional[datetime.datetime] = None
    special_dividend_last_amount: Optional[float] = None


@dataclass
class UserRecord:
    id: int
    username: str
    cash: float
    actions: int


@dataclass
class ProposalRecord:
    id: int
    corporation_id: int
    proposal_type: str
    payload: Dict[str, Any]
    votes_for: int
    votes_against: int
    status: ProposalStatus
    expires_at: datetime.datetime
    resolved_at: Optional[datetime.datetime] = None


@dataclass
class SalaryState:
    ceo_id: int
    corporation_id: Optional[int]
    last_paid_at: Optional[datetime.datetime]
    last_amount: float


@dataclass
class DividendPayout:
    """Outcome of one atomic dividend payment."""
    corporation_id: int
    total: float
    per_share: float
    shareholders_paid: int
    paid_to_holders: float
