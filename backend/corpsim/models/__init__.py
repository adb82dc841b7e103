"""ORM models. Importing this package registers every table on Base.metadata."""

from corpsim.models.base import Base
from corpsim.models.business_unit import BusinessUnit
from corpsim.models.corporate_action import CorporateAction
from corpsim.models.corporation import Corporation
from corpsim.models.market_price import MarketPrice, PriceHistory
from corpsim.models.proposal import Proposal
from corpsim.models.salary_record import SalaryRecord
from corpsim.models.settings import GameSetting, SectorConfigVersion
from corpsim.models.shareholder import Shareholder
from corpsim.models.transaction import Transaction
from corpsim.models.user import User

__all__ = [
    "Base",
    "BusinessUnit",
    "CorporateAction",
    "Corporation",
    "GameSetting",
    "MarketPrice",
    "PriceHistory",
    "Proposal",
    "SalaryRecord",
    "SectorConfigVersion",
    "Shareholder",
    "Transaction",
    "User",
]
