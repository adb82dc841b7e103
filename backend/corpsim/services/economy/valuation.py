"""
valuation.py — Share Price Valuation

Share price blends book value per share with an earnings value per share:

    book     = capital / shares
    earnings = max(profit, 0) * EARNINGS_MULTIPLE / shares
    price    = max(MIN_SHARE_PRICE, round(BOOK_WEIGHT * book + EARNINGS_WEIGHT * earnings, 2))

Losses never push the earnings component below zero; a bankrupt corporation
with no profit trades at the floor.
"""

from typing import Optional

from corpsim.core.config import Settings, settings as default_settings
from corpsim.core.errors import InvalidInput
from corpsim.core.logging import get_logger

logger = get_logger(__name__)


def compute_share_price(capital: float, shares: int, profit: float, cfg: Settings = default_settings) -> float:
    if shares <= 0:
        raise InvalidInput(f"Outstanding shares must be > 0, got {shares}")
    book = max(capital, 0.0) / shares
    earnings = max(profit, 0.0) * cfg.EARNINGS_MULTIPLE / shares
    blended = cfg.VALUATION_BOOK_WEIGHT * book + cfg.VALUATION_EARNINGS_WEIGHT * earnings
    return max(cfg.MIN_SHARE_PRICE, round(blended, 2))


class ValuationService:

    def __init__(self, store, cfg: Settings = default_settings):
        self.store = store
        self.settings = cfg

    def update_stock_price(self, corporation_id: int, recent_profit: Optional[float] = None) -> float:
        """
        Recompute and store the share price of one corporation.

        `recent_profit` defaults to the profit of the last market-revenue pass.
        Raises InvalidInput for an unknown id or non-positive share count.
        """
        corp = self.store.find_corporation_by_id(corporation_id)
        if corp is None:
            raise InvalidInput(f"Unknown corporation id: {corporation_id}")

        profit = corp.last_profit if recent_profit is None else recent_profit
        price = compute_share_price(corp.capital, corp.shares, profit, self.settings)
        self.store.update_share_price(corporation_id, price)
        logger.debug("Corporation %s revalued at %.2f (capital=%.2f, profit=%.2f)",
                     corporation_id, price, corp.capital, profit)
        return price
