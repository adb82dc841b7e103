"""
dividends.py — Dividend Payouts

Daily dividend job:

- Only corporations with a dividend policy (dividend_percentage > 0) and at
  least DIVIDEND_MIN_CAPITAL pay.
- The payout is dividend_percentage % of capital, split evenly over the
  outstanding shares. Payouts under MIN_DIVIDEND_PER_SHARE are skipped.
- Player shareholders are credited for the shares they hold; the part that
  belongs to the public float simply leaves the treasury.

The debit and every shareholder credit happen in one store transaction
(`pay_dividend`), so a corporation either pays in full or not at all.

Special dividends are one-off payouts approved by the board: a percentage of
capital, at most once per SPECIAL_DIVIDEND_COOLDOWN_SECONDS.
"""

import datetime
from typing import Optional

from corpsim.core.config import Settings, settings as default_settings
from corpsim.core.errors import InvalidInput
from corpsim.core.logging import get_logger
from corpsim.services.economy.types import CorporationRecord, DividendPayout

logger = get_logger(__name__)


def dividend_total(corp: CorporationRecord, cfg: Settings = default_settings) -> Optional[float]:
    """Amount the daily job would pay for `corp`, or None when it pays nothing."""
    if corp.dividend_percentage <= 0 or corp.shares <= 0:
        return None
    if corp.capital < cfg.DIVIDEND_MIN_CAPITAL:
        return None
    total = round(corp.capital * corp.dividend_percentage / 100, 2)
    if total / corp.shares < cfg.MIN_DIVIDEND_PER_SHARE:
        return None
    return total


class DividendService:

    def __init__(self, store, cfg: Settings = default_settings):
        self.store = store
        self.settings = cfg

    def pay_all(self, now: datetime.datetime) -> dict:
        paid = 0
        skipped = 0
        total_paid = 0.0
        to_holders = 0.0
        failed = []

        for corp in self.store.find_all_corporations():
            total = dividend_total(corp, self.settings)
            if total is None:
                continue
            try:
                payout = self.store.pay_dividend(
                    corp.id,
                    total,
                    now,
                    transaction_type="dividend",
                    description=f"Dividend payment ({corp.dividend_percentage:g}%)",
                )
            except Exception:
                logger.exception("Dividend payment failed for corporation %s", corp.id)
                failed.append(corp.id)
                continue

            if payout is None:
                # Capital fell below the payout since it was read
                logger.info("Corporation %s can no longer cover dividend %.2f", corp.id, total)
                skipped += 1
                continue
            paid += 1
            total_paid += payout.total
            to_holders += payout.paid_to_holders

        return {
            "corporations_paid": paid,
            "total_paid": round(total_paid, 2),
            "paid_to_shareholders": round(to_holders, 2),
            "skipped_insufficient_capital": skipped,
            "failed": failed,
        }

    def pay_special(
        self,
        corporation_id: int,
        capital_percentage: float,
        now: datetime.datetime,
    ) -> Optional[DividendPayout]:
        corp = self.store.find_corporation_by_id(corporation_id)
        if corp is None:
            raise InvalidInput(f"Unknown corporation id: {corporation_id}")

        last = corp.special_dividend_last_paid_at
        cooldown = datetime.timedelta(seconds=self.settings.SPECIAL_DIVIDEND_COOLDOWN_SECONDS)
        if last is not None and now - last < cooldown:
            raise InvalidInput(
                f"Corporation {corporation_id} paid a special dividend at {last.isoformat()}; "
                f"next one allowed after {(last + cooldown).isoformat()}"
            )

        total = round(corp.capital * capital_percentage / 100, 2)
        if total <= 0:
            logger.info("Special dividend for corporation %s rounds to zero, nothing paid", corporation_id)
            return None
        return self.store.pay_dividend(
            corporation_id,
            total,
            now,
            transaction_type="special_dividend",
            description=f"Special dividend ({capital_percentage:g}% of capital)",
        )
