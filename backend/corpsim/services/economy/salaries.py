"""
salaries.py — CEO Salary Payments

Runs once per CEO, not once per corporation:

1. Claim the CEO's payment window with an atomic compare-and-set on the
   salary record. Losing means an earlier (or concurrent) run paid them
   within the cooldown: counted as skipped, not retried.
2. Walk the CEO's corporations in id order. The first one whose capital
   covers its stipend (its own `ceo_salary` when set, otherwise the
   configured mode) is debited conditionally and pays.
3. Credit the CEO and write the ledger row.

When no corporation can cover the stipend the CEO is paid zero, the record
says so, and the claim is released: a zeroed salary does not start a
cooldown, so the next run tries again and does not count it as skipped.
"""

import datetime
from typing import Dict, List, Optional, Tuple

from corpsim.core.config import Settings, settings as default_settings
from corpsim.core.logging import get_logger
from corpsim.services.economy.types import CorporationRecord

logger = get_logger(__name__)


def stipend_for(corp: CorporationRecord, cfg: Settings = default_settings) -> float:
    if corp.ceo_salary is not None:
        return round(max(corp.ceo_salary, 0.0), 2)
    if cfg.CEO_SALARY_MODE == "capital_fraction":
        return round(max(corp.capital, 0.0) * cfg.CEO_SALARY_CAPITAL_FRACTION, 2)
    return round(cfg.CEO_SALARY_AMOUNT, 2)


def corporations_by_ceo(corporations: List[CorporationRecord]) -> Dict[int, List[CorporationRecord]]:
    """CEO id → the corporations they run, in id order."""
    grouped: Dict[int, List[CorporationRecord]] = {}
    for corp in sorted(corporations, key=lambda c: c.id):
        if corp.ceo_id is not None:
            grouped.setdefault(corp.ceo_id, []).append(corp)
    return grouped


class SalaryService:

    def __init__(self, store, cfg: Settings = default_settings):
        self.store = store
        self.settings = cfg

    def _debit_payer(self, corporations: List[CorporationRecord]) -> Tuple[Optional[CorporationRecord], float]:
        for corp in corporations:
            amount = stipend_for(corp, self.settings)
            if amount > 0 and self.store.try_debit_capital(corp.id, amount):
                return corp, amount
            logger.info("Corporation %s cannot cover CEO salary %.2f", corp.id, amount)
        return None, 0.0

    def pay_all(self, now: datetime.datetime) -> dict:
        ceos_paid = 0
        total_paid = 0.0
        zeroed = 0
        skipped = 0
        failed = []

        for ceo_id, corporations in corporations_by_ceo(self.store.find_all_corporations()).items():
            try:
                previous = self.store.get_salary_record(ceo_id)
                previous_paid_at = previous.last_paid_at if previous is not None else None

                won = self.store.try_set_salary_paid(
                    ceo_id,
                    now,
                    self.settings.SALARY_COOLDOWN_SECONDS,
                )
                if not won:
                    logger.debug("CEO %s paid within cooldown", ceo_id)
                    skipped += 1
                    continue

                try:
                    payer, amount = self._debit_payer(corporations)
                    if payer is not None:
                        try:
                            self.store.add_cash(ceo_id, amount)
                        except Exception:
                            self.store.add_capital(payer.id, amount)
                            raise
                except Exception:
                    self.store.release_salary_claim(ceo_id, now, previous_paid_at)
                    raise

                if payer is None:
                    self.store.release_salary_claim(ceo_id, now, previous_paid_at)
                    zeroed += 1
                    continue

                self.store.record_salary_amount(ceo_id, amount, corporation_id=payer.id)
                self.store.record_transaction(
                    "ceo_salary",
                    amount,
                    now,
                    corporation_id=payer.id,
                    user_id=ceo_id,
                    description=f"CEO salary from {payer.name}",
                )
                ceos_paid += 1
                total_paid += amount
            except Exception:
                logger.exception("Salary payment failed for CEO %s", ceo_id)
                failed.append(ceo_id)

        return {
            "ceos_paid": ceos_paid,
            "total_paid": round(total_paid, 2),
            "salaries_zeroed": zeroed,
            "skipped_recently_paid": skipped,
            "failed": failed,
        }
