"""
scheduler.py — Turn Scheduler Jobs

Purpose:
- Expose each periodic job as a method that returns a JobResult and never
  raises: actions increment, market revenue, CEO salaries, dividends,
  price-history recording and proposal expiration.
- `run_turn()` runs actions → market → salaries in order and stops at the
  first failed step. Completed steps are not rolled back.

There is no loop or timer here: an external scheduler calls the trigger
boundary, which dispatches to these methods.
"""

from typing import Callable, Optional

from corpsim.core.clock import Clock, bucket_start, utcnow
from corpsim.core.config import Settings, settings as default_settings
from corpsim.core.errors import EngineError, error_payload
from corpsim.core.logging import get_logger
from corpsim.services.economy.dividends import DividendService
from corpsim.services.economy.market import MarketService
from corpsim.services.economy.proposals import ProposalResolver
from corpsim.services.economy.salaries import SalaryService
from corpsim.services.economy.sector_config import SectorConfigService
from corpsim.services.economy.valuation import ValuationService
from corpsim.services.turn.results import JobResult

logger = get_logger(__name__)


class TurnScheduler:

    def __init__(self, store, cfg: Settings = default_settings, clock: Clock = utcnow):
        self.store = store
        self.settings = cfg
        self.clock = clock

        self.config_service = SectorConfigService(store, clock)
        self.valuation = ValuationService(store, cfg)
        self.market = MarketService(store, self.config_service, self.valuation, cfg)
        self.salaries = SalaryService(store, cfg)
        self.dividends = DividendService(store, cfg)
        self.proposals = ProposalResolver(store, self.config_service, cfg, self.dividends)

    def _run(self, job: str, step: Callable) -> JobResult:
        now = self.clock()
        try:
            data = step(now)
        except EngineError as exc:
            logger.warning("Job %s failed: %s (%s)", job, exc.message, exc.kind)
            return JobResult(job=job, ok=False, timestamp=now, error=exc.to_payload())
        except Exception as exc:
            logger.exception("Job %s crashed", job)
            return JobResult(job=job, ok=False, timestamp=now, error=error_payload(exc))

        logger.info("Job %s finished: %s", job, data)
        return JobResult(job=job, ok=True, timestamp=now, data=data)

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    def trigger_actions_increment(self) -> JobResult:
        return self._run("actions", self._actions_increment)

    def _actions_increment(self, now) -> dict:
        user_ids = [u.id for u in self.store.find_all_users()]
        known = set(user_ids)
        ceo_ids = sorted({
            c.ceo_id for c in self.store.find_all_corporations()
            if c.ceo_id is not None and c.ceo_id in known
        })

        updated = self.store.increment_actions(user_ids, self.settings.ACTIONS_PER_PERIOD)
        self.store.increment_actions(ceo_ids, self.settings.CEO_BONUS_ACTIONS)
        return {"users_updated": updated, "ceo_count": len(ceo_ids)}

    def trigger_market_revenue(self) -> JobResult:
        return self._run("market", self.market.run_revenue_cycle)

    def trigger_ceo_salaries(self) -> JobResult:
        return self._run("salaries", self.salaries.pay_all)

    def trigger_dividends(self) -> JobResult:
        return self._run("dividends", self.dividends.pay_all)

    def trigger_price_history_recording(self) -> JobResult:
        return self._run("prices", self._record_price_history)

    def _record_price_history(self, now) -> dict:
        snapshot = self.market.snapshot()
        bucket = bucket_start(now, self.settings.PRICE_HISTORY_BUCKET_SECONDS)
        self.store.save_market_prices(snapshot.quotes(), now)
        self.store.record_price_history(snapshot.quotes(), bucket, now)
        return {
            "commodities": len(snapshot.commodities),
            "products": len(snapshot.products),
            "bucket": bucket.isoformat(),
        }

    def resolve_expired_proposals(self) -> JobResult:
        return self._run("proposals", self.proposals.resolve_expired)

    def update_stock_price(self, corporation_id: int, recent_profit: Optional[float] = None) -> float:
        return self.valuation.update_stock_price(corporation_id, recent_profit)

    # -------------------------------------------------------------------------
    # Full turn
    # -------------------------------------------------------------------------

    def run_turn(self) -> JobResult:
        started = self.clock()
        steps = [
            ("actions", self.trigger_actions_increment),
            ("market", self.trigger_market_revenue),
            ("salaries", self.trigger_ceo_salaries),
        ]

        results = []
        aborted_at = None
        error = None
        for name, step in steps:
            result = step()
            results.append(result.to_dict())
            if not result.ok:
                aborted_at = name
                error = result.error
                logger.warning("Turn aborted at %s", name)
                break

        return JobResult(
            job="turn",
            ok=aborted_at is None,
            timestamp=started,
            data={
                "completed": [r["job"] for r in results if r["ok"]],
                "steps": results,
                "aborted_at": aborted_at,
            },
            error=error,
        )
