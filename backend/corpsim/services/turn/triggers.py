"""
triggers.py — Job Trigger Boundary

The single entry point an external scheduler (cron, a hosted timer, an
operator) uses to run a job:

1. The credential must match CRON_SECRET (constant-time compare). An empty
   configured secret rejects everything.
2. The `cron_enabled` game setting is read fresh from the store on every call;
   when disabled the job is skipped, not failed.
3. The job name is dispatched to the scheduler.

Always returns a JSON-ready dict; never raises.
"""

import hmac
from typing import Any, Dict, Optional

from corpsim.core.config import Settings, settings as default_settings
from corpsim.core.errors import EngineError, InvalidInput, Unauthorized, error_payload
from corpsim.core.logging import get_logger
from corpsim.services.turn.results import JobResult

logger = get_logger(__name__)

CRON_ENABLED_KEY = "cron_enabled"
_FALSE_VALUES = ("false", "0", "no", "off")

# Trigger name → TurnScheduler method
JOBS = {
    "actions": "trigger_actions_increment",
    "market": "trigger_market_revenue",
    "salaries": "trigger_ceo_salaries",
    "dividends": "trigger_dividends",
    "prices": "trigger_price_history_recording",
    "proposals": "resolve_expired_proposals",
    "turn": "run_turn",
}


def check_credential(credential: Optional[str], cfg: Settings = default_settings) -> None:
    expected = cfg.CRON_SECRET
    if not expected:
        raise Unauthorized("Trigger secret is not configured")
    if not credential or not hmac.compare_digest(credential.encode(), expected.encode()):
        raise Unauthorized("Invalid trigger credential")


def is_cron_enabled(store) -> bool:
    value = store.get_setting(CRON_ENABLED_KEY, "true")
    return str(value).strip().lower() not in _FALSE_VALUES


def run_trigger(job_name: str, credential: Optional[str], scheduler, cfg: Settings = default_settings) -> Dict[str, Any]:
    now = scheduler.clock()
    try:
        check_credential(credential, cfg)
        method = JOBS.get(job_name)
        if method is None:
            raise InvalidInput(f"Unknown job {job_name!r}; expected one of {sorted(JOBS)}")
        if not is_cron_enabled(scheduler.store):
            logger.info("Job %s skipped: cron disabled", job_name)
            return JobResult(job=job_name, ok=True, timestamp=now, skipped=True,
                             data={"reason": "cron disabled"}).to_dict()
    except EngineError as exc:
        logger.warning("Trigger %s rejected: %s", job_name, exc.message)
        return JobResult(job=job_name, ok=False, timestamp=now, error=exc.to_payload()).to_dict()
    except Exception as exc:
        logger.exception("Trigger %s failed before dispatch", job_name)
        return JobResult(job=job_name, ok=False, timestamp=now, error=error_payload(exc)).to_dict()

    logger.info("Trigger %s dispatched", job_name)
    return getattr(scheduler, method)().to_dict()
