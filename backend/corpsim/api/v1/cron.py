"""
cron.py — Job Trigger Endpoints (API Layer)

Purpose:
- Let an external scheduler run the periodic economy jobs over HTTP.
- Read the `Authorization: Bearer <secret>` header, hand it to the trigger
  boundary, and map the result's error kind to a status code.

Endpoints:
- POST /cron/{job} → run one job (actions, market, salaries, dividends, prices, proposals, turn)
- GET  /cron/{job} → same, for schedulers that can only issue GET requests

This API module should NOT:
- Check the secret or the cron_enabled flag itself (the trigger boundary does).
- Contain job logic.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from corpsim.api.deps import bearer_token, get_scheduler, get_settings, status_for_kind
from corpsim.core.config import Settings
from corpsim.core.logging import get_logger
from corpsim.services.turn.scheduler import TurnScheduler
from corpsim.services.turn.triggers import run_trigger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/cron",
    tags=["cron"]
)


def _respond(result: dict) -> JSONResponse:
    if result.get("ok"):
        return JSONResponse(status_code=200, content=result)
    kind = (result.get("error") or {}).get("kind")
    return JSONResponse(status_code=status_for_kind(kind), content=result)


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.post("/{job}")
def trigger_job(
    job: str,
    token: Optional[str] = Depends(bearer_token),
    scheduler: TurnScheduler = Depends(get_scheduler),
    cfg: Settings = Depends(get_settings),
):
    """
    POST /cron/{job}

    Returns the serialised JobResult. A disabled cron flag yields
    200 with `skipped: true`.
    """
    return _respond(run_trigger(job, token, scheduler, cfg))


@router.get("/{job}")
def trigger_job_get(
    job: str,
    token: Optional[str] = Depends(bearer_token),
    scheduler: TurnScheduler = Depends(get_scheduler),
    cfg: Settings = Depends(get_settings),
):
    return _respond(run_trigger(job, token, scheduler, cfg))
