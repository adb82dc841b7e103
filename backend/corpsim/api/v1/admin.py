"""
admin.py — Operator Endpoints (API Layer)

Purpose:
- Edit the sector configuration (validated, saved as a new version, cache invalidated).
- Grant capital to a corporation / cash to a user through the atomic deltas.
- Toggle the runtime `cron_enabled` flag.

All routes require the shared secret as a bearer token.

Endpoints:
- GET  /sector-config                           → active configuration document
- PUT  /sector-config                           → validate + save new version
- POST /admin/corporations/{id}/add-capital     → atomic capital delta
- POST /admin/users/{id}/add-cash               → atomic cash delta
- GET  /admin/cron                              → cron_enabled flag
- PUT  /admin/cron                              → set cron_enabled flag
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from corpsim.api.deps import require_secret, status_for_kind
from corpsim.core.clock import utcnow
from corpsim.core.database import get_store
from corpsim.core.errors import ConfigurationError, EngineError
from corpsim.core.logging import get_logger
from corpsim.services.economy.sector_config import SectorConfigService
from corpsim.services.turn.triggers import CRON_ENABLED_KEY, is_cron_enabled

logger = get_logger(__name__)

router = APIRouter(
    tags=["admin"],
    dependencies=[Depends(require_secret)],
)

# -----------------------------------------------------------------------------
# Schemas
# -----------------------------------------------------------------------------

class AmountRequest(BaseModel):
    """Request body for capital / cash grants. Negative amounts deduct (clamped at 0)."""
    amount: float
    note: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {"amount": 250000.0, "note": "Event reward"}
        }


class CronToggleRequest(BaseModel):
    enabled: bool


def _raise_for(exc: EngineError) -> None:
    raise HTTPException(status_code=status_for_kind(exc.kind), detail=exc.to_payload())


# -----------------------------------------------------------------------------
# Sector configuration
# -----------------------------------------------------------------------------

@router.get("/sector-config")
def get_sector_config(store=Depends(get_store)):
    config = SectorConfigService(store).active()
    return config.to_document()


@router.put("/sector-config")
def put_sector_config(document: Dict[str, Any] = Body(...), store=Depends(get_store)):
    """
    PUT /sector-config

    Raises:
        400: document fails validation (unknown category, unknown resource/product, bad numbers)
    """
    try:
        config = SectorConfigService(store).save(document)
    except ConfigurationError as exc:
        # A rejected admin document is bad input, not a server misconfiguration
        raise HTTPException(status_code=400, detail=exc.to_payload())
    except EngineError as exc:
        _raise_for(exc)
    return {
        "version": config.version,
        "subtypes": len(config.subtypes),
        "resources": len(config.resources),
        "products": len(config.products),
    }


# -----------------------------------------------------------------------------
# Money grants
# -----------------------------------------------------------------------------

@router.post("/admin/corporations/{corporation_id}/add-capital")
def add_capital(corporation_id: int, body: AmountRequest, store=Depends(get_store)):
    now = utcnow()
    try:
        capital = store.add_capital(corporation_id, body.amount)
        store.record_transaction(
            "admin_capital",
            body.amount,
            now,
            corporation_id=corporation_id,
            description=body.note or "Admin capital grant",
        )
    except EngineError as exc:
        _raise_for(exc)
    logger.info("Admin added %.2f capital to corporation %s", body.amount, corporation_id)
    return {"corporation_id": corporation_id, "capital": capital}


@router.post("/admin/users/{user_id}/add-cash")
def add_cash(user_id: int, body: AmountRequest, store=Depends(get_store)):
    now = utcnow()
    try:
        cash = store.add_cash(user_id, body.amount)
        store.record_transaction(
            "admin_cash",
            body.amount,
            now,
            user_id=user_id,
            description=body.note or "Admin cash grant",
        )
    except EngineError as exc:
        _raise_for(exc)
    logger.info("Admin added %.2f cash to user %s", body.amount, user_id)
    return {"user_id": user_id, "cash": cash}


# -----------------------------------------------------------------------------
# Cron flag
# -----------------------------------------------------------------------------

@router.get("/admin/cron")
def get_cron_status(store=Depends(get_store)):
    return {"cron_enabled": is_cron_enabled(store)}


@router.put("/admin/cron")
def set_cron_status(body: CronToggleRequest, store=Depends(get_store)):
    store.set_setting(CRON_ENABLED_KEY, "true" if body.enabled else "false", utcnow())
    logger.info("cron_enabled set to %s", body.enabled)
    return {"cron_enabled": body.enabled}
