"""
deps.py — Shared FastAPI Dependencies for the v1 Routers

- get_settings / get_scheduler: overridable in tests.
- bearer_token: extracts the credential from `Authorization: Bearer <secret>`.
- require_secret: guard for admin routes (same shared secret as triggers).
- status_for_kind: the only place engine error kinds become HTTP status codes.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from corpsim.core.config import Settings, settings
from corpsim.core.database import get_store
from corpsim.core.errors import Unauthorized
from corpsim.services.turn.scheduler import TurnScheduler
from corpsim.services.turn.triggers import check_credential

STATUS_BY_KIND = {
    "unauthorized": 401,
    "forbidden": 403,
    "invalid_input": 400,
    "persistence_conflict": 409,
    "configuration_error": 500,
    "internal": 500,
}


def status_for_kind(kind: Optional[str]) -> int:
    return STATUS_BY_KIND.get(kind or "internal", 500)


def get_settings() -> Settings:
    return settings


def get_scheduler(store=Depends(get_store), cfg: Settings = Depends(get_settings)) -> TurnScheduler:
    return TurnScheduler(store, cfg)


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def require_secret(
    token: Optional[str] = Depends(bearer_token),
    cfg: Settings = Depends(get_settings),
) -> None:
    try:
        check_credential(token, cfg)
    except Unauthorized as exc:
        raise HTTPException(status_code=401, detail=exc.to_payload())
