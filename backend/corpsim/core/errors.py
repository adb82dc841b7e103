"""
errors.py — Engine Error Kinds

Every failure the core reports carries a `kind` string. Jobs turn these into
structured payloads (`{"kind": ..., "message": ...}`); only the HTTP layer in
`corpsim.api` maps kinds to status codes.
"""

from typing import Any, Dict


class EngineError(Exception):
    """Base class for errors the engine reports explicitly."""

    kind = "internal"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class Unauthorized(EngineError):
    """Missing or invalid trigger credential."""

    kind = "unauthorized"


class Forbidden(EngineError):
    """Feature disabled or caller lacks privilege."""

    kind = "forbidden"


class InvalidInput(EngineError, ValueError):
    """Non-numeric amount, unknown id, or an otherwise rejected argument."""

    kind = "invalid_input"


class ConfigurationError(EngineError):
    """A resource/product lacks a base price or coefficient entry."""

    kind = "configuration_error"


class PersistenceConflict(EngineError):
    """An atomic update was rejected; someone else already handled it."""

    kind = "persistence_conflict"


def error_payload(exc: BaseException) -> Dict[str, Any]:
    """Structured payload for any exception, engine or not."""
    if isinstance(exc, EngineError):
        return exc.to_payload()
    return {"kind": "internal", "message": f"{type(exc).__name__}: {exc}"}
