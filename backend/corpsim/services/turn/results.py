"""
results.py — Job Result Records

Every scheduler job returns a JobResult instead of raising. The trigger
boundary serialises it with `to_dict()`; only the HTTP layer turns
`error["kind"]` into a status code.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class JobResult:
    job: str
    ok: bool
    timestamp: datetime.datetime
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, Any]] = None
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "job": self.job,
            "ok": self.ok,
            "timestamp": self.timestamp.isoformat(),
            "skipped": self.skipped,
            "data": self.data,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload
