"""
proposals.py — Board Proposal Resolution

Resolves pending proposals whose voting window has closed:

- no votes at all        → EXPIRED
- votes_for > against    → APPROVED, effects applied
- otherwise (incl. ties) → REJECTED

The status compare-and-set runs first; only the caller that wins it applies
effects. A lost CAS means another run already resolved the proposal and is
counted as a conflict.

Effects by proposal type:

- ceo_nomination     {"nominee_id"}          sets the CEO
- sector_change      {"new_sector"}          must be a configured subtype
- hq_change          {"new_state"}           two-letter US state code
- focus_change       {"new_focus"}
- board_size         {"new_size"}            3..7
- ceo_salary_change  {"new_salary"}          >= 0, overrides the stipend
- dividend_change    {"new_percentage"}      0..100, read by the daily dividend job
- special_dividend   {"capital_percentage"}  0..100, paid immediately
- stock_split        {"split_ratio"}         integer >= 2, default 2

Other types (board appointments, share issues) are approved without an
engine-side effect.
"""

import datetime
from typing import Any, Callable, Dict, Optional

from corpsim.core.config import Settings, settings as default_settings
from corpsim.core.errors import InvalidInput
from corpsim.core.logging import get_logger
from corpsim.services.economy.dividends import DividendService
from corpsim.services.economy.types import (
    BOARD_SIZE_RANGE,
    CORPORATION_FOCUSES,
    US_STATE_CODES,
    ProposalRecord,
    ProposalStatus,
)

logger = get_logger(__name__)

DEFAULT_SPLIT_RATIO = 2


def decide_outcome(votes_for: int, votes_against: int) -> ProposalStatus:
    if votes_for == 0 and votes_against == 0:
        return ProposalStatus.EXPIRED
    if votes_for > votes_against:
        return ProposalStatus.APPROVED
    return ProposalStatus.REJECTED


def _require(payload: Dict[str, Any], key: str) -> Any:
    value = payload.get(key)
    if value is None:
        raise InvalidInput(f"Proposal payload missing {key!r}")
    return value


def _require_number(payload: Dict[str, Any], key: str, low: float, high: Optional[float] = None) -> float:
    value = _require(payload, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{key} must be a number, got {value!r}")
    if value < low or (high is not None and value > high):
        bounds = f">= {low}" if high is None else f"between {low} and {high}"
        raise InvalidInput(f"{key} must be {bounds}, got {value!r}")
    return float(value)


class ProposalResolver:

    def __init__(self, store, config_service=None, cfg: Settings = default_settings, dividends=None):
        self.store = store
        self.config_service = config_service
        self.settings = cfg
        self.dividends = dividends or DividendService(store, cfg)
        self._effects: Dict[str, Callable[[ProposalRecord, datetime.datetime], None]] = {
            "ceo_nomination": self._apply_ceo_nomination,
            "sector_change": self._apply_sector_change,
            "hq_change": self._apply_hq_change,
            "focus_change": self._apply_focus_change,
            "board_size": self._apply_board_size,
            "ceo_salary_change": self._apply_ceo_salary_change,
            "dividend_change": self._apply_dividend_change,
            "special_dividend": self._apply_special_dividend,
            "stock_split": self._apply_stock_split,
        }

    def resolve_expired(self, now: datetime.datetime) -> dict:
        counts = {"approved": 0, "rejected": 0, "expired": 0}
        conflicts = 0
        failed = []

        for proposal in self.store.find_pending_proposals_expiring_before(now):
            outcome = decide_outcome(proposal.votes_for, proposal.votes_against)
            try:
                won = self.store.transition_proposal(
                    proposal.id, ProposalStatus.PENDING, outcome, now
                )
                if not won:
                    logger.debug("Proposal %s already resolved elsewhere", proposal.id)
                    conflicts += 1
                    continue

                counts[outcome.value] += 1
                if outcome is ProposalStatus.APPROVED:
                    self.apply_effects(proposal, now)
            except Exception:
                logger.exception("Resolving proposal %s failed", proposal.id)
                failed.append(proposal.id)

        return {
            "resolved": sum(counts.values()),
            **counts,
            "conflicts": conflicts,
            "failed": failed,
        }

    def apply_effects(self, proposal: ProposalRecord, now: Optional[datetime.datetime] = None) -> None:
        effect = self._effects.get(proposal.proposal_type)
        if effect is None:
            logger.info("Proposal %s approved; type %s has no effect to apply",
                        proposal.id, proposal.proposal_type)
            return
        effect(proposal, now or proposal.resolved_at or proposal.expires_at)
        logger.info("Applied %s for corporation %s (proposal %s)",
                    proposal.proposal_type, proposal.corporation_id, proposal.id)

    # -------------------------------------------------------------------------
    # Effects
    # -------------------------------------------------------------------------

    def _apply_ceo_nomination(self, proposal: ProposalRecord, now: datetime.datetime) -> None:
        nominee_id = _require(proposal.payload, "nominee_id")
        if self.store.find_user_by_id(nominee_id) is None:
            raise InvalidInput(f"Nominee {nominee_id} does not exist")
        self.store.update_corporation(proposal.corporation_id, ceo_id=nominee_id)

    def _apply_sector_change(self, proposal: ProposalRecord, now: datetime.datetime) -> None:
        new_sector = _require(proposal.payload, "new_sector")
        if self.config_service is not None:
            known = self.config_service.active().subtype_names()
            if new_sector not in known:
                raise InvalidInput(f"Unknown sector {new_sector!r}")
        self.store.update_corporation(proposal.corporation_id, sector=new_sector)

    def _apply_hq_change(self, proposal: ProposalRecord, now: datetime.datetime) -> None:
        new_state = _require(proposal.payload, "new_state")
        if not isinstance(new_state, str) or new_state.strip().upper() not in US_STATE_CODES:
            raise InvalidInput(f"Unknown state code {new_state!r}")
        self.store.update_corporation(proposal.corporation_id, hq_state=new_state.strip().upper())

    def _apply_focus_change(self, proposal: ProposalRecord, now: datetime.datetime) -> None:
        new_focus = _require(proposal.payload, "new_focus")
        if new_focus not in CORPORATION_FOCUSES:
            raise InvalidInput(f"Unknown focus {new_focus!r}")
        self.store.update_corporation(proposal.corporation_id, focus=new_focus)

    def _apply_board_size(self, proposal: ProposalRecord, now: datetime.datetime) -> None:
        low, high = BOARD_SIZE_RANGE
        new_size = _require_number(proposal.payload, "new_size", low, high)
        if new_size != int(new_size):
            raise InvalidInput(f"new_size must be a whole number, got {new_size!r}")
        self.store.update_corporation(proposal.corporation_id, board_size=int(new_size))

    def _apply_ceo_salary_change(self, proposal: ProposalRecord, now: datetime.datetime) -> None:
        new_salary = _require_number(proposal.payload, "new_salary", 0)
        self.store.update_corporation(proposal.corporation_id, ceo_salary=new_salary)

    def _apply_dividend_change(self, proposal: ProposalRecord, now: datetime.datetime) -> None:
        new_percentage = _require_number(proposal.payload, "new_percentage", 0, 100)
        self.store.update_corporation(proposal.corporation_id, dividend_percentage=new_percentage)

    def _apply_special_dividend(self, proposal: ProposalRecord, now: datetime.datetime) -> None:
        percentage = _require_number(proposal.payload, "capital_percentage", 0, 100)
        payout = self.dividends.pay_special(proposal.corporation_id, percentage, now)
        if payout is not None:
            logger.info("Special dividend of %.2f paid by corporation %s to %d shareholders",
                        payout.total, proposal.corporation_id, payout.shareholders_paid)

    def _apply_stock_split(self, proposal: ProposalRecord, now: datetime.datetime) -> None:
        ratio = proposal.payload.get("split_ratio", DEFAULT_SPLIT_RATIO)
        if isinstance(ratio, bool) or not isinstance(ratio, int) or ratio < 2:
            raise InvalidInput(f"split_ratio must be an integer >= 2, got {ratio!r}")
        self.store.apply_stock_split(proposal.corporation_id, ratio, self.settings.MIN_SHARE_PRICE)
