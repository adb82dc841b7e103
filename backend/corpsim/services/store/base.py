"""
base.py — Economy Store Contract

The economy services run against this interface only. Every money movement and
every state transition the jobs make goes through one of the atomic methods
below; implementations must honour the stated guarantees:

- add_capital / add_cash: single statement, result clamped at 0, new value returned.
- try_debit_capital: conditional debit, False when the balance can't cover it.
- try_set_salary_paid: compare-and-set on the cooldown; exactly one concurrent
  caller wins a given window.
- apply_market_profit: capital delta, last_profit and the ledger row in one
  transaction.
- pay_dividend: conditional debit plus every shareholder credit in one
  transaction; nothing moves when capital can't cover it.
- transition_proposal: compare-and-set on status; PENDING → terminal only.
- record_price_history: upsert on (kind, name, bucket).

Unknown ids and non-numeric amounts raise `InvalidInput`.
"""

import datetime
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Set

from corpsim.services.economy.types import (
    CorporationRecord,
    DividendPayout,
    PriceQuote,
    ProposalRecord,
    ProposalStatus,
    SalaryState,
    UnitMaps,
    UserRecord,
)


class EconomyStore(ABC):

    # -------------------------------------------------------------------------
    # Corporations
    # -------------------------------------------------------------------------

    @abstractmethod
    def find_corporation_by_id(self, corporation_id: int) -> Optional[CorporationRecord]:
        ...

    @abstractmethod
    def find_all_corporations(self) -> List[CorporationRecord]:
        ...

    @abstractmethod
    def add_capital(self, corporation_id: int, delta: float) -> float:
        """Atomically add `delta` (may be negative), clamp at 0, return new capital."""

    @abstractmethod
    def try_debit_capital(self, corporation_id: int, amount: float) -> bool:
        """Subtract `amount` only if capital >= amount. True when debited."""

    @abstractmethod
    def update_share_price(self, corporation_id: int, price: float) -> None:
        ...

    @abstractmethod
    def update_corporation(self, corporation_id: int, **fields: Any) -> None:
        """Set non-money fields: sector, focus, hq_state, board_size, ceo_id, ceo_salary, dividend_percentage, last_profit."""

    @abstractmethod
    def apply_stock_split(self, corporation_id: int, ratio: int, min_price: float) -> CorporationRecord:
        """Multiply shares and every holding by `ratio`, divide share price by it, in one transaction."""

    @abstractmethod
    def apply_market_profit(
        self,
        corporation_id: int,
        profit: float,
        now: datetime.datetime,
        description: Optional[str] = None,
    ) -> float:
        """
        Add `profit` to capital (clamped at 0), store it as last_profit and
        write a market_revenue / market_cost ledger row of abs(profit), all in
        one transaction. Returns the new capital.
        """

    @abstractmethod
    def active_corporate_actions(self, now: datetime.datetime) -> Dict[int, Set[str]]:
        """corporation id → action types whose expires_at is after `now`."""

    # -------------------------------------------------------------------------
    # Dividends
    # -------------------------------------------------------------------------

    @abstractmethod
    def pay_dividend(
        self,
        corporation_id: int,
        total: float,
        now: datetime.datetime,
        transaction_type: str = "dividend",
        description: Optional[str] = None,
    ) -> Optional[DividendPayout]:
        """
        Debit `total` from capital only if it covers it, credit every
        shareholder `total * held / outstanding` cash and write the ledger rows,
        all in one transaction. None when capital can't cover `total`.
        A special_dividend also stamps the corporation's last special payout.
        """

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @abstractmethod
    def find_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def find_all_users(self) -> List[UserRecord]:
        ...

    @abstractmethod
    def increment_actions(self, user_ids: Iterable[int], amount: int) -> int:
        """Add `amount` action points to each user; returns rows updated."""

    @abstractmethod
    def add_cash(self, user_id: int, delta: float) -> float:
        """Atomically add `delta` (may be negative), clamp at 0, return new cash."""

    # -------------------------------------------------------------------------
    # Business units
    # -------------------------------------------------------------------------

    @abstractmethod
    def unit_counts(self, corporation_id: Optional[int] = None) -> UnitMaps:
        """category → {subtype → count}, market-wide or for one corporation."""

    # -------------------------------------------------------------------------
    # Proposals
    # -------------------------------------------------------------------------

    @abstractmethod
    def find_pending_proposals_expiring_before(self, now: datetime.datetime) -> List[ProposalRecord]:
        """Pending proposals with expires_at <= now."""

    @abstractmethod
    def transition_proposal(
        self,
        proposal_id: int,
        expected: ProposalStatus,
        new: ProposalStatus,
        now: datetime.datetime,
    ) -> bool:
        """Set status only if it is still `expected`. True when this caller won."""

    # -------------------------------------------------------------------------
    # Salaries
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_salary_record(self, ceo_id: int) -> Optional[SalaryState]:
        ...

    @abstractmethod
    def try_set_salary_paid(
        self,
        ceo_id: int,
        now: datetime.datetime,
        cooldown_seconds: int,
        corporation_id: Optional[int] = None,
    ) -> bool:
        """Claim this CEO's payment window. False when paid within the cooldown."""

    @abstractmethod
    def record_salary_amount(self, ceo_id: int, amount: float, corporation_id: Optional[int] = None) -> None:
        """Store the amount paid for the current window and, when given, the paying corporation."""

    @abstractmethod
    def release_salary_claim(
        self,
        ceo_id: int,
        claimed_at: datetime.datetime,
        previous_paid_at: Optional[datetime.datetime],
    ) -> bool:
        """
        Undo a claim that paid nothing: put last_paid_at back to
        `previous_paid_at` and set last_amount to 0, only while the record still
        holds `claimed_at`.
        """

    # -------------------------------------------------------------------------
    # Sector configuration
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_sector_config(self, version: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Stored document for `version` (default: active one), or None."""

    @abstractmethod
    def get_sector_config_version(self) -> Optional[str]:
        """Active version tag, or None when no admin edit has been saved."""

    @abstractmethod
    def save_sector_config(self, version: str, document: Dict[str, Any], now: datetime.datetime) -> None:
        ...

    # -------------------------------------------------------------------------
    # Prices
    # -------------------------------------------------------------------------

    @abstractmethod
    def save_market_prices(self, quotes: Iterable[PriceQuote], now: datetime.datetime) -> int:
        ...

    @abstractmethod
    def find_market_prices(self) -> List[PriceQuote]:
        ...

    @abstractmethod
    def record_price_history(
        self,
        quotes: Iterable[PriceQuote],
        bucket: datetime.datetime,
        now: datetime.datetime,
    ) -> int:
        ...

    # -------------------------------------------------------------------------
    # Settings & ledger
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        ...

    @abstractmethod
    def set_setting(self, key: str, value: str, now: datetime.datetime) -> None:
        ...

    @abstractmethod
    def record_transaction(
        self,
        transaction_type: str,
        amount: float,
        now: datetime.datetime,
        corporation_id: Optional[int] = None,
        user_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> None:
        ...
