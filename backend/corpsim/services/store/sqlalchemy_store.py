"""
sqlalchemy_store.py — SQLAlchemy Implementation of the Economy Store

Purpose:
- Persist corporations, users, units, proposals, salary state, prices,
  settings and the ledger through the ORM models in corpsim.models.
- Implement every atomic guarantee of `EconomyStore` with single SQL
  statements (UPDATE ... WHERE ... RETURNING) rather than read-modify-write.

Transactions:
- Each public method runs in its own short transaction obtained from the
  session factory. Nothing spans two calls; the jobs rely on this when they
  isolate per-entity failures.
"""

import datetime
import math
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from corpsim.core.errors import InvalidInput, PersistenceConflict
from corpsim.core.logging import get_logger
from corpsim.models import (
    BusinessUnit,
    CorporateAction,
    Corporation,
    GameSetting,
    MarketPrice,
    PriceHistory,
    Proposal,
    SalaryRecord,
    SectorConfigVersion,
    Shareholder,
    Transaction,
    User,
)
from corpsim.services.economy.types import (
    CorporationRecord,
    DividendPayout,
    PriceQuote,
    ProposalRecord,
    ProposalStatus,
    SalaryState,
    UnitCategory,
    UnitMaps,
    UserRecord,
)
from corpsim.services.store.base import EconomyStore

logger = get_logger(__name__)

# Columns update_corporation may touch; money columns move only through deltas
MUTABLE_CORPORATION_FIELDS = (
    "sector",
    "focus",
    "hq_state",
    "board_size",
    "ceo_id",
    "ceo_salary",
    "dividend_percentage",
    "last_profit",
)

# ORM bulk UPDATEs here never need to refresh in-session objects
_NO_SYNC = {"synchronize_session": False}


def _as_amount(value: Any, label: str = "amount") -> float:
    """Coerce a money/count argument to float, rejecting non-numeric input."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{label} must be numeric, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidInput(f"{label} must be finite, got {value!r}")
    return value


def _to_corporation(row: Corporation) -> CorporationRecord:
    return CorporationRecord(
        id=row.id,
        name=row.name,
        capital=float(row.capital or 0.0),
        shares=int(row.shares or 0),
        share_price=float(row.share_price or 0.0),
        sector=row.sector,
        focus=row.focus,
        ceo_id=row.ceo_id,
        ceo_salary=None if row.ceo_salary is None else float(row.ceo_salary),
        last_profit=float(row.last_profit or 0.0),
        hq_state=row.hq_state,
        board_size=int(row.board_size or 0),
        dividend_percentage=float(row.dividend_percentage or 0.0),
        special_dividend_last_paid_at=row.special_dividend_last_paid_at,
        special_dividend_last_amount=(
            None if row.special_dividend_last_amount is None
            else float(row.special_dividend_last_amount)
        ),
    )


def _to_user(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        cash=float(row.cash or 0.0),
        actions=int(row.actions or 0),
    )


def _to_proposal(row: Proposal) -> ProposalRecord:
    return ProposalRecord(
        id=row.id,
        corporation_id=row.corporation_id,
        proposal_type=row.proposal_type,
        payload=dict(row.payload or {}),
        votes_for=int(row.votes_for or 0),
        votes_against=int(row.votes_against or 0),
        status=ProposalStatus(row.status),
        expires_at=row.expires_at,
        resolved_at=row.resolved_at,
    )


class SqlAlchemyStore(EconomyStore):
    """
    Economy store backed by any SQLAlchemy database with UPDATE ... RETURNING
    support (PostgreSQL, SQLite >= 3.35).
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            with session.begin():
                yield session
        finally:
            session.close()

    # -------------------------------------------------------------------------
    # Corporations
    # -------------------------------------------------------------------------

    def find_corporation_by_id(self, corporation_id: int) -> Optional[CorporationRecord]:
        with self._transaction() as session:
            row = session.get(Corporation, corporation_id)
            return _to_corporation(row) if row is not None else None

    def find_all_corporations(self) -> List[CorporationRecord]:
        with self._transaction() as session:
            rows = session.scalars(select(Corporation).order_by(Corporation.id)).all()
            return [_to_corporation(r) for r in rows]

    def add_capital(self, corporation_id: int, delta: float) -> float:
        delta = _as_amount(delta, "delta")
        new_capital = Corporation.capital + delta
        stmt = (
            update(Corporation)
            .where(Corporation.id == corporation_id)
            .values(capital=case((new_capital < 0, 0.0), else_=new_capital))
            .returning(Corporation.capital)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            row = session.execute(stmt).first()
        if row is None:
            raise InvalidInput(f"Unknown corporation id: {corporation_id}")
        return float(row[0])

    def try_debit_capital(self, corporation_id: int, amount: float) -> bool:
        amount = _as_amount(amount)
        if amount < 0:
            raise InvalidInput(f"Debit amount must be >= 0, got {amount}")
        stmt = (
            update(Corporation)
            .where(Corporation.id == corporation_id, Corporation.capital >= amount)
            .values(capital=Corporation.capital - amount)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            result = session.execute(stmt)
            if result.rowcount == 1:
                return True
            if session.get(Corporation, corporation_id) is None:
                raise InvalidInput(f"Unknown corporation id: {corporation_id}")
        return False

    def update_share_price(self, corporation_id: int, price: float) -> None:
        price = _as_amount(price, "price")
        if price <= 0:
            raise InvalidInput(f"Share price must be > 0, got {price}")
        stmt = (
            update(Corporation)
            .where(Corporation.id == corporation_id)
            .values(share_price=price)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            if session.execute(stmt).rowcount != 1:
                raise InvalidInput(f"Unknown corporation id: {corporation_id}")

    def update_corporation(self, corporation_id: int, **fields: Any) -> None:
        unknown = set(fields) - set(MUTABLE_CORPORATION_FIELDS)
        if unknown:
            raise InvalidInput(f"Cannot update corporation fields: {sorted(unknown)}")
        if not fields:
            return
        if "last_profit" in fields:
            fields["last_profit"] = _as_amount(fields["last_profit"], "last_profit")
        if fields.get("ceo_salary") is not None:
            fields["ceo_salary"] = _as_amount(fields["ceo_salary"], "ceo_salary")
        if "dividend_percentage" in fields:
            fields["dividend_percentage"] = _as_amount(fields["dividend_percentage"], "dividend_percentage")
        if "board_size" in fields:
            fields["board_size"] = int(_as_amount(fields["board_size"], "board_size"))

        stmt = (
            update(Corporation)
            .where(Corporation.id == corporation_id)
            .values(**fields)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            if session.execute(stmt).rowcount != 1:
                raise InvalidInput(f"Unknown corporation id: {corporation_id}")

    def apply_stock_split(self, corporation_id: int, ratio: int, min_price: float) -> CorporationRecord:
        if isinstance(ratio, bool) or not isinstance(ratio, int) or ratio < 1:
            raise InvalidInput(f"Split ratio must be a positive integer, got {ratio!r}")
        split_price = Corporation.share_price / ratio
        stmt = (
            update(Corporation)
            .where(Corporation.id == corporation_id)
            .values(
                shares=Corporation.shares * ratio,
                share_price=case((split_price < min_price, min_price), else_=split_price),
            )
            .execution_options(**_NO_SYNC)
        )
        holdings = (
            update(Shareholder)
            .where(Shareholder.corporation_id == corporation_id)
            .values(shares=Shareholder.shares * ratio)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            if session.execute(stmt).rowcount != 1:
                raise InvalidInput(f"Unknown corporation id: {corporation_id}")
            session.execute(holdings)
            return _to_corporation(session.get(Corporation, corporation_id))

    def apply_market_profit(
        self,
        corporation_id: int,
        profit: float,
        now: datetime.datetime,
        description: Optional[str] = None,
    ) -> float:
        profit = _as_amount(profit, "profit")
        new_capital = Corporation.capital + profit
        stmt = (
            update(Corporation)
            .where(Corporation.id == corporation_id)
            .values(
                capital=case((new_capital < 0, 0.0), else_=new_capital),
                last_profit=profit,
            )
            .returning(Corporation.capital)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            row = session.execute(stmt).first()
            if row is None:
                raise InvalidInput(f"Unknown corporation id: {corporation_id}")
            session.add(Transaction(
                corporation_id=corporation_id,
                transaction_type="market_revenue" if profit >= 0 else "market_cost",
                amount=abs(profit),
                description=description,
                created_at=now,
            ))
            return float(row[0])

    def active_corporate_actions(self, now: datetime.datetime) -> Dict[int, Set[str]]:
        stmt = select(CorporateAction.corporation_id, CorporateAction.action_type).where(
            CorporateAction.expires_at > now
        )
        active: Dict[int, Set[str]] = {}
        with self._transaction() as session:
            for corporation_id, action_type in session.execute(stmt).all():
                active.setdefault(corporation_id, set()).add(action_type)
        return active

    # -------------------------------------------------------------------------
    # Dividends
    # -------------------------------------------------------------------------

    def pay_dividend(
        self,
        corporation_id: int,
        total: float,
        now: datetime.datetime,
        transaction_type: str = "dividend",
        description: Optional[str] = None,
    ) -> Optional[DividendPayout]:
        total = round(_as_amount(total, "total"), 2)
        if total <= 0:
            raise InvalidInput(f"Dividend total must be > 0, got {total}")

        values: Dict[str, Any] = {"capital": Corporation.capital - total}
        if transaction_type == "special_dividend":
            values["special_dividend_last_paid_at"] = now
            values["special_dividend_last_amount"] = total
        debit = (
            update(Corporation)
            .where(Corporation.id == corporation_id, Corporation.capital >= total)
            .values(**values)
            .returning(Corporation.shares)
            .execution_options(**_NO_SYNC)
        )
        holders = (
            select(Shareholder.user_id, Shareholder.shares)
            .where(Shareholder.corporation_id == corporation_id, Shareholder.shares > 0)
            .order_by(Shareholder.user_id)
        )

        with self._transaction() as session:
            row = session.execute(debit).first()
            if row is None:
                if session.get(Corporation, corporation_id) is None:
                    raise InvalidInput(f"Unknown corporation id: {corporation_id}")
                return None

            holdings = session.execute(holders).all()
            # Holdings never pay out more than the debited total
            outstanding = max(int(row[0] or 0), sum(held for _, held in holdings))
            per_share = total / outstanding if outstanding > 0 else 0.0

            session.add(Transaction(
                corporation_id=corporation_id,
                transaction_type=transaction_type,
                amount=total,
                description=description,
                created_at=now,
            ))
            paid = 0.0
            count = 0
            for user_id, held in holdings:
                payout = math.floor(per_share * held * 100) / 100  # whole cents, never above total
                if payout <= 0:
                    continue
                session.execute(
                    update(User)
                    .where(User.id == user_id)
                    .values(cash=User.cash + payout)
                    .execution_options(**_NO_SYNC)
                )
                session.add(Transaction(
                    corporation_id=corporation_id,
                    user_id=user_id,
                    transaction_type=transaction_type,
                    amount=payout,
                    description=description,
                    created_at=now,
                ))
                paid += payout
                count += 1

        return DividendPayout(
            corporation_id=corporation_id,
            total=total,
            per_share=per_share,
            shareholders_paid=count,
            paid_to_holders=round(paid, 2),
        )

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def find_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self._transaction() as session:
            row = session.get(User, user_id)
            return _to_user(row) if row is not None else None

    def find_all_users(self) -> List[UserRecord]:
        with self._transaction() as session:
            rows = session.scalars(select(User).order_by(User.id)).all()
            return [_to_user(r) for r in rows]

    def increment_actions(self, user_ids: Iterable[int], amount: int) -> int:
        ids = list(user_ids)
        if not ids or amount == 0:
            return 0
        stmt = (
            update(User)
            .where(User.id.in_(ids))
            .values(actions=User.actions + int(amount))
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            return session.execute(stmt).rowcount

    def add_cash(self, user_id: int, delta: float) -> float:
        delta = _as_amount(delta, "delta")
        new_cash = User.cash + delta
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(cash=case((new_cash < 0, 0.0), else_=new_cash))
            .returning(User.cash)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            row = session.execute(stmt).first()
        if row is None:
            raise InvalidInput(f"Unknown user id: {user_id}")
        return float(row[0])

    # -------------------------------------------------------------------------
    # Business units
    # -------------------------------------------------------------------------

    def unit_counts(self, corporation_id: Optional[int] = None) -> UnitMaps:
        stmt = select(
            BusinessUnit.category,
            BusinessUnit.subtype,
            func.sum(BusinessUnit.count),
        ).group_by(BusinessUnit.category, BusinessUnit.subtype)
        if corporation_id is not None:
            stmt = stmt.where(BusinessUnit.corporation_id == corporation_id)

        maps: UnitMaps = {}
        with self._transaction() as session:
            rows = session.execute(stmt).all()

        for category, subtype, total in rows:
            try:
                key = UnitCategory.parse(category)
            except InvalidInput:
                logger.warning("Ignoring business units with unknown category %r", category)
                continue
            if not total:
                continue
            bucket = maps.setdefault(key, {})
            bucket[subtype] = bucket.get(subtype, 0) + int(total)
        return maps

    # -------------------------------------------------------------------------
    # Proposals
    # -------------------------------------------------------------------------

    def find_pending_proposals_expiring_before(self, now: datetime.datetime) -> List[ProposalRecord]:
        stmt = (
            select(Proposal)
            .where(
                Proposal.status == ProposalStatus.PENDING.value,
                Proposal.expires_at <= now,
            )
            .order_by(Proposal.expires_at, Proposal.id)
        )
        with self._transaction() as session:
            return [_to_proposal(r) for r in session.scalars(stmt).all()]

    def transition_proposal(
        self,
        proposal_id: int,
        expected: ProposalStatus,
        new: ProposalStatus,
        now: datetime.datetime,
    ) -> bool:
        expected = ProposalStatus(expected)
        new = ProposalStatus(new)
        if expected.is_terminal or not new.is_terminal:
            raise InvalidInput(f"Illegal proposal transition {expected.value} -> {new.value}")

        stmt = (
            update(Proposal)
            .where(Proposal.id == proposal_id, Proposal.status == expected.value)
            .values(status=new.value, resolved_at=now)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            return session.execute(stmt).rowcount == 1

    # -------------------------------------------------------------------------
    # Salaries
    # -------------------------------------------------------------------------

    def get_salary_record(self, ceo_id: int) -> Optional[SalaryState]:
        with self._transaction() as session:
            row = session.get(SalaryRecord, ceo_id)
            if row is None:
                return None
            return SalaryState(
                ceo_id=row.ceo_id,
                corporation_id=row.corporation_id,
                last_paid_at=row.last_paid_at,
                last_amount=float(row.last_amount or 0.0),
            )

    def try_set_salary_paid(
        self,
        ceo_id: int,
        now: datetime.datetime,
        cooldown_seconds: int,
        corporation_id: Optional[int] = None,
    ) -> bool:
        threshold = now - datetime.timedelta(seconds=cooldown_seconds)
        values: Dict[str, Any] = {"last_paid_at": now}
        if corporation_id is not None:
            values["corporation_id"] = corporation_id

        stmt = (
            update(SalaryRecord)
            .where(
                SalaryRecord.ceo_id == ceo_id,
                or_(SalaryRecord.last_paid_at.is_(None), SalaryRecord.last_paid_at <= threshold),
            )
            .values(**values)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            if session.execute(stmt).rowcount == 1:
                return True
            if session.get(SalaryRecord, ceo_id) is not None:
                return False

        # First payment ever: the primary key decides between racing inserts
        try:
            with self._transaction() as session:
                session.add(SalaryRecord(
                    ceo_id=ceo_id,
                    corporation_id=corporation_id,
                    last_paid_at=now,
                    last_amount=0.0,
                ))
        except IntegrityError:
            logger.debug("Salary record for CEO %s inserted concurrently", ceo_id)
            return False
        return True

    def record_salary_amount(self, ceo_id: int, amount: float, corporation_id: Optional[int] = None) -> None:
        values: Dict[str, Any] = {"last_amount": _as_amount(amount)}
        if corporation_id is not None:
            values["corporation_id"] = corporation_id
        stmt = (
            update(SalaryRecord)
            .where(SalaryRecord.ceo_id == ceo_id)
            .values(**values)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            if session.execute(stmt).rowcount != 1:
                raise InvalidInput(f"No salary record for CEO {ceo_id}")

    def release_salary_claim(
        self,
        ceo_id: int,
        claimed_at: datetime.datetime,
        previous_paid_at: Optional[datetime.datetime],
    ) -> bool:
        stmt = (
            update(SalaryRecord)
            .where(SalaryRecord.ceo_id == ceo_id, SalaryRecord.last_paid_at == claimed_at)
            .values(last_paid_at=previous_paid_at, last_amount=0.0)
            .execution_options(**_NO_SYNC)
        )
        with self._transaction() as session:
            return session.execute(stmt).rowcount == 1

    # -------------------------------------------------------------------------
    # Sector configuration
    # -------------------------------------------------------------------------

    def get_sector_config(self, version: Optional[str] = None) -> Optional[Dict[str, Any]]:
        stmt = select(SectorConfigVersion)
        if version is None:
            stmt = stmt.order_by(SectorConfigVersion.id.desc()).limit(1)
        else:
            stmt = stmt.where(SectorConfigVersion.version == version)
        with self._transaction() as session:
            row = session.scalars(stmt).first()
            if row is None:
                return None
            document = dict(row.document)
            document["version"] = row.version
            return document

    def get_sector_config_version(self) -> Optional[str]:
        stmt = (
            select(SectorConfigVersion.version)
            .order_by(SectorConfigVersion.id.desc())
            .limit(1)
        )
        with self._transaction() as session:
            return session.scalars(stmt).first()

    def save_sector_config(self, version: str, document: Dict[str, Any], now: datetime.datetime) -> None:
        try:
            with self._transaction() as session:
                session.add(SectorConfigVersion(version=version, document=document, created_at=now))
        except IntegrityError as exc:
            raise PersistenceConflict(f"Sector config version {version!r} already exists") from exc

    # -------------------------------------------------------------------------
    # Prices
    # -------------------------------------------------------------------------

    def save_market_prices(self, quotes: Iterable[PriceQuote], now: datetime.datetime) -> int:
        quotes = list(quotes)
        try:
            return self._upsert_market_prices(quotes, now)
        except IntegrityError:
            # A concurrent run inserted the same names first; the retry updates them
            logger.info("Market price insert raced, retrying as update")
            return self._upsert_market_prices(quotes, now)

    def _upsert_market_prices(self, quotes: List[PriceQuote], now: datetime.datetime) -> int:
        with self._transaction() as session:
            existing = {
                (row.kind, row.name): row
                for row in session.scalars(select(MarketPrice)).all()
            }
            for quote in quotes:
                row = existing.get((quote.kind, quote.name))
                if row is None:
                    row = MarketPrice(kind=quote.kind, name=quote.name)
                    session.add(row)
                    existing[(quote.kind, quote.name)] = row
                row.base_price = quote.base_price
                row.scarcity_factor = quote.scarcity_factor
                row.price = quote.price
                row.supply = quote.supply
                row.demand = quote.demand
                row.updated_at = now
        return len(quotes)

    def find_market_prices(self) -> List[PriceQuote]:
        stmt = select(MarketPrice).order_by(MarketPrice.kind, MarketPrice.name)
        with self._transaction() as session:
            return [
                PriceQuote(
                    name=row.name,
                    base_price=row.base_price,
                    scarcity_factor=row.scarcity_factor,
                    price=row.price,
                    supply=row.supply,
                    demand=row.demand,
                    kind=row.kind,
                )
                for row in session.scalars(stmt).all()
            ]

    def record_price_history(
        self,
        quotes: Iterable[PriceQuote],
        bucket: datetime.datetime,
        now: datetime.datetime,
    ) -> int:
        quotes = list(quotes)
        try:
            return self._upsert_price_history(quotes, bucket, now)
        except IntegrityError:
            logger.info("Price history insert for bucket %s raced, retrying as update", bucket)
            return self._upsert_price_history(quotes, bucket, now)

    def _upsert_price_history(
        self,
        quotes: List[PriceQuote],
        bucket: datetime.datetime,
        now: datetime.datetime,
    ) -> int:
        with self._transaction() as session:
            existing = {
                (row.kind, row.name): row
                for row in session.scalars(
                    select(PriceHistory).where(PriceHistory.bucket == bucket)
                ).all()
            }
            for quote in quotes:
                row = existing.get((quote.kind, quote.name))
                if row is None:
                    row = PriceHistory(kind=quote.kind, name=quote.name, bucket=bucket)
                    session.add(row)
                    existing[(quote.kind, quote.name)] = row
                row.price = quote.price
                row.supply = quote.supply
                row.demand = quote.demand
                row.recorded_at = now
        return len(quotes)

    # -------------------------------------------------------------------------
    # Settings & ledger
    # -------------------------------------------------------------------------

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._transaction() as session:
            row = session.get(GameSetting, key)
            return row.value if row is not None else default

    def set_setting(self, key: str, value: str, now: datetime.datetime) -> None:
        with self._transaction() as session:
            session.merge(GameSetting(key=key, value=str(value), updated_at=now))

    def record_transaction(
        self,
        transaction_type: str,
        amount: float,
        now: datetime.datetime,
        corporation_id: Optional[int] = None,
        user_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> None:
        amount = _as_amount(amount)
        with self._transaction() as session:
            session.add(Transaction(
                corporation_id=corporation_id,
                user_id=user_id,
                transaction_type=transaction_type,
                amount=amount,
                description=description,
                created_at=now,
            ))
