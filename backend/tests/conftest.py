"""
Shared fixtures: in-memory SQLite store, seeding helpers, fixed clock, settings.
"""

import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from corpsim.core.cache import cache_clear
from corpsim.core.config import Settings
from corpsim.models import (
    Base,
    BusinessUnit,
    CorporateAction,
    Corporation,
    Proposal,
    Shareholder,
    User,
)
from corpsim.services.store.sqlalchemy_store import SqlAlchemyStore

FIXED_NOW = datetime.datetime(2025, 1, 15, 12, 30, 0)
SECRET = "test-cron-secret"


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime.datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + datetime.timedelta(**kwargs)


class Seeder:
    """Insert rows directly through the ORM for test setup."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _add(self, obj):
        with self.session_factory() as session:
            session.add(obj)
            session.commit()
            return obj

    def user(self, username: str, cash: float = 0.0, actions: int = 0) -> int:
        return self._add(User(username=username, cash=cash, actions=actions)).id

    def corporation(
        self,
        name: str,
        capital: float = 1_000_000.0,
        shares: int = 100_000,
        share_price: float = 10.0,
        ceo_id=None,
        sector=None,
        ceo_salary=None,
        last_profit: float = 0.0,
        dividend_percentage: float = 0.0,
        special_dividend_last_paid_at=None,
    ) -> int:
        corp = Corporation(
            name=name,
            capital=capital,
            shares=shares,
            share_price=share_price,
            ceo_id=ceo_id,
            sector=sector,
            ceo_salary=ceo_salary,
            last_profit=last_profit,
            dividend_percentage=dividend_percentage,
            special_dividend_last_paid_at=special_dividend_last_paid_at,
        )
        return self._add(corp).id

    def units(self, corporation_id: int, category: str, subtype: str, count: int) -> int:
        unit = BusinessUnit(
            corporation_id=corporation_id,
            category=category,
            subtype=subtype,
            count=count,
        )
        return self._add(unit).id

    def shareholder(self, corporation_id: int, user_id: int, shares: int) -> int:
        holding = Shareholder(corporation_id=corporation_id, user_id=user_id, shares=shares)
        return self._add(holding).id

    def corporate_action(
        self,
        corporation_id: int,
        action_type: str,
        expires_at: datetime.datetime = FIXED_NOW + datetime.timedelta(hours=4),
    ) -> int:
        action = CorporateAction(
            corporation_id=corporation_id,
            action_type=action_type,
            cost=0.0,
            started_at=FIXED_NOW,
            expires_at=expires_at,
        )
        return self._add(action).id

    def proposal(
        self,
        corporation_id: int,
        proposal_type: str,
        payload=None,
        votes_for: int = 0,
        votes_against: int = 0,
        expires_at: datetime.datetime = FIXED_NOW - datetime.timedelta(hours=1),
        status: str = "pending",
    ) -> int:
        proposal = Proposal(
            corporation_id=corporation_id,
            proposal_type=proposal_type,
            payload=payload or {},
            votes_for=votes_for,
            votes_against=votes_against,
            expires_at=expires_at,
            status=status,
        )
        return self._add(proposal).id


@pytest.fixture(autouse=True)
def clear_cache():
    cache_clear()
    yield
    cache_clear()


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def store(session_factory) -> SqlAlchemyStore:
    return SqlAlchemyStore(session_factory)


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        CRON_SECRET=SECRET,
        CEO_SALARY_MODE="fixed",
        CEO_SALARY_AMOUNT=100_000.0,
        ACTIONS_PER_PERIOD=2,
        CEO_BONUS_ACTIONS=1,
    )
