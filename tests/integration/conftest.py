import pytest
import pytest_asyncio
from sqlmodel import SQLModel

from src.depends import create_engine_from_uri, create_session_factory
from src.adapter.repositories.credit_account_repository import SqlAlchemyCreditAccountRepository
from src.adapter.repositories.ledger_event_repository import SqlAlchemyLedgerEventRepository
from src.adapter.repositories.credit_package_repository import SqlAlchemyCreditPackageRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.credits import (
    AllocateCredits,
    ConsumeCredits,
    GetBalance,
    ListTransactions,
    RetryPolicy,
)


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create a fresh SQLite database file per test"""
    engine = create_engine_from_uri(f"sqlite+aiosqlite:///{tmp_path}/credits_test.db", timeout_seconds=10)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


class LedgerContext:
    """Repositories and use cases bound to one session"""

    def __init__(self, session, clock):
        self.session = session
        self.uow = SqlAlchemyUnitOfWork(session)
        self.account_repo = SqlAlchemyCreditAccountRepository(session)
        self.event_repo = SqlAlchemyLedgerEventRepository(session)
        self.package_repo = SqlAlchemyCreditPackageRepository(session)
        self.retry_policy = RetryPolicy(max_retries=5, backoff_seconds=0.01)
        self.consume = ConsumeCredits(
            self.uow, self.account_repo, self.event_repo, clock, retry_policy=self.retry_policy
        )
        self.allocate = AllocateCredits(
            self.uow, self.account_repo, self.event_repo, clock, retry_policy=self.retry_policy
        )
        self.get_balance = GetBalance(
            self.uow, self.account_repo, self.event_repo, clock, retry_policy=self.retry_policy
        )
        self.list_transactions = ListTransactions(
            self.uow, self.event_repo, retry_policy=self.retry_policy
        )


@pytest.fixture
def ledger(db_session, clock):
    return LedgerContext(db_session, clock)


@pytest.fixture
def make_ledger(clock):
    """Build a LedgerContext for another session or clock"""

    def _make(session, at=None):
        return LedgerContext(session, at or clock)

    return _make
