from typing import Optional
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork

# Register tables on SQLModel.metadata
import src.domain  # noqa: F401


def create_engine_from_uri(db_uri: str, timeout_seconds: Optional[float] = None) -> AsyncEngine:
    """
    Build an async engine with bounded storage timeouts

    SQLite gets a busy timeout and explicit BEGIN IMMEDIATE so concurrent
    writers queue on the database lock instead of failing a lock upgrade.
    PostgreSQL (asyncpg) gets a per-command timeout.
    """
    timeout = timeout_seconds if timeout_seconds is not None else ApplicationConfig.STORAGE_TIMEOUT_SECONDS

    if db_uri.startswith("sqlite"):
        engine = create_async_engine(
            db_uri, echo=False, future=True, connect_args={"timeout": timeout}
        )
        configure_sqlite_transactions(engine)
        return engine

    connect_args = {}
    if db_uri.startswith("postgresql+asyncpg"):
        connect_args["command_timeout"] = timeout

    return create_async_engine(
        db_uri,
        echo=False,
        future=True,
        pool_timeout=timeout,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def configure_sqlite_transactions(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        # the driver's implicit BEGIN is replaced by the "begin" hook below
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


engine = create_engine_from_uri(ApplicationConfig.DB_URI)

AsyncSessionLocal = create_session_factory(engine)


async def init_models(target_engine: Optional[AsyncEngine] = None) -> None:
    """Create all tables registered on SQLModel.metadata"""
    async with (target_engine or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)
