from .credit_account_repository import SqlAlchemyCreditAccountRepository
from .ledger_event_repository import SqlAlchemyLedgerEventRepository
from .credit_package_repository import SqlAlchemyCreditPackageRepository

__all__ = [
    "SqlAlchemyCreditAccountRepository",
    "SqlAlchemyLedgerEventRepository",
    "SqlAlchemyCreditPackageRepository",
]
