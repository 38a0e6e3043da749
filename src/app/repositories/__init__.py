from .credit_account_repository import CreditAccountRepository
from .ledger_event_repository import LedgerEventRepository
from .credit_package_repository import CreditPackageRepository

__all__ = [
    "CreditAccountRepository",
    "LedgerEventRepository",
    "CreditPackageRepository",
]
