"""Background workers for the credit ledger"""
from .daily_reset import DailyResetWorker
from .ledger_reconciler import LedgerReconcilerWorker

__all__ = ["DailyResetWorker", "LedgerReconcilerWorker"]
