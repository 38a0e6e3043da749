"""Credit ledger use cases"""
from .ensure_account import EnsureAccount, AccountDefaults
from .get_balance import GetBalance
from .consume_credits import ConsumeCredits
from .allocate_credits import AllocateCredits
from .purchase_package import PurchasePackage
from .list_transactions import ListTransactions
from .reset_daily_usage import ResetIfDue, ResetAllDue
from .grant_daily_bonus import GrantDailyBonus, DailyLimitSubscriberPredicate
from .list_packages import ListActivePackages
from .create_package import CreatePackage
from .deactivate_package import DeactivatePackage
from .reconcile_ledger import ReconcileLedger
from .get_credit_stats import GetCreditStats
from .list_accounts import ListAccounts
from .adjust_account import AdjustAccount
from .errors import ErrorCode, ERROR_HTTP_STATUS, http_status_for
from .retry import RetryPolicy
from .dtos import (
    ConsumeCommandDTO,
    ConsumeResponseDTO,
    CreditCommandDTO,
    CreditResponseDTO,
    PurchasePackageCommandDTO,
    BalanceResponseDTO,
    TransactionDTO,
    ListTransactionsResponseDTO,
    ResetResponseDTO,
    ResetSweepResultDTO,
    DailyBonusResultDTO,
    CreatePackageCommandDTO,
    PackageDTO,
    LedgerDiscrepancyDTO,
    ReconciliationResultDTO,
    CreditStatsDTO,
    AccountAction,
    AdjustAccountCommandDTO,
    AdjustAccountResponseDTO,
    AccountSummaryDTO,
    AccountListResponseDTO,
)

__all__ = [
    "EnsureAccount",
    "AccountDefaults",
    "GetBalance",
    "ConsumeCredits",
    "AllocateCredits",
    "PurchasePackage",
    "ListTransactions",
    "ResetIfDue",
    "ResetAllDue",
    "GrantDailyBonus",
    "DailyLimitSubscriberPredicate",
    "ListActivePackages",
    "CreatePackage",
    "DeactivatePackage",
    "ReconcileLedger",
    "GetCreditStats",
    "ListAccounts",
    "AdjustAccount",
    "ErrorCode",
    "ERROR_HTTP_STATUS",
    "http_status_for",
    "RetryPolicy",
    "ConsumeCommandDTO",
    "ConsumeResponseDTO",
    "CreditCommandDTO",
    "CreditResponseDTO",
    "PurchasePackageCommandDTO",
    "BalanceResponseDTO",
    "TransactionDTO",
    "ListTransactionsResponseDTO",
    "ResetResponseDTO",
    "ResetSweepResultDTO",
    "DailyBonusResultDTO",
    "CreatePackageCommandDTO",
    "PackageDTO",
    "LedgerDiscrepancyDTO",
    "ReconciliationResultDTO",
    "CreditStatsDTO",
    "AccountAction",
    "AdjustAccountCommandDTO",
    "AdjustAccountResponseDTO",
    "AccountSummaryDTO",
    "AccountListResponseDTO",
]
