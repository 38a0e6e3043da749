"""Data Transfer Objects for Credit Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import date, datetime
from enum import Enum
from decimal import Decimal
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field, StrictInt

from src.domain.ledger_event import LedgerEventType


class ConsumeCommandDTO(BaseModel):
    """
    Command DTO for consuming credits

    Used as input to ConsumeCredits use case. StrictInt rejects non-integer
    amounts when the DTO is built; zero and negative amounts pass the schema
    and come back from the use case as INVALID_AMOUNT.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="User identifier"
    )

    amount: StrictInt = Field(
        ...,
        description="Credits to consume (must be > 0)"
    )

    description: str = Field(
        default="Credit consumption",
        description="Human-readable reason for the spend"
    )

    reference: Optional[str] = Field(
        default=None,
        description="Optional idempotency/audit key"
    )

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Optional metadata (feature, resource_id, ...)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "amount": 120,
                "description": "ocr",
                "reference": "ocr:doc_789",
                "metadata": {"feature": "ocr", "resource_id": "doc_789"}
            }
        }


class ConsumeResponseDTO(BaseModel):
    """Response DTO for ConsumeCredits"""

    transaction_id: int = Field(..., description="Ledger event ID")
    user_id: str = Field(..., description="User identifier")
    consumed: int = Field(..., description="Credits consumed")
    new_balance: int = Field(..., description="Balance after the spend")
    reference: Optional[str] = Field(default=None, description="Idempotency key")
    created_at: datetime = Field(..., description="Event timestamp")


class CreditCommandDTO(BaseModel):
    """
    Command DTO for adding credits

    Used as input to AllocateCredits (top-ups, purchases, bonuses).
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="User identifier"
    )

    amount: StrictInt = Field(
        ...,
        description="Credits to add (must be > 0)"
    )

    event_type: LedgerEventType = Field(
        ...,
        description="topup, purchase or daily_bonus"
    )

    description: str = Field(
        default="Credit top-up",
        description="Human-readable description"
    )

    reference: Optional[str] = Field(
        default=None,
        description="Idempotency key (e.g. payment gateway transaction id)"
    )

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Metadata shaped by event_type"
    )

    effective_date: Optional[date] = Field(
        default=None,
        description="Calendar day the credit applies to (defaults to today)"
    )

    strict: bool = Field(
        default=False,
        description="Return DUPLICATE_REFERENCE instead of replaying a prior result"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "amount": 1100,
                "event_type": "purchase",
                "description": "Credit purchase: Pro Pack",
                "reference": "pay-42",
                "metadata": {"package_id": 1, "payment_method": "QRIS"}
            }
        }


class CreditResponseDTO(BaseModel):
    """Response DTO for AllocateCredits and PurchasePackage"""

    transaction_id: int = Field(..., description="Ledger event ID")
    user_id: str = Field(..., description="User identifier")
    event_type: str = Field(..., description="Ledger event type")
    amount: int = Field(..., description="Credits added")
    balance_after: int = Field(..., description="Balance after the credit")
    reference: Optional[str] = Field(default=None, description="Idempotency key")
    created_at: datetime = Field(..., description="Event timestamp")


class PurchasePackageCommandDTO(BaseModel):
    """Command DTO for crediting a catalog package after payment"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    package_id: int = Field(..., description="Credit package ID")
    reference: str = Field(..., min_length=1, description="Payment gateway transaction id")
    payment_method: Optional[str] = Field(default=None, description="Payment channel")
    event_type: LedgerEventType = Field(
        default=LedgerEventType.PURCHASE,
        description="purchase (webhook confirmed) or topup"
    )
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Extra payment context merged into the purchase metadata"
    )


class BalanceResponseDTO(BaseModel):
    """
    Response DTO for get balance operation

    Returned by GetBalance use case.
    """

    user_id: str = Field(..., description="User identifier")
    balance: int = Field(..., description="Spendable credits")
    daily_limit: int = Field(..., description="Daily free-tier allowance")
    daily_used: int = Field(..., description="Credits used today")
    daily_remaining: int = Field(..., description="max(0, daily_limit - daily_used)")
    total_earned: int = Field(..., description="Lifetime credits granted")
    total_spent: int = Field(..., description="Lifetime credits consumed")
    last_reset_date: date = Field(..., description="Day of the last daily reset")
    last_updated: datetime = Field(..., description="Timestamp of last balance update")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "balance": 380,
                "daily_limit": 500,
                "daily_used": 120,
                "daily_remaining": 380,
                "total_earned": 500,
                "total_spent": 120,
                "last_reset_date": "2024-01-01",
                "last_updated": "2024-01-01T08:30:00Z"
            }
        }


class TransactionDTO(BaseModel):
    """Single ledger event in a transaction listing"""

    id: int
    event_type: str
    amount: int
    balance_after: int
    description: Optional[str] = None
    reference: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    event_date: date
    created_at: datetime


class ListTransactionsResponseDTO(BaseModel):
    user_id: str
    transactions: List[TransactionDTO]
    limit: int


class ResetResponseDTO(BaseModel):
    """Response DTO for ResetIfDue"""

    user_id: str
    reset_performed: bool
    daily_used: int
    last_reset_date: date


class ResetSweepResultDTO(BaseModel):
    """Summary of a ResetAllDue run"""

    as_of: date
    accounts_checked: int
    accounts_reset: int
    accounts_skipped: int
    accounts_failed: int
    execution_time_ms: int


class DailyBonusResultDTO(BaseModel):
    """Summary of a GrantDailyBonus run"""

    as_of: date
    accounts_checked: int
    accounts_eligible: int
    accounts_credited: int
    accounts_skipped: int
    accounts_failed: int
    credits_added: int
    execution_time_ms: int


class CreatePackageCommandDTO(BaseModel):
    """Validated fields for a new catalog package"""

    name: str = Field(..., min_length=1, description="Display name")
    description: str = Field(..., description="Display description")
    credits: StrictInt = Field(..., ge=0, description="Base credits granted")
    bonus_credits: StrictInt = Field(default=0, ge=0, description="Bonus credits granted")
    price: Decimal = Field(..., ge=0, description="Price in currency units")
    currency: str = Field(default="IDR", min_length=3, max_length=3, description="ISO 4217 code")
    is_popular: bool = Field(default=False, description="Highlight flag")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Pro Pack",
                "description": "Professional package for regular users",
                "credits": 1500,
                "bonus_credits": 0,
                "price": "99000",
                "currency": "IDR",
                "is_popular": True
            }
        }


class PackageDTO(BaseModel):
    id: int
    name: str
    description: str
    credits: int
    bonus_credits: int
    total_credits: int
    price: Decimal
    currency: str
    is_active: bool
    is_popular: bool


class LedgerDiscrepancyDTO(BaseModel):
    """Account whose stored totals disagree with its ledger events"""

    user_id: str
    account_id: int
    balance: int
    total_earned: int
    total_spent: int
    event_sum: int
    discrepancy: int = Field(..., description="balance - event_sum")


class ReconciliationResultDTO(BaseModel):
    total_accounts_checked: int
    discrepancies_found: int
    discrepancies: List[LedgerDiscrepancyDTO]
    reconciliation_time: datetime
    execution_time_ms: int


class CreditStatsDTO(BaseModel):
    """Admin overview of credit activity"""

    as_of: date
    total_accounts: int
    active_users: int = Field(..., description="Users who consumed credits on as_of")
    daily_active_users: int = Field(..., description="Users with any ledger event on as_of")
    total_credits_issued: int
    total_credits_consumed: int
    resets_today: int
    bonus_credits_today: int


class AccountAction(str, Enum):
    """Admin actions on a single account"""
    SET_BALANCE = "set_balance"
    SET_DAILY_LIMIT = "set_daily_limit"
    RESET_DAILY = "reset_daily"


class AdjustAccountCommandDTO(BaseModel):
    """
    Command DTO for an admin account adjustment

    balance is required for set_balance and daily_limit for set_daily_limit;
    the use case reports a missing or negative value as VALIDATION_ERROR.
    """

    user_id: str = Field(..., min_length=1, description="User identifier")
    action: AccountAction = Field(..., description="set_balance, set_daily_limit or reset_daily")
    balance: Optional[StrictInt] = Field(default=None, description="Target balance for set_balance")
    daily_limit: Optional[StrictInt] = Field(default=None, description="New allowance for set_daily_limit")
    reason: Optional[str] = Field(default=None, description="Free-text note kept in event metadata")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_abc123",
                "action": "set_balance",
                "balance": 1000,
                "reason": "support ticket 812"
            }
        }


class AccountSummaryDTO(BaseModel):
    """Account row as shown in the admin listing"""

    user_id: str
    balance: int
    daily_limit: int
    daily_used: int
    daily_remaining: int
    total_earned: int
    total_spent: int
    last_reset_date: date
    created_at: datetime
    updated_at: datetime


class AdjustAccountResponseDTO(BaseModel):
    action: AccountAction
    account: AccountSummaryDTO
    adjustment: int = Field(default=0, description="Signed balance change booked")
    transaction_id: Optional[int] = Field(default=None, description="Ledger event ID, if one was written")


class AccountListResponseDTO(BaseModel):
    accounts: List[AccountSummaryDTO]
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool
