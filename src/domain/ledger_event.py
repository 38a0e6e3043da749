"""Ledger Event Domain Entity

Immutable append-only record of every balance-affecting action.
Corrections are made with new compensating events, never by editing rows.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Integer, String, Date, DateTime, JSON, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from src.domain.base import BaseModel, IdType


class LedgerEventType(str, Enum):
    """Ledger event types"""
    CONSUMPTION = "consumption"      # Credits spent by a feature (negative amount)
    TOPUP = "topup"                  # Credits added by a top-up
    PURCHASE = "purchase"            # Credits added by a completed package purchase
    RESET = "reset"                  # Daily usage reset (amount is always 0)
    DAILY_BONUS = "daily_bonus"      # Daily subscriber bonus
    INITIAL_GRANT = "initial_grant"  # Opening balance granted at account creation
    ADMIN_ADJUSTMENT = "admin_adjustment"  # Admin set the balance; amount is the signed difference
    ADMIN_RESET = "admin_reset"      # Admin cleared daily usage (amount is always 0)


CREDIT_EVENT_TYPES = frozenset({
    LedgerEventType.TOPUP,
    LedgerEventType.PURCHASE,
    LedgerEventType.DAILY_BONUS,
})


class LedgerEvent(BaseModel, table=True):
    """
    Ledger Event - Immutable audit trail of credit mutations

    Domain Rules:
    - Events are immutable (append-only)
    - amount is signed: negative for spend, positive for credit, zero for resets
    - (user_id, event_type, reference) is unique when reference is present,
      which makes webhook replays and daily jobs idempotent at the storage layer
    - The sum of a user's amounts equals total_earned - total_spent
    """

    __tablename__ = "ledger_events"
    __table_args__ = (
        Index('ix_ledger_events_user_created', 'user_id', 'created_at'),
        Index('ix_ledger_events_type_date', 'event_type', 'event_date'),
        UniqueConstraint('user_id', 'event_type', 'reference', name='uq_ledger_events_user_type_reference'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique event identifier (auto-increment)"
    )

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Owning user ID"
    )

    account_id: int = Field(
        sa_column=Column(IdType, ForeignKey("credit_accounts.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to CreditAccount"
    )

    event_type: LedgerEventType = Field(
        sa_column=Column(
            SAEnum(
                LedgerEventType,
                name="ledger_event_type",
                native_enum=False,
                length=32,
                values_callable=lambda enum_cls: [member.value for member in enum_cls],
            ),
            nullable=False,
        ),
        description="Type of event (consumption, topup, purchase, reset, daily_bonus, initial_grant)"
    )

    amount: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Signed credit amount"
    )

    balance_after: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Account balance right after this event (for idempotent replay)"
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True),
        description="Human-readable description"
    )

    reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Idempotency/correlation key (e.g. payment gateway transaction id)"
    )

    event_metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column("metadata", JSON, nullable=True),
        description="Metadata bag, shaped by event_type"
    )

    event_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Calendar day the event applies to"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Event timestamp (immutable)"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "user_id": "user_abc123",
                "account_id": 1,
                "event_type": "consumption",
                "amount": -120,
                "balance_after": 380,
                "description": "ocr",
                "reference": None,
                "metadata": {"feature": "ocr"},
                "event_date": "2024-01-01",
                "created_at": "2024-01-01T08:30:00Z"
            }
        }
