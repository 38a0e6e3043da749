"""Credit Account Domain Entity

Tracks the spendable credit balance of a single user. Each user has exactly
one account, created lazily on first use.
"""

from datetime import date, datetime
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Integer, Date, DateTime
from src.domain.base import BaseModel, IdType


class CreditAccount(BaseModel, table=True):
    """
    Credit Account - Per-user credit balance state

    Domain Rules:
    - One account per user (user_id is unique)
    - balance is stored and always equals total_earned - total_spent
    - balance, daily_used and the lifetime totals are never negative
    - daily_used counts credits spent since last_reset_date (advisory only)
    - Balance changes only together with an appended LedgerEvent
    """

    __tablename__ = "credit_accounts"
    __table_args__ = (
        CheckConstraint('balance >= 0', name='balance_non_negative'),
        CheckConstraint('daily_used >= 0', name='daily_used_non_negative'),
        CheckConstraint('daily_limit >= 0', name='daily_limit_non_negative'),
        CheckConstraint('total_earned >= 0', name='total_earned_non_negative'),
        CheckConstraint('total_spent >= 0', name='total_spent_non_negative'),
        CheckConstraint('balance = total_earned - total_spent', name='balance_matches_totals'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique account identifier (auto-increment)"
    )

    user_id: str = Field(
        index=True,
        unique=True,
        description="Owning user ID (unique - one account per user)"
    )

    balance: int = Field(
        sa_column=Column(Integer, nullable=False, default=0),
        description="Spendable credits (must be >= 0)"
    )

    daily_limit: int = Field(
        sa_column=Column(Integer, nullable=False, default=0),
        description="Credits usable per calendar day under the free tier"
    )

    daily_used: int = Field(
        sa_column=Column(Integer, nullable=False, default=0),
        description="Credits spent since last_reset_date"
    )

    total_earned: int = Field(
        sa_column=Column(Integer, nullable=False, default=0),
        description="Lifetime credits granted (monotonic)"
    )

    total_spent: int = Field(
        sa_column=Column(Integer, nullable=False, default=0),
        description="Lifetime credits consumed (monotonic)"
    )

    last_reset_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Calendar day of the last daily usage reset"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Account creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Last balance update timestamp"
    )

    @property
    def daily_remaining(self) -> int:
        return max(0, self.daily_limit - self.daily_used)

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "user_id": "user_abc123",
                "balance": 440,
                "daily_limit": 500,
                "daily_used": 60,
                "total_earned": 500,
                "total_spent": 60,
                "last_reset_date": "2024-01-01",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T08:30:00Z"
            }
        }
