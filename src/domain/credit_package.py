"""Credit Package Domain Entity

Admin-managed catalog of purchasable credit bundles.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, Integer, Numeric, String, Boolean, DateTime
from src.domain.base import BaseModel, IdType


class CreditPackage(BaseModel, table=True):
    """
    Credit Package - Purchasable credit bundle

    Domain Rules:
    - credits, bonus_credits and price are non-negative
    - total_credits = credits + bonus_credits
    - Never edited once created; retired by setting is_active to False so
      purchases that reference it stay historically accurate
    """

    __tablename__ = "credit_packages"
    __table_args__ = (
        CheckConstraint('credits >= 0', name='credits_non_negative'),
        CheckConstraint('bonus_credits >= 0', name='bonus_credits_non_negative'),
        CheckConstraint('price >= 0', name='price_non_negative'),
        Index('ix_credit_packages_active_credits', 'is_active', 'credits'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique package identifier (auto-increment)"
    )

    name: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Display name"
    )

    description: str = Field(
        sa_column=Column(String(500), nullable=False),
        description="Display description"
    )

    credits: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Base credits granted"
    )

    bonus_credits: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Extra credits granted on top of the base credits"
    )

    price: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Price (precision: 18,2)"
    )

    currency: str = Field(
        default="IDR",
        sa_column=Column(String(3), nullable=False, default="IDR"),
        description="Currency code (ISO 4217)"
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether the package can be purchased"
    )

    is_popular: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Highlight flag for display"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=False),
        description="Package creation timestamp"
    )

    updated_at: Optional[datetime] = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime, nullable=True),
        description="Last update timestamp"
    )

    @property
    def total_credits(self) -> int:
        return self.credits + (self.bonus_credits or 0)

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "name": "Pro Pack",
                "description": "Professional package for regular users",
                "credits": 1500,
                "bonus_credits": 0,
                "price": "99000.00",
                "currency": "IDR",
                "is_active": True,
                "is_popular": False,
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }
