"""Typed metadata shapes for ledger events

Each event type has a known set of metadata fields. Unknown keys are kept
so callers can still attach genuinely dynamic context.
"""

from decimal import Decimal
from typing import Any, Dict, Optional, Type
from pydantic import BaseModel, ConfigDict
from src.domain.ledger_event import LedgerEventType


class EventMetadata(BaseModel):
    """Base metadata: keeps unknown keys"""

    model_config = ConfigDict(extra="allow")


class ConsumptionMetadata(EventMetadata):
    feature: Optional[str] = None
    resource_id: Optional[str] = None


class TopupMetadata(EventMetadata):
    payment_method: Optional[str] = None
    gateway_reference: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = None


class PurchaseMetadata(TopupMetadata):
    package_id: Optional[int] = None
    package_name: Optional[str] = None
    base_credits: Optional[int] = None
    bonus_credits: Optional[int] = None


class BonusMetadata(EventMetadata):
    bonus_date: Optional[str] = None


class AdminMetadata(EventMetadata):
    action: Optional[str] = None
    reason: Optional[str] = None
    previous_balance: Optional[int] = None
    requested_balance: Optional[int] = None


METADATA_MODELS: Dict[LedgerEventType, Type[EventMetadata]] = {
    LedgerEventType.CONSUMPTION: ConsumptionMetadata,
    LedgerEventType.TOPUP: TopupMetadata,
    LedgerEventType.PURCHASE: PurchaseMetadata,
    LedgerEventType.DAILY_BONUS: BonusMetadata,
    LedgerEventType.ADMIN_ADJUSTMENT: AdminMetadata,
    LedgerEventType.ADMIN_RESET: AdminMetadata,
}


def parse_event_metadata(
    event_type: LedgerEventType, data: Optional[Dict[str, Any]]
) -> Optional[EventMetadata]:
    """Validate a raw metadata bag against the model for its event type"""
    if data is None:
        return None
    model = METADATA_MODELS.get(LedgerEventType(event_type), EventMetadata)
    return model.model_validate(data)


def dump_event_metadata(metadata: Optional[EventMetadata]) -> Optional[Dict[str, Any]]:
    """Serialize metadata to a JSON-safe dict, dropping unset fields"""
    if metadata is None:
        return None
    return metadata.model_dump(mode="json", exclude_none=True)
