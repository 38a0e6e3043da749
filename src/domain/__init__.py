from .base import BaseModel
from .credit_account import CreditAccount
from .ledger_event import LedgerEvent, LedgerEventType, CREDIT_EVENT_TYPES
from .credit_package import CreditPackage
from .event_metadata import (
    EventMetadata,
    ConsumptionMetadata,
    TopupMetadata,
    PurchaseMetadata,
    BonusMetadata,
    AdminMetadata,
    parse_event_metadata,
    dump_event_metadata,
)

__all__ = [
    "BaseModel",
    "CreditAccount",
    "LedgerEvent",
    "LedgerEventType",
    "CREDIT_EVENT_TYPES",
    "CreditPackage",
    "EventMetadata",
    "ConsumptionMetadata",
    "TopupMetadata",
    "PurchaseMetadata",
    "BonusMetadata",
    "AdminMetadata",
    "parse_event_metadata",
    "dump_event_metadata",
]
