from datetime import datetime
from src.app.services.clock import Clock


class SystemClock(Clock):
    """Wall clock in naive UTC, matching the stored timestamps"""

    def now(self) -> datetime:
        return datetime.utcnow()


class FixedClock(Clock):
    """Clock pinned to a given instant; used by workers run for a specific day"""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
