"""Clock Interface

Time source injected into every date-dependent operation so daily resets
and bonuses can be driven deterministically.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Current timestamp (naive UTC)"""
        pass

    def today(self) -> date:
        """Current calendar day"""
        return self.now().date()
