"""
Session models: one OAuth credential per account slot.
"""

import time
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Slot(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"

    @property
    def is_secondary(self) -> bool:
        return self is Slot.SECONDARY

    @property
    def opposite(self) -> "Slot":
        return Slot.PRIMARY if self is Slot.SECONDARY else Slot.SECONDARY

    def __str__(self) -> str:
        return self.value


class Session(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    created_at: int = 0  # epoch seconds
    expires_in: int = 3600

    @property
    def expires_at(self) -> int:
        return self.created_at + self.expires_in

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Expired strictly after created_at + expires_in; the boundary itself is still valid."""
        current = time.time() if now is None else now
        return current > self.expires_at
