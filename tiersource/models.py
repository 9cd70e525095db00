"""
Data model for the tiered source resolver.

A single record slot is replicated across three tiers.  Identity is by
tier, not by key: each tier holds at most one :class:`Record`.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Tier(str, Enum):
    """The three sources, listed in fallback order (fastest first)."""

    MEMORY = "memory"
    DISK = "disk"
    NETWORK = "network"

    @property
    def label(self) -> str:
        """Upper-case name used in diagnostic messages."""
        return self.name


class Record(BaseModel):
    """The payload unit returned by a tier.

    Attributes:
        payload: Opaque record contents.
        created_at: UTC timestamp when the record was produced.
        expires_at: UTC timestamp after which the record is stale.
            ``None`` means the record never goes stale.
    """

    payload: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: Optional[datetime] = None

    model_config = {"frozen": True}

    def is_up_to_date(self, now: Optional[datetime] = None) -> bool:
        """Return whether the record is still fresh at *now* (default: current UTC time)."""
        if self.expires_at is None:
            return True
        if now is None:
            now = datetime.now(timezone.utc)
        return now < self.expires_at


class ReadOutcome(str, Enum):
    """What a single tier read found."""

    NO_DATA = "no_data"
    STALE = "stale"
    HAS_DATA = "has_data"

    @classmethod
    def classify(
        cls, record: Optional[Record], now: Optional[datetime] = None
    ) -> "ReadOutcome":
        if record is None:
            return cls.NO_DATA
        if not record.is_up_to_date(now):
            return cls.STALE
        return cls.HAS_DATA


@dataclass
class TierState:
    """The three mutable slots owned by one resolver.

    ``memory`` and ``disk`` hold an optional record; the network tier
    keeps only a request counter used to make each response distinct.
    """

    memory: Optional[Record] = None
    disk: Optional[Record] = None
    request_count: int = 0
