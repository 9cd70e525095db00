"""Tiered memory / disk / network source resolver."""

from tiersource.models import ReadOutcome, Record, Tier, TierState
from tiersource.resolver import TieredSourceResolver

__all__ = ["ReadOutcome", "Record", "Tier", "TierState", "TieredSourceResolver"]
