"""
tiersource exception hierarchy.

Tier reads never raise: an absent record is a normal result.  These
exceptions cover misuse at the edges (bad configuration, unknown tier
names).  All inherit from TierSourceException so callers can catch a
single base type.
"""


class TierSourceException(Exception):
    """Base exception for all tiersource errors."""


class ConfigurationError(TierSourceException, ValueError):
    """Raised when configuration is invalid or cannot be loaded."""


class UnknownTierError(TierSourceException, KeyError):
    """Raised when a tier name does not match memory, disk or network."""
