"""
Tiered source resolver: memory -> disk -> network.

Each tier answers "do you have the data, and is it fresh".  Reads that
reach a slower tier write the record through to the faster tiers above
it:

* a network read overwrites both disk and memory,
* a disk read that finds a record overwrites memory,
* a memory read has no side effects.

An absent record is a normal result, never an error.  All three slots
are guarded by one lock so a write-through updates them as a group.
"""

import dataclasses
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, Optional, Union

from tiersource.config import Settings, get_settings, validate_settings
from tiersource.diagnostics import Clock, DiagnosticSink, ObservedRead, get_sink, observe
from tiersource.exceptions import UnknownTierError
from tiersource.models import ReadOutcome, Record, Tier, TierState

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TieredSourceResolver:
    """Single-slot cache replicated across memory, disk and network tiers.

    Args:
        settings: Resolver settings; defaults to :func:`get_settings`.
        sink: Receives one diagnostic message per read.  Defaults to the
            sink named by ``settings.diagnostics.sink``.
        clock: Returns the current UTC time (used for staleness).
        state: Initial slot contents.  Defaults to all-absent.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sink: Optional[DiagnosticSink] = None,
        clock: Optional[Clock] = None,
        state: Optional[TierState] = None,
    ) -> None:
        if settings is None:
            settings = get_settings()
        else:
            validate_settings(settings)
        self._settings = settings
        self._sink = sink or get_sink(self._settings.diagnostics.sink)
        self._clock = clock or _utcnow
        self._state = state if state is not None else TierState()
        self._lock = threading.Lock()

        self._readers: Dict[Tier, ObservedRead] = {
            tier: observe(tier.label, fetch, self._sink, self._clock)
            for tier, fetch in (
                (Tier.MEMORY, self._fetch_memory),
                (Tier.DISK, self._fetch_disk),
                (Tier.NETWORK, self._fetch_network),
            )
        }

    # ------------------------------------------------------------------
    # Raw tier lookups (write-through happens here, under the lock)
    # ------------------------------------------------------------------

    def _fetch_memory(self, now: datetime) -> Optional[Record]:
        with self._lock:
            return self._state.memory

    def _fetch_disk(self, now: datetime) -> Optional[Record]:
        with self._lock:
            record = self._state.disk
            if record is not None:
                self._state.memory = record
            return record

    def _fetch_network(self, now: datetime) -> Optional[Record]:
        with self._lock:
            self._state.request_count += 1
            request_number = self._state.request_count
            record = self._make_record(request_number, now)
            self._state.disk = record
            self._state.memory = record
        logger.debug(
            "Network response synthesized",
            extra={"request_number": request_number},
        )
        return record

    def _make_record(self, request_number: int, now: datetime) -> Record:
        resolver_settings = self._settings.resolver
        expires_at = None
        if resolver_settings.stale_after_seconds is not None:
            expires_at = now + timedelta(seconds=resolver_settings.stale_after_seconds)
        return Record(
            payload=f"{resolver_settings.network_payload_prefix}{request_number}",
            created_at=now,
            expires_at=expires_at,
        )

    # ------------------------------------------------------------------
    # Public reads
    # ------------------------------------------------------------------

    def read_memory(self) -> Optional[Record]:
        """Return the memory slot.  No side effects."""
        record, _ = self._readers[Tier.MEMORY]()
        return record

    def read_disk(self) -> Optional[Record]:
        """Return the disk slot, copying a present record into memory."""
        record, _ = self._readers[Tier.DISK]()
        return record

    def read_network(self) -> Optional[Record]:
        """Synthesize a fresh response and write it to disk and memory.

        Every call increments the request counter, so consecutive calls
        return ``<prefix>1``, ``<prefix>2``, ...  Never returns ``None``.
        """
        record, _ = self._readers[Tier.NETWORK]()
        return record

    def read(self, tier: Union[Tier, str]) -> Optional[Record]:
        """Read a single tier by enum member or name.

        Raises:
            UnknownTierError: If *tier* names no known tier.
        """
        record, _ = self._readers[self._coerce_tier(tier)]()
        return record

    def clear_memory(self) -> None:
        """Drop the memory slot, leaving disk untouched."""
        with self._lock:
            self._state.memory = None
        logger.debug("Memory tier cleared")
        self._sink("Wiping memory...")

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    def resolve(
        self, tiers: Optional[Iterable[Union[Tier, str]]] = None
    ) -> Optional[Record]:
        """Return the first present, up-to-date record in fallback order.

        Tiers are read lazily: a tier is only consulted when every tier
        before it was absent or stale.  With the full hierarchy the
        network tier guarantees a result.

        Args:
            tiers: Tiers to consult, in order.  Defaults to memory, disk,
                network.

        Returns:
            The first usable record, or ``None`` if no listed tier had one.
        """
        order = list(Tier) if tiers is None else [self._coerce_tier(t) for t in tiers]
        for tier in order:
            record, outcome = self._readers[tier]()
            if outcome is ReadOutcome.HAS_DATA:
                logger.debug(
                    "Resolved from tier",
                    extra={"tier": tier.value, "payload": record.payload},
                )
                return record
        logger.debug(
            "No tier produced a usable record",
            extra={"tiers": [t.value for t in order]},
        )
        return None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def snapshot(self) -> TierState:
        """Return a copy of the current slots."""
        with self._lock:
            return dataclasses.replace(self._state)

    @property
    def request_count(self) -> int:
        """Number of network reads served so far."""
        with self._lock:
            return self._state.request_count

    @staticmethod
    def _coerce_tier(tier: Union[Tier, str]) -> Tier:
        if isinstance(tier, Tier):
            return tier
        try:
            return Tier(str(tier).lower())
        except ValueError:
            raise UnknownTierError(tier) from None
