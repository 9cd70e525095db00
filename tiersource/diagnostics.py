"""
Diagnostic notifications for tier reads.

:func:`with_diagnostics` wraps a read so that, once the value has been
produced, exactly one message describing the outcome is sent to a sink.
The wrapped read's return value is passed through untouched.
:func:`observe` does the same and also hands back the outcome it
reported, so callers can act on exactly what was logged.
"""

import functools
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

from tiersource.exceptions import ConfigurationError
from tiersource.models import ReadOutcome, Record

logger = logging.getLogger(__name__)

DiagnosticSink = Callable[[str], None]
Clock = Callable[[], datetime]
ObservedRead = Callable[[], Tuple[Optional[Record], ReadOutcome]]

_MESSAGES: Dict[ReadOutcome, str] = {
    ReadOutcome.NO_DATA: "{tier} does not have any data.",
    ReadOutcome.STALE: "{tier} has stale data.",
    ReadOutcome.HAS_DATA: "{tier} has the data you are looking for!",
}


def stdout_sink(message: str) -> None:
    print(message)


def logging_sink(message: str) -> None:
    logger.info(message)


SINKS: Dict[str, DiagnosticSink] = {
    "stdout": stdout_sink,
    "log": logging_sink,
}


def get_sink(name: str) -> DiagnosticSink:
    """Look up a diagnostic sink by its configured name.

    Args:
        name: ``stdout`` or ``log``.

    Returns:
        The sink callable.

    Raises:
        ConfigurationError: If *name* is not a known sink.
    """
    try:
        return SINKS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown diagnostic sink {name!r}; expected one of {sorted(SINKS)}"
        ) from None


def describe(tier_name: str, outcome: ReadOutcome) -> str:
    """Render the diagnostic message for *outcome* on *tier_name*."""
    return _MESSAGES[outcome].format(tier=tier_name)


def observe(
    tier_name: str,
    operation: Callable[[datetime], Optional[Record]],
    sink: DiagnosticSink,
    clock: Optional[Clock] = None,
) -> ObservedRead:
    """Wrap a tier read so each call reports its outcome.

    The clock is read once per call.  That instant is handed to
    *operation* and used to classify its result, so the reported
    outcome always matches the one returned to the caller.

    Args:
        tier_name: Label used in messages, e.g. ``MEMORY``.
        operation: Read taking the current time and returning an
            optional record.
        sink: Where the message is sent.
        clock: Returns the current UTC time.

    Returns:
        A zero-argument callable returning ``(record, outcome)``.
    """

    def observed() -> Tuple[Optional[Record], ReadOutcome]:
        now = clock() if clock is not None else datetime.now(timezone.utc)
        record = operation(now)
        outcome = ReadOutcome.classify(record, now)
        logger.debug(
            "Tier read",
            extra={"tier": tier_name, "outcome": outcome.value},
        )
        sink(describe(tier_name, outcome))
        return record, outcome

    return observed


def with_diagnostics(
    tier_name: str,
    operation: Callable[[], Optional[Record]],
    sink: DiagnosticSink,
    clock: Optional[Clock] = None,
) -> Callable[[], Optional[Record]]:
    """Wrap a zero-argument read; the record is returned unchanged."""
    observed = observe(tier_name, lambda _now: operation(), sink, clock)

    @functools.wraps(operation)
    def wrapper() -> Optional[Record]:
        record, _ = observed()
        return record

    return wrapper
