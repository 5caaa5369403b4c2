"""
diagnostics.py - Rejection reporting

The state machine returns outcomes; it never reports them. Whoever drives it
passes a DiagnosticsSink to replay(), which hands every rejected outcome to it.

Sinks:
    NullSink     - drops everything (default, keeps stderr clean)
    LoggingSink  - logs each rejection through the `payments.rejections` logger
"""

from __future__ import annotations
import logging
from typing import Optional, Protocol, runtime_checkable

from .core import Outcome, Malformed, format_amount


REJECTIONS_LOGGER = "payments.rejections"


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Receives rejected outcomes."""

    def report(self, outcome: Outcome) -> None:
        ...


class NullSink:
    """Sink that discards every outcome."""

    def report(self, outcome: Outcome) -> None:
        pass


class LoggingSink:
    """
    Sink that logs rejections.

    Args:
        logger: Logger to write to (default: the `payments.rejections` logger)
        level: Log level used for rejections (default: WARNING)
    """

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.WARNING):
        self.logger = logger or logging.getLogger(REJECTIONS_LOGGER)
        self.level = level

    def report(self, outcome: Outcome) -> None:
        self.logger.log(self.level, describe(outcome))


def describe(outcome: Outcome) -> str:
    """
    One-line description of a rejected outcome.

    Examples:
        tx_id 3, client_id 1, failed to apply withdrawal of 9.0000: insufficient funds (available 1.5000)
        transaction error: malformed (unknown transaction type 'bacon'): raw ('bacon', '1', '2', '')
    """
    record = outcome.record
    reason = outcome.reason.value if outcome.reason is not None else "applied"
    detail = f" ({outcome.detail})" if outcome.detail else ""

    if isinstance(record, Malformed):
        return f"transaction error: {reason}{detail}: raw {record.raw!r}"

    amount = getattr(record, "amount", None)
    amount_detail = f" of {format_amount(amount)}" if amount is not None else ""
    return (
        f"tx_id {record.tx_id}, client_id {record.client_id}, "
        f"failed to apply {record.type.value}{amount_detail}: {reason}{detail}"
    )
