"""
conftest.py - Shared pytest fixtures for payments engine tests

Provides common fixtures used across unit, conformance and functional tests:
- A fresh AccountStateMachine
- A recording diagnostics sink
- CSV input file factory
- Isolation of settings cache and `payments` logger state
"""

import logging

import pytest
from typing import List

from payments import AccountStateMachine, Outcome
from payments.config import get_settings


class RecordingSink:
    """DiagnosticsSink that keeps every reported outcome."""

    def __init__(self):
        self.outcomes: List[Outcome] = []

    def report(self, outcome: Outcome) -> None:
        self.outcomes.append(outcome)

    @property
    def reasons(self):
        return [o.reason for o in self.outcomes]


@pytest.fixture
def machine() -> AccountStateMachine:
    """Empty state machine."""
    return AccountStateMachine()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a temporary file and return its path as str."""
    def _write(text: str, name: str = "transactions.csv") -> str:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch):
    """Each test sees a fresh environment-derived Settings and a clean logger."""
    monkeypatch.delenv("PAYMENTS_LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    logger = logging.getLogger("payments")
    handlers = list(logger.handlers)
    level, propagate = logger.level, logger.propagate
    yield
    get_settings.cache_clear()
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate
