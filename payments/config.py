"""
config.py - Runtime configuration

Settings are read from the environment (prefix PAYMENTS_) or a local .env file.
The only knob is the diagnostics level; rejections stay silent unless it is
raised above "none".
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import Literal, Optional, TextIO

from pydantic_settings import BaseSettings, SettingsConfigDict

from .diagnostics import DiagnosticsSink, LoggingSink, NullSink


LogLevel = Literal["none", "error", "warn", "info", "debug"]

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class Settings(BaseSettings):
    log_level: LogLevel = "none"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PAYMENTS_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: LogLevel, stream: Optional[TextIO] = None) -> None:
    """
    Route the `payments` logger hierarchy to stderr at the given level.

    With level "none" no handler is installed and propagation is cut, so
    nothing reaches stderr even if the root logger is configured.
    """
    logger = logging.getLogger("payments")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if level == "none":
        logger.addHandler(logging.NullHandler())
        logger.propagate = False
        return

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LOG_LEVELS[level])
    logger.propagate = False


def build_sink(level: LogLevel) -> DiagnosticsSink:
    """NullSink for "none", otherwise a LoggingSink reporting at WARNING."""
    if level == "none":
        return NullSink()
    return LoggingSink()
