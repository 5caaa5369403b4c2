"""Command-line interface for the payments engine.

Usage:
  payments-engine transactions.csv > accounts.csv
  PAYMENTS_LOG_LEVEL=warn payments-engine transactions.csv
  payments-engine --log-level warn transactions.csv

Account rows go to stdout. Rejected records are reported on stderr only when
the log level is warn, info or debug.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional, TextIO

from pydantic import ValidationError

from payments import __version__
from payments.config import LOG_LEVELS, configure_logging, build_sink, get_settings
from payments.csv_io import read_transactions, write_accounts
from payments.engine import AccountStateMachine, replay


def run(path: str, log_level: str, stdout: TextIO) -> int:
    """
    Replay one input file and write the final account table.

    Invalid UTF-8 is escaped on read, so a bad byte only spoils its own row.

    Returns:
        0 on success, 1 if the input could not be read
    """
    configure_logging(log_level)
    sink = build_sink(log_level)

    try:
        with open(path, newline="", encoding="utf-8", errors="surrogateescape") as f:
            machine: AccountStateMachine = replay(read_transactions(f), sink)
    except OSError as e:
        # Fatal errors are shown whatever the log level
        print(f"payments-engine: error: cannot read {path}: {e}", file=sys.stderr)
        return 1

    write_accounts(machine.snapshot(), stdout)
    return 0


def _describe_settings_error(e: ValidationError) -> str:
    return "; ".join(
        f"PAYMENTS_{'.'.join(str(part) for part in err['loc']).upper()}: {err['msg']}"
        for err in e.errors()
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description="Replay a CSV of transactions and print final client balances",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("file", help="Input CSV file (type, client, tx, amount)")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["none", *LOG_LEVELS],
        help=(
            "stderr verbosity (default: PAYMENTS_LOG_LEVEL or none). Rejected "
            "records are warnings: none and error hide them, warn, info and "
            "debug show them"
        ),
    )

    try:
        settings = get_settings()
    except ValidationError as e:
        parser.error(f"invalid environment: {_describe_settings_error(e)}")
    parser.set_defaults(log_level=settings.log_level)

    args = parser.parse_args(argv)
    return run(args.file, args.log_level, sys.stdout)


if __name__ == "__main__":
    sys.exit(main())
