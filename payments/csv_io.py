"""
csv_io.py - CSV decoding of transaction records and encoding of account rows

Input format (header optional, columns in any order when a header is given):

    type, client, tx, amount
    deposit, 1, 1, 1.0
    dispute, 1, 1,

Decoding never raises for a bad row: it yields a Malformed record instead, so
one broken line cannot abort the stream. Only I/O errors propagate.
"""

from __future__ import annotations
import csv
from typing import Dict, Iterable, Iterator, Optional, Sequence, TextIO

from .core import (
    Deposit, Withdrawal, Dispute, Resolve, Chargeback, Malformed, Record,
    TransactionType, AccountSnapshot,
    parse_amount, format_amount,
)


FIELDS = ("type", "client", "tx", "amount")
DEFAULT_FIELD_ORDER: Dict[str, int] = {name: idx for idx, name in enumerate(FIELDS)}
OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]

RECORD_TYPES = {
    TransactionType.DEPOSIT: Deposit,
    TransactionType.WITHDRAWAL: Withdrawal,
    TransactionType.DISPUTE: Dispute,
    TransactionType.RESOLVE: Resolve,
    TransactionType.CHARGEBACK: Chargeback,
}

AMOUNT_TYPES = frozenset({TransactionType.DEPOSIT, TransactionType.WITHDRAWAL})


def discover_field_order(cells: Sequence[str]) -> Optional[Dict[str, int]]:
    """
    Interpret a row as a header.

    Returns:
        Mapping of field name to column index if the row names at least the
        type, client and tx columns, otherwise None (the row is data)
    """
    names = [cell.strip().lower() for cell in cells]
    if not {"type", "client", "tx"} <= set(names):
        return None
    return {name: idx for idx, name in enumerate(names) if name in FIELDS}


def _parse_id(text: str, name: str) -> int:
    # int() alone would accept signs, underscores and non-ASCII digits
    if not (text.isascii() and text.isdigit()):
        raise ValueError(f"{name} must be an unsigned integer, got {text!r}")
    return int(text)


def parse_record(cells: Sequence[str], field_order: Optional[Dict[str, int]] = None) -> Record:
    """
    Decode one row into a transaction record.

    Args:
        cells: Raw cells of the row (whitespace is stripped here)
        field_order: Column index per field name (default: type, client, tx, amount)

    Returns:
        Deposit / Withdrawal / Dispute / Resolve / Chargeback, or Malformed
        if the row does not describe a valid transaction
    """
    order = field_order if field_order is not None else DEFAULT_FIELD_ORDER
    raw = tuple(cell.strip() for cell in cells)

    def cell(name: str) -> str:
        idx = order.get(name)
        if idx is None or idx >= len(raw):
            return ""
        return raw[idx]

    tag = cell("type").lower()
    try:
        tx_type = TransactionType(tag)
    except ValueError:
        return Malformed(raw, f"unknown transaction type {tag!r}")

    try:
        client_id = _parse_id(cell("client"), "client")
        tx_id = _parse_id(cell("tx"), "tx")
        if tx_type in AMOUNT_TYPES:
            amount_text = cell("amount")
            if not amount_text:
                return Malformed(raw, f"{tx_type.value} without amount")
            return RECORD_TYPES[tx_type](client_id, tx_id, parse_amount(amount_text))
        return RECORD_TYPES[tx_type](client_id, tx_id)
    except ValueError as e:
        return Malformed(raw, str(e))


# Longest slice of an unparseable line kept in Malformed.raw
_RAW_PREVIEW = 80


def _undecodable(cells: Sequence[str]) -> bool:
    # Bytes that were not valid UTF-8 arrive as lone surrogates
    # (see the "surrogateescape" error handler)
    try:
        for cell in cells:
            cell.encode("utf-8")
    except UnicodeEncodeError:
        return True
    return False


def _printable(text: str) -> str:
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def read_transactions(stream: TextIO) -> Iterator[Record]:
    """
    Lazily decode records from a CSV stream.

    The first non-blank row is treated as a header if it names the type,
    client and tx columns; otherwise it is decoded as data using the default
    column order. Blank rows are skipped.

    A row the CSV reader cannot split (e.g. a field over csv.field_size_limit())
    or one holding undecodable bytes becomes a Malformed record and reading
    continues with the next line. Open the source with
    errors="surrogateescape" to get that behavior for invalid UTF-8.

    Raises:
        OSError: If the stream itself cannot be read
    """
    last_line = [""]

    def lines() -> Iterator[str]:
        for line in stream:
            last_line[0] = line
            yield line

    reader = csv.reader(lines())
    field_order: Optional[Dict[str, int]] = None
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            preview = _printable(last_line[0].strip()[:_RAW_PREVIEW])
            yield Malformed((preview,), f"unreadable row: {e}")
            continue

        if not any(cell.strip() for cell in row):
            continue
        if _undecodable(row):
            yield Malformed(tuple(_printable(cell.strip()) for cell in row), "row is not valid UTF-8")
            continue
        if field_order is None:
            field_order = discover_field_order(row)
            if field_order is not None:
                continue
            field_order = DEFAULT_FIELD_ORDER
        yield parse_record(row, field_order)


def write_accounts(rows: Iterable[AccountSnapshot], stream: TextIO) -> None:
    """Encode account rows as CSV with a header line."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    for row in rows:
        writer.writerow([
            row.client_id,
            format_amount(row.available),
            format_amount(row.held),
            format_amount(row.total),
            str(row.locked).lower(),
        ])
