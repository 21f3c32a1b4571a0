"""Reads chat messages from semicolon separated dumps."""

from __future__ import annotations

import csv
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, Optional, Sequence

from chatparser.models import CSV_HEADER_COLUMNS, DumpType, Message

_INT = re.compile(r"[+-]?\d+")
_CREATED = re.compile(
    r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?"
    r" ([+-])(\d{2})(\d{2}) (\S+)"
)


def _atoi(text: str) -> int:
    if not _INT.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def _parse_created(text: str) -> datetime:
    match = _CREATED.fullmatch(text)
    if match is None:
        raise ValueError(f"cannot parse {text!r} as a timestamp")
    year, month, day, hour, minute, second, fraction, sign, off_h, off_m, name = match.groups()
    offset = timedelta(hours=int(off_h), minutes=int(off_m))
    if sign == "-":
        offset = -offset
    nanoseconds = int((fraction or "").ljust(9, "0"))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second),
        nanoseconds // 1000,
        tzinfo=timezone(offset, name),
    )


def check_header_columns(columns: Sequence[str]) -> None:
    """Raise ValueError unless ``columns`` is exactly the expected CSV header."""
    if len(columns) != len(CSV_HEADER_COLUMNS):
        raise ValueError(
            f"incorrect columns count. expected: {len(CSV_HEADER_COLUMNS)}"
        )
    for index, (actual, expected) in enumerate(zip(columns, CSV_HEADER_COLUMNS)):
        if actual != expected:
            raise ValueError(f"incorrect csv format. error at column with index {index}")


def _row_to_message(row: Sequence[str]) -> Message:
    if len(row) != len(CSV_HEADER_COLUMNS):
        raise ValueError("wrong number of fields")
    return Message(
        id=_atoi(row[0]),
        chat_id=_atoi(row[1]),
        chat_name=row[2],
        user_id=row[3],
        user_name=row[4],
        reply_to_message_id=_atoi(row[5]),
        text=row[6],
        created=_parse_created(row[7]),
    )


class CsvReader:
    """Reads messages from ``.csv`` dump files.

    Errors are passed to ``on_error`` and end the reading of the file; without
    a handler they are raised.
    """

    def __init__(self, on_error: Optional[Callable[[Exception], None]] = None):
        self.on_error = on_error

    def reader_type(self) -> DumpType:
        return DumpType.CSV

    def _report(self, exc: Exception) -> None:
        if self.on_error is None:
            raise exc
        self.on_error(exc)

    def read_messages(self, path) -> Iterator[Message]:
        """Yield the messages stored in the file at ``path``."""
        try:
            handle = open(path, newline="", encoding="utf-8")
        except OSError as exc:
            self._report(exc)
            return

        with handle:
            rows = csv.reader(handle, delimiter=";")
            try:
                check_header_columns(next(rows, None) or ())
            except (csv.Error, ValueError) as exc:
                self._report(exc)
                return

            try:
                for row in rows:
                    if not row:
                        continue
                    yield _row_to_message(row)
            except (csv.Error, ValueError) as exc:
                self._report(exc)