"""Writes chat messages to semicolon separated files."""

from __future__ import annotations

import csv
import os
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from chatparser.models import CSV_HEADER_COLUMNS, Message

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_utc(created: Optional[datetime]) -> datetime:
    if created is None:
        return _EPOCH
    return created.astimezone(timezone.utc)


def _created_text(created: Optional[datetime]) -> str:
    moment = _as_utc(created)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    return text + " +0000 UTC"


def message_row(message: Message) -> List[str]:
    """CSV fields of ``message`` in header order."""
    return [
        str(message.id),
        str(message.chat_id),
        message.chat_name,
        message.user_id,
        message.user_name,
        str(message.reply_to_message_id),
        message.text,
        _created_text(message.created),
    ]


class CsvWriter:
    """Writes a batch of messages to one CSV file named after the last message's date."""

    def write_file(self, write_dir, messages: Sequence[Message]) -> Optional[str]:
        """Write ``messages`` into ``write_dir``; returns the path written, or None if empty."""
        if not messages:
            return None
        file_name = _as_utc(messages[-1].created).date().isoformat() + ".csv"
        path = os.path.join(write_dir, file_name)
        with open(path, "w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle, delimiter=";", lineterminator="\r\n")
            writer.writerow(CSV_HEADER_COLUMNS)
            for message in messages:
                try:
                    writer.writerow(message_row(message))
                except csv.Error as exc:
                    raise ValueError(
                        f"error on writing message with id {message.id}. error: {exc}"
                    ) from exc
        return path