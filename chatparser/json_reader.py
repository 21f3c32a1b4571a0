"""Reads chat messages from JSON chat exports."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Optional

from chatparser.models import DumpType, Message

_INT = re.compile(r"[+-]?\d+")


def _atoi(text: str) -> int:
    if not _INT.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def tg_text_content(value: Any) -> str:
    """Flatten a message ``text`` value, which is a string or a list of parts."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts = []
        for item in value:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict):
                text = item.get("text")
                if not isinstance(text, str):
                    raise ValueError("invalid value for Text")
                parts.append(text)
        return "".join(parts)
    raise ValueError("invalid value for Text")


class JsonReader:
    """Reads messages from ``.json`` dump files.

    Errors are passed to ``on_error`` and end the reading of the file; without
    a handler they are raised.
    """

    def __init__(self, on_error: Optional[Callable[[Exception], None]] = None):
        self.on_error = on_error

    def reader_type(self) -> DumpType:
        return DumpType.JSON

    def _report(self, exc: Exception) -> None:
        if self.on_error is None:
            raise exc
        self.on_error(exc)

    def read_messages(self, path) -> Iterator[Message]:
        """Yield the messages stored in the file at ``path``; service entries are skipped."""
        try:
            with open(path, encoding="utf-8") as handle:
                content = json.load(handle)
        except (OSError, ValueError) as exc:
            self._report(exc)
            return

        if not isinstance(content, dict):
            self._report(ValueError("chat dump must be a JSON object"))
            return

        chat_id = int(content.get("id") or 0)
        chat_name = content.get("name") or ""

        for raw in content.get("messages") or ():
            if not isinstance(raw, dict):
                continue
            from_id = raw.get("from_id") or ""
            if not from_id:
                continue
            try:
                unix_time = _atoi(str(raw.get("date_unixtime") or ""))
                created = datetime.fromtimestamp(unix_time, tz=timezone.utc).astimezone()
                text = tg_text_content(raw.get("text"))
            except (ValueError, OverflowError, OSError) as exc:
                self._report(exc)
                return

            yield Message(
                id=int(raw.get("id") or 0),
                chat_id=chat_id,
                chat_name=chat_name,
                user_id=str(from_id),
                user_name=raw.get("from") or "",
                reply_to_message_id=int(raw.get("reply_to_message_id") or 0),
                text=text,
                created=created,
            )