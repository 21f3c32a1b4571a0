"""Reads chat messages from HTML chat exports."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from chatparser.models import DumpType, Message

_NUMBERS = re.compile(r"[0-9]+")
_INT = re.compile(r"[+-]?\d+")
_CREATED = re.compile(
    r"(\d{2})\.(\d{2})\.(\d{4}) (\d{2}):(\d{2}):(\d{2}) ([A-Z]{3,5})([+-])(\d{2}):(\d{2})"
)
_NO_MEDIA_TEXT = "just photo or voice"


class _MessageParseError(ValueError):
    """A message node could not be parsed; carries what was read so far."""

    def __init__(self, message: Message, cause: Exception):
        super().__init__(str(cause))
        self.message = message


def _is_text(node) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def _attr_value(node: Tag, name: str) -> Optional[str]:
    value = node.attrs.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value


def _attr(node, name: str) -> str:
    if isinstance(node, Tag):
        value = _attr_value(node, name)
        if value is not None:
            return value
    raise ValueError(f"attribute with name {name} does not exists")


def _find_by_class(node: Tag, value: str) -> Optional[Tag]:
    return node.find(lambda tag: _attr_value(tag, "class") == value)


def _next_element(node) -> Optional[Tag]:
    if node is None:
        return None
    sibling = node.next_sibling
    while sibling is not None:
        if isinstance(sibling, Tag):
            return sibling
        sibling = sibling.next_sibling
    return None


def _first_element_child(node) -> Optional[Tag]:
    if not isinstance(node, Tag):
        return None
    return next((child for child in node.children if isinstance(child, Tag)), None)


def _first_child_data(node: Tag) -> str:
    child = next(iter(node.children), None)
    if child is None:
        return ""
    if isinstance(child, Tag):
        return child.name
    return str(child)


def _parse_created(title: str) -> datetime:
    title = title.replace("UTC", "MSK", 1)
    match = _CREATED.fullmatch(title)
    if match is None:
        raise ValueError(f"cannot parse {title!r} as a timestamp")
    day, month, year, hour, minute, second, name, sign, off_h, off_m = match.groups()
    offset = timedelta(hours=int(off_h), minutes=int(off_m))
    if sign == "-":
        offset = -offset
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second),
        tzinfo=timezone(offset, name),
    )


def _message_id(node: Tag) -> int:
    raw = (_attr_value(node, "id") or "").replace("message", "", 1)
    if not _INT.fullmatch(raw):
        raise ValueError(f"invalid message id: {raw!r}")
    return int(raw)


def _message_text(node, class_name: str) -> str:
    if class_name != "text":
        return _NO_MEDIA_TEXT
    parts = []
    for child in node.children:
        if _is_text(child):
            parts.append(str(child).strip() + "\n")
        elif isinstance(child, Tag):
            if child.name == "br":
                parts.append("\n")
            elif child.name == "a":
                parts.append(_first_child_data(child) + " ")
    return "".join(parts).strip()


def _fill_message(node: Tag, body: Tag, message: Message) -> None:
    message.id = _message_id(node)

    child = _first_element_child(body)
    title = _attr(child, "title")
    child = _next_element(child)
    message.created = _parse_created(title)

    class_name = _attr(child, "class")

    # Only the first message of a series carries the sender's name.
    if class_name == "from_name":
        message.user_name = _first_child_data(child).strip()
        child = _next_element(child)
        class_name = (_attr_value(child, "class") if child is not None else None) or ""

    if class_name == "media_wrap clearfix":
        child = _next_element(child)
        try:
            class_name = _attr(child, "class")
        except ValueError:
            return

    if class_name == "reply_to details":
        href = _attr(_first_element_child(child), "href")
        digits = _NUMBERS.search(href)
        message.reply_to_message_id = int(digits.group()) if digits else 0
        child = _next_element(child)
        class_name = _attr(child, "class")

    message.text = _message_text(child, class_name)


def parse_message_node(node) -> Optional[Message]:
    """Parse one node of the history; returns None for nodes that hold no message."""
    if not isinstance(node, Tag):
        return None
    body = _find_by_class(node, "body")
    if body is None:
        return None
    message = Message()
    try:
        _fill_message(node, body, message)
    except ValueError as exc:
        raise _MessageParseError(message, exc) from exc
    return message


def _chat_name(body: Tag) -> str:
    header = _find_by_class(body, "page_header")
    if header is None:
        raise ValueError("node with class = page_header does not exists")
    title = _find_by_class(header, "text bold")
    if title is None:
        return ""
    return _first_child_data(title)


class HtmlReader:
    """Reads messages from ``.html`` dump files.

    Errors on single messages are passed to ``on_error`` and reading goes on;
    without a handler they are raised.
    """

    def __init__(self, on_error: Optional[Callable[[Exception], None]] = None):
        self.on_error = on_error

    def reader_type(self) -> DumpType:
        return DumpType.HTML

    def _report(self, exc: Exception) -> None:
        if self.on_error is None:
            raise exc
        self.on_error(exc)

    def read_messages(self, path) -> Iterator[Message]:
        """Yield the messages stored in the file at ``path``."""
        try:
            with open(path, encoding="utf-8") as handle:
                document = BeautifulSoup(handle, "html.parser", multi_valued_attributes=None)
        except (OSError, UnicodeDecodeError) as exc:
            self._report(exc)
            return

        body = document.body or document

        try:
            chat_name = _chat_name(body)
        except ValueError as exc:
            self._report(exc)
            chat_name = ""

        history = _find_by_class(body, "history")
        if history is None:
            raise ValueError("node with class = history does not exists")

        last_sender = ""
        for node in list(history.children):
            try:
                message = parse_message_node(node)
            except _MessageParseError as exc:
                if exc.message.id:
                    error = ValueError(
                        f"could not parse message with id {exc.message.id}. error: {exc}"
                    )
                else:
                    error = ValueError(
                        f"error on parse message of ChatService {chat_name}. error: {exc}"
                    )
                self._report(error)
                continue
            if message is None:
                continue

            message.chat_name = chat_name
            if message.user_name:
                last_sender = message.user_name
            else:
                message.user_name = last_sender
            yield message