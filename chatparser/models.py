"""Entities stored by the chat, user and audit services."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from chatparser.querybuilder import SortDirection, SortField, mapped

CSV_HEADER_COLUMNS = (
    "Id",
    "ChatId",
    "ChatName",
    "UserId",
    "UserName",
    "ReplyToMessageId",
    "Text",
    "Created",
)


class DumpType(str, Enum):
    """File suffix of a chat dump format."""

    HTML = ".html"
    JSON = ".json"
    CSV = ".csv"
    PARQUET = ".parquet"


@dataclass
class Chat:
    table_name: ClassVar[str] = "chats"

    id: int = mapped(auto_generated=True, default=0)
    name: str = ""
    created: Optional[datetime] = None

    def field_values(self):
        """Values in column order, for inserting."""
        return (self.id, self.name, self.created)


@dataclass
class User:
    table_name: ClassVar[str] = "users"

    id: str = mapped(auto_generated=True, default="")
    name: str = ""
    created: Optional[datetime] = None

    def field_values(self):
        return (self.id, self.name, self.created)


class MessageSorter(list):
    """Sort order for message queries."""

    def by_created(self, direction):
        self.append(SortField("created", direction))
        return self

    def by_user(self, direction):
        self.append(SortField("user_id", direction))
        return self


@dataclass
class Message:
    table_name: ClassVar[str] = "messages"

    id: int = 0
    chat_id: int = mapped(column="chat_id", default=0)
    chat_name: str = mapped(not_mapped=True, default="")
    user_id: str = mapped(column="user_id", default="")
    user_name: str = mapped(not_mapped=True, default="")
    reply_to_message_id: int = mapped(column="reply_to_message_id", default=0)
    replied_message: Optional["Message"] = mapped(not_mapped=True, default=None)
    text: str = ""
    created: Optional[datetime] = None

    def field_values(self):
        return (
            self.id,
            self.chat_id,
            self.user_id,
            self.reply_to_message_id,
            self.text,
            self.created,
        )

    def sorter(self):
        return MessageSorter()


@dataclass
class UserMessages:
    """A user with the number of messages written, as kept by the user service."""

    table_name: ClassVar[str] = "Users"

    name: str = ""
    messages_count: int = mapped(column="messages_count", default=0)
    created: Optional[datetime] = None

    def field_values(self):
        return (self.name, self.messages_count, self.created)


@dataclass
class LogEntry:
    """An audit log record."""

    table_name: ClassVar[str] = "logs"

    id: Optional[uuid.UUID] = mapped(auto_generated=True, default=None)
    service_name: str = mapped(column="service_name", default="")
    type: int = 0
    message: str = ""
    created: Optional[datetime] = None

    def field_values(self):
        return (self.id, self.service_name, self.type, self.message, self.created)


__all__ = [
    "CSV_HEADER_COLUMNS",
    "Chat",
    "DumpType",
    "LogEntry",
    "Message",
    "MessageSorter",
    "SortDirection",
    "User",
    "UserMessages",
]