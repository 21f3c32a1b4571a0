"""Filters for chat, user and message queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from chatparser.querybuilder import criterion


@dataclass
class ChatFilter:
    id: int = criterion(column="id", relation="=", default=0)
    min_created_date: Optional[datetime] = criterion(column="created", relation=">", default=None)
    max_created_date: Optional[datetime] = criterion(column="created", relation="<", default=None)
    name: str = criterion(column="text", relation="=", default="")

    def where_id(self, value):
        self.id = value
        return self

    def where_min_created_date(self, value):
        self.min_created_date = value
        return self

    def where_max_created_date(self, value):
        self.max_created_date = value
        return self

    def where_name(self, value):
        self.name = value
        return self


@dataclass
class UserFilter:
    id: str = criterion(column="id", relation="=", default="")
    min_created_date: Optional[datetime] = criterion(column="created", relation=">", default=None)
    max_created_date: Optional[datetime] = criterion(column="created", relation="<", default=None)
    name: str = criterion(column="text", relation="=", default="")

    def where_id(self, value):
        self.id = value
        return self

    def where_min_created_date(self, value):
        self.min_created_date = value
        return self

    def where_max_created_date(self, value):
        self.max_created_date = value
        return self

    def where_name(self, value):
        self.name = value
        return self


@dataclass
class MessageFilter:
    id: int = criterion(column="id", relation="=", default=0)
    min_created_date: Optional[datetime] = criterion(column="created", relation=">", default=None)
    max_created_date: Optional[datetime] = criterion(column="created", relation="<", default=None)
    sub_text: str = criterion(column="text", relation="like", default="")
    user_id: str = criterion(column="user_id", relation="=", default="")
    user_ids: Optional[list] = criterion(column="user_id", relation="in", default=None)
    chat_ids: Optional[list] = criterion(column="chat_id", relation="in", default=None)

    def where_id(self, value):
        self.id = value
        return self

    def where_min_created_date(self, value):
        self.min_created_date = value
        return self

    def where_max_created_date(self, value):
        self.max_created_date = value
        return self

    def where_sub_text(self, value):
        self.sub_text = value
        return self

    def where_user_ids(self, value):
        self.user_ids = list(value)
        return self

    def where_chat_ids(self, value):
        self.chat_ids = list(value)
        return self


@dataclass
class UserNameFilter:
    """Filter for users kept by the user service, looked up by name."""

    min_created_date: Optional[datetime] = criterion(column="created", relation=">", default=None)
    max_created_date: Optional[datetime] = criterion(column="created", relation="<", default=None)
    name: str = criterion(column="name", relation="=", default="")

    def where_min_created_date(self, value):
        self.min_created_date = value
        return self

    def where_max_created_date(self, value):
        self.max_created_date = value
        return self

    def where_name(self, value):
        self.name = value
        return self