"""Chat service: parses dumps and searches, counts and deletes stored messages.

The database object needs ``query(sql, params)``, which returns an iterable
of rows, and ``execute(sql, params)``.  For parsing it also needs
``transaction()``, as described in :mod:`chatparser.parser`.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from chatparser.caches import CacheOfNames, new_chats_cache, new_users_cache
from chatparser.models import Message
from chatparser.parser import Parser
from chatparser.querybuilder import (
    SelectBuildRequest,
    SelectType,
    SortDirection,
    SortField,
    build_delete,
    build_query,
    rows_to_entities,
)


def search_request(filter=None, take=0, skip=0) -> SelectBuildRequest:
    """Select request for messages matching ``filter``, newest first."""
    return SelectBuildRequest(
        filter=filter,
        sorts=[SortField("created", SortDirection.DESC)],
        take=take,
        skip=skip,
    )


class ChatService:
    """Operations on the stored chat messages.

    ``user_message_counter_producer`` must have ``send(user_name, message_count)``.
    """

    def __init__(
        self,
        logger: logging.Logger,
        db,
        user_message_counter_producer,
        chats_cache: Optional[CacheOfNames] = None,
        users_cache: Optional[CacheOfNames] = None,
    ):
        self.logger = logger
        self.db = db
        self.user_message_counter_producer = user_message_counter_producer
        self.chats_cache = chats_cache if chats_cache is not None else new_chats_cache()
        self.users_cache = users_cache if users_cache is not None else new_users_cache()

    def parse(self, dir_path) -> int:
        """Parse the dumps in ``dir_path``; returns the number of messages stored."""
        if not dir_path:
            raise ValueError("dirPath is empty")
        self.logger.info("parsing %s", dir_path)
        parser = Parser(
            self.logger,
            self.db,
            self.user_message_counter_producer,
            chats_cache=self.chats_cache,
            users_cache=self.users_cache,
        )
        return parser.parse_from_dir(dir_path)

    def search_messages(self, request: SelectBuildRequest) -> List[Message]:
        """Messages selected by ``request``, with chat and user names filled in."""
        query, params = build_query(Message, request)
        messages = rows_to_entities(Message, self.db.query(query, params))
        for message in messages:
            message.chat_name = self.chats_cache.get_by_key(self.db, message.chat_id) or ""
            message.user_name = self.users_cache.get_by_key(self.db, message.user_id) or ""
        return messages

    def get_messages_count(self, filter=None) -> int:
        """Number of messages matching ``filter``."""
        request = SelectBuildRequest(filter=filter, select_type=SelectType.COUNT)
        query, params = build_query(Message, request)
        count = 0
        for row in self.db.query(query, params):
            count = int(row[0])
        return count

    def delete_messages(self, request: SelectBuildRequest) -> None:
        """Delete the messages matching the filter of ``request``."""
        query, params = build_delete(Message, request.filter)
        self.db.execute(query, params)