"""Reads a directory of chat dumps, completes the messages and stores them.

The database object needs ``transaction()``, a context manager.  It yields a
handle with ``query(sql, params)`` and ``execute(sql, params)``.  It commits
when the block ends normally and rolls back when an exception leaves it.
"""

from __future__ import annotations

import logging
import os
from collections import Counter
from typing import Optional

from chatparser.caches import CacheOfNames, new_chats_cache, new_users_cache
from chatparser.csv_reader import CsvReader
from chatparser.html_reader import HtmlReader
from chatparser.json_reader import JsonReader
from chatparser.models import DumpType, Message
from chatparser.querybuilder import build_insert

_READERS = {
    DumpType.HTML: HtmlReader,
    DumpType.JSON: JsonReader,
    DumpType.CSV: CsvReader,
}

_DETECTION_ORDER = (DumpType.HTML, DumpType.JSON, DumpType.CSV, DumpType.PARQUET)


def _dump_files(dump_dir):
    with os.scandir(dump_dir) as entries:
        return sorted(
            (entry for entry in entries if not entry.is_dir()),
            key=lambda entry: entry.name,
        )


def get_dump_type(dump_dir) -> DumpType:
    """Format of the first dump file found in ``dump_dir``, in name order."""
    for entry in _dump_files(dump_dir):
        for dump_type in _DETECTION_ORDER:
            if entry.name.endswith(dump_type.value):
                return dump_type
    raise ValueError("dumps on selected dir does not exists")


class Parser:
    """Reads dumps, fills in chat and user ids, counts messages per user and stores them.

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

    def _report(self, exc: Exception) -> None:
        self.logger.error(str(exc))

    def _fill_ids(self, tx, message: Message) -> None:
        if not message.chat_id:
            chat_id = self.chats_cache.get_by_name(tx, message.chat_name)
            if chat_id is not None:
                message.chat_id = chat_id
            else:
                message.chat_id = self.chats_cache.set(tx, message.chat_name, message.chat_id)
        elif self.chats_cache.get_by_name(tx, message.chat_name) != message.chat_id:
            self.chats_cache.set(tx, message.chat_name, message.chat_id)

        if not message.user_id:
            user_id = self.users_cache.get_by_name(tx, message.user_name)
            if user_id is not None:
                message.user_id = user_id
            else:
                message.user_id = self.users_cache.set(tx, message.user_name, message.user_id)
        elif self.users_cache.get_by_name(tx, message.user_name) != message.user_id:
            self.users_cache.set(tx, message.user_name, message.user_id)

    def _send_counts(self, counts: Counter) -> None:
        for user_name, count in counts.items():
            try:
                self.user_message_counter_producer.send(user_name, count)
            except Exception:
                self.logger.exception("failed to send message count of %s", user_name)

    def parse_from_dir(self, dump_dir) -> int:
        """Parse every dump of the detected format in ``dump_dir``; returns the number stored.

        Errors on single files or messages are logged and parsing goes on.
        """
        dump_type = get_dump_type(dump_dir)
        reader_class = _READERS.get(dump_type)
        if reader_class is None:
            raise ValueError(f"{dump_type.value} dumps are not supported")
        reader = reader_class(on_error=self._report)

        paths = [
            os.path.join(dump_dir, entry.name)
            for entry in _dump_files(dump_dir)
            if entry.name.endswith(reader.reader_type().value)
        ]

        insert_query = build_insert(Message, False)
        counts: Counter = Counter()
        inserted = 0
        with self.db.transaction() as tx:
            for path in paths:
                for message in reader.read_messages(path):
                    self._fill_ids(tx, message)
                    tx.execute(insert_query, message.field_values())
                    inserted += 1
                    counts[message.user_name] += 1
            self._send_counts(counts)
        return inserted