"""Keeps the number of messages written by each user."""

from __future__ import annotations

import logging
from datetime import datetime

from chatparser.filters import UserNameFilter
from chatparser.models import UserMessages
from chatparser.querybuilder import (
    SelectBuildRequest,
    SelectType,
    build_insert,
    build_query,
    build_update,
    set_update,
)


class UserMessageCounter:
    """Adds message counts to users.

    ``db`` needs ``transaction()``, a context manager yielding a handle with
    ``query(sql, params)`` and ``execute(sql, params)``.  Failures are logged.
    """

    def __init__(self, logger: logging.Logger, db):
        self.logger = logger
        self.db = db

    def update_user_messages_count(self, user_name: str, count: int) -> None:
        """Add ``count`` to the messages of ``user_name``, creating the user if unknown."""
        user_filter = UserNameFilter().where_name(user_name)
        select_query, select_params = build_query(
            UserMessages,
            SelectBuildRequest(
                filter=user_filter,
                select_type=SelectType.SPECIAL,
                special_select="messages_count",
            ),
        )
        try:
            with self.db.transaction() as tx:
                old_count = None
                for row in tx.query(select_query, select_params):
                    old_count = int(row[0])

                if old_count is None:
                    user = UserMessages(name=user_name, messages_count=count, created=datetime.now())
                    tx.execute(build_insert(UserMessages, False), user.field_values())
                else:
                    update_query, update_params = build_update(
                        UserMessages,
                        set_update("messages_count", old_count + count),
                        user_filter,
                    )
                    tx.execute(update_query, update_params)
        except Exception as exc:
            self.logger.error(str(exc))