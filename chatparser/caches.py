"""Caches that map chat and user names to their keys.

HTML dumps carry no chat or user ids while other formats do.  The caches
remember which key belongs to which name.  When a concrete id turns up, the
caches bring the database up to date with it.

The database object passed to the caches needs two methods:
``query(sql, params)``, which returns an iterable of rows, and
``execute(sql, params)``.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from chatparser.filters import ChatFilter, UserFilter
from chatparser.models import Chat, User
from chatparser.querybuilder import (
    SelectBuildRequest,
    build_insert,
    build_query,
    build_update,
    rows_to_entities,
    set_update,
)

K = TypeVar("K")

_log = logging.getLogger(__name__)


class CacheOfNames(Generic[K]):
    """Thread-safe cache from entity names to keys, backed by the database.

    ``initializer(db)`` returns the name to key mapping already stored.  It
    runs once, on the first lookup or update.  ``db_updater(db, old_key,
    new_key)`` replaces a key in the database.  ``db_inserter(db, name, key)``
    stores a new entity and returns its key.
    """

    def __init__(
        self,
        initializer: Callable[[Any], Dict[str, K]],
        db_updater: Callable[[Any, K, K], None],
        db_inserter: Callable[[Any, str, K], K],
    ):
        self._initializer = initializer
        self._db_updater = db_updater
        self._db_inserter = db_inserter
        self._elems: Dict[str, K] = {}
        self._loaded = False
        self._lock = threading.RLock()

    def _ensure_loaded(self, db) -> None:
        if not self._loaded:
            self._elems = dict(self._initializer(db))
            self._loaded = True

    def get_by_name(self, db, name: str) -> Optional[K]:
        """Key of the entity called ``name``, or None if it is unknown."""
        with self._lock:
            self._ensure_loaded(db)
            return self._elems.get(name)

    def get_by_key(self, db, key: K) -> Optional[str]:
        """Name of the entity with ``key``, or None if it is unknown."""
        with self._lock:
            self._ensure_loaded(db)
            name = ""
            for candidate, value in self._elems.items():
                if value == key:
                    name = candidate
            return name or None

    def set(self, db, name: str, key: K) -> K:
        """Record ``name`` with ``key`` and upsert the entity in the database."""
        with self._lock:
            self._ensure_loaded(db)
            if name in self._elems:
                old_key = self._elems[name]
                if old_key != key:
                    self._db_updater(db, old_key, key)
            else:
                key = self._db_inserter(db, name, key)
            self._elems[name] = key
            return key


def _load_chats(db) -> Dict[str, int]:
    query, params = build_query(Chat, SelectBuildRequest())
    chats = rows_to_entities(Chat, db.query(query, params))
    return {chat.name: chat.id for chat in chats}


def _update_chat(db, old_key: int, new_key: int) -> None:
    query, params = build_update(Chat, set_update("id", new_key), ChatFilter().where_id(old_key))
    try:
        db.execute(query, params)
    except Exception:
        _log.exception("failed to change chat id %s to %s", old_key, new_key)


def _insert_chat(db, name: str, key: int) -> int:
    if not key:
        chat = Chat(name=name, created=datetime.now())
        rows = db.query(build_insert(Chat, True), (chat.name, chat.created))
        for row in rows:
            key = row[0]
        return key

    chat = Chat(id=key, name=name, created=datetime.now())
    try:
        db.execute(build_insert(Chat, False), chat.field_values())
    except Exception:
        _log.exception("failed to insert chat %s", name)
    return key


def _load_users(db) -> Dict[str, str]:
    query, params = build_query(User, SelectBuildRequest())
    users = rows_to_entities(User, db.query(query, params))
    return {user.name: user.id for user in users}


def _update_user(db, old_key: str, new_key: str) -> None:
    query, params = build_update(User, set_update("id", new_key), UserFilter().where_id(old_key))
    try:
        db.execute(query, params)
    except Exception:
        _log.exception("failed to change user id %s to %s", old_key, new_key)


def _insert_user(db, name: str, key: str) -> str:
    # A user without a known id is stored with the name as the id.
    user = User(id=key or name, name=name, created=datetime.now())
    try:
        db.execute(build_insert(User, False), user.field_values())
    except Exception:
        _log.exception("failed to insert user %s", name)
    return user.id


def new_chats_cache() -> CacheOfNames[int]:
    """Cache of chats: name to chat id."""
    return CacheOfNames(_load_chats, _update_chat, _insert_chat)


def new_users_cache() -> CacheOfNames[str]:
    """Cache of users: name to user id."""
    return CacheOfNames(_load_users, _update_user, _insert_user)