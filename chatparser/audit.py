"""Audit logging: storing log records and sending them to the audit service."""

from __future__ import annotations

import logging
from datetime import datetime

from chatparser.models import LogEntry
from chatparser.querybuilder import build_insert


class LogSaver:
    """Stores audit records; ``db`` needs ``execute(sql, params)``."""

    def __init__(self, logger: logging.Logger, db):
        self.logger = logger
        self.db = db
        self._insert_query = build_insert(LogEntry, True)

    def save_log(self, service_name: str, audit_type: int, message: str) -> None:
        self.db.execute(self._insert_query, (service_name, audit_type, message, datetime.now()))


def _level_code(levelno: int) -> int:
    """Level number used by the audit service: debug -4, info 0, warning 4, error 8."""
    return (levelno - logging.INFO) * 4 // 10


class AuditLogHandler(logging.Handler):
    """Prints each record and sends it to the audit service.

    ``producer`` needs ``send(service_name=..., type=..., message=..., created=...)``.
    """

    def __init__(self, producer, service_name: str):
        super().__init__(logging.NOTSET)
        self.producer = producer
        self.service_name = service_name

    def emit(self, record: logging.LogRecord) -> None:
        message = record.getMessage()
        print(message)
        try:
            self.producer.send(
                service_name=self.service_name,
                type=_level_code(record.levelno),
                message=message,
                created=datetime.now(),
            )
        except Exception as exc:
            print(exc)


def setup_logger(producer, service_name: str) -> logging.Logger:
    """Logger of ``service_name`` whose records all go to the audit service."""
    logger = logging.getLogger(f"chatparser.audit.{service_name}")
    logger.handlers = [h for h in logger.handlers if not isinstance(h, AuditLogHandler)]
    logger.addHandler(AuditLogHandler(producer, service_name))
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger