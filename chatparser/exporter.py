"""Exports stored messages to files, batch by batch."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Optional

from chatparser.chat_service import search_request
from chatparser.csv_writer import CsvWriter

MESSAGES_BATCH_SIZE = 100000


class ExportType(str, Enum):
    CSV = "csv"
    PARQUET = "parquet"


class ExportError(Exception):
    """One or more batches could not be written."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(str(error) for error in self.errors))


_WRITERS = {ExportType.CSV: CsvWriter}


class Exporter:
    """Fetches messages in batches and writes each batch to a file in ``export_dir``.

    ``chat_client`` must have ``search_messages(request)`` returning a list of
    messages, as :class:`chatparser.chat_service.ChatService` has.
    """

    def __init__(self, chat_client, export_dir, batch_size: int = MESSAGES_BATCH_SIZE,
                 max_workers: Optional[int] = None):
        self.chat_client = chat_client
        self.export_dir = export_dir
        self.batch_size = batch_size
        self.max_workers = max_workers

    def export_to_dir(self, export_type, message_filter=None) -> None:
        """Write every message matching ``message_filter``; raises ExportError if a write fails."""
        export_type = ExportType(export_type)
        writer_class = _WRITERS.get(export_type)
        if writer_class is None:
            raise ValueError(f"{export_type.value} export is not supported")
        writer = writer_class()

        futures = []
        taken = 0
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            while True:
                messages = self.chat_client.search_messages(
                    search_request(message_filter, self.batch_size, taken)
                )
                if not messages:
                    break
                futures.append(pool.submit(writer.write_file, self.export_dir, list(messages)))
                taken += self.batch_size

        errors = [future.exception() for future in futures if future.exception() is not None]
        if errors:
            raise ExportError(errors) from errors[0]