"""Read chat dumps, build SQL for stored messages, and search, count, export and audit them."""

__version__ = "0.1.0"