import os
from datetime import datetime, timezone

from chatparser.csv_reader import CsvReader
from chatparser.csv_writer import CsvWriter, message_row
from chatparser.models import CSV_HEADER_COLUMNS, Message


def make_message(message_id, day, text="hello", micro=0):
    return Message(
        id=message_id,
        chat_id=10,
        chat_name="General",
        user_id="u1",
        user_name="Alice",
        reply_to_message_id=0,
        text=text,
        created=datetime(2024, 1, day, 3, 4, 5, micro, tzinfo=timezone.utc),
    )


def test_message_row_formats_created():
    row = message_row(make_message(7, 2))
    assert row[:7] == ["7", "10", "General", "u1", "Alice", "0", "hello"]
    assert row[7] == "2024-01-02 03:04:05 +0000 UTC"


def test_message_row_trims_fraction():
    row = message_row(make_message(7, 2, micro=500000))
    assert row[7] == "2024-01-02 03:04:05.5 +0000 UTC"


def test_empty_batch_writes_nothing(tmp_path):
    assert CsvWriter().write_file(str(tmp_path), []) is None
    assert os.listdir(tmp_path) == []


def test_file_named_after_last_message(tmp_path):
    path = CsvWriter().write_file(str(tmp_path), [make_message(1, 2), make_message(2, 3)])
    assert os.path.basename(path) == "2024-01-03.csv"
    raw = open(path, "rb").read()
    assert raw.startswith((";".join(CSV_HEADER_COLUMNS) + "\r\n").encode())


def test_round_trip_through_reader(tmp_path):
    messages = [
        make_message(1, 2),
        make_message(2, 2, text="semi;colon and \"quotes\""),
        make_message(3, 2, text="two\nlines"),
    ]
    path = CsvWriter().write_file(str(tmp_path), messages)
    assert list(CsvReader().read_messages(path)) == messages