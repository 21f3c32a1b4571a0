from datetime import datetime, timedelta, timezone

import pytest

from chatparser.csv_reader import CsvReader, check_header_columns
from chatparser.models import CSV_HEADER_COLUMNS, DumpType

HEADER = ";".join(CSV_HEADER_COLUMNS)


def write_dump(tmp_path, *lines):
    path = tmp_path / "dump.csv"
    path.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8", newline="")
    return path


def test_reads_rows(tmp_path):
    path = write_dump(
        tmp_path,
        HEADER,
        "1;2;Friends;u1;Alice;0;Hello;2025-01-01 15:00:01 +0000 UTC",
        '5;2;Friends;u2;Bob;1;"a;b";2025-01-01 15:00:02 +0000 UTC',
    )
    reader = CsvReader()
    messages = list(reader.read_messages(path))

    assert str(path).endswith(reader.reader_type().value)
    assert reader.reader_type() is DumpType.CSV
    assert [m.id for m in messages] == [1, 5]
    first = messages[0]
    assert first.chat_id == 2
    assert first.chat_name == "Friends"
    assert first.user_id == "u1"
    assert first.user_name == "Alice"
    assert first.reply_to_message_id == 0
    assert first.text == "Hello"
    assert first.created == datetime(2025, 1, 1, 15, 0, 1, tzinfo=timezone.utc)
    assert messages[1].text == "a;b"
    assert messages[1].reply_to_message_id == 1


def test_fractional_seconds_and_offset(tmp_path):
    path = write_dump(
        tmp_path,
        HEADER,
        "1;2;c;u;n;0;t;2025-01-01 15:00:01.123456789 +0300 MSK",
    )
    (message,) = CsvReader().read_messages(path)
    assert message.created.microsecond == 123456
    assert message.created.utcoffset() == timedelta(hours=3)


def test_bad_value_stops_reading(tmp_path):
    path = write_dump(
        tmp_path,
        HEADER,
        "1;2;c;u;n;0;t;2025-01-01 15:00:01 +0000 UTC",
        "x;2;c;u;n;0;t;2025-01-01 15:00:01 +0000 UTC",
        "3;2;c;u;n;0;t;2025-01-01 15:00:01 +0000 UTC",
    )
    errors = []
    messages = list(CsvReader(on_error=errors.append).read_messages(path))
    assert [m.id for m in messages] == [1]
    assert len(errors) == 1
    assert isinstance(errors[0], ValueError)


def test_bad_date_raises_without_handler(tmp_path):
    path = write_dump(tmp_path, HEADER, "1;2;c;u;n;0;t;not a date")
    with pytest.raises(ValueError):
        list(CsvReader().read_messages(path))


def test_wrong_field_count_reported(tmp_path):
    path = write_dump(tmp_path, HEADER, "1;2;c")
    errors = []
    assert list(CsvReader(on_error=errors.append).read_messages(path)) == []
    assert len(errors) == 1


def test_wrong_header_reported(tmp_path):
    columns = list(CSV_HEADER_COLUMNS)
    columns[0] = "Identifier"
    path = write_dump(tmp_path, ";".join(columns))
    errors = []
    assert list(CsvReader(on_error=errors.append).read_messages(path)) == []
    assert str(errors[0]) == "incorrect csv format. error at column with index 0"


def test_empty_file_reported(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    errors = []
    assert list(CsvReader(on_error=errors.append).read_messages(path)) == []
    assert str(errors[0]) == f"incorrect columns count. expected: {len(CSV_HEADER_COLUMNS)}"


def test_missing_file_reported(tmp_path):
    errors = []
    result = list(CsvReader(on_error=errors.append).read_messages(tmp_path / "none.csv"))
    assert result == []
    assert isinstance(errors[0], OSError)


@pytest.mark.parametrize(
    "columns, index",
    [
        (["Id", "ChatId", "ChatName", "UserId", "UserName", "ReplyToMessageId", "Text", "X"], 7),
        (["Id", "Chat", "ChatName", "UserId", "UserName", "ReplyToMessageId", "Text", "Created"], 1),
    ],
)
def test_check_header_columns_mismatch(columns, index):
    with pytest.raises(ValueError, match=f"error at column with index {index}"):
        check_header_columns(columns)


def test_check_header_columns_count():
    with pytest.raises(ValueError, match="incorrect columns count"):
        check_header_columns(list(CSV_HEADER_COLUMNS)[:-1])