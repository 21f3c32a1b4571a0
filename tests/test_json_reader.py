import json
from datetime import datetime, timezone

import pytest

from chatparser.json_reader import JsonReader, tg_text_content
from chatparser.models import DumpType

STAMP = 1700000000


def dump(tmp_path, content):
    path = tmp_path / "result.json"
    path.write_text(json.dumps(content), encoding="utf-8")
    return path


def chat(*messages):
    return {"name": "Friends", "type": "private_group", "id": 42, "messages": list(messages)}


def test_reads_messages_and_skips_service_entries(tmp_path):
    path = dump(
        tmp_path,
        chat(
            {"id": 1, "type": "service", "date_unixtime": str(STAMP),
             "actor": "Alice", "actor_id": "user1", "text": ""},
            {"id": 2, "type": "message", "date_unixtime": str(STAMP),
             "from": "Alice", "from_id": "user1", "text": "Hi", "reply_to_message_id": 1},
            {"id": 3, "type": "message", "date_unixtime": str(STAMP + 60),
             "from": "Bob", "from_id": "user2",
             "text": ["see ", {"type": "link", "text": "here"}]},
        ),
    )
    reader = JsonReader()
    messages = list(reader.read_messages(path))

    assert reader.reader_type() is DumpType.JSON
    assert [m.id for m in messages] == [2, 3]
    first = messages[0]
    assert first.chat_id == 42
    assert first.chat_name == "Friends"
    assert first.user_id == "user1"
    assert first.user_name == "Alice"
    assert first.reply_to_message_id == 1
    assert first.text == "Hi"
    assert first.created == datetime.fromtimestamp(STAMP, timezone.utc)
    assert messages[1].text == "see here"
    assert messages[1].reply_to_message_id == 0
    assert (messages[1].created - first.created).total_seconds() == 60


def test_bad_unixtime_stops_reading(tmp_path):
    path = dump(
        tmp_path,
        chat(
            {"id": 1, "date_unixtime": str(STAMP), "from": "A", "from_id": "u1", "text": "a"},
            {"id": 2, "date_unixtime": "soon", "from": "A", "from_id": "u1", "text": "b"},
            {"id": 3, "date_unixtime": str(STAMP), "from": "A", "from_id": "u1", "text": "c"},
        ),
    )
    errors = []
    messages = list(JsonReader(on_error=errors.append).read_messages(path))
    assert [m.id for m in messages] == [1]
    assert isinstance(errors[0], ValueError)


def test_invalid_json_reported(tmp_path):
    path = tmp_path / "result.json"
    path.write_text("{not json", encoding="utf-8")
    errors = []
    assert list(JsonReader(on_error=errors.append).read_messages(path)) == []
    assert isinstance(errors[0], ValueError)


def test_invalid_json_raises_without_handler(tmp_path):
    path = tmp_path / "result.json"
    path.write_text("[1, 2", encoding="utf-8")
    with pytest.raises(ValueError):
        list(JsonReader().read_messages(path))


def test_missing_file_reported(tmp_path):
    errors = []
    result = list(JsonReader(on_error=errors.append).read_messages(tmp_path / "none.json"))
    assert result == []
    assert isinstance(errors[0], OSError)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("plain", "plain"),
        (None, ""),
        (["a", {"type": "bold", "text": "b"}, "c"], "abc"),
        ([], ""),
        (["x", 5], "x"),
    ],
)
def test_tg_text_content(value, expected):
    assert tg_text_content(value) == expected


@pytest.mark.parametrize("value", [5, {"text": "x"}, [{"type": "bold"}]])
def test_tg_text_content_invalid(value):
    with pytest.raises(ValueError, match="invalid value for Text"):
        tg_text_content(value)