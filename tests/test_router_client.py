import json
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest
import responses

from chatparser.filters import MessageFilter
from chatparser.querybuilder import SelectBuildRequest
from chatparser.router_client import RouterClient, RouterError

BASE = "http://localhost:8080"


@pytest.fixture
def client():
    return RouterClient(BASE)


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def test_build_url(client):
    assert client.build_url("/chat/messages/count") == BASE + "/chat/messages/count"


def test_get_messages_count_sends_filter(client, mocked):
    mocked.add(responses.POST, BASE + "/chat/messages/count", body="42")
    count = client.get_messages_count(MessageFilter(sub_text="hi", chat_ids=[1, 2]))
    assert count == 42
    sent = json.loads(mocked.calls[0].request.body)
    assert sent == {"sub_text": "hi", "chat_ids": [1, 2]}


def test_get_messages_count_bad_status(client, mocked):
    mocked.add(responses.POST, BASE + "/chat/messages/count", status=500)
    with pytest.raises(RouterError) as info:
        client.get_messages_count(None)
    assert info.value.status_code == 500
    assert "incorrect status code: 500" in str(info.value)


def test_date_criteria_are_sent_as_timestamps(client, mocked):
    mocked.add(responses.POST, BASE + "/chat/messages/count", body="0")
    moment = datetime(2020, 1, 1, tzinfo=timezone.utc)
    client.get_messages_count(MessageFilter(min_created_date=moment))
    sent = json.loads(mocked.calls[0].request.body)
    assert sent["min_created_date"] == {"seconds": int(moment.timestamp()), "nanos": 0}


def test_search_messages_parses_response(client, mocked):
    body = {
        "messages": [
            {
                "id": 1,
                "chat_id": 2,
                "chat_name": "chat",
                "user_id": "u1",
                "user_name": "bob",
                "text": "hello",
                "created": {"seconds": 0, "nanos": 0},
            }
        ]
    }
    mocked.add(responses.POST, BASE + "/chat/messages/search", json=body)
    messages = client.search_messages(SelectBuildRequest(filter=MessageFilter(id=1), take=5))
    assert len(messages) == 1
    message = messages[0]
    assert (message.id, message.chat_id, message.user_name, message.text) == (1, 2, "bob", "hello")
    assert message.created == datetime(1970, 1, 1, tzinfo=timezone.utc)
    sent = json.loads(mocked.calls[0].request.body)
    assert sent == {"filter": {"id": 1}, "take": 5}


def test_parse_from_dir_passes_path(client, mocked):
    mocked.add(responses.GET, BASE + "/chat/parse-from-dir")
    assert client.parse_from_dir("/tmp/dumps") is True
    query = parse_qs(urlparse(mocked.calls[0].request.url).query)
    assert query["dir-path"] == ["/tmp/dumps"]


def test_parse_from_dir_bad_status(client, mocked):
    mocked.add(responses.GET, BASE + "/chat/parse-from-dir", status=400)
    with pytest.raises(RouterError):
        client.parse_from_dir("/missing")


def test_export_to_dir_passes_type(client, mocked):
    mocked.add(responses.POST, BASE + "/backup/export-to-dir")
    assert client.export_to_dir(MessageFilter(user_id="u"), "parquet") is True
    query = parse_qs(urlparse(mocked.calls[0].request.url).query)
    assert query["export-type"] == ["parquet"]
    assert json.loads(mocked.calls[0].request.body) == {"user_id": "u"}


def test_get_users_with_messages_count(client, mocked):
    mocked.add(
        responses.POST,
        BASE + "/user/messages-count",
        json={"users": [{"name": "alice", "messages_count": 3}]},
    )
    users = client.get_users_with_messages_count()
    assert [(u.name, u.messages_count) for u in users] == [("alice", 3)]