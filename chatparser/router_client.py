"""HTTP client for the router that fronts the chat, user and backup services."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional

import requests

from chatparser.models import Message, UserMessages
from chatparser.querybuilder import SelectBuildRequest

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class RouterError(Exception):
    """The router answered with a status other than 200."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"received from server incorrect status code: {status_code}")


def _timestamp_payload(moment: datetime) -> Dict[str, int]:
    return {"seconds": int(moment.timestamp()), "nanos": moment.microsecond * 1000}


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    seconds = int(value.get("seconds") or 0)
    nanos = int(value.get("nanos") or 0)
    return _EPOCH + timedelta(seconds=seconds, microseconds=nanos // 1000)


def _json_value(value):
    if isinstance(value, datetime):
        return _timestamp_payload(value)
    if isinstance(value, (list, tuple)):
        return [_json_value(item) for item in value]
    return value


def _filter_payload(message_filter) -> Dict[str, Any]:
    """JSON form of a message filter; unset criteria are left out."""
    if message_filter is None:
        return {}
    if isinstance(message_filter, Mapping):
        items = message_filter.items()
    elif is_dataclass(message_filter):
        items = ((f.name, getattr(message_filter, f.name)) for f in fields(message_filter))
    else:
        raise TypeError(f"unsupported filter: {message_filter!r}")
    return {key: _json_value(value) for key, value in items if value}


def _search_payload(request) -> Dict[str, Any]:
    if request is None:
        return {}
    if isinstance(request, SelectBuildRequest):
        payload: Dict[str, Any] = {}
        message_filter = _filter_payload(request.filter)
        if message_filter:
            payload["filter"] = message_filter
        if request.skip:
            payload["skip"] = request.skip
        if request.take:
            payload["take"] = request.take
        return payload
    if isinstance(request, Mapping):
        return dict(request)
    return {"filter": _filter_payload(request)}


def _parse_message(data: Mapping[str, Any]) -> Message:
    return Message(
        id=int(data.get("id") or 0),
        chat_id=int(data.get("chat_id") or 0),
        chat_name=data.get("chat_name") or "",
        user_id=data.get("user_id") or "",
        user_name=data.get("user_name") or "",
        reply_to_message_id=int(data.get("reply_to_message_id") or 0),
        text=data.get("text") or "",
        created=_parse_timestamp(data.get("created")),
    )


class RouterClient:
    """Calls the router's HTTP endpoints."""

    def __init__(self, base_url: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def build_url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    def _call(self, method: str, endpoint: str, *, json=None, params=None) -> requests.Response:
        response = self.session.request(
            method, self.build_url(endpoint), json=json, params=params, timeout=self.timeout
        )
        if response.status_code != 200:
            raise RouterError(response.status_code)
        return response

    def get_messages_count(self, filter=None) -> int:
        """Number of messages matching ``filter``."""
        response = self._call("POST", "/chat/messages/count", json=_filter_payload(filter))
        return int(response.text)

    def search_messages(self, request=None) -> List[Message]:
        """Messages selected by ``request``: a SelectBuildRequest, a filter or a JSON mapping."""
        response = self._call("POST", "/chat/messages/search", json=_search_payload(request))
        body = response.json() or {}
        return [_parse_message(item) for item in body.get("messages") or ()]

    def parse_from_dir(self, dir_path) -> bool:
        """Ask the chat service to import the dumps in ``dir_path``."""
        self._call("GET", "/chat/parse-from-dir", params={"dir-path": str(dir_path)})
        return True

    def export_to_dir(self, filter, export_type) -> bool:
        """Ask the backup service to export messages matching ``filter``."""
        export_type = getattr(export_type, "value", export_type)
        self._call(
            "POST",
            "/backup/export-to-dir",
            json=_filter_payload(filter),
            params={"export-type": str(export_type)},
        )
        return True

    def get_users_with_messages_count(self) -> List[UserMessages]:
        """Users with the number of messages each has written."""
        response = self._call("POST", "/user/messages-count")
        body = response.json() or {}
        return [
            UserMessages(
                name=item.get("name") or "",
                messages_count=int(item.get("messages_count") or 0),
            )
            for item in body.get("users") or ()
        ]