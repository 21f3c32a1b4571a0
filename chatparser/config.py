"""Service configuration read from YAML files, and shared environment names."""

from __future__ import annotations

import re
from dataclasses import MISSING, dataclass, field, fields
from datetime import timedelta
from functools import partial
from pathlib import Path

import yaml

AUDIT_PORT_ENV_NAME = "ChatParser_Audit_Port"
BACKUP_PORT_ENV_NAME = "ChatParser_Backup_Port"
CHAT_PORT_ENV_NAME = "ChatParser_Chat_Port"
USER_PORT_ENV_NAME = "ChatParser_User_Port"
ROUTER_PORT_ENV_NAME = "ChatParser_Router_Port"

KAFKA_BROKER_1_URL_ENV_NAME = "ChatParser_Kafka_1_Url"
KAFKA_AUDIT_CREATE_LOG_TOPIC_NAME = "audit-create-log"
KAFKA_USER_MESSAGE_COUNTER_TOPIC_NAME = "user-message-counter"

DEFAULT_CONFIG_PATH = "config.yaml"

_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_MICROSECONDS = {
    "ns": 0.001, "us": 1, "µs": 1, "μs": 1, "ms": 1000,
    "s": 1_000_000, "m": 60_000_000, "h": 3_600_000_000,
}


def _parse_duration(value) -> timedelta:
    """Parse a duration such as ``1h30m`` or ``500ms``; plain integers are nanoseconds."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, int):
        return timedelta(microseconds=value / 1000)
    text = str(value).strip()
    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {value!r}")
    total = 0.0
    position = 0
    while position < len(text):
        match = _DURATION_PART.match(text, position)
        if match is None:
            raise ValueError(f"invalid duration {value!r}")
        total += float(match.group(1)) * _MICROSECONDS[match.group(2)]
        position = match.end()
    return timedelta(microseconds=sign * total)


def _setting(key, *, required=False, convert=None, nested=False,
             default=MISSING, default_factory=MISSING):
    metadata = {"key": key, "required": required, "convert": convert, "nested": nested}
    return field(default=default, default_factory=default_factory, metadata=metadata)


def _build(config_type, data):
    if not isinstance(data, dict):
        raise ValueError(f"section for {config_type.__name__} must be a mapping")
    values = {}
    for f in fields(config_type):
        meta = f.metadata
        key = meta["key"]
        raw = data.get(key)
        if meta["nested"] and raw is None:
            raw = {}
        if raw is None or raw == "":
            if meta["required"]:
                raise ValueError(f"field {key} is required")
            continue
        convert = meta["convert"]
        values[f.name] = convert(raw) if convert else raw
    return config_type(**values)


@dataclass
class DbConfig:
    host: str = _setting("host", required=True, convert=str)
    port: int = _setting("port", required=True, convert=int)
    user: str = _setting("user", required=True, convert=str)
    password: str = _setting("password", required=True, convert=str)
    db_name: str = _setting("dbName", required=True, convert=str)


@dataclass
class ChatConfig:
    db: DbConfig = _setting("db", nested=True, convert=partial(_build, DbConfig))
    env: str = _setting("env", convert=str, default="local")


@dataclass
class BackupConfig:
    env: str = _setting("env", convert=str, default="local")
    export_dir: str = _setting("exportDir", convert=str, default="")
    timeout: timedelta = _setting("timeout", convert=_parse_duration, default=timedelta(0))


def load_config(config_path=DEFAULT_CONFIG_PATH, config_type=ChatConfig):
    """Read the YAML file at ``config_path`` into ``config_type``."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"config file does not exist: {config_path}")
    try:
        with path.open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
        return _build(config_type, data if data is not None else {})
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        raise ValueError(f"cannot read config: {exc}") from exc