# chatparser

This package imports chat history dumps, stores the messages through a SQL
database handle that you provide, and works with the stored messages: it can
search them, count them, delete them, export them and keep per-user message
counts.

## What it does

- **Reading dumps.** Three readers turn exported chat files into `Message`
  objects:
  - `chatparser.csv_reader.CsvReader` reads `;`-separated files. Their
    header must match `chatparser.models.CSV_HEADER_COLUMNS`.
  - `chatparser.html_reader.HtmlReader` reads HTML chat exports.
  - `chatparser.json_reader.JsonReader` reads JSON chat exports. It skips
    service entries that have no `from_id`.

  Each reader's `read_messages(path)` is a generator. When the reader has an
  `on_error` callback, errors go to it. Without one, errors are raised.
- **Parsing a directory.** `chatparser.parser.get_dump_type` finds the first
  file in the directory, in name order, whose suffix is a known dump type.
  `chatparser.parser.Parser.parse_from_dir` then:
  - reads every file of that type,
  - fills in missing chat and user ids through the name caches in
    `chatparser.caches`,
  - inserts each message inside one transaction,
  - sends a per-user message count to the producer you supply.

  It returns the number of messages stored.
- **Building queries.** `chatparser.querybuilder` builds parameterised
  `select`, `insert`, `update` and `delete` statements. It works from entity
  dataclasses (`chatparser.models`) and filter dataclasses
  (`chatparser.filters`). You declare fields of your own entities with
  `mapped(...)` and fields of your own filters with `criterion(...)`.
- **Service layer.** `chatparser.chat_service.ChatService` parses
  directories, searches, counts and deletes messages.
  `chatparser.chat_service.search_request` builds a newest-first request.
- **Exporting.** `chatparser.exporter.Exporter` fetches messages in batches
  (100 000 by default) and writes each batch on a thread pool. It raises
  `ExportError` if any write fails. `chatparser.csv_writer.CsvWriter` writes
  one `;`-separated file per batch, with CRLF line endings, and names it
  after the UTC date of the last message.
- **Per-user counters.** `chatparser.user_counter.UserMessageCounter.update_user_messages_count`
  adds a count to a user. If the user does not exist yet, it creates the user.
- **Audit log.** `chatparser.audit.LogSaver` stores audit records.
  `chatparser.audit.setup_logger` returns a logger whose `AuditLogHandler`
  prints each record and passes it to a producer.
- **HTTP client.** `chatparser.router_client.RouterClient` calls a router's
  HTTP endpoints: `/chat/messages/count`, `/chat/messages/search`,
  `/chat/parse-from-dir`, `/backup/export-to-dir` and `/user/messages-count`.
  It raises `RouterError` on any status other than 200.

## The database handle

The package contains no database driver. The services take an object that
has these methods:

- `query(sql, params)`: returns an iterable of rows.
- `execute(sql, params)`: runs a statement.
- `transaction()`: a context manager that yields a handle with the same two
  methods. It commits when the block ends normally and rolls back when an
  exception leaves the block. Only `Parser`, `ChatService.parse` and
  `UserMessageCounter` need this method.

Statements use `$1`, `$2`, … placeholders, as PostgreSQL does.

Producers are objects too. They need these methods:

- for `Parser` and `ChatService`: `send(user_name, message_count)`,
- for `AuditLogHandler`: `send(service_name=..., type=..., message=..., created=...)`.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Building queries

```python
from chatparser.filters import MessageFilter
from chatparser.models import Message
from chatparser.querybuilder import SelectBuildRequest, build_query

request = (
    SelectBuildRequest()
    .with_filter(MessageFilter().where_sub_text("hello"))
    .need_take(20)
    .need_skip(40)
)
sql, params = build_query(Message, request)
```

`sql` holds the statement and `params` holds the matching values. The query
builder ignores filter fields that are left at their empty value. If no sort
fields are given, results are ordered by `created desc`.

## Interactive client

The console client talks to a router over HTTP. It reads the port from the
`ChatParser_Router_Port` environment variable and connects to
`http://localhost:<port>`:

```
ChatParser_Router_Port=8080 chatparser-client
```

The client shows numbered menus. From them you can:

- build a message filter and count the matching messages,
- print the matching messages,
- ask for an export of the matching messages as CSV or Parquet,
- list how many messages each user wrote,
- ask for a directory of dumps to be imported.

Enter `0` in a menu to go back or to quit. End of input also quits.

## Configuration

`chatparser.config.load_config(config_path, config_type)` reads a YAML file
into `ChatConfig` (the default) or `BackupConfig`. The default path is
`config.yaml`.

- If the file is missing, it raises `FileNotFoundError`.
- If the content is bad or a required `db` field is missing, it raises
  `ValueError`.

The names of the environment variables shared by the services are constants
in the same module. One example is `ROUTER_PORT_ENV_NAME`.

## What it does not do

- It has no router server and no network services. `RouterClient` and the
  console client only work against a router that runs elsewhere.
- It has no message-broker producers or consumers. Counts and audit records
  go to whatever producer object you pass in.
- It has no database driver and no schema migrations.
- It does not read or write Parquet:
  - `get_dump_type` recognises `.parquet` files, but `Parser.parse_from_dir`
    raises `ValueError` for them.
  - `Exporter.export_to_dir` supports only `ExportType.CSV`.