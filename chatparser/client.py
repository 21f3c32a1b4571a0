"""Interactive console client for the router."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, Optional, Sequence, TypeVar

from chatparser.config import ROUTER_PORT_ENV_NAME
from chatparser.filters import MessageFilter
from chatparser.querybuilder import SelectBuildRequest
from chatparser.router_client import RouterClient

C = TypeVar("C")


@dataclass(frozen=True)
class Action(Generic[C]):
    """A menu entry; a callback of None means leaving the menu."""

    name: str
    callback: Optional[C]


def _read_token() -> str:
    text = input().strip()
    if not text:
        raise ValueError("unexpected newline")
    return text


def scan_int() -> int:
    """Read one integer from standard input."""
    return int(_read_token())


def show_actions_for_select(actions: Sequence[Action]):
    """Print the menu and return the callback of the entry the user picks."""
    print("Введите цифру требуемого действия:")
    for index, action in enumerate(actions):
        print(f"{index} - {action.name}")

    while True:
        try:
            selected = scan_int()
        except ValueError:
            selected = -1
        if 0 <= selected < len(actions):
            return actions[selected].callback
        print("Указанное значение невалидно или отсутствует в перечне доступных действий. "
              "Повторите попытку.")


def _set_id(message_filter: MessageFilter) -> None:
    message_filter.id = scan_int()


def _set_period(message_filter: MessageFilter) -> None:
    prompts = (
        ("Введите минимальную дату создания в формате yyyy-mm-dd", "min_created_date"),
        ("Введите максимальную дату создания в формате yyyy-mm-dd", "max_created_date"),
    )
    for prompt, attribute in prompts:
        print(prompt)
        date = datetime.strptime(_read_token(), "%Y-%m-%d").replace(tzinfo=timezone.utc)
        setattr(message_filter, attribute, date)


def _set_sub_text(message_filter: MessageFilter) -> None:
    message_filter.sub_text = _read_token()


FILTER_ACTIONS = [
    Action("Фильтр готов", None),
    Action("Указать Id", _set_id),
    Action("Указать период создания", _set_period),
    Action("Указать искомый фрагмент текста", _set_sub_text),
]


def _print_messages(router: Any, message_filter: MessageFilter) -> bool:
    try:
        messages = router.search_messages(SelectBuildRequest(filter=message_filter))
    except Exception as exc:
        print(f"Повторите попытку. Возникла ошибка: {exc}")
        return False
    for index, message in enumerate(messages):
        print(f"{index} - {message.created}. От {message.user_name}: {message.text}")
    return True


def _export(router: Any, message_filter: MessageFilter) -> bool:
    print("Экспортируем в формате csv(1) или parquet(2)? Введите 1 или 2")
    try:
        choice = _read_token()
    except ValueError as exc:
        print(f"Некорректный ввод, повторите попытку. Ошибка: {exc}")
        return False
    export_type = {"1": "csv", "2": "parquet"}.get(choice)
    if export_type is None:
        print(f"Некорректный ввод, повторите попытку. Ошибка: {choice}")
        return False
    try:
        return bool(router.export_to_dir(message_filter, export_type))
    except Exception as exc:
        print(f"Не получилось. Повторите попытку. Ошибка: {exc}")
        return False


MESSAGE_ACTIONS = [
    Action("Ничего", None),
    Action("Вывести в консоль", _print_messages),
    Action("Экспортировать", _export),
]


def import_messages(router: Any) -> None:
    """Ask for a directory until the router imports it."""
    print("Введите путь к файлам, которые нужно сымпортировать")
    while True:
        import_path = input().strip()
        if not import_path:
            continue
        if not os.path.exists(import_path):
            print("Такой директории не существует. Повторите попытку")
            continue
        try:
            ok = router.parse_from_dir(import_path)
        except Exception as exc:
            print(f"Не получилось. Ошибка: {exc}. Повторите попытку ")
            continue
        if ok:
            return
        print("Не получилось. Повторите попытку ")


def get_messages(router: Any) -> None:
    """Build a filter, count the matching messages and offer what to do with them."""
    message_filter = MessageFilter()
    while True:
        callback = show_actions_for_select(FILTER_ACTIONS)
        if callback is None:
            break
        try:
            callback(message_filter)
        except ValueError as exc:
            print(exc)

    count = router.get_messages_count(message_filter)
    if count == 0:
        print("Сообщений не обнаружено")
        return

    print(f"Обнаружено {count} сообщений. Что с ними сделать?")
    while True:
        callback = show_actions_for_select(MESSAGE_ACTIONS)
        if callback is None or callback(router, message_filter):
            break


def get_users_with_messages_count(router: Any) -> None:
    """Print every user with the number of messages written."""
    try:
        users = router.get_users_with_messages_count()
    except Exception as exc:
        print(f"Не получилось. Повторите попытку. Ошибка: {exc}")
        return
    for user in users:
        print(f"Пользователь '{user.name}' понаписал {user.messages_count} сообщений")


MAIN_ACTIONS = [
    Action("Выйти", None),
    Action("Найти сообщения", get_messages),
    Action("Получить количество сообщений по пользователям", get_users_with_messages_count),
    Action("Импортировать сообщения", import_messages),
]


def main(argv=None) -> int:
    """Run the interactive menu until the user leaves it."""
    port = os.environ.get(ROUTER_PORT_ENV_NAME, "")
    router = RouterClient(f"http://localhost:{port}")
    try:
        while True:
            callback = show_actions_for_select(MAIN_ACTIONS)
            if callback is None:
                break
            callback(router)
    except (EOFError, KeyboardInterrupt):
        pass
    return 0