from datetime import datetime

from chatparser.filters import ChatFilter, MessageFilter, UserFilter, UserNameFilter
from chatparser.querybuilder import build_where

MIN_DATE = datetime(2024, 1, 1)
MAX_DATE = datetime(2024, 12, 31)


def test_empty_filter_has_only_base_condition():
    assert build_where(MessageFilter(), 1) == ("\n where 1 = 1", [])


def test_chat_filter_chaining_sets_values():
    chat_filter = ChatFilter()
    result = (
        chat_filter.where_id(4)
        .where_min_created_date(MIN_DATE)
        .where_max_created_date(MAX_DATE)
        .where_name("room")
    )
    assert result is chat_filter
    assert (result.id, result.min_created_date, result.max_created_date, result.name) == (
        4, MIN_DATE, MAX_DATE, "room",
    )


def test_chat_filter_parameters_follow_field_order():
    _, values = build_where(ChatFilter().where_id(4).where_name("room"), 1)
    assert values == [4, "room"]


def test_user_filter_by_id():
    query, values = build_where(UserFilter().where_id("u1"), 3)
    assert "id = $3" in query
    assert values == ["u1"]


def test_user_filter_chaining_sets_values():
    user_filter = UserFilter()
    result = user_filter.where_min_created_date(MIN_DATE).where_max_created_date(MAX_DATE).where_name("n")
    assert result is user_filter
    assert build_where(result, 1)[1] == [MIN_DATE, MAX_DATE, "n"]


def test_message_filter_sub_text_uses_like():
    query, values = build_where(MessageFilter().where_sub_text("hello"), 1)
    assert "like" in query
    assert values == ["hello"]


def test_message_filter_in_lists():
    message_filter = MessageFilter().where_user_ids(["a", "b"]).where_chat_ids([7, 8])
    query, values = build_where(message_filter, 1)
    assert values == ["a", "b", 7, 8]
    assert "chat_id in ($3, $4)" in query


def test_message_filter_dates_and_id():
    message_filter = (
        MessageFilter()
        .where_id(10)
        .where_min_created_date(MIN_DATE)
        .where_max_created_date(MAX_DATE)
    )
    _, values = build_where(message_filter, 1)
    assert values == [10, MIN_DATE, MAX_DATE]


def test_user_name_filter_by_name():
    name_filter = UserNameFilter()
    assert name_filter.where_name("alice") is name_filter
    query, values = build_where(name_filter, 1)
    assert query.endswith("and name = $1")
    assert values == ["alice"]


def test_user_name_filter_dates():
    name_filter = UserNameFilter().where_min_created_date(MIN_DATE).where_max_created_date(MAX_DATE)
    assert build_where(name_filter, 2)[1] == [MIN_DATE, MAX_DATE]