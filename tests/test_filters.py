"""
Tests for the query helpers.
"""
import pytest
from bson import ObjectId

from mongo_repository.repositories.filters import (
    page_window,
    parse_json_filter,
    parse_json_sort,
    redact_filter,
    resolve_sort_field,
    search_filter,
)
from sample_entities import IndexSampleEntity, Order


def test_parse_json_filter_handles_extended_json():
    oid = ObjectId()

    parsed = parse_json_filter('{"_id": {"$oid": "%s"}, "total": {"$gt": 10}}' % oid)

    assert parsed == {"_id": oid, "total": {"$gt": 10}}
    assert parse_json_filter(None) == {}
    assert parse_json_filter("   ") == {}


def test_parse_json_filter_accepts_shell_syntax():
    assert parse_json_filter("{ status: 'open' }") == {"status": "open"}
    assert parse_json_filter("{ 'code': { '$exists': true }, archived: false, owner: null }") == {
        "code": {"$exists": True},
        "archived": False,
        "owner": None,
    }


@pytest.mark.parametrize("text", ["{status: ", "['open']", "'open'"])
def test_parse_json_filter_rejects_bad_text(text):
    with pytest.raises(ValueError):
        parse_json_filter(text)


def test_parse_json_sort_keeps_order():
    assert parse_json_sort('{"status": 1, "total": -1}') == [("status", 1), ("total", -1)]
    assert parse_json_sort("{ status: 1, total: -1 }") == [("status", 1), ("total", -1)]
    assert parse_json_sort("") is None


@pytest.mark.parametrize("text", ['{"total": 2}', '{"total": "desc"}', "{ total: true }", "[1]"])
def test_parse_json_sort_rejects_bad_documents(text):
    with pytest.raises(ValueError):
        parse_json_sort(text)


@pytest.mark.parametrize(
    "page, page_size, expected",
    [
        (None, None, None),
        (1, None, None),
        (None, 10, None),
        (1, 10, (0, 10)),
        (3, 10, (20, 10)),
        (0, 10, (0, 10)),
        (-4, 10, (0, 10)),
        (2, 0, (1, 1)),
    ],
)
def test_page_window(page, page_size, expected):
    assert page_window(page, page_size) == expected


@pytest.mark.parametrize(
    "sort_by, expected",
    [
        (None, "_id"),
        ("", "_id"),
        ("null", "_id"),
        ("undefined", "_id"),
        ("ID", "_id"),
        ("Total", "total"),
        ("nested_list.score", "nested_list.score"),
    ],
)
def test_resolve_sort_field(sort_by, expected):
    entity = IndexSampleEntity if "." in (sort_by or "") else Order
    assert resolve_sort_field(entity, sort_by) == expected


def test_search_filter_escapes_value():
    assert search_filter("customer", "a.b") == {"customer": {"$regex": r"a\.b", "$options": "i"}}


@pytest.mark.parametrize("field, value", [(None, "ali"), ("  ", "ali"), ("customer", None), ("customer", " ")])
def test_search_filter_with_blank_field_or_value_matches_everything(field, value):
    assert search_filter(field, value) == {}


def test_redact_filter_hides_sensitive_values():
    filter = {"username": "alice", "password": "hunter2", "$or": [{"token": "abc"}, {"age": 3}]}

    assert redact_filter(filter) == {
        "username": "alice",
        "password": "[REDACTED]",
        "$or": [{"token": "[REDACTED]"}, {"age": 3}],
    }
    assert filter["password"] == "hunter2"
