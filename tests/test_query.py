import json

import pytest

from leak_extractor.errors import ConfigError
from leak_extractor.models import LeakFilter
from leak_extractor.query import build_query, build_query_string, describe_query


def test_email_filter_matches_literal_email() -> None:
    assert build_query_string(LeakFilter(email="a@example.com")) == 'email:"a@example.com"'


def test_domain_filter_uses_suffix_wildcard() -> None:
    assert build_query_string(LeakFilter(domain="example.com")) == 'email:"*@example.com"'


def test_password_filter_matches_password_field() -> None:
    assert build_query_string(LeakFilter(password="hunter2")) == 'password:"hunter2"'


def test_quotes_in_values_are_escaped() -> None:
    assert build_query_string(LeakFilter(password='pa"ss\\')) == 'password:"pa\\"ss\\\\"'


@pytest.mark.parametrize(
    "leak_filter",
    [
        LeakFilter(),
        LeakFilter(email="a@example.com", domain="example.com"),
        LeakFilter(email="a@example.com", domain="example.com", password="x"),
    ],
)
def test_requires_exactly_one_filter(leak_filter: LeakFilter) -> None:
    with pytest.raises(ConfigError):
        build_query(leak_filter)


def test_query_is_wrapped_in_required_clause() -> None:
    query = build_query(LeakFilter(domain="example.com"))
    assert query == {"bool": {"must": [{"query_string": {"query": 'email:"*@example.com"'}}]}}
    assert json.loads(describe_query(query)) == {"query": query}
