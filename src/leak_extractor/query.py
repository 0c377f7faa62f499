"""Query builder for leaked-credential lookups."""

from __future__ import annotations

import json
from typing import Any

from .models import LeakFilter
from .validation import validate_filter


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_query_string(leak_filter: LeakFilter) -> str:
    """Build the query_string expression for the single populated filter."""
    name, value = validate_filter(leak_filter)
    if name == "email":
        return f'email:"{_quote(value)}"'
    if name == "domain":
        return f'email:"*@{_quote(value)}"'
    return f'password:"{_quote(value)}"'


def build_query(leak_filter: LeakFilter) -> dict[str, Any]:
    """Wrap the filter expression as a required bool clause."""
    return {"bool": {"must": [{"query_string": {"query": build_query_string(leak_filter)}}]}}


def describe_query(query: dict[str, Any]) -> str:
    """Render the request body the way it goes over the wire."""
    return json.dumps({"query": query}, sort_keys=True)
