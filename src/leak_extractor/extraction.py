"""Hit decoding and record normalization."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .errors import DecodeError
from .models import LeakRecord

EXCLUDED_EMAILS = {"", "null"}


def breach_name_from_index(index: str, prefix: str) -> str:
    """Strip the leak prefix from an index name; other names pass through."""
    if prefix and index.startswith(prefix):
        return index[len(prefix) :]
    return index


def _source_of(hit: Mapping[str, Any]) -> Mapping[str, Any]:
    source = hit.get("_source")
    if isinstance(source, (bytes, bytearray)):
        try:
            source = source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"hit {hit.get('_id')!r}: payload is not UTF-8") from exc
    if isinstance(source, str):
        try:
            source = json.loads(source)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"hit {hit.get('_id')!r}: invalid JSON payload: {exc}") from exc
    if not isinstance(source, Mapping):
        raise DecodeError(f"hit {hit.get('_id')!r}: payload is not an object")
    return source


def _text_field(source: Mapping[str, Any], name: str, hit_id: object) -> str:
    value = source.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(
            f"hit {hit_id!r}: field {name!r} must be a string, got {type(value).__name__}"
        )
    return value


def decode_hit(hit: Mapping[str, Any], breach_prefix: str) -> LeakRecord | None:
    """Decode one raw hit.

    Returns None when the record carries no usable email (empty or the literal
    "null"); raises DecodeError when the payload itself is malformed.
    """
    source = _source_of(hit)
    hit_id = hit.get("_id")
    email = _text_field(source, "email", hit_id)
    password = _text_field(source, "password", hit_id)
    if email in EXCLUDED_EMAILS:
        return None
    index = hit.get("_index")
    return LeakRecord(
        email=email,
        password=password,
        breach_name=breach_name_from_index(str(index or ""), breach_prefix),
    )
