"""wavecli body codec - wire encoding for request bodies."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, MutableMapping
from urllib.parse import quote, unquote

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

KeyValuePairs = list[tuple[str, str]]


@dataclass
class JsonBody:
    """JSON object body. Values keep their YAML/JSON scalar types."""

    data: dict[str, Any] = field(default_factory=dict)

    content_type = JSON_CONTENT_TYPE

    def encode(self) -> str:
        return json.dumps(self.data, separators=(",", ":"), ensure_ascii=False)


@dataclass
class FormBody:
    """application/x-www-form-urlencoded body as ordered string pairs."""

    fields: KeyValuePairs = field(default_factory=list)

    content_type = FORM_CONTENT_TYPE

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> FormBody:
        return cls([(str(k), _form_str(v)) for k, v in data.items()])

    def encode(self) -> str:
        # Spaces become %20, never '+'.
        return "&".join(f"{quote(k, safe='')}={quote(v, safe='')}" for k, v in self.fields)


RequestBody = JsonBody | FormBody
BodySpec = RequestBody


def encode_body(body: RequestBody) -> tuple[str, str]:
    """Return (wire body, implied Content-Type) for a body."""
    return body.encode(), body.content_type


def has_header(headers: MutableMapping[str, str], name: str) -> bool:
    lower = name.lower()
    return any(k.lower() == lower for k in headers)


def ensure_content_type(headers: MutableMapping[str, str], content_type: str) -> None:
    """Set Content-Type unless the caller already set one (any casing)."""
    if not has_header(headers, "Content-Type"):
        headers["Content-Type"] = content_type


def serialize(body: RequestBody, headers: MutableMapping[str, str]) -> str:
    """Encode body and add its Content-Type to headers when absent."""
    wire, content_type = encode_body(body)
    ensure_content_type(headers, content_type)
    return wire


def decode_form(wire: str) -> KeyValuePairs:
    """Split a urlencoded wire string back into ordered pairs."""
    pairs: KeyValuePairs = []
    if not wire:
        return pairs
    for part in wire.split("&"):
        key, _, value = part.partition("=")
        pairs.append((unquote(key), unquote(value)))
    return pairs


def _form_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)
