"""wavecli merge - CLI override parsing and merging onto collection requests."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from wavecli.body import FormBody, JsonBody, KeyValuePairs
from wavecli.collection import RequestTemplate
from wavecli.errors import InvalidCliParam
from wavecli.executor import HttpMethod, HttpRequest

logger = logging.getLogger(__name__)

FORM_FLAG = "--form"

# Methods sent without a body.
BODYLESS_METHODS = frozenset({HttpMethod.GET, HttpMethod.HEAD, HttpMethod.OPTIONS, HttpMethod.DELETE})

_INT_RE = re.compile(r"-?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
_I64_MIN, _I64_MAX = -(2**63), 2**63 - 1


@dataclass
class CliOverride:
    headers: KeyValuePairs = field(default_factory=list)
    body_fields: KeyValuePairs = field(default_factory=list)
    form: bool = False


# ── Parsing ──────────────────────────────────────────────────────────────


def parse_params(tokens: Iterable[str]) -> CliOverride:
    """Split trailing CLI tokens into headers and body fields.

    A token is split at whichever of ':' or '=' comes first: ':' makes a
    header (Authorization:Bearer123), '=' a body field (age=30). '--form'
    switches to form encoding and must come before every other token.
    """
    override = CliOverride()
    for token in tokens:
        if token == FORM_FLAG:
            if override.headers or override.body_fields:
                raise InvalidCliParam(
                    f"'{FORM_FLAG}' must come before any header or body parameters",
                    f"Example: wave post example.com {FORM_FLAG} name=john",
                )
            override.form = True
            continue

        colon = token.find(":")
        equals = token.find("=")
        if colon == -1 and equals == -1:
            raise InvalidCliParam(
                f"Parameter '{token}' must be in 'key:value' (header) or 'key=value' (body) format",
            )

        if colon != -1 and (equals == -1 or colon < equals):
            key, value = token[:colon].strip(), token[colon + 1 :].strip()
            if not key or any(c.isspace() for c in key):
                raise InvalidCliParam(
                    f"Invalid header format '{token}'. Headers must be in 'key:value' format",
                    "Example: Authorization:Bearer123 Content-Type:application/json",
                )
            override.headers.append((key, value))
        else:
            key, value = token[:equals].strip(), token[equals + 1 :].strip()
            if not key:
                raise InvalidCliParam(
                    f"Invalid body format '{token}'. Body data must be in 'key=value' format",
                    "Example: name=john age=30 active=true",
                )
            override.body_fields.append((key, value))
    return override


# ── Merging ──────────────────────────────────────────────────────────────


def merge_pairs(
    base: Iterable[tuple[str, str]],
    overrides: Iterable[tuple[str, str]],
    key_fn: Callable[[str], str] = lambda k: k,
) -> KeyValuePairs:
    """Apply overrides onto base.

    A key already in base has its value replaced where it stands; new keys
    are appended in override order.
    """
    merged = list(base)
    positions = {key_fn(k): i for i, (k, _) in reversed(list(enumerate(merged)))}
    for key, value in overrides:
        norm = key_fn(key)
        if norm in positions:
            i = positions[norm]
            merged[i] = (merged[i][0], value)
        else:
            positions[norm] = len(merged)
            merged.append((key, value))
    return merged


def merge_headers(base: Iterable[tuple[str, str]], overrides: Iterable[tuple[str, str]]) -> KeyValuePairs:
    return merge_pairs(base, overrides, key_fn=str.lower)


def merge_headers_and_body(
    template_headers: Iterable[tuple[str, str]],
    template_body: Iterable[tuple[str, str]],
    cli_headers: Iterable[tuple[str, str]],
    cli_body: Iterable[tuple[str, str]],
) -> tuple[KeyValuePairs, KeyValuePairs]:
    """CLI values win over template values; see merge_pairs."""
    return merge_headers(template_headers, cli_headers), merge_pairs(template_body, cli_body)


def infer_cli_value(value: str) -> Any:
    """Type a CLI body value: int, then float, then bool, else string."""
    if _INT_RE.fullmatch(value):
        number = int(value)
        if _I64_MIN <= number <= _I64_MAX:
            return number
    if _FLOAT_RE.fullmatch(value):
        number = float(value)
        if math.isfinite(number):
            return number
    if value == "true":
        return True
    if value == "false":
        return False
    return value


def merge_json_with_cli(json_obj: dict[str, Any] | None, cli_body: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Overwrite or insert each CLI field, typed by infer_cli_value.

    A template string such as "old" overridden by x=5 becomes the number 5.
    """
    result = dict(json_obj) if json_obj else {}
    for key, value in cli_body:
        result[key] = infer_cli_value(value)
    return result


# ── Request building ─────────────────────────────────────────────────────


def build_collection_request(resolved: RequestTemplate, override: CliOverride) -> HttpRequest:
    """Combine a resolved collection request with CLI overrides."""
    headers = merge_headers(list((resolved.headers or {}).items()), override.headers)
    builder = HttpRequest.builder(resolved.url, resolved.method).headers(headers)

    body = resolved.body
    if resolved.method in BODYLESS_METHODS:
        if body is not None or override.body_fields:
            logger.warning("ignoring body for %s request '%s'", resolved.method, resolved.name)
    elif isinstance(body, JsonBody):
        builder.body(JsonBody(merge_json_with_cli(body.data, override.body_fields)))
    elif isinstance(body, FormBody):
        builder.body(FormBody(merge_pairs(body.fields, override.body_fields)))
    elif override.body_fields:
        builder.body(_cli_body(override))

    request = builder.build()
    logger.debug("built %s %s (body: %s)", request.method, request.url, request.body is not None)
    return request


def build_adhoc_request(method: HttpMethod, url: str, override: CliOverride) -> HttpRequest:
    """Build a request for 'wave get/post/...' from CLI tokens alone."""
    builder = HttpRequest.builder(url, method).headers(merge_headers([], override.headers))
    if override.body_fields:
        if method in BODYLESS_METHODS:
            logger.warning(
                "ignoring body fields for %s: %s",
                method,
                ", ".join(k for k, _ in override.body_fields),
            )
        else:
            builder.body(_cli_body(override))
    elif override.form and method not in BODYLESS_METHODS:
        builder.body(FormBody([]))
    elif method not in BODYLESS_METHODS:
        builder.body(JsonBody({}))
    return builder.build()


def _cli_body(override: CliOverride):
    if override.form:
        return FormBody(merge_pairs([], override.body_fields))
    return JsonBody(merge_json_with_cli(None, override.body_fields))
