"""wavecli executor - HTTP request/response types and pluggable backends."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Protocol

import requests
from requests.structures import CaseInsensitiveDict

from wavecli import body as body_codec
from wavecli.errors import HttpError, NetworkError, ParseError, UnsupportedMethod

logger = logging.getLogger(__name__)


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> HttpMethod:
        """Case-insensitive lookup. Raises UnsupportedMethod for anything else."""
        try:
            return cls(str(value).upper())
        except ValueError:
            raise UnsupportedMethod(str(value)) from None


# ── Request ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class HttpRequest:
    """Dispatch-ready request. Headers are read-only and case-insensitively unique."""

    url: str
    method: HttpMethod
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str | None = None

    def __post_init__(self):
        headers = CaseInsensitiveDict()
        for key, value in dict(self.headers).items():
            headers[key] = value
        object.__setattr__(self, "headers", MappingProxyType(headers))

    @classmethod
    def builder(cls, url: str, method: HttpMethod) -> RequestBuilder:
        return RequestBuilder(url, method)


class RequestBuilder:
    """Accumulates headers and a body, then freezes them into an HttpRequest."""

    def __init__(self, url: str, method: HttpMethod):
        self.url = url
        self.method = method
        self._headers: CaseInsensitiveDict = CaseInsensitiveDict()
        self._body: body_codec.RequestBody | None = None

    def header(self, key: str, value: str) -> RequestBuilder:
        self._headers[key] = value
        return self

    def headers(self, pairs) -> RequestBuilder:
        """Add headers from a mapping or an iterable of (key, value) pairs."""
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        for key, value in items:
            self._headers[key] = value
        return self

    def body(self, request_body: body_codec.RequestBody) -> RequestBuilder:
        self._body = request_body
        return self

    def build(self) -> HttpRequest:
        headers = CaseInsensitiveDict(self._headers)
        wire = None
        if self._body is not None:
            wire = body_codec.serialize(self._body, headers)
        return HttpRequest(url=self.url, method=self.method, headers=headers, body=wire)


# ── Response ─────────────────────────────────────────────────────────────


@dataclass
class HttpResponse:
    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    def is_success(self) -> bool:
        return 200 <= self.status < 300

    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    def is_server_error(self) -> bool:
        return 500 <= self.status < 600

    def is_error(self) -> bool:
        return self.status >= 400

    @property
    def content_type(self) -> str | None:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return None

    def is_json(self) -> bool:
        ct = self.content_type or ""
        return "application/json" in ct or "text/json" in ct

    def json(self) -> Any:
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise ParseError(f"Failed to parse JSON response: {e}") from e

    @property
    def text(self) -> str:
        return self.body


# ── Backends ─────────────────────────────────────────────────────────────


class HttpBackend(Protocol):
    """Anything that can turn an HttpRequest into an HttpResponse.

    Implementations raise HttpError subclasses on failure.
    """

    def send(self, request: HttpRequest) -> HttpResponse: ...


class RequestsBackend:
    """Performs real network I/O with requests."""

    VERBS = {
        HttpMethod.GET: "GET",
        HttpMethod.POST: "POST",
        HttpMethod.PUT: "PUT",
        HttpMethod.PATCH: "PATCH",
        HttpMethod.DELETE: "DELETE",
        HttpMethod.HEAD: "HEAD",
        HttpMethod.OPTIONS: "OPTIONS",
    }

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    def send(self, request: HttpRequest) -> HttpResponse:
        # Extension verbs are rejected rather than sent as custom methods.
        verb = self.VERBS.get(request.method)
        if verb is None:
            raise UnsupportedMethod(str(request.method))

        kwargs: dict[str, Any] = {
            "method": verb,
            "url": request.url,
            # http.client would encode str values as latin-1
            "headers": {k: v.encode("utf-8") for k, v in request.headers.items()},
            "data": request.body.encode("utf-8") if request.body is not None else None,
            "allow_redirects": True,
        }
        if self.timeout:
            kwargs["timeout"] = self.timeout

        logger.debug("sending %s %s", verb, request.url)
        try:
            resp = requests.request(**kwargs)
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"Request timed out: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Connection error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request failed: {e}") from e

        headers = {str(k): decode_header_value(v) for k, v in resp.headers.items()}
        try:
            text = resp.text
        except (UnicodeDecodeError, LookupError) as e:
            raise ParseError(f"Failed to decode response body: {e}") from e

        logger.debug("received %s from %s", resp.status_code, request.url)
        return HttpResponse(status=resp.status_code, headers=headers, body=text)


def decode_header_value(value: str | bytes) -> str:
    """Decode a raw header value as UTF-8, replacing undecodable bytes.

    http.client hands back header values decoded as latin-1; those are
    re-read as UTF-8 so non-ASCII values print correctly.
    """
    if isinstance(value, str):
        try:
            raw = value.encode("latin-1")
        except UnicodeEncodeError:
            return value
    else:
        raw = value
    return raw.decode("utf-8", errors="replace")


class MockBackend:
    """Deterministic backend for tests: records requests, replays a canned result."""

    def __init__(self, response: HttpResponse | None = None, error: HttpError | None = None):
        self.response = response if response is not None else HttpResponse(status=200)
        self.error = error
        self.requests: list[HttpRequest] = []

    @property
    def last_request(self) -> HttpRequest | None:
        return self.requests[-1] if self.requests else None

    def send(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


class Client:
    """Sends requests through an injected backend."""

    def __init__(self, backend: HttpBackend):
        self.backend = backend

    def send(self, request: HttpRequest) -> HttpResponse:
        return self.backend.send(request)
