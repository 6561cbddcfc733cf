"""Tests for HttpRequest/HttpResponse, RequestsBackend and MockBackend."""

import dataclasses
from unittest.mock import patch

import pytest
import requests

from wavecli.body import FormBody, JsonBody
from wavecli.errors import NetworkError, ParseError, UnsupportedMethod
from wavecli.executor import (
    Client,
    HttpMethod,
    HttpRequest,
    HttpResponse,
    MockBackend,
    RequestsBackend,
    decode_header_value,
)


def _fake_response(status_code=200, headers=None, text="{}"):
    return type(
        "Response",
        (),
        {
            "status_code": status_code,
            "headers": headers or {},
            "text": text,
        },
    )()


# ── HttpMethod ───────────────────────────────────────────────────────────


class TestHttpMethod:
    def test_parse_case_insensitive(self):
        assert HttpMethod.parse("patch") is HttpMethod.PATCH

    def test_parse_unknown(self):
        with pytest.raises(UnsupportedMethod) as exc:
            HttpMethod.parse("BREW")
        assert exc.value.method == "BREW"

    def test_str(self):
        assert str(HttpMethod.OPTIONS) == "OPTIONS"


# ── HttpRequest / RequestBuilder ─────────────────────────────────────────


class TestHttpRequest:
    def test_frozen(self):
        request = HttpRequest("http://example.com", HttpMethod.GET)
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.url = "http://other.com"

    def test_headers_read_only(self):
        request = HttpRequest("http://example.com", HttpMethod.GET, headers={"A": "1"})
        with pytest.raises(TypeError):
            request.headers["A"] = "2"

    def test_headers_case_insensitive_unique(self):
        request = HttpRequest("http://example.com", HttpMethod.GET, headers={"X-Key": "1"})
        assert request.headers["x-key"] == "1"

    def test_builder_last_header_wins(self):
        request = (
            HttpRequest.builder("http://example.com", HttpMethod.GET)
            .header("X-Key", "1")
            .header("x-key", "2")
            .build()
        )
        assert len(request.headers) == 1
        assert request.headers["X-Key"] == "2"

    def test_builder_json_body(self):
        request = HttpRequest.builder("http://example.com", HttpMethod.POST).body(JsonBody({"a": 1})).build()
        assert request.body == '{"a":1}'
        assert request.headers["Content-Type"] == "application/json"

    def test_builder_form_body_respects_header(self):
        request = (
            HttpRequest.builder("http://example.com", HttpMethod.POST)
            .headers([("Content-Type", "text/plain")])
            .body(FormBody([("a", "b")]))
            .build()
        )
        assert request.body == "a=b"
        assert request.headers["content-type"] == "text/plain"

    def test_equality(self):
        a = HttpRequest("http://example.com", HttpMethod.GET, headers={"A": "1"})
        b = HttpRequest("http://example.com", HttpMethod.GET, headers={"a": "1"})
        assert a == b


# ── HttpResponse ─────────────────────────────────────────────────────────


class TestHttpResponse:
    def test_status_classes(self):
        assert HttpResponse(204).is_success()
        assert HttpResponse(404).is_client_error()
        assert HttpResponse(404).is_error()
        assert HttpResponse(503).is_server_error()
        assert not HttpResponse(302).is_error()

    def test_content_type_and_json(self):
        resp = HttpResponse(200, {"content-type": "application/json; charset=utf-8"}, '{"a": [1]}')
        assert resp.content_type == "application/json; charset=utf-8"
        assert resp.is_json()
        assert resp.json() == {"a": [1]}
        assert resp.text == '{"a": [1]}'

    def test_json_parse_error(self):
        with pytest.raises(ParseError):
            HttpResponse(200, {}, "<html>").json()


# ── RequestsBackend ──────────────────────────────────────────────────────


class TestRequestsBackend:
    @patch("wavecli.executor.requests.request")
    def test_passes_request_through(self, mock_req):
        mock_req.return_value = _fake_response(201, {"Content-Type": "application/json"}, '{"id": 1}')
        request = HttpRequest(
            "http://example.com/users",
            HttpMethod.POST,
            headers={"Authorization": "Bearer x"},
            body='{"name":"Zoë"}',
        )
        resp = RequestsBackend().send(request)

        kwargs = mock_req.call_args[1]
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "http://example.com/users"
        assert kwargs["headers"] == {"Authorization": b"Bearer x"}
        assert kwargs["data"] == '{"name":"Zoë"}'.encode()
        assert "timeout" not in kwargs
        assert resp == HttpResponse(201, {"Content-Type": "application/json"}, '{"id": 1}')

    @patch("wavecli.executor.requests.request")
    def test_non_latin1_header_sent_as_utf8(self, mock_req):
        mock_req.return_value = _fake_response()
        RequestsBackend().send(HttpRequest("http://example.com", HttpMethod.GET, headers={"X-Sym": "€uro"}))
        sent = mock_req.call_args[1]["headers"]
        assert sent == {"X-Sym": "€uro".encode()}

        prepared = requests.Request("GET", "http://example.com", headers=sent).prepare()
        assert prepared.headers["X-Sym"] == b"\xe2\x82\xacuro"

    @patch("wavecli.executor.requests.request")
    def test_no_body(self, mock_req):
        mock_req.return_value = _fake_response()
        RequestsBackend().send(HttpRequest("http://example.com", HttpMethod.HEAD))
        kwargs = mock_req.call_args[1]
        assert kwargs["method"] == "HEAD"
        assert kwargs["data"] is None

    @patch("wavecli.executor.requests.request")
    def test_timeout_forwarded(self, mock_req):
        mock_req.return_value = _fake_response()
        RequestsBackend(timeout=5).send(HttpRequest("http://example.com", HttpMethod.GET))
        assert mock_req.call_args[1]["timeout"] == 5

    @patch("wavecli.executor.requests.request")
    def test_extension_verb_rejected(self, mock_req):
        with pytest.raises(UnsupportedMethod):
            RequestsBackend().send(HttpRequest("http://example.com", "PURGE"))
        mock_req.assert_not_called()

    @patch("wavecli.executor.requests.request")
    def test_connection_error(self, mock_req):
        mock_req.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(NetworkError, match="Connection error"):
            RequestsBackend().send(HttpRequest("http://example.com", HttpMethod.GET))

    @patch("wavecli.executor.requests.request")
    def test_timeout_error(self, mock_req):
        mock_req.side_effect = requests.exceptions.ReadTimeout("slow")
        with pytest.raises(NetworkError, match="timed out"):
            RequestsBackend(timeout=1).send(HttpRequest("http://example.com", HttpMethod.GET))

    @patch("wavecli.executor.requests.request")
    def test_non_utf8_header_degrades(self, mock_req):
        # http.client decodes header bytes as latin-1
        raw = b"caf\xc3\xa9 \xff".decode("latin-1")
        mock_req.return_value = _fake_response(headers={"X-Name": raw})
        resp = RequestsBackend().send(HttpRequest("http://example.com", HttpMethod.GET))
        assert resp.headers["X-Name"] == "café �"


class TestDecodeHeaderValue:
    def test_ascii(self):
        assert decode_header_value("text/html") == "text/html"

    def test_bytes(self):
        assert decode_header_value(b"\xe2\x9c\x93") == "✓"

    def test_invalid_bytes(self):
        assert decode_header_value(b"a\xffb") == "a�b"

    def test_already_unicode(self):
        assert decode_header_value("✓") == "✓"


# ── MockBackend / Client ─────────────────────────────────────────────────


class TestMockBackend:
    def test_records_and_replies(self):
        backend = MockBackend(HttpResponse(200, {}, "pong"))
        request = HttpRequest("https://example.com/ping", HttpMethod.GET)
        resp = Client(backend).send(request)
        assert resp.status == 200
        assert backend.last_request == request
        assert backend.requests == [request]

    def test_programmed_error(self):
        backend = MockBackend(error=NetworkError("down"))
        with pytest.raises(NetworkError):
            backend.send(HttpRequest("https://example.com", HttpMethod.GET))
        assert backend.last_request is not None

    def test_no_requests_yet(self):
        assert MockBackend().last_request is None
