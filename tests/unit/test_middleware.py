"""
Unit tests for the middleware pipeline, prefix stripping and access log.
"""

import json
import logging

from conftest import make_request
from fileserver.http.response import HTTPResponse, ResponseBuilder
from fileserver.http.status_codes import HTTPStatus
from fileserver.middleware import (
    LoggingMiddleware,
    Middleware,
    MiddlewarePipeline,
    StripPrefixMiddleware,
)


def echo_path(request) -> HTTPResponse:
    return ResponseBuilder().text(request.path).build()


class Recorder(Middleware):
    def __init__(self, label: str, calls: list):
        self.label = label
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.label}:in")
        response = next(request)
        self.calls.append(f"{self.label}:out")
        return response


class TestMiddlewarePipeline:
    """Tests for MiddlewarePipeline ordering."""

    def test_first_added_runs_outermost(self):
        calls = []
        pipeline = MiddlewarePipeline()
        pipeline.add(Recorder("a", calls)).add(Recorder("b", calls))

        handler = pipeline.wrap(echo_path)
        handler(make_request("/x"))

        assert calls == ["a:in", "b:in", "b:out", "a:out"]
        assert len(pipeline) == 2
        assert [m.label for m in pipeline] == ["a", "b"]

    def test_empty_pipeline_is_the_handler(self):
        handler = MiddlewarePipeline().wrap(echo_path)
        assert handler(make_request("/x")).body == b"/x"


class TestStripPrefixMiddleware:
    """Tests for mounting under a URL prefix."""

    def test_strips_prefix(self):
        middleware = StripPrefixMiddleware("/files")
        response = middleware(make_request("/files/docs/a.txt"), echo_path)

        assert response.body == b"/docs/a.txt"

    def test_bare_prefix_becomes_root(self):
        middleware = StripPrefixMiddleware("/files")
        assert middleware(make_request("/files"), echo_path).body == b""

    def test_other_paths_are_not_found(self):
        called = []

        def handler(request):
            called.append(request)
            return echo_path(request)

        response = StripPrefixMiddleware("/files")(make_request("/other"), handler)

        assert response.status == HTTPStatus.NOT_FOUND
        assert called == []

    def test_original_request_is_untouched(self):
        request = make_request("/files/a.txt")
        StripPrefixMiddleware("/files")(request, echo_path)
        assert request.path == "/files/a.txt"

    def test_empty_prefix_passes_through(self):
        assert StripPrefixMiddleware("")(make_request("/a"), echo_path).body == b"/a"


class TestLoggingMiddleware:
    """Tests for the access log."""

    def test_text_log_line(self, caplog):
        middleware = LoggingMiddleware()
        request = make_request("/a.txt", query_string="v=1")

        with caplog.at_level(logging.INFO, logger="fileserver.access"):
            response = middleware(request, echo_path)

        assert len(response.headers["X-Request-ID"]) == 8
        record = caplog.records[-1]
        assert record.name == "fileserver.access"
        assert '"GET /a.txt?v=1" 200' in record.getMessage()
        assert record.getMessage().startswith("127.0.0.1 - - [")

    def test_json_log_line(self, caplog):
        middleware = LoggingMiddleware(log_format="json")

        with caplog.at_level(logging.INFO, logger="fileserver.access"):
            response = middleware(make_request("/a.txt"), echo_path)

        data = json.loads(caplog.records[-1].getMessage())
        assert data["path"] == "/a.txt"
        assert data["status_code"] == 200
        assert data["request_id"] == response.headers["X-Request-ID"]

    def test_skip_paths(self, caplog):
        middleware = LoggingMiddleware(skip_paths=["/favicon.ico"])

        with caplog.at_level(logging.INFO, logger="fileserver.access"):
            middleware(make_request("/favicon.ico"), echo_path)

        assert caplog.records == []

    def test_without_request_id(self):
        middleware = LoggingMiddleware(include_request_id=False)
        response = middleware(make_request("/a.txt"), echo_path)
        assert "X-Request-ID" not in response.headers

    def test_handler_errors_are_logged_and_raised(self, caplog):
        def broken(request):
            raise RuntimeError("boom")

        middleware = LoggingMiddleware()

        try:
            middleware(make_request("/a.txt"), broken)
        except RuntimeError:
            pass
        else:
            raise AssertionError("expected RuntimeError")

        assert "Request failed: GET /a.txt - RuntimeError: boom" in caplog.text
