"""
Unit tests for HTTP response building.
"""

import json
from datetime import datetime, timedelta, timezone

from fileserver.http.response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    internal_error,
    local_redirect,
    method_not_allowed,
    not_found,
    parse_http_date,
)
from fileserver.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.NOT_MODIFIED).status_line == "HTTP/1.1 304 Not Modified"
        assert (HTTPResponse(status=HTTPStatus.MOVED_PERMANENTLY).status_line
                == "HTTP/1.1 301 Moved Permanently")

    def test_to_bytes_includes_headers(self):
        """Test that to_bytes includes all headers."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"X-Custom": "value"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Custom: value\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert b"Server: FileServer/1.0\r\n" in result
        assert b"Date: " in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_to_bytes_keeps_explicit_content_length(self):
        response = HTTPResponse(headers={"Content-Length": "10"}, body=b"0123456789")
        assert response.to_bytes().count(b"Content-Length") == 1

    def test_not_modified_has_no_body_or_length(self):
        """304 responses never carry a body or an invented Content-Length."""
        response = HTTPResponse(status=HTTPStatus.NOT_MODIFIED, body=b"ignored")
        result = response.to_bytes()

        assert b"Content-Length" not in result
        assert result.endswith(b"\r\n\r\n")

    def test_without_body_keeps_content_length(self):
        """HEAD responses describe the GET body they omit."""
        response = HTTPResponse(headers={"Content-Type": "text/plain"}, body=b"hello")
        head = response.without_body()

        assert head.body == b""
        assert head.headers["Content-Length"] == "5"
        assert head.headers["Content-Type"] == "text/plain"
        assert response.body == b"hello"

    def test_without_body_on_not_modified(self):
        head = HTTPResponse(status=HTTPStatus.NOT_MODIFIED).without_body()
        assert "Content-Length" not in head.headers

    def test_set_header_chaining(self):
        """Test method chaining for headers."""
        response = (HTTPResponse()
            .set_header("X-One", "1")
            .set_header("X-Two", "2"))

        assert response.headers["X-One"] == "1"
        assert response.headers["X-Two"] == "2"


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_json_body(self):
        """Test JSON body encoding."""
        data = {"error": "Not Found"}
        response = ResponseBuilder().json(data).build()

        assert response.headers["Content-Type"] == "application/json; charset=utf-8"
        assert json.loads(response.body) == data

    def test_html_body(self):
        """Test HTML body."""
        html = "<pre>\n</pre>\n"
        response = ResponseBuilder().html(html).build()

        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert response.body == html.encode()

    def test_text_body(self):
        response = ResponseBuilder().text("Hello, World!").build()

        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert response.body == b"Hello, World!"

    def test_redirect_keeps_relative_location(self):
        """Relative locations are not made absolute."""
        response = ResponseBuilder().redirect("../a.txt", permanent=True).build()

        assert response.status == HTTPStatus.MOVED_PERMANENTLY
        assert response.headers["Location"] == "../a.txt"

    def test_redirect_temporary(self):
        response = ResponseBuilder().redirect("/new").build()
        assert response.status == HTTPStatus.FOUND

    def test_close_connection(self):
        """Test connection close header."""
        response = ResponseBuilder().close_connection().build()
        assert response.headers["Connection"] == "close"

    def test_method_chaining(self):
        """Test fluent API chaining."""
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("X-Custom", "value")
            .headers({"Last-Modified": "x"})
            .body("payload")
            .build())

        assert response.status == HTTPStatus.OK
        assert response.headers["X-Custom"] == "value"
        assert response.headers["Last-Modified"] == "x"
        assert response.body == b"payload"


class TestConvenienceFunctions:
    """Tests for convenience response functions."""

    def test_local_redirect_appends_query(self):
        response = local_redirect("docs/", "v=1&x=2")

        assert response.status == HTTPStatus.MOVED_PERMANENTLY
        assert response.headers["Location"] == "docs/?v=1&x=2"

    def test_local_redirect_without_query(self):
        assert local_redirect("./").headers["Location"] == "./"

    def test_not_found(self):
        response = not_found()
        assert response.status == HTTPStatus.NOT_FOUND
        assert b"Not Found" in response.body

    def test_method_not_allowed(self):
        response = method_not_allowed(["GET", "HEAD"])

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET, HEAD"

    def test_internal_error(self):
        assert internal_error().status == HTTPStatus.INTERNAL_SERVER_ERROR


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.RANGE_NOT_SATISFIABLE.phrase == "Range Not Satisfiable"

    def test_status_categories(self):
        assert HTTPStatus.OK.is_success
        assert HTTPStatus.NOT_MODIFIED.is_redirect
        assert HTTPStatus.NOT_FOUND.is_client_error
        assert HTTPStatus.INTERNAL_SERVER_ERROR.is_server_error
        assert HTTPStatus.NOT_FOUND.is_error
        assert not HTTPStatus.OK.is_error

    def test_allows_body(self):
        assert HTTPStatus.OK.allows_body
        assert HTTPStatus.MOVED_PERMANENTLY.allows_body
        assert not HTTPStatus.NOT_MODIFIED.allows_body


class TestHTTPDates:
    """Tests for HTTP date formatting and parsing."""

    def test_format(self):
        dt = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"

    def test_format_converts_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        dt = datetime(2026, 1, 15, 14, 30, 45, tzinfo=plus_two)
        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"

    def test_format_drops_microseconds(self):
        dt = datetime(2026, 1, 15, 12, 30, 45, 999999, tzinfo=timezone.utc)
        assert format_http_date(dt).endswith("12:30:45 GMT")

    def test_parse(self):
        parsed = parse_http_date("Sun, 06 Nov 1994 08:49:37 GMT")
        assert parsed == datetime(1994, 11, 6, 8, 49, 37, tzinfo=timezone.utc)

    def test_parse_round_trip(self):
        dt = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
        assert parse_http_date(format_http_date(dt)) == dt

    def test_parse_rejects_other_formats(self):
        assert parse_http_date("") is None
        assert parse_http_date("Sunday, 06-Nov-94 08:49:37 GMT") is None
        assert parse_http_date("Sun Nov  6 08:49:37 1994") is None
        assert parse_http_date("Sun, 06 Nov 1994 08:49:37 +0000") is None
        assert parse_http_date("garbage") is None

    def test_parse_rejects_impossible_dates(self):
        assert parse_http_date("Mon, 31 Feb 2025 00:00:00 GMT") is None
