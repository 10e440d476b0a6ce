"""
End-to-end tests against a live server on a local socket.
"""

from conftest import MTIME, make_request, split_response
from fileserver import HTTPServer, ServerConfig
from fileserver.http.response import format_http_date
from fileserver.http.status_codes import HTTPStatus
from fileserver.middleware import Middleware


class TestServing:
    """Tests for responses over a real connection."""

    def test_get_file(self, test_server):
        status, headers, body = split_response(test_server.get("/a.txt"))

        assert status == 200
        assert body == b"hello"
        assert headers["content-type"] == "text/plain; charset=utf-8"
        assert headers["content-length"] == "5"
        assert headers["last-modified"] == format_http_date(MTIME)
        assert headers["server"] == "FileServer/1.0"
        assert headers["connection"] == "close"

    def test_second_get_is_served_from_cache(self, test_server):
        test_server.get("/a.txt")

        assert "/a.txt" in test_server.server.cache
        hits = test_server.server.cache.stats()["hits"]

        _, _, body = split_response(test_server.get("/a.txt"))

        assert body == b"hello"
        assert test_server.server.cache.stats()["hits"] == hits + 1

    def test_head(self, test_server):
        status, headers, body = split_response(test_server.get("/a.txt", method="HEAD"))

        assert status == 200
        assert body == b""
        assert headers["content-length"] == "5"

    def test_not_modified(self, test_server):
        raw = test_server.get("/a.txt", headers={"If-Modified-Since": format_http_date(MTIME)})
        status, headers, body = split_response(raw)

        assert status == 304
        assert body == b""
        assert "content-length" not in headers
        assert "content-type" not in headers

    def test_directory_redirect_keeps_query(self, test_server):
        status, headers, _ = split_response(test_server.get("/docs?v=1"))

        assert status == 301
        assert headers["location"] == "docs/?v=1"

    def test_file_redirect(self, test_server):
        status, headers, _ = split_response(test_server.get("/files/b.txt/"))

        assert status == 301
        assert headers["location"] == "../b.txt"

    def test_index_redirect(self, test_server):
        status, headers, _ = split_response(test_server.get("/docs/index.html"))

        assert status == 301
        assert headers["location"] == "./"

    def test_index_page(self, test_server):
        status, headers, body = split_response(test_server.get("/docs/"))

        assert status == 200
        assert body == b"<h1>docs</h1>"
        assert headers["content-type"] == "text/html; charset=utf-8"

    def test_listing(self, test_server):
        status, headers, body = split_response(test_server.get("/files/"))

        assert status == 200
        assert headers["content-type"] == "text/html; charset=utf-8"
        assert body == (
            b"<pre>\n"
            b'<a href="a%20dir/">a dir/</a>\n'
            b'<a href="b.txt">b.txt</a>\n'
            b"</pre>\n"
        )

    def test_percent_encoded_path(self, test_server):
        status, headers, _ = split_response(test_server.get("/files/a%20dir"))

        assert status == 301
        assert headers["location"] == "a dir/"

    def test_not_found(self, test_server):
        status, _, _ = split_response(test_server.get("/missing.txt"))
        assert status == 404

    def test_method_not_allowed(self, test_server):
        raw = test_server.request(
            b"POST /a.txt HTTP/1.1\r\nContent-Length: 2\r\nConnection: close\r\n\r\nhi"
        )
        status, headers, _ = split_response(raw)

        assert status == 405
        assert headers["allow"] == "GET, HEAD"

    def test_bad_request(self, test_server):
        status, _, _ = split_response(test_server.request(b"NONSENSE\r\n\r\n"))
        assert status == 400

    def test_range(self, test_server):
        status, headers, body = split_response(test_server.get("/a.txt", headers={"Range": "bytes=1-3"}))

        assert status == 206
        assert body == b"ell"
        assert headers["content-range"] == "bytes 1-3/5"

    def test_keep_alive_pipelining(self, test_server):
        raw = test_server.request(
            b"GET /a.txt HTTP/1.1\r\nHost: localhost\r\n\r\n"
            b"GET /style.css HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n"
        )

        assert raw.count(b"HTTP/1.1 200 OK\r\n") == 2
        assert b"Keep-Alive: timeout=5" in raw
        assert raw.endswith(b"body{}")


class TestChangeDetection:
    """Tests for cache invalidation on a running server."""

    def test_edited_file_is_served_fresh(self, test_server, docroot, wait_until):
        assert split_response(test_server.get("/a.txt"))[2] == b"hello"

        (docroot / "a.txt").write_bytes(b"hello again")

        assert wait_until(lambda: "/a.txt" not in test_server.server.cache)
        assert split_response(test_server.get("/a.txt"))[2] == b"hello again"

    def test_deleted_file_is_not_found(self, test_server, docroot, wait_until):
        test_server.get("/style.css")
        (docroot / "style.css").unlink()

        assert wait_until(lambda: "/style.css" not in test_server.server.cache)
        assert split_response(test_server.get("/style.css"))[0] == 404


class TestURLPrefix:
    """Tests for serving under a URL prefix, without a socket."""

    def make_server(self, docroot) -> HTTPServer:
        return HTTPServer(ServerConfig(root=str(docroot), url_prefix="/static", port=0))

    def test_prefixed_file(self, docroot):
        response = self.make_server(docroot).handle(make_request("/static/a.txt"))

        assert response.status == HTTPStatus.OK
        assert response.body == b"hello"

    def test_outside_prefix(self, docroot):
        response = self.make_server(docroot).handle(make_request("/a.txt"))
        assert response.status == HTTPStatus.NOT_FOUND

    def test_prefix_root_redirects_relative(self, docroot):
        response = self.make_server(docroot).handle(make_request("/static/docs"))

        assert response.status == HTTPStatus.MOVED_PERMANENTLY
        assert response.headers["Location"] == "docs/"

    def test_handle_strips_head_body(self, docroot):
        response = self.make_server(docroot).handle(make_request("/static/a.txt", method="HEAD"))

        assert response.body == b""
        assert response.headers["Content-Length"] == "5"

    def test_handler_exception_is_internal_error(self, docroot):
        server = self.make_server(docroot)

        class Boom(Middleware):
            def __call__(self, request, next):
                raise RuntimeError("boom")

        server.use(Boom())

        assert server.handle(make_request("/static/a.txt")).status == HTTPStatus.INTERNAL_SERVER_ERROR
