"""
pytest configuration and fixtures.
"""

import os
import socket
import threading
import time
from datetime import datetime, timezone
from typing import Generator, List, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import HTTPServer, ServerConfig
from fileserver.cache import ContentCache
from fileserver.handlers import RequestDispatcher
from fileserver.http import HTTPRequest
from fileserver.storage import FileHandle, FileInfo, FileSystem, LocalFileSystem, StorageError


# A fixed, whole-second mtime so date assertions are exact
MTIME = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def set_mtime(path: Path, when: datetime = MTIME) -> None:
    ts = when.timestamp()
    os.utime(path, (ts, ts))


def make_request(
    path: str,
    method: str = "GET",
    headers: Optional[dict] = None,
    query_string: str = "",
) -> HTTPRequest:
    """Build a parsed request without going through the parser."""
    return HTTPRequest(
        method=method,
        path=path,
        headers={k.lower(): v for k, v in (headers or {}).items()},
        query_string=query_string,
        client_address=("127.0.0.1", 12345),
    )


class CountingFileSystem(FileSystem):
    """Wraps a FileSystem and records every open() call."""

    def __init__(self, inner: FileSystem):
        self.inner = inner
        self.opened: List[str] = []
        self._lock = threading.Lock()

    def open(self, name: str) -> FileHandle:
        with self._lock:
            self.opened.append(name)
        return self.inner.open(name)

    def count(self, name: str) -> int:
        return self.opened.count(name)

    def reset(self) -> None:
        with self._lock:
            self.opened.clear()


class FailingDirHandle(FileHandle):
    """A directory whose listing breaks after the first batch."""

    def __init__(self, first_batch: List[FileInfo]):
        self.first_batch = first_batch
        self.calls = 0
        self.closed = False

    def stat(self) -> FileInfo:
        return FileInfo(name="broken", is_directory=True, modified_at=MTIME)

    def read(self, size: int = -1) -> bytes:
        raise StorageError("is a directory")

    def read_dir(self, n: int) -> List[FileInfo]:
        self.calls += 1
        if self.calls == 1:
            return self.first_batch
        raise StorageError("disk on fire")

    def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """
    A small document tree:

        /a.txt                 "hello"
        /style.css             "body{}"
        /docs/index.html       "<h1>docs</h1>"
        /docs/guide.txt        "guide"
        /files/b.txt           "b"
        /files/a dir/          (directory)
    """
    root = tmp_path / "www"
    (root / "docs").mkdir(parents=True)
    (root / "files" / "a dir").mkdir(parents=True)

    (root / "a.txt").write_bytes(b"hello")
    (root / "style.css").write_bytes(b"body{}")
    (root / "docs" / "index.html").write_bytes(b"<h1>docs</h1>")
    (root / "docs" / "guide.txt").write_bytes(b"guide")
    (root / "files" / "b.txt").write_bytes(b"b")

    for path in root.rglob("*"):
        set_mtime(path)
    set_mtime(root)

    return root


@pytest.fixture
def filesystem(docroot: Path) -> CountingFileSystem:
    return CountingFileSystem(LocalFileSystem(str(docroot)))


@pytest.fixture
def cache() -> ContentCache:
    return ContentCache()


@pytest.fixture
def dispatcher(filesystem: CountingFileSystem, cache: ContentCache) -> RequestDispatcher:
    return RequestDispatcher(filesystem, cache)


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /docs/a%20b.txt?v=1&lang=en HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"If-Modified-Since: Sat, 15 Jun 2024 12:00:00 GMT\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.ready.wait(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes and read until the server closes the connection."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as sock:
            sock.sendall(raw)
            chunks = []
            while True:
                chunk = sock.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def get(self, path: str, method: str = "GET", headers: Optional[dict] = None) -> bytes:
        lines = [f"{method} {path} HTTP/1.1", "Host: localhost", "Connection: close"]
        for name, value in (headers or {}).items():
            lines.append(f"{name}: {value}")
        return self.request(("\r\n".join(lines) + "\r\n\r\n").encode())


def split_response(raw: bytes):
    """(status code, lowercase-keyed headers, body) of a raw response."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return status, headers, body


@pytest.fixture
def test_server(docroot: Path) -> Generator[TestServer, None, None]:
    """A live server on a free port, serving docroot."""
    server = HTTPServer(ServerConfig(
        host="127.0.0.1",
        port=0,
        root=str(docroot),
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        check_interval=0.1,
        log_level="WARNING",
    ))

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or a deadline passes."""
    def _wait(predicate, timeout: float = 5.0, interval: float = 0.02) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()
    return _wait
