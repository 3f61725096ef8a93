"""
Shared pytest fixtures and configuration.
"""

import os
import socket
import threading

import pytest

from staticserve.connection import Connection
from staticserve.server import make_server

# Sun, 06 Nov 1994 08:49:37 GMT
KNOWN_MTIME = 784111777


@pytest.fixture
def site(tmp_path):
    """A small document root."""
    (tmp_path / "test.txt").write_text("Hello, staticserve!")
    (tmp_path / "empty.txt").write_bytes(b"")
    (tmp_path / "large.bin").write_bytes(b"X" * (1024 * 1024))

    reports = tmp_path / "reports" / "2024"
    reports.mkdir(parents=True)
    pdf = reports / "summary.pdf"
    pdf.write_bytes(b"%" * 12345)
    os.utime(pdf, (KNOWN_MTIME, KNOWN_MTIME))

    subdir = tmp_path / "subdir"
    subdir.mkdir()
    (subdir / "nested.txt").write_text("Nested file")
    (subdir / ".git").mkdir()
    (subdir / "readme.txt").write_text("read me")
    (subdir / "a<b.txt").write_text("bad name")

    return tmp_path


@pytest.fixture
def server(site):
    """Serve ``site`` from a background thread; yields (host, port)."""
    httpd = make_server(host="127.0.0.1", port=0, root=str(site), timeout=10)
    t = threading.Thread(target=httpd.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True)
    t.start()
    try:
        yield httpd.server_address[:2]
    finally:
        httpd.shutdown()
        httpd.server_close()
        t.join(timeout=5)


@pytest.fixture
def sockpair():
    """A connected (Connection, peer socket) pair."""
    a, b = socket.socketpair()
    a.settimeout(5)
    b.settimeout(5)
    try:
        yield Connection(a, peer="test"), b
    finally:
        a.close()
        b.close()


def _read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        data = sock.recv(65536)
        if not data:
            return b"".join(chunks)
        chunks.append(data)


@pytest.fixture
def read_all():
    """Read from a socket until the peer shuts down its side."""
    return _read_all


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
