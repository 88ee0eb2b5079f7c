import base64
import socket

import pytest

from websock.server import InvalidConnection, Server
from websock.upgrade import UpgradeError, UpgradeErrorKind

KEY_TEXT = "dGhlIHNhbXBsZSBub25jZQ=="

REQUEST = (
    "GET /chat HTTP/1.1\r\n"
    "Host: localhost\r\n"
    "Upgrade: websocket\r\n"
    "Connection: Upgrade\r\n"
    f"Sec-WebSocket-Key: {KEY_TEXT}\r\n"
    "Sec-WebSocket-Version: 13\r\n"
    "\r\n"
).encode("ascii")


@pytest.fixture
def server():
    srv = Server.bind("127.0.0.1:0")
    yield srv
    srv.close()


def _connect(srv: Server) -> socket.socket:
    client = socket.create_connection(srv.local_addr()[:2], timeout=5)
    return client


def test_set_nonblocking(server):
    server.set_nonblocking(True)
    with pytest.raises(InvalidConnection) as info:
        server.accept()
    assert info.value.error.kind is UpgradeErrorKind.IO
    assert isinstance(info.value.error.error, BlockingIOError)
    assert info.value.stream is None
    assert info.value.parsed is None


def test_local_addr_reports_bound_host(server):
    host, port = server.local_addr()[:2]
    assert host == "127.0.0.1"
    assert port > 0


def test_bind_with_tuple():
    with Server.bind(("127.0.0.1", 0)) as srv:
        assert srv.local_addr()[0] == "127.0.0.1"


def test_bind_rejects_malformed_address():
    with pytest.raises(ValueError):
        Server.bind("nonsense")


def test_accept_reads_handshake(server):
    client = _connect(server)
    try:
        client.sendall(REQUEST)
        upgrade = server.accept()
        try:
            assert upgrade.uri() == "/chat"
            assert upgrade.key() == base64.b64decode(KEY_TEXT)
            assert upgrade.version() == "13"
        finally:
            upgrade.stream.close()
    finally:
        client.close()


def test_reject_sends_bad_request(server):
    client = _connect(server)
    try:
        client.sendall(REQUEST)
        upgrade = server.accept()
        stream = upgrade.reject()
        try:
            status_line = client.makefile("rb").readline()
            assert status_line == b"HTTP/1.1 400 Bad Request\r\n"
        finally:
            stream.close()
    finally:
        client.close()


def test_invalid_method_returns_request(server):
    client = _connect(server)
    try:
        client.sendall(REQUEST.replace(b"GET", b"POST", 1))
        with pytest.raises(InvalidConnection) as info:
            server.accept()
        err = info.value
        try:
            assert err.error.kind is UpgradeErrorKind.METHOD_NOT_GET
            assert err.parsed.method == "POST"
            assert err.parsed.uri == "/chat"
            assert str(err) == "Request method must be GET"
        finally:
            err.stream.close()
    finally:
        client.close()


def test_dropped_connection_is_io_error(server):
    client = _connect(server)
    client.close()
    with pytest.raises(InvalidConnection) as info:
        server.accept()
    try:
        assert info.value.error.kind is UpgradeErrorKind.IO
        assert info.value.parsed is None
    finally:
        info.value.stream.close()


def test_iteration_accepts_connections(server):
    client = _connect(server)
    try:
        client.sendall(REQUEST)
        upgrade = next(iter(server))
        try:
            assert upgrade.uri() == "/chat"
        finally:
            upgrade.stream.close()
    finally:
        client.close()


def test_try_clone_shares_listener(server):
    clone = server.try_clone()
    try:
        assert clone.local_addr() == server.local_addr()
        client = _connect(server)
        try:
            client.sendall(REQUEST)
            upgrade = clone.accept()
            try:
                assert upgrade.uri() == "/chat"
            finally:
                upgrade.stream.close()
        finally:
            client.close()
    finally:
        clone.close()


def test_closed_server_has_no_address():
    with Server.bind("127.0.0.1:0") as srv:
        pass
    with pytest.raises(OSError):
        srv.local_addr()


def test_invalid_connection_repr_hides_details():
    err = InvalidConnection(UpgradeError(UpgradeErrorKind.NO_UPGRADE_HEADER))
    assert repr(err).startswith("InvalidConnection(stream=..., parsed=...")
    assert str(err) == "Missing Upgrade WebSocket header"