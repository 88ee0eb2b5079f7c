"""A blocking WebSocket server that accepts connections and reads their handshakes."""

from __future__ import annotations

import socket
import ssl
from typing import Any

from websock.upgrade import HttpRequest, UpgradeError, UpgradeErrorKind, WsUpgrade, into_ws


class InvalidConnection(Exception):
    """A connection that could not be turned into a WebSocket handshake.

    Holds what could be recovered: the stream, if it was set up, and the parsed
    request, which is an ordinary HTTP request that may still be served.
    Data already read from the stream stays buffered inside the stream.
    """

    def __init__(
        self,
        error: UpgradeError,
        *,
        stream: Any = None,
        parsed: HttpRequest | None = None,
    ) -> None:
        super().__init__(error)
        self.error = error
        self.stream = stream
        self.parsed = parsed

    def __str__(self) -> str:
        return str(self.error)

    def __repr__(self) -> str:
        return f"InvalidConnection(stream=..., parsed=..., error={self.error!r})"


class _SocketStream:
    """A buffered, file-like view of a connected socket."""

    def __init__(self, sock: socket.socket) -> None:
        self.socket = sock
        self._reader = sock.makefile("rb")
        self._writer = sock.makefile("wb")

    def read(self, size: int = -1) -> bytes:
        return self._reader.read(size)

    def readline(self, limit: int = -1) -> bytes:
        return self._reader.readline(limit)

    def write(self, data: bytes) -> int:
        return self._writer.write(data)

    def flush(self) -> None:
        self._writer.flush()

    def close(self) -> None:
        for closable in (self._reader, self._writer, self.socket):
            try:
                closable.close()
            except OSError:
                pass


def _split_address(addr: Any) -> tuple[str, int]:
    if isinstance(addr, str):
        host, sep, port = addr.rpartition(":")
        if not sep or not host:
            raise ValueError(f"invalid socket address: {addr!r}")
        return host.strip("[]"), int(port)
    host, port = addr[0], addr[1]
    return str(host), int(port)


def _listen(addr: Any) -> socket.socket:
    host, port = _split_address(addr)
    last_error: OSError | None = None
    for family, _, _, _, sockaddr in socket.getaddrinfo(host, port, type=socket.SOCK_STREAM):
        try:
            return socket.create_server(sockaddr[:2], family=family)
        except OSError as exc:
            last_error = exc
    raise last_error or OSError(f"could not resolve {addr!r}")


class Server:
    """A WebSocket server over plain or TLS connections.

    Iterating over the server accepts connections one after another.
    """

    def __init__(self, listener: socket.socket, ssl_context: ssl.SSLContext | None = None) -> None:
        self._listener = listener
        self.ssl_context = ssl_context

    @classmethod
    def bind(cls, addr: Any) -> Server:
        """Bind a plain server to "host:port" or a (host, port) pair."""
        return cls(_listen(addr))

    @classmethod
    def bind_secure(cls, addr: Any, ssl_context: ssl.SSLContext) -> Server:
        """Bind a TLS server that wraps each connection with the given context."""
        return cls(_listen(addr), ssl_context)

    def local_addr(self) -> tuple:
        """The address the server listens on."""
        return self._listener.getsockname()

    def set_nonblocking(self, nonblocking: bool) -> None:
        """In nonblocking mode accept raises instead of waiting for a connection."""
        self._listener.setblocking(not nonblocking)

    def accept(self) -> WsUpgrade:
        """Wait for a connection and read its WebSocket handshake.

        Raises InvalidConnection when no connection could be taken or it is not
        a valid upgrade request.
        """
        try:
            sock, _ = self._listener.accept()
        except OSError as exc:
            raise InvalidConnection(UpgradeError(UpgradeErrorKind.IO, exc)) from exc
        sock.setblocking(True)

        if self.ssl_context is not None:
            try:
                sock = self.ssl_context.wrap_socket(sock, server_side=True)
            except OSError as exc:
                try:
                    sock.close()
                except OSError:
                    pass
                raise InvalidConnection(UpgradeError(UpgradeErrorKind.IO, exc)) from exc

        stream = _SocketStream(sock)
        try:
            return into_ws(stream)
        except UpgradeError as exc:
            raise InvalidConnection(exc, stream=stream, parsed=exc.request) from exc

    def try_clone(self) -> Server:
        """A new, independently owned handle to the same listening socket."""
        return Server(self._listener.dup(), self.ssl_context)

    def close(self) -> None:
        """Stop listening."""
        self._listener.close()

    def __iter__(self) -> Server:
        return self

    def __next__(self) -> WsUpgrade:
        return self.accept()

    def __enter__(self) -> Server:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()