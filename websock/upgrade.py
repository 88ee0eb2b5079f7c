"""Turning an HTTP upgrade request on a stream into the start of a WebSocket session."""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, BinaryIO

from websock.errors import ProtocolError
from websock.handshake import ACCEPT, EXTENSIONS, KEY, PROTOCOL, WebSocketAccept, WebSocketKey

VERSION = "Sec-WebSocket-Version"
ORIGIN = "Origin"
CONNECTION = "Connection"
UPGRADE = "Upgrade"

MAX_HEADERS = 100
MAX_HEAD_SIZE = 8192 + 4096 * 100

_REQUEST_LINE = re.compile(r"([!#$%&'*+\-.^_`|~0-9A-Za-z]+) (\S+) (HTTP/\d\.\d)")


@dataclass
class HttpRequest:
    """A parsed HTTP request head."""

    method: str
    uri: str
    version: str
    headers: dict[str, str] = field(default_factory=dict)


class UpgradeErrorKind(enum.Enum):
    """Reasons a connection cannot be upgraded to a WebSocket connection."""

    METHOD_NOT_GET = "Request method must be GET"
    UNSUPPORTED_HTTP_VERSION = "Unsupported request HTTP version"
    UNSUPPORTED_WEBSOCKET_VERSION = "Unsupported WebSocket version"
    NO_SEC_WS_KEY_HEADER = "Missing Sec-WebSocket-Key header"
    NO_WS_UPGRADE_HEADER = "Invalid Upgrade WebSocket header"
    NO_UPGRADE_HEADER = "Missing Upgrade WebSocket header"
    NO_WS_CONNECTION_HEADER = "Invalid Connection WebSocket header"
    NO_CONNECTION_HEADER = "Missing Connection WebSocket header"
    IO = "I/O error"
    PARSING = "Error while parsing the request"


class UpgradeError(Exception):
    """A failed upgrade; carries whatever of the connection could be recovered."""

    def __init__(
        self,
        kind: UpgradeErrorKind,
        error: object = None,
        *,
        stream: Any = None,
        request: HttpRequest | None = None,
    ) -> None:
        super().__init__(kind, error)
        self.kind = kind
        self.error = error
        self.stream = stream
        self.request = request
        if isinstance(error, BaseException):
            self.__cause__ = error

    def __str__(self) -> str:
        if self.error is not None:
            return str(self.error)
        return self.kind.value


def _find_key(headers: Mapping[str, str], name: str) -> str | None:
    folded = name.casefold()
    for key in headers:
        if key.casefold() == folded:
            return key
    return None


def _get_header(headers: Mapping[str, str], name: str) -> str | None:
    key = _find_key(headers, name)
    return None if key is None else headers[key]


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    key = _find_key(headers, name)
    headers[name if key is None else key] = value


def _comma_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def validate(method: str, version: str, headers: Mapping[str, str]) -> None:
    """Raise UpgradeError unless the request is a valid WebSocket upgrade attempt."""
    if method != "GET":
        raise UpgradeError(UpgradeErrorKind.METHOD_NOT_GET)

    if version in ("HTTP/0.9", "HTTP/1.0"):
        raise UpgradeError(UpgradeErrorKind.UNSUPPORTED_HTTP_VERSION)

    ws_version = _get_header(headers, VERSION)
    if ws_version is not None and ws_version.strip() != "13":
        raise UpgradeError(UpgradeErrorKind.UNSUPPORTED_WEBSOCKET_VERSION)

    key = _get_header(headers, KEY)
    if key is None:
        raise UpgradeError(UpgradeErrorKind.NO_SEC_WS_KEY_HEADER)
    try:
        WebSocketKey.parse(key.strip())
    except ProtocolError:
        raise UpgradeError(UpgradeErrorKind.NO_SEC_WS_KEY_HEADER) from None

    upgrade = _get_header(headers, UPGRADE)
    if upgrade is None:
        raise UpgradeError(UpgradeErrorKind.NO_UPGRADE_HEADER)
    names = (item.split("/", 1)[0].strip().casefold() for item in _comma_list(upgrade))
    if "websocket" not in names:
        raise UpgradeError(UpgradeErrorKind.NO_WS_UPGRADE_HEADER)

    connection = _get_header(headers, CONNECTION)
    if connection is None:
        raise UpgradeError(UpgradeErrorKind.NO_CONNECTION_HEADER)
    if not any(option.casefold() == "upgrade" for option in _comma_list(connection)):
        raise UpgradeError(UpgradeErrorKind.NO_WS_CONNECTION_HEADER)


def _readline(reader: BinaryIO, limit: int) -> bytes:
    readline = getattr(reader, "readline", None)
    if readline is not None:
        return readline(limit) or b""
    line = bytearray()
    while len(line) < limit:
        byte = reader.read(1)
        if not byte:
            break
        line += byte
        if byte == b"\n":
            break
    return bytes(line)


def _read_head(reader: BinaryIO) -> list[str]:
    lines: list[str] = []
    total = 0
    try:
        while True:
            raw = _readline(reader, MAX_HEAD_SIZE - total + 1)
            if not raw:
                raise UpgradeError(
                    UpgradeErrorKind.IO,
                    ConnectionAbortedError("Connection closed before the request was read"),
                )
            total += len(raw)
            if total > MAX_HEAD_SIZE:
                raise UpgradeError(UpgradeErrorKind.PARSING, "Request head too large")
            if not raw.endswith(b"\n"):
                raise UpgradeError(
                    UpgradeErrorKind.IO,
                    ConnectionAbortedError("Connection closed in the middle of the request"),
                )
            text = raw[:-1]
            if text.endswith(b"\r"):
                text = text[:-1]
            if not text:
                if lines:
                    return lines
                continue
            lines.append(text.decode("latin-1"))
    except OSError as exc:
        raise UpgradeError(UpgradeErrorKind.IO, exc) from exc


def parse_request(reader: BinaryIO) -> HttpRequest:
    """Read and parse an HTTP request head, leaving anything after it unread."""
    request_line, *header_lines = _read_head(reader)

    match = _REQUEST_LINE.fullmatch(request_line)
    if match is None:
        raise UpgradeError(UpgradeErrorKind.PARSING, "Invalid request line")
    method, uri, version = match.groups()

    if len(header_lines) > MAX_HEADERS:
        raise UpgradeError(UpgradeErrorKind.PARSING, "Too many headers")

    headers: dict[str, str] = {}
    for line in header_lines:
        name, sep, value = line.partition(":")
        if not sep or not name or name != name.strip() or " " in name or "\t" in name:
            raise UpgradeError(UpgradeErrorKind.PARSING, "Invalid header")
        value = value.strip(" \t")
        existing = _find_key(headers, name)
        if existing is None:
            headers[name] = value
        else:
            headers[existing] = f"{headers[existing]}, {value}"
    return HttpRequest(method=method, uri=uri, version=version, headers=headers)


@dataclass
class WsUpgrade:
    """A half-made WebSocket session: inspect the request, then accept or reject it."""

    stream: Any
    request: HttpRequest
    headers: dict[str, str] = field(default_factory=dict)

    def _append(self, name: str, items: list[str]) -> None:
        existing = _get_header(self.headers, name)
        values = _comma_list(existing) if existing is not None else []
        _set_header(self.headers, name, ", ".join(values + items))

    def use_protocol(self, protocol: str) -> WsUpgrade:
        """Select a protocol for the handshake response."""
        self._append(PROTOCOL, [str(protocol)])
        return self

    def use_extension(self, extension: str) -> WsUpgrade:
        """Select an extension for the handshake response."""
        self._append(EXTENSIONS, [str(extension)])
        return self

    def use_extensions(self, extensions: Iterable[str]) -> WsUpgrade:
        """Select several extensions for the handshake response."""
        self._append(EXTENSIONS, [str(extension) for extension in extensions])
        return self

    def protocols(self) -> list[str]:
        """Protocols the client asked for."""
        value = _get_header(self.request.headers, PROTOCOL)
        return _comma_list(value) if value is not None else []

    def extensions(self) -> list[str]:
        """Extensions the client asked for."""
        value = _get_header(self.request.headers, EXTENSIONS)
        return _comma_list(value) if value is not None else []

    def key(self) -> bytes | None:
        """The sixteen bytes of the client's Sec-WebSocket-Key, if it is valid."""
        value = _get_header(self.request.headers, KEY)
        if value is None:
            return None
        try:
            return WebSocketKey.parse(value.strip()).key
        except ProtocolError:
            return None

    def version(self) -> str | None:
        """The client's WebSocket version."""
        value = _get_header(self.request.headers, VERSION)
        return None if value is None else value.strip()

    def uri(self) -> str:
        """The request URI."""
        return self.request.uri

    def origin(self) -> str | None:
        """The client's origin."""
        return _get_header(self.request.headers, ORIGIN)

    def prepare_headers(self, custom: Mapping[str, str] | None = None) -> HTTPStatus:
        """Fill in the response headers that accept the handshake; returns the status to send."""
        if custom:
            for name, value in custom.items():
                _set_header(self.headers, name, value)
        value = _get_header(self.request.headers, KEY)
        if value is None:
            raise UpgradeError(UpgradeErrorKind.NO_SEC_WS_KEY_HEADER, request=self.request)
        try:
            key = WebSocketKey.parse(value.strip())
        except ProtocolError:
            raise UpgradeError(
                UpgradeErrorKind.NO_SEC_WS_KEY_HEADER, request=self.request
            ) from None
        _set_header(self.headers, ACCEPT, WebSocketAccept.from_key(key).serialize())
        _set_header(self.headers, CONNECTION, "Upgrade")
        _set_header(self.headers, UPGRADE, "websocket")
        return HTTPStatus.SWITCHING_PROTOCOLS

    def _send(self, status: HTTPStatus) -> None:
        parts = [f"{self.request.version} {status.value} {status.phrase}\r\n"]
        parts += [f"{name}: {value}\r\n" for name, value in self.headers.items()]
        parts.append("\r\n")
        try:
            self.stream.write("".join(parts).encode("utf-8"))
            flush = getattr(self.stream, "flush", None)
            if flush is not None:
                flush()
        except OSError as exc:
            raise UpgradeError(
                UpgradeErrorKind.IO, exc, stream=self.stream, request=self.request
            ) from exc

    def reject(self) -> Any:
        """Send a rejection response and hand back the stream."""
        return self.reject_with(None)

    def reject_with(self, headers: Mapping[str, str] | None) -> Any:
        """Send a rejection response with extra headers and hand back the stream."""
        if headers:
            for name, value in headers.items():
                _set_header(self.headers, name, value)
        self._send(HTTPStatus.BAD_REQUEST)
        return self.stream


def into_ws(stream: Any) -> WsUpgrade:
    """Read a handshake from the stream and check that it asks for a WebSocket upgrade."""
    try:
        request = parse_request(stream)
    except UpgradeError as exc:
        exc.stream = stream
        raise
    try:
        validate(request.method, request.version, request.headers)
    except UpgradeError as exc:
        exc.stream = stream
        exc.request = request
        raise
    return WsUpgrade(stream=stream, request=request)