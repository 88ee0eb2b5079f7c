"""Sec-WebSocket-Key and Sec-WebSocket-Accept handshake values."""

from __future__ import annotations

import base64
import binascii
import hashlib
import secrets
from dataclasses import dataclass

from websock.errors import ProtocolError

PROTOCOL = "Sec-WebSocket-Protocol"
ACCEPT = "Sec-WebSocket-Accept"
EXTENSIONS = "Sec-WebSocket-Extensions"
KEY = "Sec-WebSocket-Key"

MAGIC_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"


def _decode(value: str) -> bytes | None:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return None


@dataclass(frozen=True)
class WebSocketKey:
    """The sixteen random bytes of a Sec-WebSocket-Key header."""

    key: bytes = bytes(16)

    def __post_init__(self) -> None:
        if len(self.key) != 16:
            raise ValueError("a WebSocket key is 16 bytes")

    @classmethod
    def generate(cls) -> WebSocketKey:
        """A new random key."""
        return cls(secrets.token_bytes(16))

    @classmethod
    def parse(cls, key: str) -> WebSocketKey:
        """Parse the base64 text of a Sec-WebSocket-Key header."""
        raw = _decode(key)
        if raw is None:
            raise ProtocolError("Invalid Sec-WebSocket-Accept")
        if len(raw) != 16:
            raise ProtocolError("Sec-WebSocket-Key must be 16 bytes")
        return cls(raw)

    def serialize(self) -> str:
        """The base64 encoding of this key."""
        return base64.b64encode(self.key).decode("ascii")

    def __repr__(self) -> str:
        return f"WebSocketKey({self.serialize()})"


@dataclass(frozen=True)
class WebSocketAccept:
    """The twenty-byte digest of a Sec-WebSocket-Accept header."""

    digest: bytes

    def __post_init__(self) -> None:
        if len(self.digest) != 20:
            raise ValueError("a WebSocket accept value is 20 bytes")

    @classmethod
    def from_key(cls, key: WebSocketKey) -> WebSocketAccept:
        """The accept value that answers the given key."""
        concat = key.serialize() + MAGIC_GUID
        return cls(hashlib.sha1(concat.encode("ascii")).digest())

    @classmethod
    def parse(cls, accept: str) -> WebSocketAccept:
        """Parse the base64 text of a Sec-WebSocket-Accept header."""
        raw = _decode(accept)
        if raw is None:
            raise ProtocolError("Invalid Sec-WebSocket-Accept ")
        if len(raw) != 20:
            raise ProtocolError("Sec-WebSocket-Accept must be 20 bytes")
        return cls(raw)

    def serialize(self) -> str:
        """The base64 encoding of this accept value."""
        return base64.b64encode(self.digest).decode("ascii")

    def __repr__(self) -> str:
        return f"WebSocketAccept({self.serialize()})"