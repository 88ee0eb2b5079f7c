"""WebSocket messages: a borrowed-style message and owned message variants."""

from __future__ import annotations

import enum
import struct
from abc import abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Iterable

from websock.dataframe import DataFrameLike, Opcode, opcode_from
from websock.errors import NoDataAvailable, ProtocolError, WebSocketUtf8Error, from_os_error
from websock.frameheader import bytes_to_string

_NO_RESERVED = (False, False, False)


def _write(socket: BinaryIO, data: bytes) -> None:
    try:
        socket.write(data)
    except (OSError, EOFError) as exc:
        raise from_os_error(exc) from exc


class MessageType(enum.IntEnum):
    """Kinds of message in the default implementation."""

    TEXT = 1
    BINARY = 2
    CLOSE = 8
    PING = 9
    PONG = 10


@dataclass(frozen=True)
class CloseData:
    """Status code and reason carried by a close message."""

    status_code: int
    reason: str

    def to_bytes(self) -> bytes:
        """Encode as a big-endian status code followed by the UTF-8 reason."""
        return struct.pack(">H", self.status_code) + self.reason.encode("utf-8")


@dataclass
class Message(DataFrameLike):
    """A message sent as a single data frame, holding its payload as bytes."""

    kind: MessageType
    status_code: int | None
    payload: bytes

    @classmethod
    def text(cls, data: str) -> Message:
        """A text message."""
        return cls(MessageType.TEXT, None, data.encode("utf-8"))

    @classmethod
    def binary(cls, data: bytes) -> Message:
        """A binary message."""
        return cls(MessageType.BINARY, None, bytes(data))

    @classmethod
    def close(cls) -> Message:
        """A close message without status or reason."""
        return cls(MessageType.CLOSE, None, b"")

    @classmethod
    def close_because(cls, code: int, reason: str) -> Message:
        """A close message with a status code and a reason."""
        return cls(MessageType.CLOSE, code, reason.encode("utf-8"))

    @classmethod
    def ping(cls, data: bytes) -> Message:
        """A ping message."""
        return cls(MessageType.PING, None, bytes(data))

    @classmethod
    def pong(cls, data: bytes) -> Message:
        """A pong message."""
        return cls(MessageType.PONG, None, bytes(data))

    def into_pong(self) -> None:
        """Turn a ping into a pong in place, keeping its data."""
        if self.kind != MessageType.PING:
            raise ValueError("only a ping message can become a pong")
        self.kind = MessageType.PONG

    def is_last(self) -> bool:
        return True

    def opcode(self) -> int:
        return int(self.kind)

    def reserved(self) -> tuple[bool, bool, bool]:
        return _NO_RESERVED

    def size(self) -> int:
        return len(self.payload) + (2 if self.status_code is not None else 0)

    def write_payload(self, socket: BinaryIO) -> None:
        _write(socket, self.take_payload())

    def take_payload(self) -> bytes:
        if self.status_code is not None:
            return struct.pack(">H", self.status_code) + bytes(self.payload)
        return bytes(self.payload)

    def serialize(self, writer: BinaryIO, masked: bool) -> None:
        """Write this message to the writer as one frame."""
        self.write_to(writer, masked)

    def message_size(self, masked: bool) -> int:
        """Number of bytes this message takes on the wire."""
        return self.frame_size(masked)

    @classmethod
    def from_dataframes(cls, frames: Iterable[DataFrameLike]) -> Message:
        """Assemble a message from the data frames that make it up."""
        frames = list(frames)
        if not frames:
            raise ProtocolError("No dataframes provided")
        opcode = opcode_from(frames[0].opcode())

        data = bytearray()
        for index, frame in enumerate(frames):
            if index > 0 and frame.opcode() != Opcode.CONTINUATION:
                raise ProtocolError("Unexpected non-continuation data frame")
            if tuple(frame.reserved()) != _NO_RESERVED:
                raise ProtocolError("Unsupported reserved bits received")
            data += frame.take_payload()
        payload = bytes(data)

        if opcode == Opcode.TEXT:
            try:
                payload.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise WebSocketUtf8Error(exc) from exc
            return cls(MessageType.TEXT, None, payload)
        if opcode == Opcode.BINARY:
            return cls.binary(payload)
        if opcode == Opcode.CLOSE:
            if not payload:
                return cls.close()
            if len(payload) < 2:
                raise NoDataAvailable()
            status = int.from_bytes(payload[:2], "big")
            return cls.close_because(status, bytes_to_string(payload[2:]))
        if opcode == Opcode.PING:
            return cls.ping(payload)
        if opcode == Opcode.PONG:
            return cls.pong(payload)
        raise ProtocolError("Unsupported opcode received")

    def to_owned(self) -> OwnedMessage:
        """Convert into the matching owned message; text is decoded lossily."""
        if self.kind == MessageType.TEXT:
            return TextMessage(bytes(self.payload).decode("utf-8", errors="replace"))
        if self.kind == MessageType.CLOSE:
            if self.status_code is None:
                return CloseMessage(None)
            reason = bytes(self.payload).decode("utf-8", errors="replace")
            return CloseMessage(CloseData(self.status_code, reason))
        if self.kind == MessageType.BINARY:
            return BinaryMessage(bytes(self.payload))
        if self.kind == MessageType.PING:
            return PingMessage(bytes(self.payload))
        return PongMessage(bytes(self.payload))


class OwnedMessage(DataFrameLike):
    """Base of the owned message variants produced when receiving."""

    def is_close(self) -> bool:
        return isinstance(self, CloseMessage)

    def is_control(self) -> bool:
        return isinstance(self, (CloseMessage, PingMessage, PongMessage))

    def is_data(self) -> bool:
        return not self.is_control()

    def is_ping(self) -> bool:
        return isinstance(self, PingMessage)

    def is_pong(self) -> bool:
        return isinstance(self, PongMessage)

    def is_last(self) -> bool:
        return True

    def reserved(self) -> tuple[bool, bool, bool]:
        return _NO_RESERVED

    def size(self) -> int:
        return len(self.take_payload())

    def write_payload(self, socket: BinaryIO) -> None:
        _write(socket, self.take_payload())

    @abstractmethod
    def to_message(self) -> Message:
        """Convert into a Message."""

    def serialize(self, writer: BinaryIO, masked: bool) -> None:
        """Write this message to the writer as one frame."""
        self.write_to(writer, masked)

    def message_size(self, masked: bool) -> int:
        """Number of bytes this message takes on the wire."""
        return self.frame_size(masked)

    @classmethod
    def from_dataframes(cls, frames: Iterable[DataFrameLike]) -> OwnedMessage:
        """Assemble an owned message from the data frames that make it up."""
        return Message.from_dataframes(frames).to_owned()


@dataclass(frozen=True)
class TextMessage(OwnedMessage):
    """A message holding UTF-8 text."""

    text: str

    def opcode(self) -> int:
        return int(MessageType.TEXT)

    def take_payload(self) -> bytes:
        return self.text.encode("utf-8")

    def to_message(self) -> Message:
        return Message.text(self.text)


@dataclass(frozen=True)
class BinaryMessage(OwnedMessage):
    """A message holding binary data."""

    data: bytes

    def opcode(self) -> int:
        return int(MessageType.BINARY)

    def take_payload(self) -> bytes:
        return bytes(self.data)

    def to_message(self) -> Message:
        return Message.binary(self.data)


@dataclass(frozen=True)
class CloseMessage(OwnedMessage):
    """A message closing the connection, with optional close data."""

    data: CloseData | None = None

    def opcode(self) -> int:
        return int(MessageType.CLOSE)

    def take_payload(self) -> bytes:
        return self.data.to_bytes() if self.data is not None else b""

    def to_message(self) -> Message:
        if self.data is None:
            return Message.close()
        return Message.close_because(self.data.status_code, self.data.reason)


@dataclass(frozen=True)
class PingMessage(OwnedMessage):
    """A ping, usually answered by a pong with the same data."""

    data: bytes

    def opcode(self) -> int:
        return int(MessageType.PING)

    def take_payload(self) -> bytes:
        return bytes(self.data)

    def to_message(self) -> Message:
        return Message.ping(self.data)


@dataclass(frozen=True)
class PongMessage(OwnedMessage):
    """A pong, sent in response to a ping."""

    data: bytes

    def opcode(self) -> int:
        return int(MessageType.PONG)

    def take_payload(self) -> bytes:
        return bytes(self.data)

    def to_message(self) -> Message:
        return Message.pong(self.data)