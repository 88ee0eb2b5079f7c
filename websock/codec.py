"""Incremental encoding and decoding of data frames and messages over byte buffers."""

from __future__ import annotations

import enum
import io
from typing import Protocol

from websock.dataframe import DataFrame, DataFrameLike
from websock.errors import NoDataAvailable, ProtocolError
from websock.frameheader import read_header
from websock.message import OwnedMessage

DEFAULT_MAX_DATAFRAME_SIZE = 1024 * 1024 * 100
DEFAULT_MAX_MESSAGE_SIZE = 1024 * 1024 * 200
MAX_DATAFRAMES_IN_ONE_MESSAGE = 1024 * 1024
PER_DATAFRAME_OVERHEAD = 64
_U32_MAX = 0xFFFFFFFF


class Context(enum.Enum):
    """The role a codec plays, which decides whether outgoing data is masked."""

    SERVER = "server"
    CLIENT = "client"


class _Serializable(Protocol):
    def serialize(self, writer: io.BytesIO, masked: bool) -> None: ...


class DataFrameCodec:
    """Decodes data frames from a byte buffer and encodes any frame into one."""

    def __init__(
        self, context: Context, max_dataframe_size: int = DEFAULT_MAX_DATAFRAME_SIZE
    ) -> None:
        self.is_server = context == Context.SERVER
        self.max_dataframe_size = min(max_dataframe_size, _U32_MAX)

    def decode(self, src: bytearray) -> DataFrame | None:
        """Take one complete frame off the front of src, or return None if more data is needed."""
        reader = io.BytesIO(bytes(src))
        try:
            header = read_header(reader)
        except NoDataAvailable:
            return None
        header_size = reader.tell()

        if header.length > self.max_dataframe_size:
            raise ProtocolError("Exceeded maximum incoming DataFrame size")

        end = header_size + header.length
        if end > len(src):
            return None

        body = bytes(src[header_size:end])
        del src[:end]
        return DataFrame.read_dataframe_body(header, body, self.is_server)

    def encode(self, item: DataFrameLike, dst: bytearray) -> None:
        """Append the encoded frame to dst, masked when acting as a client."""
        buffer = io.BytesIO()
        item.write_to(buffer, not self.is_server)
        dst += buffer.getvalue()


class MessageCodec:
    """Decodes whole messages from a byte buffer and encodes messages into one."""

    def __init__(
        self,
        context: Context,
        max_dataframe_size: int = DEFAULT_MAX_DATAFRAME_SIZE,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self._frames = DataFrameCodec(context, max_dataframe_size)
        self._buffer: list[DataFrame] = []
        self.max_message_size = min(max_message_size, _U32_MAX)

    @property
    def is_server(self) -> bool:
        return self._frames.is_server

    def decode(self, src: bytearray) -> OwnedMessage | None:
        """Take one complete message off src, or return None if more data is needed.

        Control frames arriving in the middle of a fragmented message are returned
        at once; the fragments gathered so far are kept for the next call.
        """
        current_length = sum(len(frame.data) for frame in self._buffer)
        while (frame := self._frames.decode(src)) is not None:
            is_first = not self._buffer
            op = frame.opcode()

            if op == 0 and is_first:
                raise ProtocolError("Unexpected continuation data frame opcode")
            if op >= 8:
                return OwnedMessage.from_dataframes([frame])
            if 1 <= op <= 7 and not is_first:
                raise ProtocolError("Unexpected data frame opcode")

            current_length += len(frame.data) + PER_DATAFRAME_OVERHEAD
            self._buffer.append(frame)

            if frame.finished:
                frames, self._buffer = self._buffer, []
                return OwnedMessage.from_dataframes(frames)
            if len(self._buffer) >= MAX_DATAFRAMES_IN_ONE_MESSAGE:
                raise ProtocolError("Exceeded count of data frames in one WebSocket message")
            if current_length > self.max_message_size:
                raise ProtocolError("Exceeded maximum WebSocket message size")
        return None

    def encode(self, item: _Serializable, dst: bytearray) -> None:
        """Append the serialized message to dst, masked when acting as a client."""
        buffer = io.BytesIO()
        item.serialize(buffer, not self.is_server)
        dst += buffer.getvalue()