"""Data frames: the generic interface and the default owned implementation."""

from __future__ import annotations

import enum
import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO

from websock.errors import (
    DataFrameError,
    NoDataAvailable,
    WebSocketIOError,
    from_os_error,
)
from websock.frameheader import DataFrameFlags, DataFrameHeader, read_header, write_header
from websock.mask import Masker, gen_mask, mask_data


class Opcode(enum.IntEnum):
    """WebSocket data frame opcodes."""

    CONTINUATION = 0
    TEXT = 1
    BINARY = 2
    NON_CONTROL1 = 3
    NON_CONTROL2 = 4
    NON_CONTROL3 = 5
    NON_CONTROL4 = 6
    NON_CONTROL5 = 7
    CLOSE = 8
    PING = 9
    PONG = 10
    CONTROL1 = 11
    CONTROL2 = 12
    CONTROL3 = 13
    CONTROL4 = 14
    CONTROL5 = 15


def opcode_from(op: int) -> Opcode | None:
    """Return the opcode for a nibble, or None if it is out of range."""
    try:
        return Opcode(op)
    except ValueError:
        return None


class DataFrameLike(ABC):
    """Anything that can be sent as a single data frame."""

    @abstractmethod
    def is_last(self) -> bool:
        """Whether this frame ends its message."""

    @abstractmethod
    def opcode(self) -> int:
        """The numeric opcode of this frame."""

    @abstractmethod
    def reserved(self) -> tuple[bool, bool, bool]:
        """The three reserved bits."""

    @abstractmethod
    def size(self) -> int:
        """Payload length in bytes."""

    @abstractmethod
    def write_payload(self, socket: BinaryIO) -> None:
        """Write the payload to a writer."""

    @abstractmethod
    def take_payload(self) -> bytes:
        """Return the payload as bytes."""

    def frame_size(self, masked: bool) -> int:
        """Size in bytes of the whole frame, header included."""
        size = self.size()
        if size <= 125:
            length_bytes = 1
        elif size <= 65535:
            length_bytes = 3
        else:
            length_bytes = 9
        return 1 + length_bytes + (4 if masked else 0) + size

    def write_to(self, writer: BinaryIO, mask: bool) -> None:
        """Write the frame to a writer, masking it if asked."""
        flags = DataFrameFlags(0)
        if self.is_last():
            flags |= DataFrameFlags.FIN
        for bit, flag in zip(
            self.reserved(), (DataFrameFlags.RSV1, DataFrameFlags.RSV2, DataFrameFlags.RSV3)
        ):
            if bit:
                flags |= flag

        masking_key = gen_mask() if mask else None
        header = DataFrameHeader(
            flags=flags, opcode=self.opcode(), mask=masking_key, length=self.size()
        )

        buffer = io.BytesIO()
        write_header(buffer, header)
        if masking_key is not None:
            self.write_payload(Masker(masking_key, buffer))
        else:
            self.write_payload(buffer)

        try:
            writer.write(buffer.getvalue())
        except (OSError, EOFError) as exc:
            raise from_os_error(exc) from exc


@dataclass
class DataFrame(DataFrameLike):
    """A data frame that owns its (unmasked) payload."""

    finished: bool
    kind: Opcode
    data: bytes
    reserved_bits: tuple[bool, bool, bool] = (False, False, False)

    def is_last(self) -> bool:
        return self.finished

    def opcode(self) -> int:
        return int(self.kind)

    def reserved(self) -> tuple[bool, bool, bool]:
        return self.reserved_bits

    def size(self) -> int:
        return len(self.data)

    def write_payload(self, socket: BinaryIO) -> None:
        try:
            socket.write(bytes(self.data))
        except (OSError, EOFError) as exc:
            raise from_os_error(exc) from exc

    def take_payload(self) -> bytes:
        return bytes(self.data)

    @classmethod
    def read_dataframe_body(
        cls, header: DataFrameHeader, body: bytes, should_be_masked: bool
    ) -> DataFrame:
        """Combine a header and its payload into a frame, unmasking as needed."""
        flags = header.flags
        reserved = (
            DataFrameFlags.RSV1 in flags,
            DataFrameFlags.RSV2 in flags,
            DataFrameFlags.RSV3 in flags,
        )
        if header.mask is not None:
            if not should_be_masked:
                raise DataFrameError("Expected unmasked data frame")
            data = mask_data(header.mask, body)
        else:
            if should_be_masked:
                raise DataFrameError("Expected masked data frame")
            data = bytes(body)
        return cls(
            finished=DataFrameFlags.FIN in flags,
            kind=Opcode(header.opcode),
            data=data,
            reserved_bits=reserved,
        )

    @classmethod
    def read_dataframe(cls, reader: BinaryIO, should_be_masked: bool) -> DataFrame:
        """Read a frame from a reader."""
        header = read_header(reader)
        return cls.read_dataframe_body(header, _read_payload(reader, header.length), should_be_masked)

    @classmethod
    def read_dataframe_with_limit(
        cls, reader: BinaryIO, should_be_masked: bool, limit: int
    ) -> DataFrame:
        """Read a frame, failing if its declared length exceeds the limit."""
        header = read_header(reader)
        if header.length > limit:
            raise WebSocketIOError(OSError("exceeded DataFrame length limit"))
        return cls.read_dataframe_body(header, _read_payload(reader, header.length), should_be_masked)


def _read_payload(reader: BinaryIO, length: int) -> bytes:
    data = bytearray()
    try:
        while len(data) < length:
            chunk = reader.read(length - len(data))
            if not chunk:
                break
            data += chunk
    except (OSError, EOFError) as exc:
        raise from_os_error(exc) from exc
    if len(data) < length:
        raise NoDataAvailable()
    return bytes(data)