"""Reading and writing of data frame headers."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import BinaryIO

from websock.errors import (
    DataFrameError,
    NoDataAvailable,
    ProtocolError,
    WebSocketUtf8Error,
    from_os_error,
)


class DataFrameFlags(enum.IntFlag):
    """Flags held in the first byte of a data frame header."""

    FIN = 0x80
    RSV1 = 0x40
    RSV2 = 0x20
    RSV3 = 0x10


@dataclass(frozen=True)
class DataFrameHeader:
    """A data frame header."""

    flags: DataFrameFlags
    opcode: int
    mask: bytes | None
    length: int


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    chunks = bytearray()
    try:
        while len(chunks) < size:
            chunk = reader.read(size - len(chunks))
            if not chunk:
                raise NoDataAvailable()
            chunks += chunk
    except (OSError, EOFError) as exc:
        raise from_os_error(exc) from exc
    return bytes(chunks)


def write_header(writer: BinaryIO, header: DataFrameHeader) -> None:
    """Write a data frame header to the writer."""
    if header.opcode > 0xF:
        raise DataFrameError("Invalid data frame opcode")
    if header.opcode >= 8 and header.length >= 126:
        raise DataFrameError("Control frame length too long")

    out = bytearray([int(header.flags) | header.opcode])
    mask_bit = 0x80 if header.mask is not None else 0x00
    if header.length <= 125:
        out.append(mask_bit | header.length)
    elif header.length <= 65535:
        out.append(mask_bit | 126)
        out += struct.pack(">H", header.length)
    else:
        out.append(mask_bit | 127)
        out += struct.pack(">Q", header.length)
    if header.mask is not None:
        out += header.mask

    try:
        writer.write(bytes(out))
    except (OSError, EOFError) as exc:
        raise from_os_error(exc) from exc


def read_header(reader: BinaryIO) -> DataFrameHeader:
    """Read a data frame header from the reader."""
    byte0, byte1 = _read_exact(reader, 2)
    flags = DataFrameFlags(byte0 & 0xF0)
    opcode = byte0 & 0x0F

    code = byte1 & 0x7F
    if code == 126:
        (length,) = struct.unpack(">H", _read_exact(reader, 2))
        if length <= 125:
            raise DataFrameError("Invalid data frame length")
    elif code == 127:
        (length,) = struct.unpack(">Q", _read_exact(reader, 8))
        if length <= 65535:
            raise DataFrameError("Invalid data frame length")
    else:
        length = code

    if opcode >= 8:
        if length >= 126:
            raise DataFrameError("Control frame length too long")
        if DataFrameFlags.FIN not in flags:
            raise ProtocolError("Illegal fragmented control frame")

    mask = _read_exact(reader, 4) if byte1 & 0x80 else None
    return DataFrameHeader(flags=flags, opcode=opcode, mask=mask, length=length)


def bytes_to_string(data: bytes) -> str:
    """Decode UTF-8 bytes into a string."""
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise WebSocketUtf8Error(exc) from exc