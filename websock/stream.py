"""Duplex streams built from a separate reader and writer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ReadWritePair:
    """Reads come from one object and writes go to another.

    Useful for speaking WebSocket over different media in each direction.
    """

    reader: Any
    writer: Any

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes from the reader; all of it when size is negative."""
        return self.reader.read(size)

    def write(self, data: bytes) -> int:
        """Write data to the writer."""
        return self.writer.write(data)

    def flush(self) -> None:
        """Flush the writer."""
        self.writer.flush()

    def split(self) -> tuple[Any, Any]:
        """Hand back the reading and the writing component."""
        return self.reader, self.writer