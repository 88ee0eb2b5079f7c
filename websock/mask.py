"""Masking of data frame payloads."""

from __future__ import annotations

import secrets
from typing import BinaryIO


def gen_mask() -> bytes:
    """Return a random four-byte masking key."""
    return secrets.token_bytes(4)


def mask_data(mask: bytes, data: bytes) -> bytes:
    """XOR data with the repeating four-byte key; applying it twice restores the data."""
    size = len(data)
    if size == 0:
        return b""
    key = (bytes(mask) * (size // 4 + 1))[:size]
    value = int.from_bytes(data, "big") ^ int.from_bytes(key, "big")
    return value.to_bytes(size, "big")


class Masker:
    """A writer that masks everything written to it before passing it on."""

    def __init__(self, key: bytes, endpoint: BinaryIO) -> None:
        self.key = bytes(key)
        self.endpoint = endpoint
        self._pos = 0

    def write(self, data: bytes) -> int:
        if not data:
            return 0
        rotated = self.key[self._pos:] + self.key[: self._pos]
        self.endpoint.write(mask_data(rotated, data))
        self._pos = (self._pos + len(data)) % len(self.key)
        return len(data)

    def flush(self) -> None:
        self.endpoint.flush()