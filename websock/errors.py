"""Errors raised while reading, writing and interpreting WebSocket data."""

from __future__ import annotations


class WebSocketError(Exception):
    """Base class of every WebSocket error."""

    description = "WebSocket error"

    def __str__(self) -> str:
        return f"WebSocketError: {self.description}"


class ProtocolError(WebSocketError):
    """The peer broke the WebSocket protocol."""

    description = "WebSocket protocol error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class DataFrameError(WebSocketError):
    """A data frame was malformed or could not be written."""

    description = "WebSocket data frame error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NoDataAvailable(WebSocketError):
    """The stream ended before a complete item could be read."""

    description = "No data available"


class WebSocketIOError(WebSocketError):
    """An input/output failure of the underlying stream."""

    description = "I/O failure"

    def __init__(self, error: OSError) -> None:
        super().__init__(error)
        self.error = error
        self.__cause__ = error


class WebSocketUtf8Error(WebSocketError):
    """A text payload was not valid UTF-8."""

    description = "UTF-8 failure"

    def __init__(self, error: UnicodeDecodeError) -> None:
        super().__init__(error)
        self.error = error
        self.__cause__ = error


def from_os_error(err: OSError | EOFError) -> WebSocketError:
    """Turn a stream error into a WebSocket error; an early end of data becomes NoDataAvailable."""
    if isinstance(err, EOFError):
        return NoDataAvailable()
    return WebSocketIOError(err)