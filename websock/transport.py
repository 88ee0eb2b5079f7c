"""Senders and receivers of data frames and messages over plain streams."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import BinaryIO, Protocol

from websock.dataframe import DataFrameLike
from websock.message import OwnedMessage


class _Serializable(Protocol):
    def serialize(self, writer: BinaryIO, masked: bool) -> None: ...


class Sender(ABC):
    """Sends data frames and messages to a writer."""

    @abstractmethod
    def is_masked(self) -> bool:
        """Whether outgoing frames are masked."""

    def send_dataframe(self, writer: BinaryIO, dataframe: DataFrameLike) -> None:
        """Write a single data frame."""
        dataframe.write_to(writer, self.is_masked())

    def send_message(self, writer: BinaryIO, message: _Serializable) -> None:
        """Write a single message."""
        message.serialize(writer, self.is_masked())


class Receiver(ABC):
    """Receives data frames and messages from a reader."""

    message_type: type = OwnedMessage

    @abstractmethod
    def recv_dataframe(self, reader: BinaryIO) -> DataFrameLike:
        """Read a single data frame."""

    @abstractmethod
    def recv_message_dataframes(self, reader: BinaryIO) -> list[DataFrameLike]:
        """Read the data frames that make up one message."""

    def incoming_dataframes(self, reader: BinaryIO) -> Iterator[DataFrameLike]:
        """Yield data frames until reading one fails; the failure is raised."""
        while True:
            yield self.recv_dataframe(reader)

    def recv_message(self, reader: BinaryIO):
        """Read a single message."""
        return self.message_type.from_dataframes(self.recv_message_dataframes(reader))

    def incoming_messages(self, reader: BinaryIO) -> Iterator:
        """Yield messages until reading one fails; the failure is raised."""
        while True:
            yield self.recv_message(reader)