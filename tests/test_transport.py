import io

import pytest

from websock.dataframe import DataFrame, Opcode
from websock.errors import NoDataAvailable
from websock.message import BinaryMessage, Message, PingMessage, TextMessage
from websock.transport import Receiver, Sender


class FlagSender(Sender):
    def __init__(self, masked):
        self.masked = masked

    def is_masked(self):
        return self.masked


class FrameReceiver(Receiver):
    def __init__(self, masked):
        self.masked = masked

    def recv_dataframe(self, reader):
        return DataFrame.read_dataframe(reader, self.masked)

    def recv_message_dataframes(self, reader):
        frames = [self.recv_dataframe(reader)]
        while not frames[-1].is_last():
            frames.append(self.recv_dataframe(reader))
        return frames


class MessageReceiver(FrameReceiver):
    message_type = Message


@pytest.mark.parametrize("masked", [True, False])
def test_send_and_receive_message(masked):
    buf = io.BytesIO()
    FlagSender(masked).send_message(buf, Message.text("hello"))
    buf.seek(0)
    assert FrameReceiver(masked).recv_message(buf) == TextMessage("hello")


def test_unmasked_send_matches_serialize():
    buf = io.BytesIO()
    FlagSender(False).send_message(buf, Message.binary(b"data"))
    expected = io.BytesIO()
    Message.binary(b"data").serialize(expected, False)
    assert buf.getvalue() == expected.getvalue()


def test_send_dataframe_round_trip():
    frame = DataFrame(True, Opcode.BINARY, b"payload")
    buf = io.BytesIO()
    FlagSender(True).send_dataframe(buf, frame)
    buf.seek(0)
    assert FrameReceiver(True).recv_dataframe(buf) == frame


def test_fragmented_message_reassembled():
    buf = io.BytesIO()
    sender = FlagSender(False)
    sender.send_dataframe(buf, DataFrame(False, Opcode.TEXT, b"ab"))
    sender.send_dataframe(buf, DataFrame(True, Opcode.CONTINUATION, b"cd"))
    buf.seek(0)
    assert FrameReceiver(False).recv_message(buf) == TextMessage("abcd")


def test_message_type_selects_result():
    buf = io.BytesIO()
    FlagSender(False).send_message(buf, Message.ping(b"x"))
    buf.seek(0)
    assert MessageReceiver(False).recv_message(buf) == Message.ping(b"x")


def test_incoming_messages_then_end_of_data():
    buf = io.BytesIO()
    sender = FlagSender(False)
    sender.send_message(buf, BinaryMessage(b"one"))
    sender.send_message(buf, PingMessage(b"two"))
    buf.seek(0)
    messages = FrameReceiver(False).incoming_messages(buf)
    assert next(messages) == BinaryMessage(b"one")
    assert next(messages) == PingMessage(b"two")
    with pytest.raises(NoDataAvailable):
        next(messages)


def test_incoming_dataframes_yields_in_order():
    frames = [
        DataFrame(False, Opcode.BINARY, b"a"),
        DataFrame(True, Opcode.CONTINUATION, b"b"),
    ]
    buf = io.BytesIO()
    sender = FlagSender(True)
    for frame in frames:
        sender.send_dataframe(buf, frame)
    buf.seek(0)
    incoming = FrameReceiver(True).incoming_dataframes(buf)
    assert [next(incoming), next(incoming)] == frames
    with pytest.raises(NoDataAvailable):
        next(incoming)