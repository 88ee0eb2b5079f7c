import io

from websock.stream import ReadWritePair


class _CountingWriter(io.BytesIO):
    def __init__(self) -> None:
        super().__init__()
        self.flushes = 0

    def flush(self) -> None:
        self.flushes += 1
        super().flush()


def test_read_comes_from_reader():
    pair = ReadWritePair(io.BytesIO(b"hello world"), io.BytesIO())
    assert pair.read(5) == b"hello"
    assert pair.read() == b" world"
    assert pair.read(3) == b""


def test_write_goes_to_writer_only():
    reader = io.BytesIO(b"input")
    writer = io.BytesIO()
    pair = ReadWritePair(reader, writer)
    written = pair.write(b"output")
    assert written == len(b"output")
    assert writer.getvalue() == b"output"
    assert reader.getvalue() == b"input"


def test_flush_is_passed_to_writer():
    writer = _CountingWriter()
    pair = ReadWritePair(io.BytesIO(), writer)
    pair.flush()
    pair.flush()
    assert writer.flushes == 2


def test_split_returns_original_components():
    reader = io.BytesIO(b"r")
    writer = io.BytesIO()
    got_reader, got_writer = ReadWritePair(reader, writer).split()
    assert got_reader is reader
    assert got_writer is writer


def test_reads_and_writes_interleave_independently():
    pair = ReadWritePair(io.BytesIO(b"abcdef"), io.BytesIO())
    first = pair.read(3)
    pair.write(first)
    second = pair.read(3)
    pair.write(second)
    _, writer = pair.split()
    assert writer.getvalue() == b"abcdef"