import io

from websock.mask import Masker, gen_mask, mask_data


def test_mask_data():
    key = bytes([1, 2, 3, 4])
    original = bytes([10, 11, 12, 13, 14, 15, 16, 17])
    expected = bytes([11, 9, 15, 9, 15, 13, 19, 21])
    obtained = mask_data(key, original)
    reversed_ = mask_data(key, obtained)
    assert reversed_ == original
    assert obtained == expected


def test_mask_data_empty():
    assert mask_data(b"\x01\x02\x03\x04", b"") == b""


def test_gen_mask_length():
    assert len(gen_mask()) == 4


def test_masker_in_pieces_matches_whole():
    key = bytes([1, 2, 3, 4])
    data = b"The quick brown fox jumps over the lazy dog"
    sink = io.BytesIO()
    masker = Masker(key, sink)
    for start in range(0, len(data), 3):
        assert masker.write(data[start:start + 3]) == len(data[start:start + 3])
    masker.flush()
    assert sink.getvalue() == mask_data(key, data)


def test_masker_is_reversible():
    key = gen_mask()
    data = bytes(range(50))
    sink = io.BytesIO()
    Masker(key, sink).write(data)
    assert mask_data(key, sink.getvalue()) == data