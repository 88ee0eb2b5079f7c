import pytest

from websock.errors import ProtocolError
from websock.handshake import WebSocketAccept, WebSocketKey

RFC_KEY = "dGhlIHNhbXBsZSBub25jZQ=="
RFC_ACCEPT = "s3pPLMBiTxaQ9kYGzzhZRbK+xOo="


def test_accept_for_rfc_sample_key():
    key = WebSocketKey.parse(RFC_KEY)
    assert WebSocketAccept.from_key(key).serialize() == RFC_ACCEPT


def test_key_round_trip():
    key = WebSocketKey.parse(RFC_KEY)
    assert key.serialize() == RFC_KEY
    assert WebSocketKey.parse(key.serialize()) == key


def test_generated_key_round_trip():
    key = WebSocketKey.generate()
    assert len(key.key) == 16
    assert WebSocketKey.parse(key.serialize()) == key


def test_generated_keys_differ():
    first, second = WebSocketKey.generate(), WebSocketKey.generate()
    assert len(first.key) == len(second.key) == 16
    assert first != second


def test_default_key_is_zero():
    assert WebSocketKey().key == bytes(16)


def test_key_wrong_length():
    with pytest.raises(ProtocolError) as info:
        WebSocketKey.parse("AAAA")
    assert info.value.detail == "Sec-WebSocket-Key must be 16 bytes"


def test_key_invalid_base64():
    with pytest.raises(ProtocolError):
        WebSocketKey.parse("not base64 !!")


def test_accept_round_trip():
    accept = WebSocketAccept.parse(RFC_ACCEPT)
    assert accept.serialize() == RFC_ACCEPT
    assert accept == WebSocketAccept.from_key(WebSocketKey.parse(RFC_KEY))


def test_accept_wrong_length():
    with pytest.raises(ProtocolError) as info:
        WebSocketAccept.parse(RFC_KEY)
    assert info.value.detail == "Sec-WebSocket-Accept must be 20 bytes"


def test_accept_invalid_base64():
    with pytest.raises(ProtocolError):
        WebSocketAccept.parse("%%%")


def test_repr_shows_serialized_value():
    key = WebSocketKey.parse(RFC_KEY)
    assert repr(key) == f"WebSocketKey({RFC_KEY})"
    assert repr(WebSocketAccept.from_key(key)) == f"WebSocketAccept({RFC_ACCEPT})"


def test_accept_depends_on_key():
    first = WebSocketKey(bytes(16))
    second = WebSocketKey(bytes([1]) * 16)
    assert WebSocketAccept.from_key(first) == WebSocketAccept.from_key(WebSocketKey())
    assert WebSocketAccept.from_key(first) != WebSocketAccept.from_key(second)