import pytest

from lifeofsounds.frames import (
    decode_websocket_buffer,
    encode_text_frame,
    generate_websocket_accept_key,
    is_websocket_buffer,
)

# Masked "Hello" frame from the WebSocket specification.
MASKED_HELLO = bytes([0x81, 0x85, 0x37, 0xFA, 0x21, 0x3D, 0x7F, 0x9F, 0x4D, 0x51, 0x58])


def _masked_frame(payload, key=b"\x01\x02\x03\x04"):
    masked = bytes(b ^ key[i % 4] for i, b in enumerate(payload))
    return bytes([0x81, 0xFE]) + len(payload).to_bytes(2, "big") + key + masked


def test_is_websocket_buffer_false_for_blank_header():
    assert is_websocket_buffer(b"\x00\x00") is False


def test_is_websocket_buffer_true_for_text_frame():
    assert is_websocket_buffer(MASKED_HELLO) is True


def test_is_websocket_buffer_short_raises():
    with pytest.raises(ValueError):
        is_websocket_buffer(b"\x81")


def test_decode_specification_example():
    assert decode_websocket_buffer(MASKED_HELLO) == b"Hello"


def test_decode_extended_length():
    payload = bytes(range(200))
    assert decode_websocket_buffer(_masked_frame(payload)) == payload


def test_decode_unmasked_raises():
    with pytest.raises(ValueError):
        decode_websocket_buffer(b"\x81\x05Hello")


def test_decode_truncated_raises():
    with pytest.raises(ValueError):
        decode_websocket_buffer(MASKED_HELLO[:-2])


def test_accept_key_specification_example():
    assert generate_websocket_accept_key("dGhlIHNhbXBsZSBub25jZQ==") == (
        "s3pPLMBiTxaQ9kYGzzhZRbK+xOo="
    )


def test_encode_short_text():
    assert encode_text_frame("Hi") == b"\x81\x02Hi"


def test_encode_medium_text_uses_16_bit_length():
    frame = encode_text_frame("a" * 200)
    assert frame[:2] == b"\x81\x7e"
    assert int.from_bytes(frame[2:4], "big") == 200
    assert frame[4:] == b"a" * 200


def test_encode_long_text_uses_64_bit_length():
    frame = encode_text_frame(b"x" * 70000)
    assert frame[1] == 127
    assert int.from_bytes(frame[2:10], "big") == 70000
    assert len(frame) == 10 + 70000