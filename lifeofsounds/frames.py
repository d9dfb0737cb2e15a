"""WebSocket frame decoding, encoding and handshake key."""

from __future__ import annotations

import base64
import hashlib

_MAGIC_KEY = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"


def is_websocket_buffer(buf: bytes) -> bool:
    """Return False only for a frame with FIN, opcode and mask bit all clear."""
    if len(buf) < 2:
        raise ValueError("a WebSocket frame needs at least two bytes")
    fin = buf[0] & 0x80
    opcode = buf[0] & 0x0F
    mask = buf[1] & 0x80
    return not (opcode == 0 and fin == 0 and mask == 0)


def decode_websocket_buffer(buf: bytes) -> bytes:
    """Unmask the payload of a masked client frame.

    Only the 7-bit and 16-bit length forms are understood.
    """
    if len(buf) < 2:
        raise ValueError("a WebSocket frame needs at least two bytes")
    if not buf[1] & 0x80:
        raise ValueError("client frames must be masked")
    length = buf[1] & 0x7F
    if length < 126:
        key_start = 2
    elif length == 126:
        if len(buf) < 4:
            raise ValueError("frame ends inside the extended length")
        length = int.from_bytes(buf[2:4], "big")
        key_start = 4
    else:
        raise ValueError("64-bit payload lengths are not supported")
    payload_start = key_start + 4
    if len(buf) < payload_start + length:
        raise ValueError("frame is shorter than its declared length")
    key = buf[key_start:payload_start]
    payload = buf[payload_start : payload_start + length]
    return bytes(b ^ key[i % 4] for i, b in enumerate(payload))


def generate_websocket_accept_key(websocket_sec_key: str) -> str:
    """Return the Sec-WebSocket-Accept value for a client key."""
    digest = hashlib.sha1((websocket_sec_key + _MAGIC_KEY).encode("ascii")).digest()
    return base64.b64encode(digest).decode("ascii")


def encode_text_frame(text: str | bytes) -> bytes:
    """Build an unmasked, final text frame."""
    payload = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    size = len(payload)
    if size < 126:
        header = bytes([0x81, size])
    elif size <= 0xFFFF:
        header = bytes([0x81, 126]) + size.to_bytes(2, "big")
    else:
        header = bytes([0x81, 127]) + size.to_bytes(8, "big")
    return header + payload