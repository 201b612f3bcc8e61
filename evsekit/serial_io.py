"""Line translation for serial consoles (AT command port)."""

from __future__ import annotations

_LF = b"\n"
_CR = b"\r"
_CRLF = b"\r\n"


def translate_output(data: bytes) -> bytes:
    """Bytes to put on the wire: every line feed is sent as CR LF."""
    return bytes(data).replace(_LF, _CRLF)


def translate_input(data: bytes, echo: bool) -> tuple[bytes, bytes]:
    """Translate received bytes, turning every carriage return into a line feed.

    Returns the translated input and the bytes to echo back to the sender
    (empty when ``echo`` is false).
    """
    received = bytes(data).replace(_CR, _LF)
    return received, translate_output(received) if echo else b""