"""Modbus RTU framing: CRC calculation and request/response handling."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

_log = logging.getLogger(__name__)

_CRC_SIZE = 2


class ModbusFrameError(ValueError):
    """Raised when a received RTU frame is malformed or fails its CRC."""


def _build_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ 0xA001 if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_table()


def compute_crc(data: bytes) -> int:
    """CRC of ``data`` arranged so that its big-endian bytes are the wire order.

    Appending ``compute_crc(data).to_bytes(2, "big")`` to a PDU gives a valid
    RTU frame.
    """
    crc = 0xFFFF
    for byte in data:
        crc = (crc >> 8) ^ _CRC_TABLE[(crc ^ byte) & 0xFF]
    return ((crc & 0xFF) << 8) | (crc >> 8)


def handle_frame(frame: bytes, handler: Callable[[bytes], Optional[bytes]]) -> Optional[bytes]:
    """Check a received RTU frame, run ``handler`` on its payload and frame the reply.

    ``handler`` takes the payload (address, function and data, without CRC) and
    returns the reply payload, or an empty value when there is nothing to send.
    Returns the framed reply with its CRC, or None when there is no reply.
    """
    frame = bytes(frame)
    length = len(frame) - _CRC_SIZE
    if length <= 2:
        _log.warning("Invalid packet data length")
        raise ModbusFrameError("Invalid packet data length")

    payload = frame[:length]
    received = int.from_bytes(frame[length:], "big")
    if compute_crc(payload) != received:
        _log.warning("Invalid packet CRC")
        raise ModbusFrameError("Invalid packet CRC")

    response = handler(payload)
    if not response:
        return None
    response = bytes(response)
    return response + compute_crc(response).to_bytes(_CRC_SIZE, "big")