"""Serial port configuration: modes, line parameters and their persistence."""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, MutableMapping, Sequence
from typing import Optional, Protocol

_log = logging.getLogger(__name__)

BAUD_RATE_MIN = 300
BAUD_RATE_MAX = 1_000_000
DEFAULT_BAUD_RATE = 460800


class SerialMode(enum.IntEnum):
    """What a serial port is used for."""

    NONE = 0
    LOG = 1
    AT = 2
    MODBUS = 3
    NEXTION = 4


class DataBits(enum.IntEnum):
    """UART word length."""

    BITS_5 = 0
    BITS_6 = 1
    BITS_7 = 2
    BITS_8 = 3


class StopBits(enum.IntEnum):
    """UART stop bits."""

    BITS_1 = 1
    BITS_1_5 = 2
    BITS_2 = 3


class Parity(enum.IntEnum):
    """UART parity."""

    DISABLE = 0
    EVEN = 2
    ODD = 3


class BoardSerial(enum.IntEnum):
    """How a serial port is wired on the board."""

    NONE = 0
    UART = 1
    RS485 = 2


class SerialConfigError(ValueError):
    """Raised when a serial configuration is rejected."""


class SerialHandler(Protocol):
    def start(self, serial_id: int, baud_rate: int, data_bits: DataBits,
              stop_bits: StopBits, parity: Parity, rs485: bool) -> None: ...

    def stop(self, serial_id: int) -> None: ...


_MODE_NAMES = {
    SerialMode.AT: "at",
    SerialMode.LOG: "log",
    SerialMode.MODBUS: "modbus",
    SerialMode.NEXTION: "nextion",
}
_DATA_BITS_NAMES = {
    DataBits.BITS_5: "5",
    DataBits.BITS_6: "6",
    DataBits.BITS_7: "7",
    DataBits.BITS_8: "8",
}
_STOP_BITS_NAMES = {
    StopBits.BITS_1: "1",
    StopBits.BITS_1_5: "1.5",
    StopBits.BITS_2: "2",
}
_PARITY_NAMES = {
    Parity.DISABLE: "disable",
    Parity.EVEN: "even",
    Parity.ODD: "odd",
}


def _invert(table):
    return {name: value for value, name in table.items()}


def mode_to_str(mode) -> str:
    """Name of a mode; anything unknown is ``"none"``."""
    return _MODE_NAMES.get(mode, "none")


def str_to_mode(text: str) -> SerialMode:
    """Parse a mode name; anything unknown is NONE."""
    return _invert(_MODE_NAMES).get(text, SerialMode.NONE)


def data_bits_to_str(bits) -> str:
    """Name of a word length; empty when unknown."""
    return _DATA_BITS_NAMES.get(bits, "")


def str_to_data_bits(text: str) -> DataBits:
    """Parse a word length; anything unknown falls back to 5 bits."""
    return _invert(_DATA_BITS_NAMES).get(text, DataBits.BITS_5)


def stop_bits_to_str(bits) -> str:
    """Name of a stop-bit setting; empty when unknown."""
    return _STOP_BITS_NAMES.get(bits, "")


def str_to_stop_bits(text: str) -> Optional[StopBits]:
    """Parse a stop-bit setting; None when unknown."""
    return _invert(_STOP_BITS_NAMES).get(text)


def parity_to_str(parity) -> str:
    """Name of a parity; empty when unknown."""
    return _PARITY_NAMES.get(parity, "")


def str_to_parity(text: str) -> Parity:
    """Parse a parity; anything other than even or odd is DISABLE."""
    return {"even": Parity.EVEN, "odd": Parity.ODD}.get(text, Parity.DISABLE)


def _coerce(enum_type, value, what):
    try:
        return enum_type(value)
    except (ValueError, TypeError):
        raise SerialConfigError(f"{what} invalid value") from None


class SerialManager:
    """Keeps per-port modes and line settings, and starts the matching handler.

    ``board`` lists the wiring of each port, ``store`` is a persistent
    mapping of integer settings, and ``handlers`` maps a mode to the object
    that runs that mode on a port.
    """

    def __init__(self, board: Sequence[BoardSerial], store: MutableMapping[str, int],
                 handlers: Mapping[SerialMode, SerialHandler]):
        self._board = [BoardSerial(b) for b in board]
        self._store = store
        self._handlers = dict(handlers)
        self._modes = [SerialMode.NONE] * len(self._board)

    def _in_range(self, serial_id) -> bool:
        return isinstance(serial_id, int) and 0 <= serial_id < len(self._board)

    def _start(self, serial_id, baud_rate, data_bits, stop_bits, parity):
        handler = self._handlers.get(self._modes[serial_id])
        if handler is not None:
            handler.start(serial_id, baud_rate, data_bits, stop_bits, parity,
                          self._board[serial_id] is BoardSerial.RS485)

    def _stop(self, serial_id):
        handler = self._handlers.get(self._modes[serial_id])
        if handler is not None:
            handler.stop(serial_id)

    def start(self) -> None:
        """Load the stored mode of every wired port and start it."""
        for serial_id, wiring in enumerate(self._board):
            if wiring is BoardSerial.NONE:
                continue
            stored = self._store.get(f"mode_{serial_id:x}", 0)
            try:
                self._modes[serial_id] = SerialMode(stored)
            except ValueError:
                self._modes[serial_id] = SerialMode.NONE
            self._start(serial_id, self.get_baud_rate(serial_id),
                        self.get_data_bits(serial_id), self.get_stop_bits(serial_id),
                        self.get_parity(serial_id))

    def is_available(self, serial_id) -> bool:
        if not self._in_range(serial_id):
            return False
        return self._board[serial_id] is not BoardSerial.NONE

    def get_mode(self, serial_id) -> SerialMode:
        return self._modes[serial_id]

    def get_baud_rate(self, serial_id) -> int:
        return self._store.get(f"baud_rate_{serial_id:x}", DEFAULT_BAUD_RATE)

    def get_data_bits(self, serial_id) -> DataBits:
        return DataBits(self._store.get(f"data_bits_{serial_id:x}", DataBits.BITS_8))

    def get_stop_bits(self, serial_id) -> StopBits:
        return StopBits(self._store.get(f"stop_bits_{serial_id:x}", StopBits.BITS_1))

    def get_parity(self, serial_id) -> Parity:
        return Parity(self._store.get(f"parity_{serial_id:x}", Parity.DISABLE))

    def reset_config(self) -> None:
        """Stop every port and set all modes to NONE."""
        for serial_id in range(len(self._board)):
            self._stop(serial_id)
            self._modes[serial_id] = SerialMode.NONE
            self._store[f"mode_{serial_id:x}"] = int(SerialMode.NONE)

    def set_config(self, serial_id, mode, baud_rate, data_bits, stop_bits, parity) -> None:
        """Validate, persist and apply a port configuration."""
        if not self._in_range(serial_id):
            _log.error("Serial id out of range")
            raise SerialConfigError("Serial id out of range")
        if self._board[serial_id] is BoardSerial.NONE:
            _log.error("Serial not available")
            raise SerialConfigError("Serial not available")
        mode = _coerce(SerialMode, mode, "Mode")
        if mode is not SerialMode.NONE:
            for other, other_mode in enumerate(self._modes):
                if other != serial_id and other_mode is mode:
                    _log.error("Mode already used on other serial")
                    raise SerialConfigError("Mode already used on other serial")
        if not isinstance(baud_rate, int) or not BAUD_RATE_MIN <= baud_rate <= BAUD_RATE_MAX:
            _log.error("Baud rate out of range")
            raise SerialConfigError("Baud rate out of range")
        data_bits = _coerce(DataBits, data_bits, "Data bits")
        stop_bits = _coerce(StopBits, stop_bits, "Stop bits")
        parity = _coerce(Parity, parity, "Parity")

        self._store[f"mode_{serial_id:x}"] = int(mode)
        self._store[f"baud_rate_{serial_id:x}"] = baud_rate
        self._store[f"data_bits_{serial_id:x}"] = int(data_bits)
        self._store[f"stop_bits_{serial_id:x}"] = int(stop_bits)
        self._store[f"parity_{serial_id:x}"] = int(parity)

        self._stop(serial_id)
        self._modes[serial_id] = mode
        self._start(serial_id, baud_rate, data_bits, stop_bits, parity)