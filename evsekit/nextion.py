"""Nextion HMI display session: command parsing and variable publishing."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Optional

from .states import EvseState

_log = logging.getLogger(__name__)

DELIMITER = b"\xff\xff\xff"

RET_AUTO_SLEEP = 0x86
RET_BUFFER_OVERFLOW = 0x24

CMD_WAKE = "sleep=0"
CMD_RESET = "rest"


@dataclass
class ChargerStatus:
    """Charger values shown on the display and changed by its commands."""

    state: EvseState = EvseState.A
    enabled: bool = True
    error: int = 0
    pending_auth: bool = False
    limit_reached: bool = False
    charging_current: int = 0
    max_charging_current: int = 0
    session_time: int = 0
    charging_time: int = 0
    power: int = 0
    consumption: int = 0
    voltage: tuple[float, float, float] = (0.0, 0.0, 0.0)
    current: tuple[float, float, float] = (0.0, 0.0, 0.0)
    consumption_limit: int = 0
    charging_time_limit: int = 0
    under_power_limit: int = 0
    uptime: int = 0
    temperature: int = 0
    ip: str = "0.0.0.0"
    heap_allocated: int = 0
    heap_free: int = 0
    device_name: str = ""
    app_version: str = ""
    authorizations: int = field(default=0)

    def authorize(self) -> None:
        """Grant the pending authorization."""
        self.pending_auth = False
        self.authorizations += 1


def _centi(value: float) -> int:
    return int(value * 100) & 0xFFFF


@dataclass(frozen=True)
class _Variable:
    name: str
    value: Callable[[Any], Any]
    text: bool = False
    cached: bool = False

    def render(self, value) -> str:
        if self.text:
            return f'{self.name}.txt="{value}"'
        return f"{self.name}.val={value}"


_VARIABLES = (
    _Variable("state", lambda d: EvseState(d.state).label(), text=True),
    _Variable("en", lambda d: int(bool(d.enabled)), cached=True),
    _Variable("err", lambda d: int(d.error)),
    _Variable("pendAuth", lambda d: int(bool(d.pending_auth))),
    _Variable("limReach", lambda d: int(bool(d.limit_reached))),
    _Variable("chCur", lambda d: int(d.charging_current), cached=True),
    _Variable("maxChCur", lambda d: int(d.max_charging_current), cached=True),
    _Variable("sesTime", lambda d: int(d.session_time)),
    _Variable("chTime", lambda d: int(d.charging_time)),
    _Variable("power", lambda d: int(d.power)),
    _Variable("consum", lambda d: int(d.consumption)),
    _Variable("vltL1", lambda d: _centi(d.voltage[0])),
    _Variable("vltL2", lambda d: _centi(d.voltage[1])),
    _Variable("vltL3", lambda d: _centi(d.voltage[2])),
    _Variable("curL1", lambda d: _centi(d.current[0])),
    _Variable("curL2", lambda d: _centi(d.current[1])),
    _Variable("curL3", lambda d: _centi(d.current[2])),
    _Variable("consumLim", lambda d: int(d.consumption_limit), cached=True),
    _Variable("chTimeLim", lambda d: int(d.charging_time_limit), cached=True),
    _Variable("uPowerLim", lambda d: int(d.under_power_limit), cached=True),
    _Variable("uptime", lambda d: int(d.uptime)),
    _Variable("temp", lambda d: int(d.temperature)),
    _Variable("ip", lambda d: d.ip, text=True),
    _Variable("heap", lambda d: int(d.heap_allocated)),
    _Variable("maxHeap", lambda d: int(d.heap_allocated) + int(d.heap_free)),
)
_BY_NAME = {var.name: var for var in _VARIABLES}

_ONE_SHOT = {
    "devName": lambda d: f'devName.txt="{d.device_name}"',
    "appVer": lambda d: f'appVer.txt="{d.app_version}"',
}

_SUBSCRIBE = re.compile(r"sub\s*(\S+)")
_NUMERIC_COMMANDS = (
    (re.compile(r"en\s*([+-]?\d+)"), "enabled", 0xFF, bool),
    (re.compile(r"chCur\s*([+-]?\d+)"), "charging_current", 0xFFFF, int),
    (re.compile(r"consumLim\s*([+-]?\d+)"), "consumption_limit", 0xFFFFFFFF, int),
    (re.compile(r"chTimeLim\s*([+-]?\d+)"), "charging_time_limit", 0xFFFFFFFF, int),
    (re.compile(r"uPowerLim\s*([+-]?\d+)"), "under_power_limit", 0xFFFF, int),
)


def split_commands(data: bytes) -> Iterator[bytes]:
    """Yield the commands in ``data`` that end with the 0xFF 0xFF 0xFF delimiter.

    Bytes after the last delimiter are discarded.
    """
    data = bytes(data)
    start = 0
    i = 1
    while i < len(data) - 2:
        if data[i:i + 3] == DELIMITER:
            yield data[start:i]
            start = i + 3
            i = start
            continue
        i += 1


class NextionSession:
    """Talks to one Nextion display: answers its commands and publishes values.

    ``device`` holds the charger values (see ChargerStatus) and ``write``
    sends raw bytes to the display.
    """

    overflow_pause = 0.25

    def __init__(self, device, write: Callable[[bytes], Any]):
        self.device = device
        self._write = write
        self.sleep = False
        self.subscriptions: set[str] = set()
        self._cache: dict[str, Any] = {}
        self._state: Any = EvseState.A

    def _send(self, text: str) -> None:
        self._write(text.encode("latin-1") + DELIMITER)

    def start(self) -> None:
        """Reset the display and wake it up."""
        self._send(CMD_RESET)
        self._send(CMD_WAKE)

    def feed(self, data: bytes) -> None:
        """Handle every complete command in received bytes."""
        for cmd in split_commands(data):
            self.handle_command(cmd)

    def _assign(self, attr: str, value) -> None:
        try:
            setattr(self.device, attr, value)
        except ValueError as exc:
            _log.warning("Rejected %s=%s: %s", attr, value, exc)

    def handle_command(self, cmd: bytes) -> None:
        """Handle one command or return code from the display."""
        cmd = bytes(cmd)
        if not cmd:
            return
        if cmd[0] == RET_AUTO_SLEEP:
            _log.debug("Enter auto sleep")
            self.sleep = True
            self._state = self.device.state
            return
        if cmd[0] == RET_BUFFER_OVERFLOW:
            _log.warning("Buffer overflow")
            time.sleep(self.overflow_pause)
            return

        text = cmd.decode("latin-1")
        if text == "unsub":
            _log.debug("Unsubscribe all")
            self.subscriptions.clear()
            return
        match = _SUBSCRIBE.match(text)
        if match:
            _log.debug("Subscribe %s", match.group(1))
            self.sleep = False
            self.handle_subscribe(match.group(1))
            return
        for pattern, attr, mask, convert in _NUMERIC_COMMANDS:
            match = pattern.match(text)
            if match:
                self._assign(attr, convert(int(match.group(1)) & mask))
                return
        if text == "auth":
            self.device.authorize()

    def handle_subscribe(self, var: str) -> None:
        """Subscribe to a variable; some are sent right away."""
        one_shot = _ONE_SHOT.get(var)
        if one_shot is not None:
            self._send(one_shot(self.device))
            return
        variable: Optional[_Variable] = _BY_NAME.get(var)
        if variable is None:
            _log.warning("Subscribe unknown variable: %s", var)
            return
        self.subscriptions.add(var)
        if variable.cached:
            value = variable.value(self.device)
            self._cache[var] = value
            self._send(variable.render(value))

    def send_variables(self) -> None:
        """Send every subscribed variable; cached ones only when changed."""
        for variable in _VARIABLES:
            if variable.name not in self.subscriptions:
                continue
            value = variable.value(self.device)
            if variable.cached:
                if self._cache.get(variable.name) == value:
                    continue
                self._cache[variable.name] = value
            self._send(variable.render(value))

    def poll(self) -> None:
        """Periodic work: wake a sleeping display on state change, else publish."""
        if self.sleep:
            state = self.device.state
            if self._state != state:
                self._send(CMD_WAKE)
                self._state = state
        else:
            self.send_variables()