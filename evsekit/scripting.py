"""Runtime support for user scripts: watchdog, driver scheduling, aux I/O and settings."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, MutableMapping
from numbers import Real
from typing import Any, Optional, Protocol

_log = logging.getLogger(__name__)

HEARTBEAT_THRESHOLD = 5

EVENT_LOOP = "loop"
EVENT_100MS = "every_100ms"
EVENT_250MS = "every_250ms"
EVENT_1S = "every_1s"

_PERIODS = (
    (EVENT_100MS, 100),
    (EVENT_250MS, 250),
    (EVENT_1S, 1000),
)

SETTING_ENABLED = "enabled"


class ScriptTimeout(RuntimeError):
    """Raised when script code runs for too long without returning."""


class Watchdog:
    """Counts VM heartbeats while script code runs and stops runaway code."""

    def __init__(self) -> None:
        self.counter = -1

    def reset(self) -> None:
        """Arm the watchdog with a fresh count."""
        self.counter = 0

    def disable(self) -> None:
        """Stop counting heartbeats."""
        self.counter = -1

    def heartbeat(self) -> None:
        """Record one heartbeat; raise ScriptTimeout past the threshold."""
        if self.counter < 0:
            return
        count = self.counter
        self.counter += 1
        if count > HEARTBEAT_THRESHOLD:
            raise ScriptTimeout("code running for too long")


def _check_instance(driver: Any) -> None:
    if driver is None or isinstance(driver, type):
        raise TypeError("driver must be an instance")


class DriverScheduler:
    """Calls the event methods of registered drivers on every processing pass.

    Every pass calls ``loop``; ``every_100ms``, ``every_250ms`` and ``every_1s``
    are called when that much time has passed since they last ran. A driver
    only receives the events it has methods for. Errors raised by a driver are
    passed to ``on_error`` and do not stop the other drivers.
    """

    def __init__(self, watchdog: Watchdog, on_error: Optional[Callable[[BaseException], Any]] = None):
        self._watchdog = watchdog
        self._on_error = on_error
        self._drivers: list[Any] = []
        self._ticks = {event: 0 for event, _ in _PERIODS}

    @property
    def drivers(self) -> list[Any]:
        """Registered drivers in calling order."""
        return list(self._drivers)

    def add_driver(self, driver: Any) -> None:
        """Register a driver; the newest driver is called first."""
        _check_instance(driver)
        self._drivers.insert(0, driver)

    def remove_driver(self, driver: Any) -> None:
        """Unregister every entry of ``driver``."""
        _check_instance(driver)
        remaining = [entry for entry in self._drivers if entry is not driver]
        if len(remaining) != len(self._drivers):
            _log.info("remove entry")
        self._drivers = remaining

    def _due_events(self, now_ms: int) -> list[str]:
        due = []
        for event, period in _PERIODS:
            if now_ms - self._ticks[event] >= period:
                self._ticks[event] = now_ms
                due.append(event)
        return due

    def _call(self, driver: Any, event: str) -> None:
        method = getattr(driver, event, None)
        if method is None or not callable(method):
            return
        self._watchdog.reset()
        try:
            method()
        except Exception as exc:  # script errors must not stop the loop
            if self._on_error is not None:
                self._on_error(exc)
            else:
                _log.error("Driver %s failed: %s", event, exc)
        finally:
            self._watchdog.disable()

    def process(self, now_ms: int) -> None:
        """Run one processing pass at time ``now_ms`` (milliseconds)."""
        due = self._due_events(now_ms)
        for driver in list(self._drivers):
            self._call(driver, EVENT_LOOP)
            for event in due:
                self._call(driver, event)


class AuxIO(Protocol):
    def write(self, name: str, value: bool) -> None: ...

    def read(self, name: str) -> bool: ...

    def analog_read(self, name: str) -> int: ...


class AuxBridge:
    """Argument-checked access to auxiliary inputs and outputs for scripts.

    ``aux`` raises KeyError for a name it does not know.
    """

    def __init__(self, aux: AuxIO):
        self._aux = aux

    def write(self, *args: Any) -> None:
        """Set a digital output: ``write(name, value)``."""
        if len(args) != 2 or not isinstance(args[0], str) or not isinstance(args[1], bool):
            raise TypeError("write expects (str, bool)")
        name, value = args
        try:
            self._aux.write(name, value)
        except KeyError:
            raise ValueError("unknown output name") from None

    def read(self, *args: Any) -> bool:
        """Read a digital input: ``read(name)``."""
        if len(args) != 1 or not isinstance(args[0], str):
            raise TypeError("read expects (str)")
        try:
            return bool(self._aux.read(args[0]))
        except KeyError:
            raise ValueError("unknown input name") from None

    def analog_read(self, *args: Any) -> int:
        """Read an analog input: ``analog_read(name)``."""
        if len(args) != 1 or not isinstance(args[0], str):
            raise TypeError("analog_read expects (str)")
        try:
            return int(self._aux.analog_read(args[0]))
        except KeyError:
            raise ValueError("unknown input name") from None


class ScriptSettings:
    """Persistent script settings kept in an integer store."""

    def __init__(self, store: MutableMapping[str, int]):
        self._store = store

    def is_enabled(self) -> bool:
        """Whether scripts should run; false when never set."""
        return bool(self._store.get(SETTING_ENABLED, 0))

    def set_enabled(self, enabled: bool) -> None:
        """Store whether scripts should run."""
        self._store[SETTING_ENABLED] = int(bool(enabled))


def charging_current_to_tenths(amps: Any) -> int:
    """Convert a current in amperes to tenths of an ampere, rounding half away from zero."""
    if isinstance(amps, bool) or not isinstance(amps, Real):
        raise TypeError("charging current must be a number")
    scaled = float(amps) * 10
    return int(math.copysign(math.floor(abs(scaled) + 0.5), scaled))