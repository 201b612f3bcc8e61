"""Front-panel logic: LED indication of the charger state and the Wi-Fi button."""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from .states import EvseState

AP_CONNECTION_TIMEOUT_MS = 60_000
RESET_HOLD_TIME_MS = 10_000


class LedId(enum.IntEnum):
    """The indicator LEDs on the front panel."""

    WIFI = 0
    CHARGING = 1
    ERROR = 2


@dataclass(frozen=True)
class LedPattern:
    """A blink pattern: ``on_ms`` lit, then ``off_ms`` dark, repeated.

    A pattern with no lit time is steadily off, one with no dark time is
    steadily on.
    """

    on_ms: int
    off_ms: int

    def __post_init__(self) -> None:
        if self.on_ms < 0 or self.off_ms < 0:
            raise ValueError("LED times must not be negative")

    @property
    def is_off(self) -> bool:
        return self.on_ms == 0

    @property
    def is_on(self) -> bool:
        return self.on_ms > 0 and self.off_ms == 0

    @property
    def is_blinking(self) -> bool:
        return self.on_ms > 0 and self.off_ms > 0


LED_OFF = LedPattern(0, 0)
LED_ON = LedPattern(1000, 0)

# Wi-Fi LED patterns for the connection states.
WIFI_AP_WAITING = LedPattern(100, 900)
WIFI_AP_CONNECTED = LedPattern(1900, 100)
WIFI_STA_CONNECTING = LedPattern(500, 500)
WIFI_STA_CONNECTED = LED_ON

_SLOW_BLINK = LedPattern(500, 500)
_MOSTLY_ON = LedPattern(1900, 100)

_STATE_PATTERNS: dict[EvseState, tuple[LedPattern, LedPattern]] = {
    EvseState.A: (LED_OFF, LED_OFF),
    EvseState.B1: (_SLOW_BLINK, LED_OFF),
    EvseState.B2: (_SLOW_BLINK, LED_OFF),
    EvseState.C1: (_MOSTLY_ON, LED_OFF),
    EvseState.D1: (_MOSTLY_ON, LED_OFF),
    EvseState.C2: (LED_ON, LED_OFF),
    EvseState.D2: (LED_ON, LED_OFF),
    EvseState.E: (LED_OFF, LED_ON),
    EvseState.F: (LED_OFF, _SLOW_BLINK),
}


def led_patterns_for_state(state) -> Mapping[LedId, LedPattern]:
    """Patterns of the charging and error LEDs for a charger state."""
    charging, error = _STATE_PATTERNS[EvseState(state)]
    return {LedId.CHARGING: charging, LedId.ERROR: error}


class LedUpdater:
    """Drives the charging and error LEDs from the charger state.

    ``set_led(led_id, pattern)`` is called only when the state changes.
    """

    def __init__(self, set_led: Callable[[LedId, LedPattern], Any]):
        self._set_led = set_led
        self.state = EvseState.A

    def update(self, state) -> bool:
        """Apply the patterns for ``state``; return whether anything changed."""
        state = EvseState(state)
        if state == self.state:
            return False
        self.state = state
        for led_id, pattern in led_patterns_for_state(state).items():
            self._set_led(led_id, pattern)
        return True


class ButtonAction(enum.Enum):
    """What a release of the Wi-Fi button asks for."""

    NONE = "none"
    START_AP = "start_ap"
    FACTORY_RESET = "factory_reset"


class ButtonMonitor:
    """Turns press and release events of the Wi-Fi button into actions.

    A short press starts the access point; holding for ``hold_ms`` or longer
    erases all settings. A release without a preceding press is ignored.
    """

    def __init__(self, hold_ms: int = RESET_HOLD_TIME_MS):
        if hold_ms < 0:
            raise ValueError("hold time must not be negative")
        self.hold_ms = hold_ms
        self._pressed_at: Optional[int] = None

    @property
    def pressed(self) -> bool:
        return self._pressed_at is not None

    def press(self, now_ms: int) -> None:
        """Record a press at ``now_ms``."""
        self._pressed_at = now_ms

    def release(self, now_ms: int) -> ButtonAction:
        """Record a release at ``now_ms`` and return the requested action."""
        pressed_at, self._pressed_at = self._pressed_at, None
        if pressed_at is None:
            return ButtonAction.NONE
        if now_ms - pressed_at >= self.hold_ms:
            return ButtonAction.FACTORY_RESET
        return ButtonAction.START_AP