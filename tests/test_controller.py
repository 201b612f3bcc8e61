import pytest

from evsekit.controller import (
    ButtonAction,
    ButtonMonitor,
    LED_OFF,
    LED_ON,
    LedId,
    LedPattern,
    LedUpdater,
    RESET_HOLD_TIME_MS,
    led_patterns_for_state,
)
from evsekit.states import EvseState


def test_state_a_all_off():
    patterns = led_patterns_for_state(EvseState.A)
    assert patterns == {LedId.CHARGING: LED_OFF, LedId.ERROR: LED_OFF}


@pytest.mark.parametrize("state", [EvseState.B1, EvseState.B2])
def test_connected_blinks_slowly(state):
    patterns = led_patterns_for_state(state)
    assert patterns[LedId.CHARGING] == LedPattern(500, 500)
    assert patterns[LedId.ERROR].is_off


@pytest.mark.parametrize("state", [EvseState.C1, EvseState.D1])
def test_ready_mostly_on(state):
    patterns = led_patterns_for_state(state)
    assert patterns[LedId.CHARGING] == LedPattern(1900, 100)
    assert patterns[LedId.ERROR].is_off


@pytest.mark.parametrize("state", [EvseState.C2, EvseState.D2])
def test_charging_steady_on(state):
    patterns = led_patterns_for_state(state)
    assert patterns[LedId.CHARGING].is_on
    assert patterns[LedId.ERROR].is_off


def test_error_states():
    assert led_patterns_for_state(EvseState.E)[LedId.ERROR].is_on
    assert led_patterns_for_state(EvseState.E)[LedId.CHARGING].is_off
    assert led_patterns_for_state(EvseState.F)[LedId.ERROR] == LedPattern(500, 500)
    assert led_patterns_for_state(EvseState.F)[LedId.CHARGING].is_off


def test_every_state_has_patterns():
    for state in EvseState:
        assert set(led_patterns_for_state(state)) == {LedId.CHARGING, LedId.ERROR}


def test_pattern_rejects_negative():
    with pytest.raises(ValueError):
        LedPattern(-1, 0)


def test_pattern_kinds_exclusive():
    for pattern in (LED_OFF, LED_ON, LedPattern(500, 500)):
        assert [pattern.is_off, pattern.is_on, pattern.is_blinking].count(True) == 1


def test_updater_only_on_change():
    calls = []
    updater = LedUpdater(lambda led, pattern: calls.append((led, pattern)))
    assert updater.update(EvseState.A) is False
    assert calls == []
    assert updater.update(EvseState.C2) is True
    assert dict(calls) == dict(led_patterns_for_state(EvseState.C2))
    calls.clear()
    assert updater.update(EvseState.C2) is False
    assert calls == []


def test_updater_accepts_int_state():
    calls = []
    updater = LedUpdater(lambda led, pattern: calls.append((led, pattern)))
    assert updater.update(int(EvseState.E)) is True
    assert updater.state is EvseState.E
    assert dict(calls)[LedId.ERROR].is_on


def test_button_short_press_starts_ap():
    button = ButtonMonitor()
    button.press(1000)
    assert button.pressed
    assert button.release(1500) is ButtonAction.START_AP
    assert not button.pressed


def test_button_long_press_resets():
    button = ButtonMonitor()
    button.press(0)
    assert button.release(RESET_HOLD_TIME_MS) is ButtonAction.FACTORY_RESET


def test_button_just_under_hold():
    button = ButtonMonitor(hold_ms=RESET_HOLD_TIME_MS)
    button.press(0)
    assert button.release(RESET_HOLD_TIME_MS - 1) is ButtonAction.START_AP


def test_release_without_press_ignored():
    button = ButtonMonitor()
    assert button.release(5000) is ButtonAction.NONE


def test_double_release_ignored():
    button = ButtonMonitor(hold_ms=10)
    button.press(0)
    assert button.release(100) is ButtonAction.FACTORY_RESET
    assert button.release(200) is ButtonAction.NONE


def test_button_rejects_negative_hold():
    with pytest.raises(ValueError):
        ButtonMonitor(hold_ms=-1)