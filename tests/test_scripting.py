import pytest

from evsekit.scripting import (
    AuxBridge,
    DriverScheduler,
    ScriptSettings,
    ScriptTimeout,
    Watchdog,
    charging_current_to_tenths,
)


class Recorder:
    def __init__(self, name, log):
        self.name = name
        self.log = log

    def loop(self):
        self.log.append((self.name, "loop"))

    def every_100ms(self):
        self.log.append((self.name, "every_100ms"))

    def every_250ms(self):
        self.log.append((self.name, "every_250ms"))

    def every_1s(self):
        self.log.append((self.name, "every_1s"))


class LoopOnly:
    def __init__(self):
        self.calls = 0

    def loop(self):
        self.calls += 1


class FakeAux:
    def __init__(self):
        self.outputs = {"out1": False}
        self.inputs = {"in1": True}
        self.analog = {"ain1": 1234}

    def write(self, name, value):
        if name not in self.outputs:
            raise KeyError(name)
        self.outputs[name] = value

    def read(self, name):
        return self.inputs[name]

    def analog_read(self, name):
        return self.analog[name]


def test_watchdog_allows_threshold_then_times_out():
    wd = Watchdog()
    wd.reset()
    for _ in range(6):
        wd.heartbeat()
    with pytest.raises(ScriptTimeout):
        wd.heartbeat()


def test_watchdog_disabled_never_times_out():
    wd = Watchdog()
    wd.reset()
    wd.disable()
    for _ in range(100):
        wd.heartbeat()
    assert wd.counter == -1


def test_first_pass_only_calls_loop():
    log = []
    sched = DriverScheduler(Watchdog(), None)
    sched.add_driver(Recorder("a", log))
    sched.process(0)
    assert log == [("a", "loop")]


def test_periodic_events_fire_when_due():
    log = []
    sched = DriverScheduler(Watchdog(), None)
    sched.add_driver(Recorder("a", log))
    sched.process(100)
    assert log == [("a", "loop"), ("a", "every_100ms")]
    log.clear()
    sched.process(150)
    assert log == [("a", "loop")]
    log.clear()
    sched.process(250)
    assert log == [("a", "loop"), ("a", "every_100ms"), ("a", "every_250ms")]
    log.clear()
    sched.process(1000)
    assert ("a", "every_1s") in log


def test_newest_driver_called_first():
    log = []
    sched = DriverScheduler(Watchdog(), None)
    sched.add_driver(Recorder("first", log))
    sched.add_driver(Recorder("second", log))
    sched.process(0)
    assert [name for name, _ in log] == ["second", "first"]


def test_missing_methods_are_skipped():
    driver = LoopOnly()
    sched = DriverScheduler(Watchdog(), None)
    sched.add_driver(driver)
    sched.process(1000)
    sched.process(2000)
    assert driver.calls == 2


def test_remove_driver_removes_all_entries():
    driver = LoopOnly()
    other = LoopOnly()
    sched = DriverScheduler(Watchdog(), None)
    sched.add_driver(driver)
    sched.add_driver(other)
    sched.add_driver(driver)
    sched.remove_driver(driver)
    assert sched.drivers == [other]
    sched.process(0)
    assert driver.calls == 0
    assert other.calls == 1


def test_add_driver_rejects_non_instances():
    sched = DriverScheduler(Watchdog(), None)
    with pytest.raises(TypeError):
        sched.add_driver(None)
    with pytest.raises(TypeError):
        sched.add_driver(LoopOnly)


def test_errors_reported_and_other_drivers_still_run():
    errors = []

    class Broken:
        def loop(self):
            raise RuntimeError("boom")

    good = LoopOnly()
    wd = Watchdog()
    sched = DriverScheduler(wd, errors.append)
    sched.add_driver(good)
    sched.add_driver(Broken())
    sched.process(0)
    assert len(errors) == 1
    assert str(errors[0]) == "boom"
    assert good.calls == 1
    assert wd.counter == -1


def test_runaway_driver_is_stopped_by_watchdog():
    errors = []
    wd = Watchdog()

    class Spinner:
        def loop(self):
            while True:
                wd.heartbeat()

    sched = DriverScheduler(wd, errors.append)
    sched.add_driver(Spinner())
    sched.process(0)
    assert len(errors) == 1
    assert isinstance(errors[0], ScriptTimeout)
    assert str(errors[0]) == "code running for too long"


def test_aux_write_and_read():
    aux = FakeAux()
    bridge = AuxBridge(aux)
    bridge.write("out1", True)
    assert aux.outputs["out1"] is True
    assert bridge.read("in1") is True
    assert bridge.analog_read("ain1") == aux.analog["ain1"]


def test_aux_unknown_names():
    bridge = AuxBridge(FakeAux())
    with pytest.raises(ValueError, match="output"):
        bridge.write("nope", True)
    with pytest.raises(ValueError, match="input"):
        bridge.read("nope")
    with pytest.raises(ValueError, match="input"):
        bridge.analog_read("nope")


@pytest.mark.parametrize(
    "invoke",
    [
        lambda bridge: bridge.write("out1"),
        lambda bridge: bridge.write("out1", 1),
        lambda bridge: bridge.write(1, True),
        lambda bridge: bridge.read(),
        lambda bridge: bridge.read(5),
        lambda bridge: bridge.analog_read("a", "b"),
    ],
)
def test_aux_type_errors(invoke):
    aux = FakeAux()
    bridge = AuxBridge(aux)
    with pytest.raises(TypeError):
        invoke(bridge)
    assert aux.outputs == {"out1": False}
    assert bridge.read("in1") is True


def test_settings_default_and_round_trip():
    store = {}
    settings = ScriptSettings(store)
    assert settings.is_enabled() is False
    settings.set_enabled(True)
    assert settings.is_enabled() is True
    assert store["enabled"] == 1
    settings.set_enabled(False)
    assert settings.is_enabled() is False


def test_charging_current_conversion():
    assert charging_current_to_tenths(16) == 160
    assert charging_current_to_tenths(6.5) == 65
    assert charging_current_to_tenths(0.25) == 3


def test_charging_current_rejects_non_numbers():
    with pytest.raises(TypeError):
        charging_current_to_tenths("16")
    with pytest.raises(TypeError):
        charging_current_to_tenths(True)