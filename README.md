# evsekit

This library holds the control logic of an electric-vehicle charging station.
It does no hardware I/O of its own. You supply the I/O as plain objects and
callables:

- a mutable mapping of integer settings that acts as the persistent store,
- functions that write bytes to a port,
- an object that holds the charger's values.

## Installation

```
pip install evsekit
```

To run the tests:

```
pip install "evsekit[test]"
pytest
```

## Modules

### `evsekit.states`

`EvseState` is an `IntEnum` of the charger states `A`, `B1`, `B2`, `C1`, `C2`,
`D1`, `D2`, `E` and `F`. `EvseState.label()` returns the short name, for
example `"B1"`.

### `evsekit.serial_config`

The enums `SerialMode`, `DataBits`, `StopBits`, `Parity` and `BoardSerial`
describe a serial port and how it is wired on the board.

`SerialManager(board, store, handlers)` manages the ports:

- `board` is a sequence of `BoardSerial`, one per port.
- `store` is a mutable mapping. Settings are stored under keys such as
  `mode_0` and `baud_rate_0`.
- `handlers` maps a `SerialMode` to an object with `start(serial_id,
  baud_rate, data_bits, stop_bits, parity, rs485)` and `stop(serial_id)`
  methods.

The manager's methods:

- `start()` loads the stored mode of every wired port and starts it.
- `set_config(...)` validates a setting, stores it, stops the port's old
  handler and starts the new one.
- `reset_config()` stops every port and sets each mode to `NONE`.
- `is_available()` tells whether a port is wired.
- `get_mode()`, `get_baud_rate()`, `get_data_bits()`, `get_stop_bits()` and
  `get_parity()` return the current settings.

The baud rate must be between 300 and 1,000,000. A mode other than `NONE` may
be used on only one port. Any invalid setting raises `SerialConfigError`,
which is a subclass of `ValueError`.

Each setting converts to text and back with these functions:

- `mode_to_str` and `str_to_mode`
- `data_bits_to_str` and `str_to_data_bits`
- `stop_bits_to_str` and `str_to_stop_bits`
- `parity_to_str` and `str_to_parity`

### `evsekit.modbus_rtu`

`compute_crc(data)` returns the Modbus RTU CRC as an integer whose big-endian
bytes are in wire order.

`handle_frame(frame, handler)` handles one received frame:

1. It checks the frame's length and CRC. A bad frame raises
   `ModbusFrameError`.
2. It calls `handler(payload)`, where the payload is the frame without its CRC.
3. It returns the reply with its CRC appended. If the handler returns
   nothing, `handle_frame` returns `None`.

### `evsekit.serial_io`

These functions convert line endings for an AT command console:

- `translate_output(data)` sends every LF as CR LF.
- `translate_input(data, echo)` turns every CR into LF. It returns a pair:
  the translated input and the bytes to echo back. The echo is empty when
  `echo` is false.

### `evsekit.mapping`

- `bin_search(needle, names)` does a binary search of a sorted name table. A
  leading character that is not a letter is ignored when comparing. It returns
  the index of the name, or -1 if the name is absent.
- `insert_real(mapping, key, value)` stores a value in the mapping unless the
  value is NaN.

### `evsekit.nextion`

`split_commands(data)` yields the commands in `data` that end with the
`0xFF 0xFF 0xFF` delimiter.

`ChargerStatus` is a dataclass that holds the values shown on a display.

`NextionSession(device, write)` talks to one Nextion display:

- `start()` resets the display and wakes it.
- `feed(data)` and `handle_command(cmd)` process what the display sends:
  - `sub <var>` subscribes to a variable and `unsub` drops every
    subscription.
  - `en`, `chCur`, `consumLim`, `chTimeLim` and `uPowerLim` set the matching
    attributes on `device`.
  - `auth` calls `device.authorize()`.
  - The auto-sleep and buffer-overflow return codes are also handled.
- `send_variables()` publishes the subscribed variables.
- `poll()` does the periodic work. While the display sleeps, it wakes the
  display when the charger state changes. Otherwise it publishes the
  variables.

### `evsekit.scripting`

- `Watchdog` counts heartbeats. `heartbeat()` raises `ScriptTimeout` once the
  threshold has been passed since `reset()`.
- `DriverScheduler(watchdog, on_error)` calls driver methods on each
  `process(now_ms)`. It calls `loop` every time and `every_100ms`,
  `every_250ms` and `every_1s` when they are due. The newest driver is called
  first. Errors go to `on_error`. Drivers are registered with `add_driver()`
  and unregistered with `remove_driver()`.
- `AuxBridge(aux)` checks the arguments of `write(name, value)`,
  `read(name)` and `analog_read(name)`. Wrong arguments raise `TypeError` and
  unknown names raise `ValueError`.
- `ScriptSettings(store)` keeps the enabled flag in the store. Use
  `is_enabled()` and `set_enabled()`.
- `charging_current_to_tenths(amps)` converts amperes to tenths of an ampere,
  rounding half away from zero.

### `evsekit.controller`

- `led_patterns_for_state(state)` returns the `LedPattern` of the charging LED
  and of the error LED for a charger state.
- `LedUpdater(set_led)` calls `set_led(led_id, pattern)` for both LEDs, but
  only when `update(state)` is given a new state.
- `ButtonMonitor(hold_ms)` turns `press(now_ms)` and `release(now_ms)` events
  into a `ButtonAction`:
  - A short press gives `START_AP`.
  - A hold of at least `hold_ms` gives `FACTORY_RESET`. The default hold is
    10 s.
  - A release without a press gives `NONE`.

## Example

```python
from evsekit.modbus_rtu import compute_crc, handle_frame
from evsekit.states import EvseState
from evsekit.controller import LedId, led_patterns_for_state

request = b"\x01\x03\x00\x00\x00\x01"
frame = request + compute_crc(request).to_bytes(2, "big")
reply = handle_frame(frame, lambda payload: b"\x01\x03\x02\x00\x2a")

patterns = led_patterns_for_state(EvseState.C2)
assert patterns[LedId.CHARGING].is_on
assert patterns[LedId.ERROR].is_off
```

## What this package does not do

- It does not open serial ports or drive UARTs, GPIOs or LEDs. Its callbacks
  and handler objects are the place to connect them.
- It has no Modbus register map. The request handler passed to `handle_frame`
  is yours to write.
- It does not contain a script interpreter. It supplies the watchdog, the
  driver scheduling and the checked I/O that a script runtime would use.
- It has no command line, web interface, Wi-Fi handling or storage backend.
  Any mutable mapping can serve as the settings store.