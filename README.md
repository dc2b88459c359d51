# simpletx

Logic for a small radio-control transmitter that sends CRSF frames to an
ExpressLRS transmitter module over a serial link.

It covers:

- **CRSF framing** (`simpletx.crsf`): `crc8`, `pack_channels` and
  `unpack_channels` (16 channels of 11 bits in a 22-byte payload),
  `build_data_packet`, `build_command_packet` (ELRS settings-write frames),
  `open_serial` and `CrsfWriter`.
- **Configuration** (`simpletx.config`): ADC range, thresholds, presets, the
  `Channel` order, `Reverse` axis settings, `arduino_map` and `constrain`.
- **Gimbal calibration** (`simpletx.calibration`): `CalibValues` (minimum,
  centre and maximum per stick), `CalibrationStore` (a 1024-byte file laid out
  like EEPROM) and `Calibrator` (the timed calibration procedure).
- **Channel mapping** (`simpletx.transmitter`): `Inputs`, `stick_to_adc`,
  `select_setting` and the `Setting` start-up commands (two packet rate / power
  presets, bind, module Wi-Fi), `ppm_timings` and the `Transmitter` loop with
  the idle-throttle alarm.
- **Status indicators** (`simpletx.led`, `simpletx.tone`): `Led` and
  `TonePlayer`, the blink and beep patterns as time-driven state machines.

## Installation

```
pip install .
```

## Building packets

```python
from simpletx.crsf import build_data_packet, build_command_packet, unpack_channels

channels = [992] * 16
packet = build_data_packet(channels)          # 26 bytes, CRC last
assert unpack_channels(packet[3:25]) == channels

command = build_command_packet(0x06, 4)       # set TX power, 8 bytes
```

Send them to a module:

```python
from simpletx.crsf import CrsfWriter, open_serial

with open_serial("/dev/ttyUSB0", 400000) as port:
    CrsfWriter(port).write(packet)
```

`open_serial` accepts anything pyserial's `serial_for_url` accepts, so
`"loop://"` works for trying things out without a module.

## Running the transmitter loop

```python
from simpletx.calibration import CalibValues
from simpletx.transmitter import Inputs, Transmitter

tx = Transmitter(CalibValues.defaults())
frames = tx.step(Inputs(aileron=512, elevator=512, throttle=1023, rudder=512), now_us=10_000)
```

`Transmitter.step(inputs, now_us)` takes one reading of the sticks, battery
divider and switches and returns a list of frames to send at that moment; the
list is empty when the frame interval (1666 µs) has not yet passed. The first
frame slots carry channel data only; after that, if a start-up stick command
is held, the matching ELRS command frames are sent a few times each, and then
channel data continues.

Switch inputs follow pull-up wiring: `1` means open, `0` means closed.

## Calibration

```python
from simpletx.calibration import CalibrationStore, Calibrator

store = CalibrationStore("calibration.bin")
calibrator = Calibrator(store)
calibrator.active = True
# feed raw readings with the time since the start in milliseconds:
calibrator.run(0, 0, now_ms, aileron, elevator, throttle, rudder)
```

During the first 5 seconds the stick centres are taken; until 20 seconds the
limits widen to the full stick travel; after that the values are saved to the
store and `active` becomes false. `CalibrationStore.load()` reads them back,
`present()` tells whether a calibration was saved, `reset()` stores defaults.

## Command line

```
simpletx DEVICE [--baudrate N] [--calibration FILE]
```

reads one reading per line from standard input and writes the resulting CRSF
frames to `DEVICE` (a serial device or pyserial URL, 400000 baud by default).
Each line holds whitespace-separated integers in this order, of which the
first four are required:

```
aileron elevator throttle rudder [voltage arm aux2_high aux2_low aux3 aux4]
```

With `--calibration`, stick ranges come from that file if it holds a saved
calibration; otherwise defaults are used. A malformed line stops the command
with exit status 1.

## What it does not do

- It does not read sticks or switches itself: readings must be supplied as
  `Inputs` or on standard input.
- The LED level, buzzer duty and PPM timings are computed values only
  (`Transmitter.led_level`, `Transmitter.buzzer_duty`, `ppm_timings`); nothing
  drives a pin, LED, buzzer or PPM output.
- The command line has no option to start a calibration; use `Calibrator`
  from Python.