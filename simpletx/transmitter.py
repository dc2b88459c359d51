"""Main transmitter logic: stick mapping, start-up commands, alarms and frame pacing."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Sequence

from simpletx.calibration import CalibrationStore, CalibValues
from simpletx.config import (
    ADC_MAX,
    ADC_MID,
    ADC_MIN,
    BEEPING_VOLTAGE,
    CHANNEL_NUMBER,
    FRAME_LENGTH_US,
    ON_USB,
    PPM_ON_STATE,
    PULSE_LENGTH_US,
    RC_MAX_COMMAND,
    RC_MIN_COMMAND,
    SETTING_1_PKT_RATE,
    SETTING_1_POWER,
    SETTING_2_PKT_RATE,
    SETTING_2_POWER,
    STICK_ALARM_TIME_MS,
    WARNING_VOLTAGE,
    Channel,
    Reverse,
    arduino_map,
    constrain,
)
from simpletx.crsf import (
    CRSF_DIGITAL_CHANNEL_MAX,
    CRSF_DIGITAL_CHANNEL_MID,
    CRSF_DIGITAL_CHANNEL_MIN,
    CRSF_MAX_CHANNEL,
    CRSF_TIME_BETWEEN_FRAMES_US,
    ELRS_PKT_RATE_COMMAND,
    ELRS_POWER_COMMAND,
    ELRS_TLM_RATIO_COMMAND,
    SERIAL_BAUDRATE,
    CrsfWriter,
    build_command_packet,
    build_data_packet,
    open_serial,
)
from simpletx.led import Led
from simpletx.tone import TonePlayer

logger = logging.getLogger(__name__)

VOLTAGE_DIVIDER = 103.0
INITIAL_PREVIOUS_THROTTLE = 191
STICK_MOVE_THRESHOLD = 30

CONNECT_PACKETS = 500
COMMAND_PACKETS_END = 505
POWER_PACKETS_END = 510

BIND_TLM_RATIO = 2
WIFI_TLM_RATIO = 8

_MILLIS_MASK = 0xFFFFFFFF


@dataclass(frozen=True)
class Inputs:
    """One reading of the analog sticks, battery divider and switch pins.

    Switch pins use pull-ups, so 1 means open and 0 means closed.
    """

    aileron: int
    elevator: int
    throttle: int
    rudder: int
    voltage: int = 0
    arm: int = 1
    aux2_high: int = 1
    aux2_low: int = 1
    aux3: int = 1
    aux4: int = 1

    @classmethod
    def from_line(cls, line: str) -> "Inputs":
        """Parse whitespace-separated integers in field order.

        At least the four stick values are required.
        """
        parts = line.split()
        names = [f.name for f in fields(cls)]
        if not 4 <= len(parts) <= len(names):
            raise ValueError(f"expected 4 to {len(names)} values, got {len(parts)}")
        return cls(*(int(part) for part in parts))


class Setting(IntEnum):
    """Command chosen by holding the right stick in a corner at start-up."""

    NONE = 0
    PRESET_1 = 1
    PRESET_2 = 2
    BIND = 3
    WIFI = 4


_PRESETS = {
    Setting.PRESET_1: (SETTING_1_PKT_RATE, SETTING_1_POWER),
    Setting.PRESET_2: (SETTING_2_PKT_RATE, SETTING_2_POWER),
}


def select_setting(channels: Sequence[int]) -> Setting:
    """Pick the start-up command from the aileron and elevator channel positions."""
    aileron = channels[Channel.AILERON]
    elevator = channels[Channel.ELEVATOR]
    left = aileron < RC_MIN_COMMAND
    right = aileron > RC_MAX_COMMAND
    up = elevator > RC_MAX_COMMAND
    down = elevator < RC_MIN_COMMAND
    if left and up:
        return Setting.PRESET_1
    if right and up:
        return Setting.PRESET_2
    if left and down:
        return Setting.BIND
    if right and down:
        return Setting.WIFI
    return Setting.NONE


def _map_range(value: int, in_min: int, in_max: int, out_min: int, out_max: int) -> int:
    # A collapsed calibration range yields the upper output instead of dividing by zero.
    if in_min == in_max:
        return out_max
    return arduino_map(value, in_min, in_max, out_min, out_max)


def stick_to_adc(raw: int, minimum: int, center: int, maximum: int) -> int:
    """Map a raw centred-stick reading onto the ADC range using its calibration.

    Readings up to the centre fill the lower half, the rest the upper half.
    """
    if raw <= center:
        value = _map_range(raw, minimum, center, ADC_MIN, ADC_MID)
    else:
        value = _map_range(raw, center, maximum, ADC_MID + 1, ADC_MAX)
    return constrain(value, ADC_MIN, ADC_MAX)


def _throttle_to_adc(raw: int, minimum: int, maximum: int) -> int:
    return constrain(_map_range(raw, maximum, minimum, ADC_MIN, ADC_MAX), ADC_MIN, ADC_MAX)


def _adc_to_channel(value: int) -> int:
    return arduino_map(value, ADC_MIN, ADC_MAX, CRSF_DIGITAL_CHANNEL_MIN, CRSF_DIGITAL_CHANNEL_MAX)


def ppm_timings(channels: Sequence[int]) -> list[tuple[int, int]]:
    """Return one PPM frame as (output level, duration in microseconds) pairs.

    Each channel is a fixed pulse followed by a gap that makes the channel
    1000-2000 us long; a final pulse and gap fill the frame.
    """
    if len(channels) < CHANNEL_NUMBER:
        raise ValueError(f"expected at least {CHANNEL_NUMBER} channels, got {len(channels)}")
    on, off = PPM_ON_STATE, 1 - PPM_ON_STATE
    timings: list[tuple[int, int]] = []
    used = 0
    for value in channels[:CHANNEL_NUMBER]:
        width = arduino_map(value, CRSF_DIGITAL_CHANNEL_MIN, CRSF_DIGITAL_CHANNEL_MAX, 1000, 2000)
        timings.append((on, PULSE_LENGTH_US))
        timings.append((off, width - PULSE_LENGTH_US))
        used += width
    rest = FRAME_LENGTH_US - (used + PULSE_LENGTH_US)
    if rest < 0:
        raise ValueError("channel pulses do not fit in the PPM frame")
    timings.append((on, PULSE_LENGTH_US))
    timings.append((off, rest))
    return timings


class Transmitter:
    """Turns stick and switch readings into paced CRSF frames."""

    def __init__(self, calibration: CalibValues) -> None:
        self.calibration = calibration
        self.reverse = Reverse()
        self.channels = [CRSF_DIGITAL_CHANNEL_MIN] * CRSF_MAX_CHANNEL
        self.previous_throttle = INITIAL_PREVIOUS_THROTTLE
        self.stick_initialised = False
        self.stick_moved = False
        self.stick_moved_ms = 0
        self.setting = Setting.NONE
        self.packet_rate = 0
        self.power = 0
        self.loop_count = 0
        self.crsf_time_us = 0
        self.voltage = 0.0
        self.led = Led()
        self.tone = TonePlayer()
        self.led_level = self.led.turn_on()
        self.buzzer_duty = 0

    def update_channels(self, inputs: Inputs) -> list[int]:
        """Compute all channel values from one reading and return a copy of them."""
        cal = self.calibration
        aileron = stick_to_adc(inputs.aileron, cal.aileron_min, cal.aileron_center, cal.aileron_max)
        elevator = stick_to_adc(
            inputs.elevator, cal.elevator_min, cal.elevator_center, cal.elevator_max
        )
        throttle = _throttle_to_adc(inputs.throttle, cal.thr_min, cal.thr_max)
        rudder = stick_to_adc(inputs.rudder, cal.rudder_min, cal.rudder_center, cal.rudder_max)
        aileron, elevator, throttle, rudder = self.reverse.apply(aileron, elevator, throttle, rudder)

        self.channels[Channel.AILERON] = _adc_to_channel(aileron)
        self.channels[Channel.ELEVATOR] = _adc_to_channel(elevator)
        self.channels[Channel.THROTTLE] = _adc_to_channel(throttle)
        self.channels[Channel.RUDDER] = _adc_to_channel(rudder)

        self.channels[Channel.AUX1] = (
            CRSF_DIGITAL_CHANNEL_MIN if inputs.arm == 1 else CRSF_DIGITAL_CHANNEL_MAX
        )
        if inputs.aux2_high == 0:
            aux2 = CRSF_DIGITAL_CHANNEL_MAX
        elif inputs.aux2_low == 0:
            aux2 = CRSF_DIGITAL_CHANNEL_MIN
        else:
            aux2 = CRSF_DIGITAL_CHANNEL_MID
        self.channels[Channel.AUX2] = aux2
        self.channels[Channel.AUX3] = (
            CRSF_DIGITAL_CHANNEL_MIN if inputs.aux3 == 0 else CRSF_DIGITAL_CHANNEL_MAX
        )
        self.channels[Channel.AUX4] = (
            CRSF_DIGITAL_CHANNEL_MIN if inputs.aux4 == 1 else CRSF_DIGITAL_CHANNEL_MAX
        )
        return list(self.channels)

    def check_stick_move(self, now_ms: int) -> bool:
        """Track throttle movement; True when it has not moved for the alarm time."""
        throttle = self.channels[Channel.THROTTLE]
        if abs(self.previous_throttle - throttle) < STICK_MOVE_THRESHOLD:
            self.stick_moved = False
        else:
            self.previous_throttle = throttle
            self.stick_moved_ms = now_ms
            self.stick_moved = True
        return ((now_ms - self.stick_moved_ms) & _MILLIS_MASK) > STICK_ALARM_TIME_MS

    def battery_voltage(self, raw: int) -> float:
        """Convert the voltage divider reading into volts and remember it."""
        self.voltage = raw / VOLTAGE_DIVIDER
        return self.voltage

    def _setting_command(self) -> tuple[int, int] | None:
        if self.setting in _PRESETS:
            return ELRS_PKT_RATE_COMMAND, self.packet_rate
        if self.setting is Setting.BIND:
            return ELRS_TLM_RATIO_COMMAND, BIND_TLM_RATIO
        if self.setting is Setting.WIFI:
            return ELRS_TLM_RATIO_COMMAND, WIFI_TLM_RATIO
        return None

    def next_packet(self) -> list[bytes]:
        """Return the frames to send in the current frame slot.

        The first slots keep the link busy with channel data, then the chosen
        start-up command and power level are each sent a few times.
        """
        packets: list[bytes] = []
        if self.loop_count <= CONNECT_PACKETS:
            packets.append(build_data_packet(self.channels))
            self.loop_count += 1

        if CONNECT_PACKETS < self.loop_count <= COMMAND_PACKETS_END:
            command = self._setting_command()
            if command is not None:
                packets.append(build_command_packet(*command))
            self.loop_count += 1
        elif COMMAND_PACKETS_END < self.loop_count < POWER_PACKETS_END:
            if self.setting in _PRESETS:
                packets.append(build_command_packet(ELRS_POWER_COMMAND, self.power))
            self.loop_count += 1
        else:
            packets.append(build_data_packet(self.channels))
        return packets

    def _update_indicators(self, now_ms: int) -> None:
        voltage = self.voltage
        if BEEPING_VOLTAGE <= voltage < WARNING_VOLTAGE:
            self.led_level = self.led.blink(1000, now_ms)
        elif ON_USB <= voltage < BEEPING_VOLTAGE:
            self.led_level = self.led.blink(300, now_ms)
            self.buzzer_duty = self.tone.play(2, now_ms)
        else:
            self.led_level = self.led.blink(300, now_ms)

        if self.check_stick_move(now_ms):
            self.led_level = self.led.blink(100, now_ms)
            self.buzzer_duty = self.tone.play(5, now_ms)
        else:
            self.led_level = self.led.turn_on()

    def step(self, inputs: Inputs, now_us: int) -> list[bytes]:
        """Run one control cycle and return the frames due at now_us."""
        now_ms = now_us // 1000
        self.battery_voltage(inputs.voltage)
        self._update_indicators(now_ms)

        self.update_channels(inputs)
        if not self.stick_initialised:
            self.previous_throttle = self.channels[Channel.THROTTLE]
            self.stick_initialised = True

        self.setting = select_setting(self.channels)
        if self.setting in _PRESETS:
            self.packet_rate, self.power = _PRESETS[self.setting]

        if now_us > self.crsf_time_us:
            packets = self.next_packet()
            self.crsf_time_us = now_us + CRSF_TIME_BETWEEN_FRAMES_US
            return packets
        return []


def _load_calibration(path: str | None) -> CalibValues:
    if path is None:
        return CalibValues.defaults()
    store = CalibrationStore(path)
    return store.load() if store.present() else CalibValues.defaults()


def main(argv: Sequence[str] | None = None) -> int:
    """Read stick readings from standard input, one per line, and send CRSF frames."""
    parser = argparse.ArgumentParser(
        prog="simpletx",
        description="Send CRSF frames built from stick readings given on standard input.",
    )
    parser.add_argument("device", help="serial device or serial URL of the transmitter module")
    parser.add_argument("--baudrate", type=int, default=SERIAL_BAUDRATE)
    parser.add_argument("--calibration", help="file holding the stored calibration")
    args = parser.parse_args(argv)

    transmitter = Transmitter(_load_calibration(args.calibration))
    with open_serial(args.device, args.baudrate) as port:
        writer = CrsfWriter(port)
        for number, line in enumerate(sys.stdin, start=1):
            if not line.strip():
                continue
            try:
                inputs = Inputs.from_line(line)
            except ValueError as error:
                logger.error("line %d: %s", number, error)
                return 1
            for packet in transmitter.step(inputs, time.monotonic_ns() // 1000):
                writer.write(packet)
    return 0


if __name__ == "__main__":
    sys.exit(main())