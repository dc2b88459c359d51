"""Transmitter configuration: ranges, pins, thresholds and channel layout."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

# Analog input range (10-bit ADC).
ADC_MIN = 0
ADC_MID = 511
ADC_MAX = 1023

# Cut off the lower and upper end to keep the joystick range symmetric.
ANALOG_CUTOFF = 0

# Analog pins used for the joysticks and battery monitor (A0..A4).
ANALOG_PIN_AILERON = 4
ANALOG_PIN_ELEVATOR = 3
ANALOG_PIN_THROTTLE = 2
ANALOG_PIN_RUDDER = 1
VOLTAGE_READ_PIN = 0

# Digital pins used for switches and outputs.
DIGITAL_PIN_SWITCH_ARM = 4
DIGITAL_PIN_SWITCH_AUX2_HIGH = 3
DIGITAL_PIN_SWITCH_AUX2_LOW = 8
DIGITAL_PIN_SWITCH_AUX3 = 2
DIGITAL_PIN_SWITCH_AUX4 = 5
DIGITAL_PIN_LED = 7
DIGITAL_PIN_BUZZER = 6

# Battery thresholds in volts.
WARNING_VOLTAGE = 7.0
BEEPING_VOLTAGE = 6.4
ON_USB = 5.2

# Stick positions that select a start-up command.
RC_MIN_COMMAND = 600
RC_MAX_COMMAND = 1400

# Alarm when the throttle has not moved for this long (5 minutes).
STICK_ALARM_TIME_MS = 300_000

# Packet rate / power presets selected with the sticks at start-up.
SETTING_1_PKT_RATE = 2
SETTING_1_POWER = 5
SETTING_2_PKT_RATE = 9
SETTING_2_POWER = 4

# PPM output.
CHANNEL_NUMBER = 12
CHANNEL_DEFAULT_VALUE = 1500
FRAME_LENGTH_US = 22500
PULSE_LENGTH_US = 300
PPM_ON_STATE = 1
PPM_PIN = 2


class Channel(IntEnum):
    """Index of each RC channel in the channel list."""

    AILERON = 0
    ELEVATOR = 1
    THROTTLE = 2
    RUDDER = 3
    AUX1 = 4
    AUX2 = 5
    AUX3 = 6
    AUX4 = 7
    AUX5 = 8
    AUX6 = 9
    AUX7 = 10
    AUX8 = 11


def arduino_map(value: int, in_min: int, in_max: int, out_min: int, out_max: int) -> int:
    """Linearly re-map an integer from one range to another, truncating toward zero."""
    numerator = (value - in_min) * (out_max - out_min)
    denominator = in_max - in_min
    if denominator == 0:
        raise ZeroDivisionError("input range is empty")
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        quotient = -quotient
    return quotient + out_min


def constrain(value, low, high):
    """Clamp value into the closed range [low, high]."""
    if value < low:
        return low
    if value > high:
        return high
    return value


@dataclass(frozen=True)
class Reverse:
    """Which stick axes are reversed."""

    aileron: bool = False
    elevator: bool = True
    throttle: bool = True
    rudder: bool = False

    def apply(self, aileron: int, elevator: int, throttle: int, rudder: int) -> tuple[int, int, int, int]:
        """Return the four ADC values with reversed axes mirrored around the ADC range."""
        def flip(value: int, reversed_: bool) -> int:
            return ADC_MAX - value if reversed_ else value

        return (
            flip(aileron, self.aileron),
            flip(elevator, self.elevator),
            flip(throttle, self.throttle),
            flip(rudder, self.rudder),
        )