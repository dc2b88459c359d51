"""Gimbal calibration: stored stick ranges and the calibration procedure."""

from __future__ import annotations

import logging
import struct
from dataclasses import astuple, dataclass, fields, replace
from pathlib import Path

from simpletx.config import ADC_MAX, ANALOG_CUTOFF

logger = logging.getLogger(__name__)

CALIB_MARK = 0x55
CALIB_MARK_ADDR = 0x00
CALIB_VAL_ADDR = CALIB_MARK_ADDR + 1

CALIB_CNT = 5
CALIB_CENT_TMO_MS = 5000
CALIB_TMO_MS = 20000

EEPROM_SIZE = 1024
_ERASED = 0xFF

DEFAULT_CENTER = 988

_LAYOUT = struct.Struct("<11h")


@dataclass
class CalibValues:
    """Raw ADC limits and centres of the four stick axes."""

    aileron_min: int
    aileron_max: int
    aileron_center: int
    elevator_min: int
    elevator_max: int
    elevator_center: int
    thr_min: int
    thr_max: int
    rudder_min: int
    rudder_max: int
    rudder_center: int

    @classmethod
    def defaults(cls) -> "CalibValues":
        """Values used when no calibration has been made."""
        low = ANALOG_CUTOFF
        high = ADC_MAX - ANALOG_CUTOFF
        return cls(
            aileron_min=low,
            aileron_max=high,
            aileron_center=DEFAULT_CENTER,
            elevator_min=low,
            elevator_max=high,
            elevator_center=DEFAULT_CENTER,
            thr_min=low,
            thr_max=high,
            rudder_min=low,
            rudder_max=high,
            rudder_center=DEFAULT_CENTER,
        )

    @classmethod
    def centered(cls) -> "CalibValues":
        """All limits collapsed to the middle of the range, ready to be widened."""
        center = (ADC_MAX - ANALOG_CUTOFF - ANALOG_CUTOFF) // 2
        return cls(*([center] * len(fields(cls))))

    def to_bytes(self) -> bytes:
        """Serialise as eleven little-endian 16-bit integers."""
        return _LAYOUT.pack(*astuple(self))

    @classmethod
    def from_bytes(cls, data: bytes) -> "CalibValues":
        """Deserialise from the layout written by to_bytes."""
        if len(data) != _LAYOUT.size:
            raise ValueError(f"expected {_LAYOUT.size} bytes, got {len(data)}")
        return cls(*_LAYOUT.unpack(data))


class CalibrationStore:
    """Calibration kept in a file laid out like the board's EEPROM."""

    def __init__(self, path) -> None:
        self.path = Path(path)

    def _image(self) -> bytearray:
        try:
            data = bytearray(self.path.read_bytes()[:EEPROM_SIZE])
        except FileNotFoundError:
            data = bytearray()
        data.extend([_ERASED] * (EEPROM_SIZE - len(data)))
        return data

    def _write(self, address: int, payload: bytes) -> None:
        image = self._image()
        image[address:address + len(payload)] = payload
        self.path.write_bytes(bytes(image))

    def present(self) -> bool:
        """Whether a calibration has been saved."""
        return self._image()[CALIB_MARK_ADDR] == CALIB_MARK

    def save(self, values: CalibValues) -> None:
        """Store values and mark the calibration as present."""
        self._write(CALIB_MARK_ADDR, bytes([CALIB_MARK]) + values.to_bytes())

    def load(self) -> CalibValues:
        """Read stored values; erased memory reads back as all bits set."""
        image = self._image()
        return CalibValues.from_bytes(bytes(image[CALIB_VAL_ADDR:CALIB_VAL_ADDR + _LAYOUT.size]))

    def reset(self) -> CalibValues:
        """Clear the mark and store the default values, returning them."""
        values = CalibValues.defaults()
        self._write(CALIB_MARK_ADDR, bytes([_ERASED]) + values.to_bytes())
        return values


class Calibrator:
    """Runs the timed calibration procedure and counts the switch gesture."""

    def __init__(self, store: CalibrationStore) -> None:
        self.store = store
        self.values = CalibValues.centered()
        self.active = False
        self.aux2_count = 0
        self.timer_start_ms = 0
        self._previous_aux2 = 0
        self._reset_done = False

    def count(self, aux1: int, aux2: int, now_ms: int) -> int:
        """Count AUX2 switch flips while disarmed; returns the current count."""
        if aux1 != 0:
            self.aux2_count = 0
            self._previous_aux2 = 0
            return self.aux2_count

        if self.aux2_count == 0:
            self.timer_start_ms = now_ms

        if self.timer_start_ms + CALIB_TMO_MS > now_ms:
            self.aux2_count = 0
            self._previous_aux2 = 0
            return self.aux2_count

        if aux2 == 1 and self._previous_aux2 == 0:
            self.aux2_count += 1
            self._previous_aux2 = 1
        elif aux2 == 0 and self._previous_aux2 == 1:
            self._previous_aux2 = 0
        return self.aux2_count

    def process(self, now_ms: int, aileron: int, elevator: int, throttle: int, rudder: int) -> bool:
        """Advance the calibration with one set of raw stick readings.

        Before 5 s the centres are taken; until 20 s the limits are widened;
        after that the values are saved and calibration ends.
        """
        self.aux2_count = 0

        if not self._reset_done:
            self.values = CalibValues.centered()
            self._reset_done = True

        v = self.values
        if now_ms < CALIB_CENT_TMO_MS:
            self.values = replace(
                v, aileron_center=aileron, elevator_center=elevator, rudder_center=rudder
            )
            logger.info(
                "Center stick: aileron %d elevator %d rudder %d",
                aileron, elevator, rudder,
            )
        elif CALIB_CENT_TMO_MS < now_ms < CALIB_TMO_MS:
            self.values = replace(
                v,
                aileron_min=min(v.aileron_min, aileron),
                aileron_max=max(v.aileron_max, aileron),
                elevator_min=min(v.elevator_min, elevator),
                elevator_max=max(v.elevator_max, elevator),
                thr_min=min(v.thr_min, throttle),
                thr_max=max(v.thr_max, throttle),
                rudder_min=min(v.rudder_min, rudder),
                rudder_max=max(v.rudder_max, rudder),
            )
            logger.info("Move sticks full range: %s", self.values)
        else:
            logger.info("Calibration done")
            self.store.save(self.values)
            self.active = False
        return True

    def run(self, aux1: int, aux2: int, now_ms: int,
            aileron: int, elevator: int, throttle: int, rudder: int) -> bool:
        """Process calibration when active, otherwise count switch flips.

        Returns True when a calibration step was processed.
        """
        if self.active:
            if self.process(now_ms, aileron, elevator, throttle, rudder):
                return True
            logger.error("Calibration error")
            return False
        self.count(aux1, aux2, now_ms)
        return False