"""Buzzer pattern generation: two short beeps followed by silence."""

from __future__ import annotations

TONE_DUTY = 128
SILENT = 0

_PATTERN_PERIOD_MS = 5000
_MILLIS_MASK = 0xFFFFFFFF


class TonePlayer:
    """Produces the buzzer PWM duty for a repeating beep pattern."""

    def __init__(self) -> None:
        self.previous_ms = 0

    def play(self, duration: int, now_ms: int) -> int:
        """Return the buzzer duty cycle at now_ms.

        Each beep and gap lasts duration * 100 ms; the pattern repeats
        every 5 seconds (or after the beeps when they run longer).
        """
        step = duration * 100
        elapsed = (now_ms - self.previous_ms) & _MILLIS_MASK
        if elapsed <= step:
            return TONE_DUTY
        if elapsed <= 2 * step:
            return SILENT
        if elapsed <= 3 * step:
            return TONE_DUTY
        if elapsed <= _PATTERN_PERIOD_MS:
            return SILENT
        self.previous_ms = now_ms
        return SILENT