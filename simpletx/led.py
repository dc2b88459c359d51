"""Status LED driven by a non-blocking blink timer."""

from __future__ import annotations

LOW = 0
HIGH = 1

_MILLIS_MASK = 0xFFFFFFFF


class Led:
    """Tracks the LED output level and toggles it at a given blink rate."""

    def __init__(self) -> None:
        self.state = LOW
        self.level = LOW
        self.previous_ms = 0

    def blink(self, rate_ms: int, now_ms: int) -> int:
        """Toggle the LED if at least rate_ms have passed since the last toggle.

        Returns the current output level.
        """
        elapsed = (now_ms - self.previous_ms) & _MILLIS_MASK
        if elapsed >= rate_ms:
            self.previous_ms = now_ms
            self.state ^= 1
            self.level = self.state
        return self.level

    def turn_on(self) -> int:
        """Drive the LED high without touching the blink state."""
        self.level = HIGH
        return self.level