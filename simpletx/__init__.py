"""CRSF transmitter logic: framing, calibration, channel mapping and indicators."""

__version__ = "0.1.0"
__all__ = ["calibration", "config", "crsf", "led", "tone", "transmitter"]