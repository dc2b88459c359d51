"""CRSF frame building and writing for ExpressLRS transmitter modules."""

from __future__ import annotations

from typing import BinaryIO, Sequence

import serial

CRSF_MAX_CHANNEL = 16
CRSF_FRAME_SIZE_MAX = 64
RADIO_ADDRESS = 0xEA
TYPE_CHANNELS = 0x16

CRSF_DIGITAL_CHANNEL_MIN = 172
CRSF_DIGITAL_CHANNEL_MID = 1000
CRSF_DIGITAL_CHANNEL_MAX = 1811

CRSF_TIME_NEEDED_PER_FRAME_US = 1100
SERIAL_BAUDRATE = 400000
CRSF_TIME_BETWEEN_FRAMES_US = 1666
CRSF_PAYLOAD_SIZE_MAX = 60
CRSF_PACKET_LENGTH = 22
CRSF_PACKET_SIZE = 26
CRSF_FRAME_LENGTH = 24
CRSF_CMD_PACKET_SIZE = 8

ELRS_ADDRESS = 0xEE
ELRS_PKT_RATE_COMMAND = 0x01
ELRS_TLM_RATIO_COMMAND = 0x02
ELRS_SWITCH_MODE_COMMAND = 0x03
ELRS_MODEL_MATCH_COMMAND = 0x04
ELRS_POWER_COMMAND = 0x06
ELRS_DYNAMIC_POWER_COMMAND = 0x07
ELRS_WIFI_COMMAND = 0x0F
ELRS_BIND_COMMAND = 0x11
ELRS_START_COMMAND = 0x04
TYPE_SETTINGS_WRITE = 0x2D
ADDR_RADIO = 0xEA

_CHANNEL_BITS = 11
_CHANNEL_MASK = 0x07FF
_CRC_POLY = 0xD5


def _build_crc_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = ((crc << 1) ^ _CRC_POLY) & 0xFF if crc & 0x80 else (crc << 1) & 0xFF
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_crc_table()


def crc8(data: bytes) -> int:
    """CRC-8 with polynomial 0xD5 as used by CRSF frames."""
    crc = 0
    for byte in data:
        crc = _CRC_TABLE[crc ^ byte]
    return crc


def pack_channels(channels: Sequence[int]) -> bytes:
    """Pack 16 channel values into 22 bytes, 11 bits each, least significant first."""
    if len(channels) != CRSF_MAX_CHANNEL:
        raise ValueError(f"expected {CRSF_MAX_CHANNEL} channels, got {len(channels)}")
    bits = 0
    for position, value in enumerate(channels):
        bits |= (int(value) & _CHANNEL_MASK) << (position * _CHANNEL_BITS)
    return bits.to_bytes(CRSF_PACKET_LENGTH, "little")


def unpack_channels(payload: bytes) -> list[int]:
    """Unpack 22 bytes of channel payload into 16 channel values."""
    if len(payload) != CRSF_PACKET_LENGTH:
        raise ValueError(f"expected {CRSF_PACKET_LENGTH} bytes, got {len(payload)}")
    bits = int.from_bytes(payload, "little")
    return [(bits >> (n * _CHANNEL_BITS)) & _CHANNEL_MASK for n in range(CRSF_MAX_CHANNEL)]


def build_data_packet(channels: Sequence[int]) -> bytes:
    """Build an RC channels frame addressed to the transmitter module."""
    body = bytes([TYPE_CHANNELS]) + pack_channels(channels)
    return bytes([ELRS_ADDRESS, CRSF_FRAME_LENGTH]) + body + bytes([crc8(body)])


def build_command_packet(command: int, value: int) -> bytes:
    """Build a settings-write frame that sets an ELRS parameter."""
    body = bytes([TYPE_SETTINGS_WRITE, ELRS_ADDRESS, ADDR_RADIO, command, value])
    return bytes([ELRS_ADDRESS, len(body) + 1]) + body + bytes([crc8(body)])


def open_serial(device: str, baudrate: int = SERIAL_BAUDRATE):
    """Open the serial link to the transmitter module."""
    return serial.serial_for_url(device, baudrate=baudrate)


class CrsfWriter:
    """Writes complete CRSF frames to a byte stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def write(self, packet: bytes) -> int:
        """Write one frame and return the number of bytes written."""
        if len(packet) > CRSF_FRAME_SIZE_MAX:
            raise ValueError(f"frame of {len(packet)} bytes exceeds {CRSF_FRAME_SIZE_MAX}")
        written = self.stream.write(bytes(packet))
        return len(packet) if written is None else written