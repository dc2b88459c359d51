import io

import pytest

from simpletx.crsf import (
    ADDR_RADIO,
    CRSF_CMD_PACKET_SIZE,
    CRSF_DIGITAL_CHANNEL_MAX,
    CRSF_DIGITAL_CHANNEL_MID,
    CRSF_DIGITAL_CHANNEL_MIN,
    CRSF_PACKET_SIZE,
    ELRS_ADDRESS,
    ELRS_POWER_COMMAND,
    TYPE_CHANNELS,
    TYPE_SETTINGS_WRITE,
    CrsfWriter,
    build_command_packet,
    build_data_packet,
    crc8,
    open_serial,
    pack_channels,
    unpack_channels,
)


def sample_channels():
    return [CRSF_DIGITAL_CHANNEL_MIN, CRSF_DIGITAL_CHANNEL_MID, CRSF_DIGITAL_CHANNEL_MAX] * 5 + [992]


def test_crc_table_values():
    assert crc8(b"") == 0
    assert crc8(b"\x01") == 0xD5
    assert crc8(b"\x02") == 0x7F


@pytest.mark.parametrize("data", [b"abc", bytes(range(40)), b"\xff\x00\x16"])
def test_crc_residue_is_zero(data):
    assert crc8(data + bytes([crc8(data)])) == 0


def test_pack_round_trip():
    channels = sample_channels()
    payload = pack_channels(channels)
    assert len(payload) == 22
    assert unpack_channels(payload) == channels


def test_pack_masks_to_eleven_bits():
    channels = [0x7FF + 1] + [0] * 15
    assert unpack_channels(pack_channels(channels)) == [0] * 16


def test_pack_first_channel_low_byte_first():
    channels = [0x7FF] + [0] * 15
    payload = pack_channels(channels)
    assert payload[0] == 0xFF
    assert payload[2:] == bytes(20)


def test_pack_wrong_count():
    with pytest.raises(ValueError):
        pack_channels([0] * 15)


def test_unpack_wrong_length():
    with pytest.raises(ValueError):
        unpack_channels(bytes(21))


def test_data_packet_layout():
    channels = sample_channels()
    packet = build_data_packet(channels)
    assert len(packet) == CRSF_PACKET_SIZE
    assert packet[:3] == bytes([ELRS_ADDRESS, 24, TYPE_CHANNELS])
    assert unpack_channels(packet[3:25]) == channels
    assert packet[25] == crc8(packet[2:25])


def test_command_packet_layout():
    packet = build_command_packet(ELRS_POWER_COMMAND, 4)
    assert len(packet) == CRSF_CMD_PACKET_SIZE
    assert packet[:7] == bytes(
        [ELRS_ADDRESS, 6, TYPE_SETTINGS_WRITE, ELRS_ADDRESS, ADDR_RADIO, ELRS_POWER_COMMAND, 4]
    )
    assert packet[7] == crc8(packet[2:7])


def test_command_value_out_of_range():
    with pytest.raises(ValueError):
        build_command_packet(ELRS_POWER_COMMAND, 256)


def test_writer_writes_packet():
    stream = io.BytesIO()
    packet = build_data_packet(sample_channels())
    assert CrsfWriter(stream).write(packet) == CRSF_PACKET_SIZE
    assert stream.getvalue() == packet


def test_writer_rejects_oversized_frame():
    with pytest.raises(ValueError):
        CrsfWriter(io.BytesIO()).write(bytes(65))


def test_open_serial_loopback():
    port = open_serial("loop://", 115200)
    try:
        packet = build_command_packet(ELRS_POWER_COMMAND, 3)
        CrsfWriter(port).write(packet)
        assert port.read(len(packet)) == packet
        assert port.baudrate == 115200
    finally:
        port.close()