"""Tests for the MUS delay reader and the MIDI VLQ writer."""

import pytest

from mus_to_midi.varlen import midi_varlen, read_mus_delta


class TestMidiVarlen:
    """MIDI variable-length quantities."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, "00"),
            (0x40, "40"),
            (0x7F, "7F"),
            (0x80, "81 00"),
            (0x2000, "C0 00"),
            (0x3FFF, "FF 7F"),
            (0x4000, "81 80 00"),
            (0x0FFFFFFF, "FF FF FF 7F"),
        ],
    )
    def test_standard_encoding(self, value, expected):
        assert midi_varlen(value) == bytes.fromhex(expected)

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            midi_varlen(-1)


class TestReadMusDelta:
    """MUS delay decoding."""

    def test_single_byte(self):
        assert read_mus_delta(bytes([0x05, 0x99]), 0) == (5, 1)

    def test_multi_byte_accumulates_high_group_first(self):
        # 0x81 0x00 -> 1 * 128 + 0
        assert read_mus_delta(bytes([0x81, 0x00]), 0) == (128, 2)
        assert read_mus_delta(bytes([0xFF, 0xFF, 0x7F]), 0) == (0x1FFFFF, 3)

    def test_reads_from_offset(self):
        data = bytes([0x10, 0x20, 0x82, 0x01, 0x60])
        assert read_mus_delta(data, 2) == (257, 4)

    def test_truncated_delay_raises(self):
        with pytest.raises(IndexError):
            read_mus_delta(bytes([0x81]), 0)

    def test_reader_accepts_writer_output(self):
        encoded = midi_varlen(300)
        assert encoded == bytes.fromhex("82 2C")
        assert read_mus_delta(encoded, 0) == (300, 2)
        assert midi_varlen(5) == bytes([5])
