"""The two variable-length integer schemes: MUS delta read, MIDI VLQ write.

They are not interchangeable. MUS accumulates 7-bit groups while the high
bit of the byte just read is set; MIDI emits the most significant group
first with the continuation bit set on every byte but the last.
"""


def read_mus_delta(data: bytes, pos: int) -> tuple[int, int]:
    """Decode a MUS delay starting at ``pos``; return (ticks, next_pos)."""
    value = 0
    while True:
        byte = data[pos]
        pos += 1
        value = value * 128 + (byte & 0x7F)
        if not byte & 0x80:
            return value, pos


def midi_varlen(value: int) -> bytes:
    if value < 0:
        raise ValueError(f"delta time must be >= 0, got {value}")
    out = [value & 0x7F]
    value >>= 7
    while value > 0:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.reverse()
    return bytes(out)
