"""Translate a single MUS event into MIDI bytes."""

from .channels import ChannelAllocator
from .varlen import midi_varlen

MUS_KEY_OFF = 0
MUS_KEY_ON = 1
MUS_PITCH_WHEEL = 2
MUS_CHANNEL_MODE = 3
MUS_CONTROLLER_CHANGE = 4
MUS_SCORE_END = 6

KEY_OFF_VELOCITY = 0x40
MONO_MODE_INDEX = 12

EVENT_NAMES = {
    MUS_KEY_OFF: "key_off",
    MUS_KEY_ON: "key_on",
    MUS_PITCH_WHEEL: "pitch_wheel",
    MUS_CHANNEL_MODE: "channel_mode",
    MUS_CONTROLLER_CHANGE: "controller",
    MUS_SCORE_END: "end",
}

# MUS controller index -> MIDI controller number
CONTROLLER_MAP = [
    0x00,  # program change (handled separately)
    0x00,  # bank select
    0x01,  # modulation
    0x07,  # volume
    0x0A,  # pan
    0x0B,  # expression
    0x5B,  # reverb depth
    0x5D,  # chorus depth
    0x40,  # sustain pedal
    0x43,  # soft pedal
    0x78,  # all sounds off
    0x7B,  # all notes off
    0x7E,  # mono (value = channels + 1)
    0x7F,  # poly
    0x79,  # reset all controllers
]


def event_kind(event: int) -> int:
    return (event >> 4) & 0x07


def _controller(index: int, offset: int, warnings: list[str]) -> int:
    if index < len(CONTROLLER_MAP):
        return CONTROLLER_MAP[index]
    warnings.append(f"controller index {index} out of range at offset {offset}")
    return 0


def translate_event(
    data: bytes,
    pos: int,
    delta: int,
    allocator: ChannelAllocator,
    num_channels: int,
    score_end: int,
    warnings: list[str],
) -> tuple[bytes, int, dict]:
    """Translate the MUS event at ``data[pos]``.

    Returns the MIDI bytes (delta times included), the offset just past the
    event's data bytes and a trace entry. ``delta`` is written before the
    first message; a channel-init controller change, when one is needed,
    takes that slot and the real event follows at delta 0.
    """
    offset = pos
    event = data[pos]
    pos += 1
    mus_channel = event & 0x0F
    kind = event_kind(event)

    channel, init_event = allocator.allocate(mus_channel)
    messages: list[list[int]] = []
    if init_event is not None:
        messages.append(init_event)

    name = EVENT_NAMES.get(kind, "unknown")
    if kind == MUS_KEY_OFF:
        note = data[pos]
        pos += 1
        messages.append([0x80 | channel, note, KEY_OFF_VELOCITY])
    elif kind == MUS_KEY_ON:
        note = data[pos]
        pos += 1
        if note & 0x80:
            allocator.set_volume(channel, data[pos])
            pos += 1
        messages.append([0x90 | channel, note & 0x7F, allocator.volume(channel)])
    elif kind == MUS_PITCH_WHEEL:
        bend = data[pos]
        pos += 1
        # Single-byte source: the low data byte is always 0.
        messages.append([0xE0 | channel, (bend & 1) >> 6, (bend >> 1) & 0x7F])
    elif kind == MUS_CHANNEL_MODE:
        index = data[pos]
        pos += 1
        value = num_channels + 1 if index == MONO_MODE_INDEX else 0
        messages.append([0xB0 | channel, _controller(index, offset, warnings), value])
    elif kind == MUS_CONTROLLER_CHANGE:
        index = data[pos]
        value = data[pos + 1]
        pos += 2
        if index == 0:
            name = "program_change"
            messages.append([0xC0 | channel, value])
        else:
            messages.append([0xB0 | channel, _controller(index, offset, warnings), value])
    elif kind == MUS_SCORE_END:
        if pos != score_end:
            warnings.append(f"score end marker at offset {pos}, expected {score_end}")
        messages.append([0xFF, 0x2F, 0x00])
    else:
        warnings.append(f"unknown MUS event 0x{event:02X} at offset {offset}")

    scratch = bytearray()
    for i, msg in enumerate(messages):
        scratch += midi_varlen(delta if i == 0 else 0)
        scratch += bytes(msg)

    trace = {
        "offset": offset,
        "delta": delta,
        "kind": name,
        "mus_channel": mus_channel,
        "midi_channel": channel,
        "bytes": bytes(scratch),
    }
    return bytes(scratch), pos, trace
