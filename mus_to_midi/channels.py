"""MUS channel -> MIDI channel allocation and the per-channel volume cache."""

NUM_CHANNELS = 16
MUS_PERCUSSION_CHANNEL = 15
MIDI_PERCUSSION_CHANNEL = 9
DEFAULT_CHANNEL_VOLUME = 0x40
CC_VOLUME = 0x07
FULL_VOLUME = 127


class ChannelAllocator:
    """Assigns MIDI channels to MUS channels on first use.

    Channels are handed out in increasing order from 0, stepping over 9.
    MUS channel 15 is bound to MIDI channel 9 up front. A fresh instance is
    needed for every conversion.
    """

    def __init__(self) -> None:
        self.channel_map = [-1] * NUM_CHANNELS
        self.channel_map[MUS_PERCUSSION_CHANNEL] = MIDI_PERCUSSION_CHANNEL
        self.volumes = [DEFAULT_CHANNEL_VOLUME] * NUM_CHANNELS
        self._next = 0

    def allocate(self, mus_channel: int) -> tuple[int, list[int] | None]:
        """Return (midi_channel, init_event).

        ``init_event`` is the "volume 127" controller change to emit for a
        channel assigned by this call, or None if it was already mapped.
        """
        mapped = self.channel_map[mus_channel]
        if mapped >= 0:
            return mapped, None
        channel = self._next
        self.channel_map[mus_channel] = channel
        self._next += 1
        if self._next == MIDI_PERCUSSION_CHANNEL:
            self._next += 1
        return channel, [0xB0 | channel, CC_VOLUME, FULL_VOLUME]

    def volume(self, midi_channel: int) -> int:
        return self.volumes[midi_channel]

    def set_volume(self, midi_channel: int, value: int) -> None:
        self.volumes[midi_channel] = value
