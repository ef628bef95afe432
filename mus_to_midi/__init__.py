"""DMX (DOOM) MUS -> MIDI conversion."""

from .mus_to_midi import MidiResult, MusFormatError, MusHeader, convert_mus, read_mus_header, summarize_midi

__all__ = ["MidiResult", "MusFormatError", "MusHeader", "convert_mus", "read_mus_header", "summarize_midi"]
