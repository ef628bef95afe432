"""DMX (DOOM) MUS -> Standard MIDI File converter.

Reads the MUS header, writes a format 0 MIDI header and a single track,
then translates the score one event at a time. The track length is
patched in once the end of the score is reached.
"""

import io
import sys
import argparse
import struct
from collections import defaultdict
from typing import NamedTuple

import mido

from .byte_sink import ByteSink
from .channels import MIDI_PERCUSSION_CHANNEL, NUM_CHANNELS, ChannelAllocator
from .events import MUS_SCORE_END, event_kind, translate_event
from .varlen import read_mus_delta

MUS_ID = b"MUS\x1a"
MUS_HEADER_FORMAT = "<4sHHHHHH"
MUS_HEADER_SIZE = struct.calcsize(MUS_HEADER_FORMAT)
MAX_MUS_CHANNELS = NUM_CHANNELS - 1  # one slot is kept for percussion

MIDI_HEADER_LENGTH = 6
MIDI_FORMAT = 0
MIDI_TRACKS = 1
MIDI_DIVISION = 0x0059
MIDI_TEMPO = 0x001AA309


class MusFormatError(ValueError):
    pass


class MusHeader(NamedTuple):
    tag: bytes
    score_len: int
    score_start: int
    channels: int
    sec_channels: int
    instr_count: int
    reserved: int
    instruments: tuple[int, ...]


class MidiResult(NamedTuple):
    data: bytes
    size: int
    header: MusHeader
    warnings: list[str]
    trace: list[dict]
    channel_map: list[int]


def read_mus_header(data: bytes) -> MusHeader:
    if len(data) < MUS_HEADER_SIZE:
        raise MusFormatError(
            f"input is {len(data)} bytes, a MUS header needs {MUS_HEADER_SIZE}"
        )
    fields = struct.unpack_from(MUS_HEADER_FORMAT, data, 0)
    instr_count = fields[5]
    available = (len(data) - MUS_HEADER_SIZE) // 2
    count = min(instr_count, available)
    instruments = struct.unpack_from(f"<{count}H", data, MUS_HEADER_SIZE)
    return MusHeader(*fields, instruments=tuple(instruments))


def _write_midi_header(sink: ByteSink) -> None:
    sink.write_bytes(b"MThd")
    sink.write4(MIDI_HEADER_LENGTH)
    sink.write2(MIDI_FORMAT)
    sink.write2(MIDI_TRACKS)
    sink.write2(MIDI_DIVISION)


def _write_track_prelude(sink: ByteSink) -> None:
    # Tempo bytes go out low byte first, matching existing mus2mid output.
    sink.write1(0x00)
    sink.write1(0xFF)
    sink.write2(0x5103)
    sink.write1(MIDI_TEMPO & 0xFF)
    sink.write1((MIDI_TEMPO >> 8) & 0xFF)
    sink.write1((MIDI_TEMPO >> 16) & 0xFF)

    # Percussion starts at full volume.
    sink.write1(0x00)
    sink.write1(0xB0 | MIDI_PERCUSSION_CHANNEL)
    sink.write1(0x07)
    sink.write1(127)


def convert_mus(data: bytes) -> MidiResult | None:
    """Convert a MUS score held in memory to a MIDI file.

    Returns None when the header declares more channels than MIDI can hold
    next to the percussion channel. Raises MusFormatError when the header
    or the score runs past the end of ``data``.
    """
    header = read_mus_header(data)
    if header.channels > MAX_MUS_CHANNELS:
        return None

    warnings: list[str] = []
    if header.tag != MUS_ID:
        warnings.append(f"unexpected header tag {header.tag!r}")
    if len(header.instruments) < header.instr_count:
        warnings.append(
            f"instrument list truncated: {len(header.instruments)} of {header.instr_count}"
        )

    allocator = ChannelAllocator()
    sink = ByteSink()
    trace: list[dict] = []

    _write_midi_header(sink)
    sink.write_bytes(b"MTrk")
    track_size_pos = sink.position()
    sink.skip(4)
    track_start = sink.position()
    _write_track_prelude(sink)

    pos = header.score_start
    score_end = pos + header.score_len
    delta = 0
    try:
        while True:
            event = data[pos]
            chunk, pos, entry = translate_event(
                data, pos, delta, allocator, header.channels, score_end, warnings
            )
            sink.write_bytes(chunk)
            trace.append(entry)
            if event_kind(event) == MUS_SCORE_END:
                break
            # An event that wrote nothing leaves its delta pending.
            carried = delta if not chunk else 0
            if event & 0x80:
                delay, pos = read_mus_delta(data, pos)
                delta = carried + delay
            else:
                delta = carried
    except IndexError as exc:
        raise MusFormatError(
            f"score runs past end of input ({len(data)} bytes) without an end marker"
        ) from exc

    current_pos = sink.position()
    sink.seek(track_size_pos)
    sink.write4(current_pos - track_start)
    sink.seek(current_pos)

    midi = sink.finalize()
    return MidiResult(
        data=midi,
        size=len(midi),
        header=header,
        warnings=warnings,
        trace=trace,
        channel_map=list(allocator.channel_map),
    )


def summarize_midi(data: bytes, comment: str = ";") -> str:
    mid = mido.MidiFile(file=io.BytesIO(data))
    type_counts = defaultdict(int)
    notes_by_channel = defaultdict(int)
    tempo = None
    total_ticks = 0

    for track in mid.tracks:
        tick = 0
        for msg in track:
            tick += msg.time
            type_counts[msg.type] += 1
            if msg.type == "set_tempo" and tempo is None:
                tempo = msg.tempo
            elif msg.type == "note_on":
                notes_by_channel[msg.channel] += 1
        total_ticks = max(total_ticks, tick)

    lines = [
        f"{comment} MIDI summary: type={mid.type}, tracks={len(mid.tracks)}, "
        f"ticks_per_beat={mid.ticks_per_beat}, total_ticks={total_ticks}",
    ]
    if tempo is not None:
        lines.append(f"{comment} Tempo: {tempo} us/beat (~{mido.tempo2bpm(tempo):.2f} bpm)")
    if type_counts:
        counts = " ".join(f"{name}:{count}" for name, count in sorted(type_counts.items()))
        lines.append(f"{comment} Messages: {counts}")
    if notes_by_channel:
        channels = " ".join(f"ch{ch}:{count}" for ch, count in sorted(notes_by_channel.items()))
        lines.append(f"{comment} Notes per channel: {channels}")
    return "\n".join(lines) + "\n"


def _write_trace(path: str, header_lines: list[str], trace: list[dict]) -> None:
    if not path:
        return
    lines = list(header_lines)
    lines.append("")
    for entry in trace:
        lines.append(
            f"offset=0x{entry['offset']:04X} delta={entry['delta']} kind={entry['kind']} "
            f"mus_ch={entry['mus_channel']} midi_ch={entry['midi_channel']} "
            f"bytes={entry['bytes'].hex(' ')}"
        )
    with open(path, "w", encoding="ascii") as f:
        f.write("\n".join(lines) + "\n")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="DMX MUS -> Standard MIDI File")
    parser.add_argument("input_mus")
    parser.add_argument("output_mid")
    parser.add_argument("--summary", action="store_true", default=False, help="Print a summary of the MIDI output")
    parser.add_argument("--quiet", action="store_true", default=False, help="Do not print warnings")
    parser.add_argument(
        "--trace-output",
        type=str,
        default="",
        help="Write a per-event trace (MUS offset, kind, channels, MIDI bytes) to this file",
    )
    return parser.parse_args(argv[1:])


def main(argv: list[str]) -> int:
    args = _parse_args(argv)

    try:
        with open(args.input_mus, "rb") as f:
            data = f.read()
    except OSError as exc:
        print(f"Error: cannot read {args.input_mus}: {exc.strerror}")
        return 2

    try:
        result = convert_mus(data)
    except MusFormatError as exc:
        print(f"Error: {exc}")
        return 2
    if result is None:
        print(f"Error: unsupported channel count (max {MAX_MUS_CHANNELS}).")
        return 2

    with open(args.output_mid, "wb") as f:
        f.write(result.data)

    if not args.quiet:
        for w in result.warnings:
            print(f"Warning: {w}")

    if args.summary:
        try:
            print(summarize_midi(result.data), end="")
        except (OSError, EOFError, ValueError) as exc:
            print(f"Warning: output could not be read back as MIDI: {exc}")

    if args.trace_output:
        header = result.header
        header_lines = [
            f"input={args.input_mus}",
            f"output={args.output_mid}",
            f"score_start={header.score_start}",
            f"score_len={header.score_len}",
            f"channels={header.channels}",
            f"sec_channels={header.sec_channels}",
            f"instruments={','.join(str(i) for i in header.instruments)}",
            f"midi_size={result.size}",
        ]
        _write_trace(args.trace_output, header_lines, result.trace)

    return 0


def cli() -> int:
    return main(sys.argv)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
