"""Growable big-endian output buffer with seek-and-patch support."""

DST_CHUNK = 8192


class ByteSink:
    """Append-only byte buffer that grows in DST_CHUNK steps.

    The write cursor can be moved back to patch a field written earlier
    (the MIDI track length). The finished buffer is cut at the furthest
    byte ever written, not at the allocated capacity.
    """

    def __init__(self, chunk: int = DST_CHUNK) -> None:
        self._chunk = chunk
        self._buf = bytearray(chunk)
        self._pos = 0
        self._high = 0

    @property
    def capacity(self) -> int:
        return len(self._buf)

    @property
    def high_water(self) -> int:
        return self._high

    def _grow(self) -> None:
        self._buf.extend(bytes(self._chunk))

    def _reserve(self, count: int) -> None:
        while len(self._buf) - self._pos < count:
            self._grow()

    def _put(self, data: bytes) -> None:
        self._reserve(len(data))
        end = self._pos + len(data)
        self._buf[self._pos:end] = data
        self._pos = end
        if end > self._high:
            self._high = end

    def write1(self, value: int) -> None:
        self._put(bytes((value & 0xFF,)))

    def write2(self, value: int) -> None:
        self._put((value & 0xFFFF).to_bytes(2, "big"))

    def write4(self, value: int) -> None:
        self._put((value & 0xFFFFFFFF).to_bytes(4, "big"))

    def write_bytes(self, data: bytes) -> None:
        if data:
            self._put(bytes(data))

    def position(self) -> int:
        return self._pos

    def seek(self, pos: int) -> None:
        if pos < 0:
            raise ValueError(f"negative seek position: {pos}")
        while len(self._buf) < pos:
            self._grow()
        self._pos = pos

    def skip(self, delta: int) -> None:
        # Skipped bytes must be written before finalize().
        self.seek(self._pos + delta)

    def finalize(self) -> bytes:
        return bytes(self._buf[: self._high])
