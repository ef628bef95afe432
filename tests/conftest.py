import struct

import pytest

MUS_ID = b"MUS\x1a"


def _make_mus(
    score: bytes,
    channels: int = 1,
    instruments: tuple[int, ...] = (),
    tag: bytes = MUS_ID,
    score_len: int | None = None,
) -> bytes:
    score_start = 16 + 2 * len(instruments)
    if score_len is None:
        score_len = len(score)
    header = struct.pack(
        "<4sHHHHHH", tag, score_len, score_start, channels, 0, len(instruments), 0
    )
    patches = struct.pack(f"<{len(instruments)}H", *instruments)
    return header + patches + score


@pytest.fixture
def make_mus():
    return _make_mus
