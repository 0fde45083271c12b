"""Tests for ByteCursor bounds-checked little-endian reads."""

import pytest

from pyecat_decode.cursor import ByteCursor
from pyecat_decode.errors import TruncatedInputError


def test_little_endian_reads() -> None:
    c = ByteCursor(bytes([0x01, 0x34, 0x12, 0x78, 0x56, 0x34, 0x12, 0xFE, 0xFF]))
    assert c.read_u8() == 0x01
    assert c.read_u16() == 0x1234
    assert c.read_u32() == 0x12345678
    assert c.read_i16() == -2
    assert c.remaining() == 0


def test_read_past_end_raises_with_offsets() -> None:
    c = ByteCursor(b"\x01\x02\x03")
    c.read_u16()
    with pytest.raises(TruncatedInputError) as exc_info:
        c.read_u16()
    assert exc_info.value.offset == 2
    assert exc_info.value.requested == 2
    assert exc_info.value.remaining == 1
    # failed read does not advance
    assert c.position == 2


def test_skip_bounds() -> None:
    c = ByteCursor(bytes(4))
    c.skip(3)
    with pytest.raises(TruncatedInputError):
        c.skip(2)
    c.skip(1)
    assert c.remaining() == 0


def test_window_bounds_and_advances_parent() -> None:
    c = ByteCursor(bytes(range(10)), start=2)
    sub = c.window(4)
    assert c.position == 6
    assert sub.position == 2
    assert sub.read_bytes(4) == bytes([2, 3, 4, 5])
    with pytest.raises(TruncatedInputError) as exc_info:
        sub.read_u8()
    assert exc_info.value.offset == 6


def test_window_larger_than_remaining_raises() -> None:
    c = ByteCursor(bytes(4))
    with pytest.raises(TruncatedInputError):
        c.window(5)


def test_end_bound() -> None:
    c = ByteCursor(bytes(10), start=0, end=3)
    assert c.remaining() == 3
    with pytest.raises(TruncatedInputError):
        c.read_u32()
