"""Tests for StringTable decoding and index resolution."""

import pytest

from pyecat_decode.cursor import ByteCursor
from pyecat_decode.errors import TruncatedInputError, UnknownStringIndexError
from pyecat_decode.strings import StringTable


def test_from_payload() -> None:
    payload = bytes([2, 3]) + b"abc" + bytes([2]) + b"de"
    table = StringTable.from_payload(ByteCursor(payload))
    assert table.strings == ("abc", "de")
    assert len(table) == 2


def test_index_zero_is_empty() -> None:
    assert StringTable(["abc"]).resolve(0) == ""
    assert StringTable().resolve(0) == ""


def test_one_based_resolution() -> None:
    table = StringTable(["first", "second"])
    assert table.resolve(1) == "first"
    assert table.resolve(2) == "second"


def test_out_of_range_raises() -> None:
    table = StringTable(["only"])
    with pytest.raises(UnknownStringIndexError) as exc_info:
        table.resolve(2)
    assert exc_info.value.index == 2
    assert exc_info.value.size == 1


def test_resolve_or_empty_is_soft() -> None:
    text, err = StringTable(["only"]).resolve_or_empty(5)
    assert text == ""
    assert isinstance(err, UnknownStringIndexError)
    assert StringTable(["only"]).resolve_or_empty(1) == ("only", None)


def test_invalid_utf8_replaced() -> None:
    table = StringTable.from_payload(ByteCursor(bytes([1, 2, 0xC3, 0x28])))
    assert table.resolve(1) == "\ufffd("


def test_string_past_payload_raises() -> None:
    with pytest.raises(TruncatedInputError):
        StringTable.from_payload(ByteCursor(bytes([1, 10]) + b"abc"))
