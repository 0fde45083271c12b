"""ByteCursor: bounds-checked little-endian reads over an immutable byte buffer."""

import struct

from .errors import TruncatedInputError

_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")


class ByteCursor:
    """
    Read position over ``data[start:end]``. Offsets reported by ``position`` and in
    TruncatedInputError are absolute offsets into ``data``, also for sub-cursors.
    """

    __slots__ = ("_data", "_pos", "_end")

    def __init__(self, data: bytes, start: int = 0, end: int | None = None) -> None:
        self._data = data
        self._end = len(data) if end is None else min(end, len(data))
        self._pos = start

    @property
    def position(self) -> int:
        return self._pos

    def remaining(self) -> int:
        """Bytes left before the end bound."""
        return max(self._end - self._pos, 0)

    def _require(self, size: int) -> None:
        left = self.remaining()
        if size > left:
            raise TruncatedInputError(self._pos, size, left)

    def read_u8(self) -> int:
        self._require(1)
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read_u16(self) -> int:
        self._require(2)
        value = _U16.unpack_from(self._data, self._pos)[0]
        self._pos += 2
        return value

    def read_i16(self) -> int:
        self._require(2)
        value = _I16.unpack_from(self._data, self._pos)[0]
        self._pos += 2
        return value

    def read_u32(self) -> int:
        self._require(4)
        value = _U32.unpack_from(self._data, self._pos)[0]
        self._pos += 4
        return value

    def read_bytes(self, size: int) -> bytes:
        self._require(size)
        value = bytes(self._data[self._pos : self._pos + size])
        self._pos += size
        return value

    def skip(self, size: int) -> None:
        """Advance without reading; same bounds rule as the reads."""
        self._require(size)
        self._pos += size

    def window(self, size: int) -> "ByteCursor":
        """Return a cursor bounded to the next ``size`` bytes and advance past them."""
        self._require(size)
        sub = ByteCursor(self._data, self._pos, self._pos + size)
        self._pos += size
        return sub

    def __repr__(self) -> str:
        return f"ByteCursor(position=0x{self._pos:04X}, remaining={self.remaining()})"
