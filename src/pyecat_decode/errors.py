"""Exceptions for pyecat-decode: truncated/malformed EEPROM input and soft decode problems."""


class PyEcatDecodeError(Exception):
    """Base exception for pyecat-decode."""

    pass


class TruncatedInputError(PyEcatDecodeError):
    """Raised when a read needs more bytes than the buffer (or category payload) holds."""

    def __init__(self, offset: int, requested: int, remaining: int, message: str | None = None) -> None:
        self.offset = offset
        self.requested = requested
        self.remaining = remaining
        self._msg = message or (
            f"Truncated input at offset 0x{offset:04X}: need {requested} byte(s), {remaining} left"
        )
        super().__init__(self._msg)


class EsiParseError(PyEcatDecodeError):
    """Raised when an ESI category is structurally invalid."""

    def __init__(self, message: str, *, category: int | None = None, offset: int = 0) -> None:
        self.category = category
        self.offset = offset
        where = f"category {category}" if category is not None else "category header"
        super().__init__(f"{message} ({where} at offset 0x{offset:04X})")


class ChecksumMismatchError(PyEcatDecodeError):
    """SII header checksum disagrees with the recomputed CRC. Soft: the tree is still built."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Checksum mismatch: computed 0x{expected:02X}, stored 0x{actual:02X}")


class UnknownStringIndexError(PyEcatDecodeError):
    """String index points past the end of the STRINGS category. Soft: resolves to ""."""

    def __init__(self, index: int, size: int, message: str | None = None) -> None:
        self.index = index
        self.size = size
        self._msg = message or f"Unknown string index {index} (table holds {size} strings)"
        super().__init__(self._msg)


class UnknownRegisterError(PyEcatDecodeError):
    """Raised by the register table when an address has no decode entry."""

    def __init__(self, address: int, message: str | None = None) -> None:
        self.address = address
        self._msg = message or f"Unknown register address: 0x{address:04X}"
        super().__init__(self._msg)


class EepromFileError(PyEcatDecodeError):
    """Raised when an EEPROM image file cannot be read or is malformed."""

    def __init__(self, message: str, *, path: str | None = None, line: int | None = None) -> None:
        self.path = path
        self.line = line
        super().__init__(message)


class RegisterWordError(PyEcatDecodeError):
    """Raised when a word handed to a known register does not fit in 16 bits."""

    def __init__(self, address: int, index: int, word: int, message: str | None = None) -> None:
        self.address = address
        self.index = index
        self.word = word
        self._msg = message or f"Register 0x{address:04X} word {index} out of range: {word:#x}"
        super().__init__(self._msg)
