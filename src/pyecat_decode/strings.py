"""StringTable: 1-based string references of the ESI STRINGS category."""

import logging

from .cursor import ByteCursor
from .errors import UnknownStringIndexError

logger = logging.getLogger(__name__)


class StringTable:
    """
    Strings in declared order. Index 0 is reserved and always resolves to "";
    index n >= 1 resolves to the (n-1)-th string.
    """

    def __init__(self, strings: list[str] | tuple[str, ...] = ()) -> None:
        self._strings: tuple[str, ...] = tuple(strings)

    @classmethod
    def from_payload(cls, payload: ByteCursor) -> "StringTable":
        """
        Decode a STRINGS payload: a count byte followed by that many length-prefixed
        UTF-8 strings. Trailing pad bytes are left unread.

        Raises TruncatedInputError if a string runs past the payload.
        """
        count = payload.read_u8()
        strings: list[str] = []
        for _ in range(count):
            length = payload.read_u8()
            raw = payload.read_bytes(length)
            strings.append(raw.decode("utf-8", errors="replace"))
        logger.debug("StringTable decoded: %d strings", len(strings))
        return cls(strings)

    def resolve(self, index: int) -> str:
        """Return the string for ``index``; raise UnknownStringIndexError past the end."""
        if index == 0:
            return ""
        if index < 0 or index > len(self._strings):
            raise UnknownStringIndexError(index, len(self._strings))
        return self._strings[index - 1]

    def resolve_or_empty(self, index: int) -> tuple[str, UnknownStringIndexError | None]:
        """Soft resolve: ("", error) for an unknown index instead of raising."""
        try:
            return self.resolve(index), None
        except UnknownStringIndexError as e:
            logger.debug("%s; substituting empty string", e)
            return "", e

    @property
    def strings(self) -> tuple[str, ...]:
        return self._strings

    def __len__(self) -> int:
        return len(self._strings)
