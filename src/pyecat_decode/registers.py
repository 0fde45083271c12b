"""Register decoder: raw ESC register words -> ordered DecodedField records."""

import logging
from collections.abc import Sequence

from .errors import PyEcatDecodeError, RegisterWordError, TruncatedInputError, UnknownRegisterError
from .regtable import RegisterTable, get_default_register_table
from .types import DecodedField

logger = logging.getLogger(__name__)

UNKNOWN_IDENTIFIER = "Unknown"


def combine_words(raw_words: Sequence[int], count: int) -> int:
    """
    Combine the first ``count`` 16-bit words, lowest address first, into one integer.

    Raises:
        ValueError: a word is outside 0..0xFFFF.
    """
    value = 0
    for i in range(count):
        word = raw_words[i]
        if not 0 <= word <= 0xFFFF:
            raise ValueError(f"word {i} out of range: {word:#x}")
        value |= word << (16 * i)
    return value


def _fallback(raw_words: Sequence[int]) -> list[DecodedField]:
    raw = raw_words[0] if raw_words else 0
    return [DecodedField(identifier=UNKNOWN_IDENTIFIER, raw=raw, value=f"0x{raw:04X}")]


class RegisterDecoder:
    """Decodes register words against one RegisterTable (the packaged one by default)."""

    def __init__(self, table: RegisterTable | None = None) -> None:
        self._table = table if table is not None else get_default_register_table()

    @property
    def table(self) -> RegisterTable:
        return self._table

    def decode(self, address: int, raw_words: Sequence[int]) -> list[DecodedField]:
        """
        Decode the words read from ``address`` onwards.

        Unknown addresses yield a single "Unknown" field holding the first word as given.

        Raises:
            TruncatedInputError: fewer words than the register spans.
            RegisterWordError: a word the register spans does not fit in 16 bits.
        """
        try:
            spec = self._table.lookup(address)
        except UnknownRegisterError as e:
            logger.debug("%s; falling back to raw hex", e)
            return _fallback(raw_words)
        if len(raw_words) < spec.words:
            raise TruncatedInputError(
                address,
                spec.words * 2,
                len(raw_words) * 2,
                f"Register {spec.name} (0x{address:04X}) spans {spec.words} word(s), got {len(raw_words)}",
            )
        for i, word in enumerate(raw_words[: spec.words]):
            if not 0 <= word <= 0xFFFF:
                raise RegisterWordError(address, i, word)
        value = combine_words(raw_words, spec.words)
        fields = []
        for plan in self._table.plans(address):
            raw = (value >> plan.shift) & plan.mask
            fields.append(DecodedField(plan.identifier, raw, plan.spec.interpret(raw), plan.port))
        return fields

    def decode_snapshot(
        self,
        snapshot: dict[int, Sequence[int]],
        errors: dict[int, PyEcatDecodeError] | None = None,
    ) -> dict[int, list[DecodedField]]:
        """
        Decode a whole poll snapshot keyed by register address.

        A register that cannot be decoded is left out of the result and does not affect the
        others; its error is stored in ``errors`` under its address when a dict is given.
        """
        out: dict[int, list[DecodedField]] = {}
        for address, words in snapshot.items():
            try:
                out[address] = self.decode(address, words)
            except (TruncatedInputError, RegisterWordError) as e:
                logger.warning("Skipping register 0x%04X: %s", address, e)
                if errors is not None:
                    errors[address] = e
        return out


def decode_register(
    address: int, raw_words: Sequence[int], table: RegisterTable | None = None
) -> list[DecodedField]:
    """Decode one register; see RegisterDecoder.decode."""
    return RegisterDecoder(table).decode(address, raw_words)
