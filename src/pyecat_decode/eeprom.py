"""Load EEPROM images from disk: raw binary dumps and Intel HEX files."""

import logging
from pathlib import Path

from .errors import EepromFileError

logger = logging.getLogger(__name__)

HEX_SUFFIXES = (".hex", ".ihex", ".ihx")
_FILL = 0xFF

# Intel HEX record types
_DATA = 0x00
_EOF = 0x01
_EXT_SEGMENT = 0x02
_EXT_LINEAR = 0x04


def parse_intel_hex(text: str, *, path: str | None = None) -> bytes:
    """
    Assemble an image from Intel HEX text. Data records are placed by address (with
    extended segment/linear address records applied); gaps are filled with 0xFF.
    Parsing stops at the EOF record. Other record types are ignored.

    Raises:
        EepromFileError: malformed record or checksum mismatch.
    """
    image = bytearray()
    base = 0
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        if not line.startswith(":"):
            raise EepromFileError(f"Line {lineno}: record must start with ':'", path=path, line=lineno)
        try:
            record = bytes.fromhex(line[1:])
        except ValueError:
            raise EepromFileError(f"Line {lineno}: invalid hex digits", path=path, line=lineno) from None
        if len(record) < 5 or len(record) != record[0] + 5:
            raise EepromFileError(f"Line {lineno}: record length mismatch", path=path, line=lineno)
        if sum(record) & 0xFF:
            raise EepromFileError(f"Line {lineno}: checksum mismatch", path=path, line=lineno)

        count = record[0]
        address = (record[1] << 8) | record[2]
        rtype = record[3]
        data = record[4 : 4 + count]

        if rtype == _DATA:
            start = base + address
            end = start + count
            if end > len(image):
                image.extend([_FILL] * (end - len(image)))
            image[start:end] = data
        elif rtype == _EOF:
            break
        elif rtype in (_EXT_SEGMENT, _EXT_LINEAR):
            if count != 2:
                raise EepromFileError(f"Line {lineno}: address record needs 2 data bytes", path=path, line=lineno)
            shift = 4 if rtype == _EXT_SEGMENT else 16
            base = ((data[0] << 8) | data[1]) << shift
        else:
            logger.debug("Line %d: ignoring record type 0x%02X", lineno, rtype)
    return bytes(image)


def read_eeprom_file(path: str | Path) -> bytes:
    """
    Read an EEPROM image. ``.hex``/``.ihex``/``.ihx`` files are parsed as Intel HEX,
    anything else is taken as a raw binary dump.

    Raises:
        EepromFileError: file missing or unreadable, or malformed Intel HEX.
    """
    p = Path(path)
    try:
        if p.suffix.lower() in HEX_SUFFIXES:
            data = parse_intel_hex(p.read_text(encoding="ascii"), path=str(p))
        else:
            data = p.read_bytes()
    except (OSError, UnicodeDecodeError) as e:
        raise EepromFileError(f"Cannot read EEPROM file {p}: {e}", path=str(p)) from e
    logger.debug("Read %d byte(s) from %s", len(data), p)
    return data
