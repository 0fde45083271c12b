"""pyecat-decode: EtherCAT ESI/SII EEPROM and ESC register decoding into labeled fields."""

__version__ = "0.1.0"

from .catalog import esi_fields, esi_identifiers, field_identifiers, register_identifiers, value_keys
from .eeprom import read_eeprom_file
from .errors import (
    ChecksumMismatchError,
    EepromFileError,
    EsiParseError,
    PyEcatDecodeError,
    RegisterWordError,
    TruncatedInputError,
    UnknownRegisterError,
    UnknownStringIndexError,
)
from .esi import parse_esi
from .formatter import FieldFormatter, LabelCatalog, get_label_catalog
from .registers import RegisterDecoder, decode_register
from .regtable import RegisterTable, get_default_register_table
from .strings import StringTable
from .types import (
    BitFieldSpec,
    DecodedField,
    DecodeKind,
    EsiField,
    EsiTree,
    FmmuUsage,
    PdoDirection,
    RegisterSpec,
    SyncManagerType,
)

__all__ = [
    "__version__",
    "parse_esi",
    "decode_register",
    "RegisterDecoder",
    "RegisterTable",
    "get_default_register_table",
    "StringTable",
    "FieldFormatter",
    "LabelCatalog",
    "get_label_catalog",
    "read_eeprom_file",
    "esi_fields",
    "esi_identifiers",
    "register_identifiers",
    "field_identifiers",
    "value_keys",
    "PyEcatDecodeError",
    "TruncatedInputError",
    "EsiParseError",
    "ChecksumMismatchError",
    "UnknownStringIndexError",
    "UnknownRegisterError",
    "EepromFileError",
    "RegisterWordError",
    "BitFieldSpec",
    "DecodedField",
    "DecodeKind",
    "EsiField",
    "EsiTree",
    "FmmuUsage",
    "PdoDirection",
    "RegisterSpec",
    "SyncManagerType",
]
