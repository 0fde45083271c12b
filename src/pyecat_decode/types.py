"""Core data model: ESI tree entities, category codes, register bit-field specs, decoded fields."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum, IntFlag
from typing import Union

from .errors import ChecksumMismatchError

FieldValue = Union[int, bool, str]


class CategoryType(IntEnum):
    """SII category type codes (MSB masked off)."""

    NOP = 0
    STRINGS = 10
    DATATYPES = 20
    GENERAL = 30
    FMMU = 40
    SYNCM = 41
    TXPDO = 50
    RXPDO = 51
    DC = 60
    END = 0x7FFF


class SyncManagerType(IntEnum):
    """SyncManager type byte of a SYNCM record."""

    UNUSED = 0
    MAILBOX_OUT = 1
    MAILBOX_IN = 2
    PROCESS_OUT = 3
    PROCESS_IN = 4

    @classmethod
    def from_code(cls, code: int) -> "SyncManagerType":
        try:
            return cls(code)
        except ValueError:
            return cls.UNUSED


class FmmuUsage(IntEnum):
    """FMMU usage byte per ETG.2000. 0x00 and 0xFF both mean unused."""

    UNUSED = 0
    OUTPUTS = 1
    INPUTS = 2
    SYNCM_STATUS = 3

    @classmethod
    def from_code(cls, code: int) -> "FmmuUsage":
        try:
            return cls(code)
        except ValueError:
            return cls.UNUSED


class PdoDirection(str, Enum):
    """TxPDO = slave inputs (category 50), RxPDO = slave outputs (category 51)."""

    TX = "tx"
    RX = "rx"


class MailboxProtocol(IntFlag):
    """Supported mailbox protocols, header word 0x1C."""

    AOE = 0x01
    EOE = 0x02
    COE = 0x04
    FOE = 0x08
    SOE = 0x10
    VOE = 0x20


class CoeDetails(IntFlag):
    """CoE detail flags of the GENERAL category."""

    SDO = 0x01
    SDO_INFO = 0x02
    PDO_ASSIGN = 0x04
    PDO_CONFIGURATION = 0x08
    UPLOAD_AT_STARTUP = 0x10
    SDO_COMPLETE_ACCESS = 0x20


class DecodeKind(str, Enum):
    """How a register bit-field is interpreted."""

    RAW = "raw"
    BOOL = "bool"
    ENUM = "enum"


# CoE base data type codes as used in PDO entries
DATA_TYPE_NAMES: dict[int, str] = {
    0x00: "UNDEF",
    0x01: "BOOL",
    0x02: "SINT",
    0x03: "INT",
    0x04: "DINT",
    0x05: "USINT",
    0x06: "UINT",
    0x07: "UDINT",
    0x08: "REAL",
    0x09: "STRING",
    0x0A: "OCTET_STRING",
    0x0B: "UNICODE_STRING",
    0x10: "INT24",
    0x11: "LREAL",
    0x12: "INT40",
    0x13: "INT48",
    0x14: "INT56",
    0x15: "LINT",
    0x16: "UINT24",
    0x18: "UINT40",
    0x19: "UINT48",
    0x1A: "UINT56",
    0x1B: "ULINT",
    0x30: "BIT1",
    0x31: "BIT2",
    0x32: "BIT3",
    0x33: "BIT4",
    0x34: "BIT5",
    0x35: "BIT6",
    0x36: "BIT7",
    0x37: "BIT8",
}


# ---------------------------------------------------------------------------
# ESI tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EsiHeader:
    """Fixed 64-word SII area in front of the category stream."""

    pdi_control: int
    pdi_configuration: int
    sync_impulse_length: int
    pdi_configuration2: int
    station_alias: int
    checksum: int
    vendor_id: int
    product_code: int
    revision: int
    serial_number: int
    bootstrap_receive_mailbox_offset: int
    bootstrap_receive_mailbox_size: int
    bootstrap_send_mailbox_offset: int
    bootstrap_send_mailbox_size: int
    standard_receive_mailbox_offset: int
    standard_receive_mailbox_size: int
    standard_send_mailbox_offset: int
    standard_send_mailbox_size: int
    mailbox_protocol: int
    eeprom_size: int
    version: int

    @property
    def mailbox_protocols(self) -> MailboxProtocol:
        return MailboxProtocol(self.mailbox_protocol & 0x3F)

    @property
    def eeprom_size_bytes(self) -> int:
        """EEPROM size field holds the size in KBit minus one."""
        return (self.eeprom_size + 1) * 128


@dataclass(frozen=True)
class GeneralInfo:
    """GENERAL category. ``*_index`` are string references; the plain names are resolved."""

    group_index: int
    image_index: int
    order_index: int
    name_index: int
    coe_details: int
    foe_details: int
    eoe_details: int
    soe_channels: int
    ds402_channels: int
    sysman_class: int
    flags: int
    current_on_ebus: int
    physical_port: int
    physical_memory_address: int
    group: str = ""
    image: str = ""
    order: str = ""
    name: str = ""

    @property
    def coe_flags(self) -> CoeDetails:
        return CoeDetails(self.coe_details & 0x3F)

    @property
    def enable_safeop(self) -> bool:
        return bool(self.flags & 0x01)

    @property
    def enable_not_lrw(self) -> bool:
        return bool(self.flags & 0x02)

    @property
    def mbox_data_link_layer(self) -> bool:
        return bool(self.flags & 0x04)

    @property
    def ident_al_status(self) -> bool:
        return bool(self.flags & 0x08)

    @property
    def ident_physical_memory(self) -> bool:
        return bool(self.flags & 0x10)

    @property
    def physical_ports(self) -> tuple[int, int, int, int]:
        """Port descriptors 0..3, four bits each (0 unused, 1 MII, 3 EBUS, 4 MII fast hot connect)."""
        p = self.physical_port
        return (p & 0xF, (p >> 4) & 0xF, (p >> 8) & 0xF, (p >> 12) & 0xF)


def _check_channel(channel: int) -> None:
    if not 0 <= channel <= 15:
        raise ValueError(f"channel must be in 0..15, got {channel}")


@dataclass(frozen=True)
class Fmmu:
    """One FMMU channel and its usage code."""

    channel: int
    usage_code: int

    def __post_init__(self) -> None:
        _check_channel(self.channel)

    @property
    def usage(self) -> FmmuUsage:
        return FmmuUsage.from_code(self.usage_code)


@dataclass(frozen=True)
class SyncManager:
    """One 8-byte SYNCM record."""

    channel: int
    physical_start_address: int
    length: int
    control: int
    status: int
    enable: int
    type_code: int

    def __post_init__(self) -> None:
        _check_channel(self.channel)

    @property
    def enabled(self) -> bool:
        return bool(self.enable & 0x01)

    @property
    def sm_type(self) -> SyncManagerType:
        return SyncManagerType.from_code(self.type_code)


@dataclass(frozen=True)
class PdoEntry:
    """One object dictionary entry mapped into a PDO."""

    index: int
    sub_index: int
    name_index: int
    data_type: int
    bit_length: int
    flags: int
    name: str = ""

    @property
    def data_type_name(self) -> str:
        return DATA_TYPE_NAMES.get(self.data_type, f"0x{self.data_type:02X}")


@dataclass(frozen=True)
class Pdo:
    """A TxPDO or RxPDO with its mapped entries."""

    direction: PdoDirection
    index: int
    n_entry: int
    sync_manager: int
    synchronization: int
    name_index: int
    flags: int
    entries: tuple[PdoEntry, ...] = ()
    name: str = ""

    def __post_init__(self) -> None:
        if len(self.entries) != self.n_entry:
            raise ValueError(
                f"PDO 0x{self.index:04X} declares {self.n_entry} entries, got {len(self.entries)}"
            )


@dataclass(frozen=True)
class DcOpMode:
    """One distributed-clock op mode of the DC category."""

    cycle_time_sync0: int
    shift_time_sync0: int
    shift_time_sync1: int
    sync1_cycle_factor: int
    assign_activate: int
    sync0_cycle_factor: int
    name_index: int
    description_index: int
    name: str = ""
    description: str = ""


@dataclass(frozen=True)
class CategoryHeader:
    """Where a category sits in the image; ``offset`` is the header's byte offset."""

    type_code: int
    offset: int
    length: int

    @property
    def category(self) -> CategoryType | None:
        try:
            return CategoryType(self.type_code)
        except ValueError:
            return None


@dataclass(frozen=True)
class EsiTree:
    """
    Decoded EEPROM. Immutable; safe to share between readers.

    ``error`` is set when the category walk stopped early: the tree then holds
    whatever categories were decoded before the failure.
    """

    header: EsiHeader
    general: GeneralInfo | None = None
    strings: tuple[str, ...] = ()
    fmmus: tuple[Fmmu, ...] = ()
    sync_managers: tuple[SyncManager, ...] = ()
    pdos: tuple[Pdo, ...] = ()
    dc_op_modes: tuple[DcOpMode, ...] = ()
    skipped_categories: tuple[CategoryHeader, ...] = ()
    warnings: tuple[Exception, ...] = ()
    error: Exception | None = None

    @property
    def partial(self) -> bool:
        return self.error is not None

    @property
    def checksum_ok(self) -> bool:
        return not any(isinstance(w, ChecksumMismatchError) for w in self.warnings)

    @property
    def tx_pdos(self) -> tuple[Pdo, ...]:
        return tuple(p for p in self.pdos if p.direction == PdoDirection.TX)

    @property
    def rx_pdos(self) -> tuple[Pdo, ...]:
        return tuple(p for p in self.pdos if p.direction == PdoDirection.RX)


@dataclass(frozen=True)
class EsiField:
    """One flattened ESI attribute: stable identifier, value, and the owning instance (e.g. "SyncM2")."""

    identifier: str
    value: FieldValue
    instance: str | None = None


# ---------------------------------------------------------------------------
# Registers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BitFieldSpec:
    """
    Named bit-field within a register value. With ``port_stride`` set the field is
    repeated per port n at ``bit_offset + n * port_stride``.
    """

    name: str
    bit_offset: int
    bit_width: int
    decode: DecodeKind = DecodeKind.RAW
    labels: tuple[str, ...] = ()
    port_stride: int | None = None

    def __post_init__(self) -> None:
        if self.bit_offset < 0:
            raise ValueError(f"bit_offset must be >= 0, got {self.bit_offset}")
        if self.bit_width < 1:
            raise ValueError(f"bit_width must be >= 1, got {self.bit_width}")
        if self.decode == DecodeKind.BOOL and self.bit_width != 1:
            raise ValueError(f"bool field {self.name!r} must be 1 bit wide")
        if self.decode == DecodeKind.ENUM and len(self.labels) != 1 << self.bit_width:
            raise ValueError(
                f"enum field {self.name!r} needs {1 << self.bit_width} labels, got {len(self.labels)}"
            )

    def interpret(self, raw: int) -> FieldValue:
        if self.decode == DecodeKind.BOOL:
            return bool(raw)
        if self.decode == DecodeKind.ENUM:
            return self.labels[raw]
        return raw


@dataclass(frozen=True)
class RegisterSpec:
    """Decode entry for one register address spanning ``words`` 16-bit words."""

    address: int
    name: str
    words: int
    fields: tuple[BitFieldSpec, ...] = field(default_factory=tuple)
    port_count: int = 4

    @property
    def bit_length(self) -> int:
        return self.words * 16


@dataclass(frozen=True)
class DecodedField:
    """One decoded register field: identifier, extracted bits, interpretation."""

    identifier: str
    raw: int
    value: FieldValue
    port: int | None = None
