"""
ESI (SII EEPROM) decoder: header, category walk, and one pure decoder per category type.

Layout follows ETG.2010: a fixed 64-word header, then from byte 0x80 a stream of
categories, each ``u16 type`` + ``u16 word count`` + payload, ended by type 0xFFFF.
"""

import logging
from collections.abc import Callable, Iterator
from functools import partial

from .builder import EsiTreeBuilder
from .cursor import ByteCursor
from .errors import ChecksumMismatchError, EsiParseError, TruncatedInputError
from .strings import StringTable
from .types import (
    CategoryHeader,
    CategoryType,
    DcOpMode,
    EsiHeader,
    EsiTree,
    Fmmu,
    GeneralInfo,
    Pdo,
    PdoDirection,
    PdoEntry,
    SyncManager,
)

logger = logging.getLogger(__name__)

HEADER_SIZE = 128
CATEGORY_START = 0x80
CHECKSUM_SPAN = 14
MAX_CHANNELS = 16

GENERAL_MIN_SIZE = 20
SYNCM_RECORD_SIZE = 8
PDO_HEADER_SIZE = 8
DC_RECORD_SIZE = 24


def crc8(data: bytes, crc: int = 0xFF) -> int:
    """CRC-8, polynomial x^8 + x^2 + x + 1 (0x07), as used for the SII header checksum."""
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x80:
                crc = ((crc << 1) ^ 0x07) & 0xFF
            else:
                crc = (crc << 1) & 0xFF
    return crc


def decode_header(data: bytes) -> EsiHeader:
    """
    Decode the fixed SII header.

    Raises:
        TruncatedInputError: if ``data`` is shorter than the 128-byte header.
    """
    cur = ByteCursor(data).window(HEADER_SIZE)
    pdi_control = cur.read_u16()
    pdi_configuration = cur.read_u16()
    sync_impulse_length = cur.read_u16()
    pdi_configuration2 = cur.read_u16()
    station_alias = cur.read_u16()
    cur.skip(4)
    checksum = cur.read_u16()
    vendor_id = cur.read_u32()
    product_code = cur.read_u32()
    revision = cur.read_u32()
    serial_number = cur.read_u32()
    cur.skip(8)
    mailbox = [cur.read_u16() for _ in range(8)]
    mailbox_protocol = cur.read_u16()
    cur.skip(66)
    eeprom_size = cur.read_u16()
    version = cur.read_u16()
    return EsiHeader(
        pdi_control=pdi_control,
        pdi_configuration=pdi_configuration,
        sync_impulse_length=sync_impulse_length,
        pdi_configuration2=pdi_configuration2,
        station_alias=station_alias,
        checksum=checksum,
        vendor_id=vendor_id,
        product_code=product_code,
        revision=revision,
        serial_number=serial_number,
        bootstrap_receive_mailbox_offset=mailbox[0],
        bootstrap_receive_mailbox_size=mailbox[1],
        bootstrap_send_mailbox_offset=mailbox[2],
        bootstrap_send_mailbox_size=mailbox[3],
        standard_receive_mailbox_offset=mailbox[4],
        standard_receive_mailbox_size=mailbox[5],
        standard_send_mailbox_offset=mailbox[6],
        standard_send_mailbox_size=mailbox[7],
        mailbox_protocol=mailbox_protocol,
        eeprom_size=eeprom_size,
        version=version,
    )


def verify_checksum(data: bytes, header: EsiHeader) -> ChecksumMismatchError | None:
    """Return a ChecksumMismatchError when the stored CRC (low byte of word 7) is wrong."""
    computed = crc8(data[:CHECKSUM_SPAN])
    stored = header.checksum & 0xFF
    if computed != stored:
        return ChecksumMismatchError(computed, stored)
    return None


def iter_categories(cursor: ByteCursor) -> Iterator[tuple[CategoryHeader, ByteCursor]]:
    """
    Yield ``(category header, payload cursor)`` until the end marker.

    The parent cursor always resumes right after the declared payload, whatever the
    payload decoder consumed.

    Raises:
        EsiParseError: category header cut short (no end marker) or payload longer than the buffer.
    """
    while True:
        offset = cursor.position
        try:
            type_code = cursor.read_u16() & 0x7FFF
            if type_code == CategoryType.END:
                return
            words = cursor.read_u16()
        except TruncatedInputError as e:
            raise EsiParseError("Category header cut short", offset=offset) from e
        length = words * 2
        if length > cursor.remaining():
            raise EsiParseError(
                f"Declared length {length} exceeds {cursor.remaining()} remaining byte(s)",
                category=type_code,
                offset=offset,
            )
        yield CategoryHeader(type_code=type_code, offset=offset, length=length), cursor.window(length)


# ---------------------------------------------------------------------------
# Category decoders. Each takes the category header and a cursor bounded to
# its payload and returns plain records; none touches builder state.
# ---------------------------------------------------------------------------


def decode_strings(cat: CategoryHeader, payload: ByteCursor) -> StringTable:
    """STRINGS category: count byte, then length-prefixed strings."""
    return StringTable.from_payload(payload)


def decode_general(cat: CategoryHeader, payload: ByteCursor) -> GeneralInfo:
    """GENERAL category; string indices are left unresolved."""
    if payload.remaining() < GENERAL_MIN_SIZE:
        raise EsiParseError(
            f"General category needs {GENERAL_MIN_SIZE} bytes, got {payload.remaining()}",
            category=cat.type_code,
            offset=cat.offset,
        )
    group_index = payload.read_u8()
    image_index = payload.read_u8()
    order_index = payload.read_u8()
    name_index = payload.read_u8()
    payload.skip(1)
    coe_details = payload.read_u8()
    foe_details = payload.read_u8()
    eoe_details = payload.read_u8()
    soe_channels = payload.read_u8()
    ds402_channels = payload.read_u8()
    sysman_class = payload.read_u8()
    flags = payload.read_u8()
    current_on_ebus = payload.read_i16()
    payload.skip(2)
    physical_port = payload.read_u16()
    physical_memory_address = payload.read_u16()
    return GeneralInfo(
        group_index=group_index,
        image_index=image_index,
        order_index=order_index,
        name_index=name_index,
        coe_details=coe_details,
        foe_details=foe_details,
        eoe_details=eoe_details,
        soe_channels=soe_channels,
        ds402_channels=ds402_channels,
        sysman_class=sysman_class,
        flags=flags,
        current_on_ebus=current_on_ebus,
        physical_port=physical_port,
        physical_memory_address=physical_memory_address,
    )


def decode_fmmus(cat: CategoryHeader, payload: ByteCursor) -> tuple[Fmmu, ...]:
    """One usage byte per channel; a 0xFF pad byte decodes as an unused channel."""
    count = payload.remaining()
    if count > MAX_CHANNELS:
        raise EsiParseError(
            f"FMMU category declares {count} channels, at most {MAX_CHANNELS} allowed",
            category=cat.type_code,
            offset=cat.offset,
        )
    return tuple(Fmmu(channel=i, usage_code=payload.read_u8()) for i in range(count))


def decode_sync_managers(cat: CategoryHeader, payload: ByteCursor) -> tuple[SyncManager, ...]:
    """SYNCM category: one 8-byte record per channel."""
    size = payload.remaining()
    if size % SYNCM_RECORD_SIZE:
        raise EsiParseError(
            f"SyncM payload of {size} bytes is not a multiple of {SYNCM_RECORD_SIZE}",
            category=cat.type_code,
            offset=cat.offset,
        )
    count = size // SYNCM_RECORD_SIZE
    if count > MAX_CHANNELS:
        raise EsiParseError(
            f"SyncM category declares {count} channels, at most {MAX_CHANNELS} allowed",
            category=cat.type_code,
            offset=cat.offset,
        )
    sms = []
    for channel in range(count):
        sms.append(
            SyncManager(
                channel=channel,
                physical_start_address=payload.read_u16(),
                length=payload.read_u16(),
                control=payload.read_u8(),
                status=payload.read_u8(),
                enable=payload.read_u8(),
                type_code=payload.read_u8(),
            )
        )
    return tuple(sms)


def _decode_pdo_entry(payload: ByteCursor) -> PdoEntry:
    return PdoEntry(
        index=payload.read_u16(),
        sub_index=payload.read_u8(),
        name_index=payload.read_u8(),
        data_type=payload.read_u8(),
        bit_length=payload.read_u8(),
        flags=payload.read_u16(),
    )


def decode_pdos(cat: CategoryHeader, payload: ByteCursor, *, direction: PdoDirection) -> tuple[Pdo, ...]:
    """
    Decode every PDO in a TxPDO/RxPDO payload: an 8-byte PDO header followed inline by
    ``n_entry`` 8-byte entry records, repeated until the payload is consumed.

    Raises:
        EsiParseError: a PDO header is cut short.
        TruncatedInputError: fewer entry records than the PDO declares.
    """
    pdos = []
    while payload.remaining():
        if payload.remaining() < PDO_HEADER_SIZE:
            raise EsiParseError(
                f"PDO header cut short: {payload.remaining()} byte(s) left",
                category=cat.type_code,
                offset=cat.offset,
            )
        index = payload.read_u16()
        n_entry = payload.read_u8()
        sync_manager = payload.read_u8()
        synchronization = payload.read_u8()
        name_index = payload.read_u8()
        flags = payload.read_u16()
        entries = tuple(_decode_pdo_entry(payload) for _ in range(n_entry))
        pdos.append(
            Pdo(
                direction=direction,
                index=index,
                n_entry=n_entry,
                sync_manager=sync_manager,
                synchronization=synchronization,
                name_index=name_index,
                flags=flags,
                entries=entries,
            )
        )
    return tuple(pdos)


def decode_dc_op_modes(cat: CategoryHeader, payload: ByteCursor) -> tuple[DcOpMode, ...]:
    """DC category: one 24-byte record per op mode."""
    size = payload.remaining()
    if size % DC_RECORD_SIZE:
        raise EsiParseError(
            f"DC op-mode record cut short: payload of {size} bytes is not a multiple of {DC_RECORD_SIZE}",
            category=cat.type_code,
            offset=cat.offset,
        )
    modes = []
    for _ in range(size // DC_RECORD_SIZE):
        mode = DcOpMode(
            cycle_time_sync0=payload.read_u32(),
            shift_time_sync0=payload.read_u32(),
            shift_time_sync1=payload.read_u32(),
            sync1_cycle_factor=payload.read_u16(),
            assign_activate=payload.read_u16(),
            sync0_cycle_factor=payload.read_u16(),
            name_index=payload.read_u8(),
            description_index=payload.read_u8(),
        )
        payload.skip(4)
        modes.append(mode)
    return tuple(modes)


# type code -> (decoder, builder sink)
_Handler = tuple[Callable[[CategoryHeader, ByteCursor], object], Callable[..., None]]

_DISPATCH: dict[CategoryType, _Handler] = {
    CategoryType.STRINGS: (decode_strings, EsiTreeBuilder.set_strings),
    CategoryType.GENERAL: (decode_general, EsiTreeBuilder.set_general),
    CategoryType.FMMU: (decode_fmmus, EsiTreeBuilder.add_fmmus),
    CategoryType.SYNCM: (decode_sync_managers, EsiTreeBuilder.add_sync_managers),
    CategoryType.TXPDO: (partial(decode_pdos, direction=PdoDirection.TX), EsiTreeBuilder.add_pdos),
    CategoryType.RXPDO: (partial(decode_pdos, direction=PdoDirection.RX), EsiTreeBuilder.add_pdos),
    CategoryType.DC: (decode_dc_op_modes, EsiTreeBuilder.add_dc_op_modes),
}


def _dispatch(builder: EsiTreeBuilder, cat: CategoryHeader, payload: ByteCursor) -> None:
    kind = cat.category
    if kind == CategoryType.NOP:
        return
    handler = _DISPATCH.get(kind) if kind is not None else None
    if handler is None:
        logger.debug("Skipping category %d (%d bytes) at 0x%04X", cat.type_code, cat.length, cat.offset)
        builder.skip(cat)
        return
    decoder, sink = handler
    sink(builder, cat, decoder(cat, payload))


def parse_esi(data: bytes, *, strict: bool = False) -> EsiTree:
    """
    Decode a raw SII EEPROM image into an EsiTree.

    A checksum mismatch or unresolvable string index is recorded in ``tree.warnings``.
    A truncated or malformed category stops the walk: by default the tree decoded so
    far is returned with ``tree.error`` set; with ``strict=True`` the error is raised.

    Raises:
        TruncatedInputError: ``data`` is shorter than the header (always), or in strict mode.
        EsiParseError: structurally invalid category (strict mode only).
    """
    data = bytes(data)
    header = decode_header(data)
    builder = EsiTreeBuilder(header)

    mismatch = verify_checksum(data, header)
    if mismatch is not None:
        logger.warning("%s", mismatch)
        builder.warn(mismatch)

    cursor = ByteCursor(data, CATEGORY_START)
    try:
        for cat, payload in iter_categories(cursor):
            _dispatch(builder, cat, payload)
    except (TruncatedInputError, EsiParseError) as e:
        if strict:
            raise
        logger.warning("ESI parse stopped early, returning partial tree: %s", e)
        builder.fail(e)

    tree = builder.build()
    logger.debug(
        "Parsed ESI: vendor=0x%08X product=0x%08X, %d SM, %d FMMU, %d PDO, %d warning(s)",
        header.vendor_id,
        header.product_code,
        len(tree.sync_managers),
        len(tree.fmmus),
        len(tree.pdos),
        len(tree.warnings),
    )
    return tree
