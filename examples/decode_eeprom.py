#!/usr/bin/env python3
"""Example: decode a slave EEPROM dump and print its SyncManagers and PDOs."""

import sys

from pyecat_decode import FieldFormatter, esi_fields, parse_esi, read_eeprom_file
from pyecat_decode.errors import EepromFileError, TruncatedInputError


def main() -> None:
    path = sys.argv[1] if len(sys.argv) > 1 else "slave.bin"  # .bin or .hex dump

    try:
        tree = parse_esi(read_eeprom_file(path))
    except EepromFileError as e:
        print(f"Cannot read EEPROM: {e}", file=sys.stderr)
        sys.exit(1)
    except TruncatedInputError as e:
        print(f"Not an SII image: {e}", file=sys.stderr)
        sys.exit(1)

    h = tree.header
    print(f"Vendor 0x{h.vendor_id:08X} product 0x{h.product_code:08X} rev 0x{h.revision:08X}")
    if tree.general is not None:
        print(f"Device: {tree.general.name} ({tree.general.order})")

    for sm in tree.sync_managers:
        print(f"SM{sm.channel}: 0x{sm.physical_start_address:04X} len {sm.length} {sm.sm_type.name}")

    for pdo in tree.pdos:
        print(f"{pdo.direction.value.upper()}PDO 0x{pdo.index:04X} {pdo.name!r} on SM{pdo.sync_manager}")
        for e in pdo.entries:
            print(f"  0x{e.index:04X}:{e.sub_index:02X} {e.name:<24} {e.data_type_name} ({e.bit_length} bit)")

    # Same data as labeled, identifier-keyed records
    formatter = FieldFormatter()
    for field in esi_fields(tree)[:5]:
        print(formatter.describe(field))

    for w in tree.warnings:
        print(f"warning: {w}", file=sys.stderr)
    if tree.partial:
        print(f"partial tree: {tree.error}", file=sys.stderr)


if __name__ == "__main__":
    main()
