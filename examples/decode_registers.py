#!/usr/bin/env python3
"""Example: decode one register snapshot as a bus-scan loop would hand it over."""

import sys

from pyecat_decode import FieldFormatter, RegisterDecoder


def main() -> None:
    # address -> raw 16-bit words, as read from one slave
    snapshot = {
        0x0110: [0x5A50],  # DL status: links on ports 0 and 2
        0x0130: [0x0008],  # AL status: Op
        0x0300: [0x0001, 0x0000, 0x0200, 0x0000],
        0x0310: [0x0003],  # short read: lost-link counters span two words
        0x0502: [0x0080],
        0x0F00: [0x1234],  # not in the table: raw fallback
    }
    decoder = RegisterDecoder()
    formatter = FieldFormatter()

    errors: dict = {}
    decoded = decoder.decode_snapshot(snapshot, errors)

    for address, fields in decoded.items():
        print(f"0x{address:04X}")
        for field in fields:
            print(f"  {field.identifier:<40} {formatter.describe(field)}")

    for address, e in errors.items():
        print(f"0x{address:04X}: {e}", file=sys.stderr)


if __name__ == "__main__":
    main()
