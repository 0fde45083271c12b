#!/usr/bin/env python3
"""Command-line front end for pyecat-decode using Typer."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .catalog import esi_fields
from .eeprom import read_eeprom_file
from .errors import EepromFileError, EsiParseError, PyEcatDecodeError, RegisterWordError, TruncatedInputError
from .esi import parse_esi
from .formatter import DEFAULT_LOCALE, FieldFormatter, LabelCatalog, get_label_catalog
from .registers import RegisterDecoder
from .regtable import RegisterTable, get_default_register_table
from .types import DecodedField

app = typer.Typer(
    name="pyecat",
    help="Decode EtherCAT slave EEPROM (ESI/SII) images and ESC register words.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

LocaleOption = Annotated[
    str,
    typer.Option("--locale", "-l", help="Label catalog locale", envvar="PYECAT_LOCALE"),
]
TableOption = Annotated[
    Optional[str],
    typer.Option("--table", help="Replacement register table (JSON)", envvar="PYECAT_REGISTER_TABLE"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_int(value: str, limit: int = 0xFFFF) -> int:
    """Parse a decimal or 0x-prefixed hex integer in 0..limit."""
    v = value.strip()
    if v.lower().startswith("0x"):
        num = int(v, 16)
    else:
        num = int(v)
    if not (0 <= num <= limit):
        raise ValueError(f"Value out of range 0..0x{limit:X}: {value}")
    return num


def load_table(table: Optional[str]) -> RegisterTable:
    """Register table from --table / PYECAT_REGISTER_TABLE, or the packaged one."""
    if not table:
        return get_default_register_table()
    path = Path(table)
    if not path.is_file():
        typer.echo(f"Error: Register table not found: {path}", err=True)
        raise typer.Exit(2)
    try:
        return RegisterTable.from_file(path)
    except (KeyError, TypeError, ValueError) as e:
        typer.echo(f"Error: Invalid register table {path}: {e}", err=True)
        raise typer.Exit(2)


def load_labels(locale: str) -> LabelCatalog:
    try:
        return get_label_catalog(locale.lower())
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)


def json_value(value: Any) -> Any:
    return value if isinstance(value, (bool, int, str)) else str(value)


def register_rows(fields: list[DecodedField], formatter: FieldFormatter) -> list[dict[str, Any]]:
    return [
        {
            "identifier": f.identifier,
            "label": formatter.label(f.identifier),
            "raw": f.raw,
            "value": json_value(f.value),
            "port": f.port,
        }
        for f in fields
    ]


# ============================================================================
# Commands
# ============================================================================


@app.command()
def esi(
    file: Annotated[Path, typer.Argument(help="EEPROM image (.bin raw dump or .hex Intel HEX)")],
    strict: Annotated[bool, typer.Option("--strict", help="Fail on malformed categories instead of printing a partial tree")] = False,
    locale: LocaleOption = DEFAULT_LOCALE,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Decode an EEPROM image and list every ESI field with its label.

    Checksum mismatches and unresolved strings are reported as warnings. A malformed
    category stops decoding; the fields decoded so far are still printed unless
    --strict is given.
    """
    setup_logging(verbose)

    try:
        formatter = FieldFormatter(load_labels(locale))
        data = read_eeprom_file(file)
        tree = parse_esi(data, strict=strict)
    except EepromFileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except (TruncatedInputError, EsiParseError) as e:
        typer.echo(f"Error: Parse error: {e}", err=True)
        raise typer.Exit(3)
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)

    fields = esi_fields(tree)
    if json_output:
        output = {
            "file": str(file),
            "partial": tree.partial,
            "error": str(tree.error) if tree.error else None,
            "checksum_ok": tree.checksum_ok,
            "warnings": [str(w) for w in tree.warnings],
            "fields": [
                {
                    "identifier": f.identifier,
                    "label": formatter.label(f.identifier),
                    "value": json_value(f.value),
                    "instance": f.instance,
                }
                for f in fields
            ],
        }
        typer.echo(json.dumps(output, indent=2))
    else:
        for f in fields:
            typer.echo(formatter.describe(f))

    for w in tree.warnings:
        typer.echo(f"Warning: {w}", err=True)
    if tree.partial:
        typer.echo(f"Warning: partial tree, decoding stopped: {tree.error}", err=True)


@app.command()
def register(
    address: Annotated[str, typer.Argument(help="Register address (decimal or 0x hex), e.g. 0x0110")],
    words: Annotated[list[str], typer.Argument(help="Raw 16-bit register words, lowest address first")],
    table: TableOption = None,
    locale: LocaleOption = DEFAULT_LOCALE,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Decode raw register words into named bit-fields.

    Unknown addresses print a single raw "Unknown" field.
    """
    setup_logging(verbose)

    try:
        addr = parse_int(address)
        raw_words = [parse_int(w) for w in words]
    except ValueError as e:
        typer.echo(f"Error: Invalid value: {e}", err=True)
        raise typer.Exit(2)

    reg_table = load_table(table)
    formatter = FieldFormatter(load_labels(locale))
    try:
        fields = RegisterDecoder(reg_table).decode(addr, raw_words)
    except (TruncatedInputError, RegisterWordError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(3)

    if json_output:
        typer.echo(json.dumps({"address": addr, "fields": register_rows(fields, formatter)}, indent=2))
        return
    if addr in reg_table:
        name = reg_table.lookup(addr).name
        typer.echo(f"0x{addr:04X} {formatter.catalog.register_label(name)}")
    for f in fields:
        typer.echo(f"  {formatter.describe(f)}")


@app.command()
def snapshot(
    file: Annotated[Path, typer.Argument(help='JSON object of address -> word list, e.g. {"0x0110": [4660]}')],
    table: TableOption = None,
    locale: LocaleOption = DEFAULT_LOCALE,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Decode a whole register snapshot, as captured by one poll cycle.
    """
    setup_logging(verbose)

    try:
        with open(file, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError("snapshot must be a JSON object")
        snap = {
            parse_int(str(k)): [parse_int(str(w)) for w in (v if isinstance(v, list) else [v])]
            for k, v in raw.items()
        }
    except OSError as e:
        typer.echo(f"Error: Cannot read snapshot {file}: {e}", err=True)
        raise typer.Exit(2)
    except ValueError as e:
        typer.echo(f"Error: Invalid snapshot {file}: {e}", err=True)
        raise typer.Exit(2)

    reg_table = load_table(table)
    formatter = FieldFormatter(load_labels(locale))
    errors: dict[int, PyEcatDecodeError] = {}
    decoded = RegisterDecoder(reg_table).decode_snapshot(snap, errors)

    if json_output:
        output = {f"0x{addr:04X}": register_rows(fields, formatter) for addr, fields in sorted(decoded.items())}
        typer.echo(json.dumps(output, indent=2))
    else:
        for addr, fields in sorted(decoded.items()):
            name = reg_table.lookup(addr).name if addr in reg_table else "Unknown"
            typer.echo(f"0x{addr:04X} {formatter.catalog.register_label(name)}")
            for f in fields:
                typer.echo(f"  {formatter.describe(f)}")

    for addr, e in sorted(errors.items()):
        typer.echo(f"Error: 0x{addr:04X}: {e}", err=True)
    if errors:
        raise typer.Exit(3)


@app.command()
def registers(
    table: TableOption = None,
    locale: LocaleOption = DEFAULT_LOCALE,
    json_output: JsonOption = False,
) -> None:
    """
    List the registers the decode table knows about.
    """
    reg_table = load_table(table)
    catalog = load_labels(locale)
    if json_output:
        output = [
            {
                "address": f"0x{r.address:04X}",
                "name": r.name,
                "words": r.words,
                "fields": [f.name for f in r.fields],
            }
            for r in reg_table.registers()
        ]
        typer.echo(json.dumps(output, indent=2))
        return
    for r in reg_table.registers():
        typer.echo(f"0x{r.address:04X}  {r.name:<28} {catalog.register_label(r.name)}")


@app.command()
def info(
    table: TableOption = None,
    locale: LocaleOption = DEFAULT_LOCALE,
    json_output: JsonOption = False,
) -> None:
    """
    Show package version, locale and register table size.
    """
    reg_table = load_table(table)
    catalog = load_labels(locale)
    info_data = {
        "version": __version__,
        "locale": catalog.locale,
        "table": table or "packaged",
        "registers": len(reg_table),
        "identifiers": len(reg_table.identifiers()),
    }
    if json_output:
        typer.echo(json.dumps(info_data, indent=2))
    else:
        typer.echo(f"pyecat-decode version: {info_data['version']}")
        typer.echo(f"Locale: {info_data['locale']}")
        typer.echo(f"Register table: {info_data['table']} ({info_data['registers']} registers)")


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"pyecat-decode {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """pyecat - EtherCAT ESI EEPROM and register decoder."""
    pass


if __name__ == "__main__":
    app()
