"""Tests for CLI module - value parsing and command behaviour."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from pyecat_decode import __version__
from pyecat_decode.cli import app, parse_int
from sii_builder import GENERAL, SYNCM, category, eeprom, general_payload

runner = CliRunner()


# ============================================================================
# Value Parsing Tests
# ============================================================================


class TestParseInt:
    """Test integer argument parsing."""

    def test_decimal(self) -> None:
        assert parse_int("0") == 0
        assert parse_int("272") == 272
        assert parse_int("65535") == 65535

    def test_hexadecimal(self) -> None:
        assert parse_int("0x0110") == 0x0110
        assert parse_int("0XFFFF") == 0xFFFF
        assert parse_int("  0x10  ") == 16

    def test_range_validation(self) -> None:
        with pytest.raises(ValueError, match="out of range"):
            parse_int("65536")
        with pytest.raises(ValueError, match="out of range"):
            parse_int("-1")
        assert parse_int("0x1FFFF", limit=0x1FFFF) == 0x1FFFF

    def test_invalid_values(self) -> None:
        with pytest.raises(ValueError):
            parse_int("abc")
        with pytest.raises(ValueError):
            parse_int("")


# ============================================================================
# esi command
# ============================================================================


def test_esi_command_text(sample_bin: Path) -> None:
    result = runner.invoke(app, ["esi", str(sample_bin)])
    assert result.exit_code == 0
    assert "Vendor ID: 1980" in result.stdout
    assert "SyncM0 SyncManager type: Mailbox out" in result.stdout
    assert "TxPdo0x1A00.Entry0 Entry name: Status Word" in result.stdout


def test_esi_command_json(sample_bin: Path) -> None:
    result = runner.invoke(app, ["esi", str(sample_bin), "--json"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["partial"] is False
    assert data["checksum_ok"] is True
    assert data["warnings"] == []
    vendor = next(f for f in data["fields"] if f["identifier"] == "ESI.Header.VendorId")
    assert vendor == {"identifier": "ESI.Header.VendorId", "label": "Vendor ID", "value": 1980, "instance": None}


def test_esi_command_hex_file(sample_hex: Path) -> None:
    result = runner.invoke(app, ["esi", str(sample_hex)])
    assert result.exit_code == 0
    assert "Product code: 258" in result.stdout


def test_esi_command_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["esi", str(tmp_path / "missing.bin")])
    assert result.exit_code == 2


def test_esi_command_partial_tree(tmp_path: Path) -> None:
    path = tmp_path / "broken.bin"
    path.write_bytes(eeprom(category(GENERAL, general_payload()), category(SYNCM, bytes(6))))

    result = runner.invoke(app, ["esi", str(path)])
    assert result.exit_code == 0
    assert "partial tree" in result.output
    assert "Flags: 9" in result.output

    result = runner.invoke(app, ["esi", str(path), "--strict"])
    assert result.exit_code == 3
    assert "Parse error" in result.output


def test_esi_command_checksum_warning(tmp_path: Path, sample_eeprom: bytes) -> None:
    data = bytearray(sample_eeprom)
    data[14] ^= 0xFF
    path = tmp_path / "bad_crc.bin"
    path.write_bytes(bytes(data))
    result = runner.invoke(app, ["esi", str(path)])
    assert result.exit_code == 0
    assert "Checksum mismatch" in result.output


def test_esi_command_unknown_locale(sample_bin: Path) -> None:
    result = runner.invoke(app, ["esi", str(sample_bin), "--locale", "xx"])
    assert result.exit_code == 2


# ============================================================================
# register / snapshot commands
# ============================================================================


def test_register_command() -> None:
    result = runner.invoke(app, ["register", "0x0110", "0xC000"])
    assert result.exit_code == 0
    assert "0x0110 DL status" in result.stdout
    assert "Loop port 0: Open (0x0)" in result.stdout
    assert "Loop port 3: Reserved (0x3)" in result.stdout


def test_register_command_json() -> None:
    result = runner.invoke(app, ["register", "0x0130", "8", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["address"] == 0x0130
    state = data["fields"][0]
    assert state == {"identifier": "AlStatus.State", "label": "Actual AL state", "raw": 8, "value": "Op", "port": None}


def test_register_command_unknown_address() -> None:
    result = runner.invoke(app, ["register", "0x0F00", "0xBEEF"])
    assert result.exit_code == 0
    assert "Unknown register: 0xBEEF" in result.stdout


def test_register_command_too_few_words() -> None:
    result = runner.invoke(app, ["register", "0x0300", "1"])
    assert result.exit_code == 3


def test_register_command_invalid_word() -> None:
    result = runner.invoke(app, ["register", "0x0110", "0x10000"])
    assert result.exit_code == 2


def _custom_table(tmp_path: Path) -> Path:
    path = tmp_path / "table.json"
    table = {
        "registers": [
            {"address": "0x0F00", "name": "Vendor", "fields": [{"name": "Ready", "offset": 0, "decode": "bool"}]}
        ]
    }
    path.write_text(json.dumps(table), encoding="utf-8")
    return path


def test_register_command_custom_table(tmp_path: Path) -> None:
    result = runner.invoke(app, ["register", "0x0F00", "1", "--table", str(_custom_table(tmp_path))])
    assert result.exit_code == 0
    assert "Vendor.Ready: yes" in result.stdout


def test_register_table_from_env(tmp_path: Path) -> None:
    env = {"PYECAT_REGISTER_TABLE": str(_custom_table(tmp_path))}
    result = runner.invoke(app, ["registers", "--json"], env=env)
    assert result.exit_code == 0
    assert [r["name"] for r in json.loads(result.stdout)] == ["Vendor"]


def test_register_command_missing_table(tmp_path: Path) -> None:
    result = runner.invoke(app, ["register", "0x0110", "0", "--table", str(tmp_path / "none.json")])
    assert result.exit_code == 2


def test_register_command_malformed_table(tmp_path: Path) -> None:
    path = tmp_path / "table.json"
    path.write_text(json.dumps({"registers": [{"address": "0x0F00", "name": "Vendor", "fields": [1]}]}), encoding="utf-8")
    result = runner.invoke(app, ["register", "0x0F00", "1", "--table", str(path)])
    assert result.exit_code == 2
    assert "Invalid register table" in result.output

    path.write_text(json.dumps({"registers": [{"address": "0x0F00", "name": "Vendor", "words": [1]}]}), encoding="utf-8")
    result = runner.invoke(app, ["register", "0x0F00", "1", "--table", str(path)])
    assert result.exit_code == 2


def test_snapshot_command(tmp_path: Path) -> None:
    path = tmp_path / "snap.json"
    path.write_text(json.dumps({"0x0130": [8], "0x0110": [80]}), encoding="utf-8")
    result = runner.invoke(app, ["snapshot", str(path), "--json"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert list(data) == ["0x0110", "0x0130"]
    assert data["0x0130"][0]["value"] == "Op"
    link = {f["identifier"]: f["value"] for f in data["0x0110"]}
    assert link["PortStatus.LinkStatus[0]"] == "Link"


def test_snapshot_command_short_register(tmp_path: Path) -> None:
    path = tmp_path / "snap.json"
    path.write_text(json.dumps({"0x0130": [8], "0x0300": [1]}), encoding="utf-8")
    result = runner.invoke(app, ["snapshot", str(path)])
    assert result.exit_code == 3
    assert "Actual AL state: Op" in result.output
    assert "Error: 0x0300" in result.output


def test_snapshot_command_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "snap.json"
    path.write_text("[1, 2]", encoding="utf-8")
    result = runner.invoke(app, ["snapshot", str(path)])
    assert result.exit_code == 2


# ============================================================================
# registers / info / version
# ============================================================================


def test_registers_command() -> None:
    result = runner.invoke(app, ["registers"])
    assert result.exit_code == 0
    assert "0x0110" in result.stdout
    assert "PortStatus" in result.stdout


def test_info_command_local() -> None:
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert "version:" in result.stdout.lower()
    assert "locale:" in result.stdout.lower()


def test_info_command_json() -> None:
    result = runner.invoke(app, ["info", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["version"] == __version__
    assert data["locale"] == "en"
    assert data["registers"] > 0


def test_version_option() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout
