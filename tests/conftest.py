"""Shared fixtures: synthetic EEPROM images on disk and in memory."""

from pathlib import Path

import pytest

from sii_builder import sample_image


@pytest.fixture
def sample_eeprom() -> bytes:
    return sample_image()


@pytest.fixture
def sample_bin(tmp_path: Path, sample_eeprom: bytes) -> Path:
    path = tmp_path / "slave.bin"
    path.write_bytes(sample_eeprom)
    return path


def to_intel_hex(data: bytes, record_size: int = 16) -> str:
    lines = []
    for offset in range(0, len(data), record_size):
        chunk = data[offset : offset + record_size]
        record = bytes([len(chunk), (offset >> 8) & 0xFF, offset & 0xFF, 0x00]) + chunk
        checksum = (-sum(record)) & 0xFF
        lines.append(":" + (record + bytes([checksum])).hex().upper())
    lines.append(":00000001FF")
    return "\n".join(lines) + "\n"


@pytest.fixture
def sample_hex(tmp_path: Path, sample_eeprom: bytes) -> Path:
    path = tmp_path / "slave.hex"
    path.write_text(to_intel_hex(sample_eeprom), encoding="ascii")
    return path
