"""RegisterTable: load the register decode catalog via importlib.resources, precompute extraction plans."""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

from .errors import UnknownRegisterError
from .types import BitFieldSpec, DecodeKind, RegisterSpec

logger = logging.getLogger(__name__)

_DEFAULT_RESOURCE = "pyecat_decode.data.registers"
RESERVED_LABEL = "Reserved"


@dataclass(frozen=True)
class FieldPlan:
    """One shift/mask extraction; per-port fields have one plan per port."""

    identifier: str
    shift: int
    mask: int
    spec: BitFieldSpec
    port: int | None = None


def _parse_int(value: Any) -> int:
    """Accept JSON ints and "0x.." / decimal strings."""
    if isinstance(value, int):
        return value
    return int(str(value), 0)


def _expand_labels(raw_labels: Any, width: int, where: str) -> tuple[str, ...]:
    """Turn an index -> label mapping (or list) into exactly 2^width labels, padding with Reserved."""
    size = 1 << width
    if isinstance(raw_labels, list):
        raw_labels = {i: label for i, label in enumerate(raw_labels)}
    if not isinstance(raw_labels, dict):
        raise ValueError(f"Enum labels for {where} must be a mapping or list")
    labels = [RESERVED_LABEL] * size
    for key, label in raw_labels.items():
        index = _parse_int(key)
        if not 0 <= index < size:
            raise ValueError(f"Enum label index {index} out of range 0..{size - 1} for {where}")
        labels[index] = str(label)
    return tuple(labels)


def _parse_field(raw: dict[str, Any], enums: dict[str, Any], register: str) -> BitFieldSpec:
    name = raw["name"]
    where = f"{register}.{name}"
    decode_str = raw.get("decode", "raw")
    try:
        decode = DecodeKind(decode_str)
    except ValueError:
        raise ValueError(f"Unknown decode kind {decode_str!r} for {where}")
    width = int(raw.get("width", 1))
    labels: tuple[str, ...] = ()
    if decode == DecodeKind.ENUM:
        if "enum" in raw:
            try:
                raw_labels = enums[raw["enum"]]
            except KeyError:
                raise ValueError(f"Unknown enum {raw['enum']!r} for {where}")
        else:
            raw_labels = raw.get("labels", {})
        labels = _expand_labels(raw_labels, width, where)
    stride = raw.get("stride")
    return BitFieldSpec(
        name=name,
        bit_offset=int(raw["offset"]),
        bit_width=width,
        decode=decode,
        labels=labels,
        port_stride=int(stride) if stride is not None else None,
    )


def _parse_register(raw: dict[str, Any], enums: dict[str, Any]) -> RegisterSpec:
    """Build RegisterSpec from a JSON entry (address, name, words, ports, fields)."""
    name = raw["name"]
    address = _parse_int(raw["address"])
    words = int(raw.get("words", 1))
    if words < 1:
        raise ValueError(f"Register {name} must span at least one word")
    port_count = int(raw.get("ports", 4))
    raw_fields = raw.get("fields", [])
    if not isinstance(raw_fields, list) or not all(isinstance(f, dict) for f in raw_fields):
        raise ValueError(f"Fields of register {name} must be a list of objects")
    fields = tuple(_parse_field(f, enums, name) for f in raw_fields)
    for f in fields:
        repeats = port_count if f.port_stride is not None else 1
        last_bit = f.bit_offset + (repeats - 1) * (f.port_stride or 0) + f.bit_width
        if last_bit > words * 16:
            raise ValueError(
                f"Field {name}.{f.name} ends at bit {last_bit}, register is {words * 16} bits wide"
            )
    return RegisterSpec(address=address, name=name, words=words, fields=fields, port_count=port_count)


def _build_plans(reg: RegisterSpec) -> tuple[FieldPlan, ...]:
    plans = []
    for f in reg.fields:
        mask = (1 << f.bit_width) - 1
        if f.port_stride is None:
            plans.append(FieldPlan(f"{reg.name}.{f.name}", f.bit_offset, mask, f))
            continue
        for port in range(reg.port_count):
            plans.append(
                FieldPlan(
                    f"{reg.name}.{f.name}[{port}]",
                    f.bit_offset + port * f.port_stride,
                    mask,
                    f,
                    port,
                )
            )
    return tuple(plans)


def _entries_from(data: Any) -> tuple[list[Any], dict[str, Any]]:
    if isinstance(data, list):
        return data, {}
    if isinstance(data, dict):
        return list(data.get("registers", [])), dict(data.get("enums", {}))
    raise ValueError("Register table must be a list of registers or an object with 'registers'")


class RegisterTable:
    """
    Read-only map of register address -> RegisterSpec plus precomputed extraction plans.
    Loaded from the packaged registers.json unless ``table_override`` is given (same
    shape as the JSON: a dict with "registers"/"enums", or a bare list of registers).
    """

    def __init__(self, table_override: dict[str, Any] | list[dict[str, Any]] | None = None) -> None:
        if table_override is None:
            pkg, name = _DEFAULT_RESOURCE.rsplit(".", 1)
            try:
                with resources.files(pkg).joinpath(f"{name}.json").open("r", encoding="utf-8") as f:
                    data = json.load(f)
            except FileNotFoundError:
                raise FileNotFoundError(f"Register table resource not found: {pkg}/{name}.json") from None
            source = "package"
        else:
            data = table_override
            source = "override"

        entries, enums = _entries_from(data)
        self._by_address: dict[int, RegisterSpec] = {}
        self._plans: dict[int, tuple[FieldPlan, ...]] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            reg = _parse_register(entry, enums)
            if reg.address in self._by_address:
                raise ValueError(f"Duplicate register address in table: 0x{reg.address:04X}")
            self._by_address[reg.address] = reg
            self._plans[reg.address] = _build_plans(reg)

        logger.debug("RegisterTable loaded from %s: %d registers", source, len(self._by_address))

    @classmethod
    def from_file(cls, path: str | Path) -> "RegisterTable":
        """Load a replacement table from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls(table_override=json.load(f))

    def lookup(self, address: int) -> RegisterSpec:
        """Return RegisterSpec for ``address``; raise UnknownRegisterError if not in table."""
        if address not in self._by_address:
            raise UnknownRegisterError(address)
        return self._by_address[address]

    def plans(self, address: int) -> tuple[FieldPlan, ...]:
        if address not in self._plans:
            raise UnknownRegisterError(address)
        return self._plans[address]

    def registers(self) -> list[RegisterSpec]:
        """All registers in address order."""
        return [self._by_address[a] for a in sorted(self._by_address)]

    def identifiers(self) -> list[str]:
        """Every field identifier this table can emit, in address then field order."""
        return [p.identifier for a in sorted(self._plans) for p in self._plans[a]]

    def __contains__(self, address: object) -> bool:
        return address in self._by_address

    def __len__(self) -> int:
        return len(self._by_address)


@lru_cache(maxsize=1)
def get_default_register_table() -> RegisterTable:
    """Packaged register table, loaded once per process."""
    return RegisterTable()
