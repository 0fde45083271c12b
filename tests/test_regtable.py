"""Tests for RegisterTable loading, validation and lookup."""

import json
from pathlib import Path

import pytest

from pyecat_decode import RegisterTable, get_default_register_table
from pyecat_decode.errors import UnknownRegisterError
from pyecat_decode.types import DecodeKind


def reg(fields: list[dict], address: str = "0x0F00", words: int = 1) -> dict:
    return {"address": address, "name": "Test", "words": words, "fields": fields}


def test_default_table_loads() -> None:
    table = get_default_register_table()
    assert len(table) >= 25
    assert 0x0110 in table
    assert table.lookup(0x0110).name == "PortStatus"


def test_default_table_is_cached() -> None:
    assert get_default_register_table() is get_default_register_table()


def test_default_enum_fields_cover_every_combination() -> None:
    for spec in get_default_register_table().registers():
        for f in spec.fields:
            if f.decode == DecodeKind.ENUM:
                assert len(f.labels) == 1 << f.bit_width, f"{spec.name}.{f.name}"


def test_registers_in_address_order() -> None:
    addresses = [r.address for r in get_default_register_table().registers()]
    assert addresses == sorted(addresses)


def test_required_identifiers_present() -> None:
    ids = get_default_register_table().identifiers()
    for n in range(4):
        assert f"PortStatus.LinkStatus[{n}]" in ids
        assert f"PortStatus.LoopStatus[{n}]" in ids
        assert f"RxErrorCounter.FrameError[{n}]" in ids
        assert f"RxErrorCounter.PhysicalError[{n}]" in ids
        assert f"ForwardedRxErrorCounter.PreviousError[{n}]" in ids
        assert f"LostLinkCounter.LostLink[{n}]" in ids
    assert "DlControl.ForwardingRule" in ids
    assert "SiiControl.Busy" in ids
    assert len(ids) == len(set(ids))


def test_lookup_unknown_raises() -> None:
    with pytest.raises(UnknownRegisterError) as exc_info:
        get_default_register_table().lookup(0x0F00)
    assert exc_info.value.address == 0x0F00


def test_enum_labels_padded_with_reserved() -> None:
    table = RegisterTable(
        table_override=[reg([{"name": "S", "offset": 0, "width": 2, "decode": "enum", "labels": {"1": "One"}}])]
    )
    assert table.lookup(0x0F00).fields[0].labels == ("Reserved", "One", "Reserved", "Reserved")


def test_named_enum_reference() -> None:
    table = RegisterTable(
        table_override={
            "enums": {"OnOff": {"0": "Off", "1": "On"}},
            "registers": [reg([{"name": "P", "offset": 0, "decode": "enum", "enum": "OnOff"}])],
        }
    )
    assert table.lookup(0x0F00).fields[0].labels == ("Off", "On")


def test_port_plans() -> None:
    table = RegisterTable(
        table_override=[reg([{"name": "C", "offset": 0, "width": 4, "stride": 4}], words=1)]
    )
    plans = table.plans(0x0F00)
    assert [(p.identifier, p.shift, p.mask, p.port) for p in plans] == [
        ("Test.C[0]", 0, 0xF, 0),
        ("Test.C[1]", 4, 0xF, 1),
        ("Test.C[2]", 8, 0xF, 2),
        ("Test.C[3]", 12, 0xF, 3),
    ]


class TestValidation:
    def test_duplicate_address(self) -> None:
        entry = reg([{"name": "A", "offset": 0, "width": 16}])
        with pytest.raises(ValueError, match="Duplicate register address"):
            RegisterTable(table_override=[entry, entry])

    def test_field_overruns_register(self) -> None:
        with pytest.raises(ValueError, match="ends at bit"):
            RegisterTable(table_override=[reg([{"name": "A", "offset": 8, "width": 16}])])

    def test_port_family_overruns_register(self) -> None:
        with pytest.raises(ValueError, match="ends at bit"):
            RegisterTable(table_override=[reg([{"name": "A", "offset": 0, "width": 8, "stride": 8}])])

    def test_enum_label_out_of_range(self) -> None:
        field = {"name": "A", "offset": 0, "width": 1, "decode": "enum", "labels": {"2": "Two"}}
        with pytest.raises(ValueError, match="out of range"):
            RegisterTable(table_override=[reg([field])])

    def test_unknown_decode_kind(self) -> None:
        with pytest.raises(ValueError, match="Unknown decode kind"):
            RegisterTable(table_override=[reg([{"name": "A", "offset": 0, "decode": "float"}])])

    def test_unknown_enum_name(self) -> None:
        field = {"name": "A", "offset": 0, "decode": "enum", "enum": "Missing"}
        with pytest.raises(ValueError, match="Unknown enum"):
            RegisterTable(table_override=[reg([field])])

    def test_bool_field_wider_than_one_bit(self) -> None:
        with pytest.raises(ValueError, match="1 bit wide"):
            RegisterTable(table_override=[reg([{"name": "A", "offset": 0, "width": 2, "decode": "bool"}])])

    def test_fields_must_be_objects(self) -> None:
        with pytest.raises(ValueError, match="list of objects"):
            RegisterTable(table_override=[reg([1])])
        with pytest.raises(ValueError, match="list of objects"):
            RegisterTable(table_override=[{"address": "0x0F00", "name": "Test", "fields": "A"}])


def test_from_file(tmp_path: Path) -> None:
    path = tmp_path / "table.json"
    path.write_text(json.dumps({"registers": [reg([{"name": "A", "offset": 0, "width": 16}])]}), encoding="utf-8")
    table = RegisterTable.from_file(path)
    assert len(table) == 1
    assert table.identifiers() == ["Test.A"]
