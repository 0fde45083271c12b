"""Tests for LabelCatalog and FieldFormatter."""

import pytest

from pyecat_decode import (
    FieldFormatter,
    LabelCatalog,
    field_identifiers,
    get_default_register_table,
    get_label_catalog,
)
from pyecat_decode.catalog import value_keys
from pyecat_decode.types import DecodedField, EsiField


def test_every_identifier_has_an_english_label() -> None:
    catalog = get_label_catalog("en")
    missing = [i for i in field_identifiers() if not catalog.has(i)]
    assert missing == []


def test_every_value_label_has_an_english_text() -> None:
    catalog = get_label_catalog("en")
    missing = [k for k in value_keys() if not catalog.has_value(k)]
    assert missing == []


def test_every_register_has_a_name_label() -> None:
    catalog = get_label_catalog("en")
    for r in get_default_register_table().registers():
        assert catalog.register_label(r.name) != r.name, r.name


def test_port_label_template() -> None:
    catalog = get_label_catalog()
    assert catalog.field_label("PortStatus.LinkStatus[2]") == "Physical link on port 2"
    assert catalog.field_label("ESI.General.PhysicalPort[0]") == "Physical port 0"


def test_missing_identifier_falls_back() -> None:
    catalog = LabelCatalog(labels_override={"fields": {}})
    assert catalog.field_label("Foo.Bar") == "Foo.Bar"
    assert catalog.register_label("Foo") == "Foo"


def test_unknown_locale() -> None:
    with pytest.raises(ValueError, match="Unknown locale"):
        LabelCatalog("xx")


def test_override_catalog() -> None:
    catalog = LabelCatalog(
        locale="de",
        labels_override={"fields": {"PortStatus.LinkStatus[n]": "Link Port {port}"}, "values": {"true": "ja"}},
    )
    formatter = FieldFormatter(catalog)
    assert formatter.label("PortStatus.LinkStatus[1]") == "Link Port 1"
    assert formatter.format_value(True) == "ja"
    assert catalog.locale == "de"


class TestDescribe:
    def test_register_enum_field(self) -> None:
        f = DecodedField("PortStatus.LoopStatus[3]", 3, "Reserved", 3)
        assert FieldFormatter().describe(f) == "Loop port 3: Reserved (0x3)"

    def test_register_int_field(self) -> None:
        f = DecodedField("AlStatusCode.Code", 0x11, 0x11)
        assert FieldFormatter().describe(f) == "AL status code: 17"

    def test_register_bool_field(self) -> None:
        f = DecodedField("SiiControl.Busy", 1, True)
        assert FieldFormatter().describe(f) == "Busy: yes (0x1)"

    def test_esi_field_with_instance(self) -> None:
        f = EsiField("ESI.SyncM.Length", 128, "SyncM0")
        assert FieldFormatter().describe(f) == "SyncM0 Length: 128"

    def test_esi_field_without_instance(self) -> None:
        f = EsiField("ESI.Header.VendorId", 2)
        assert FieldFormatter().describe(f) == "Vendor ID: 2"


class TestValueTranslation:
    def catalog(self) -> LabelCatalog:
        return LabelCatalog(
            locale="de",
            labels_override={"values": {"Link": "Verbindung", "MailboxOut": "Mailbox aus", "Tx": "Senden"}},
        )

    def test_register_enum_value(self) -> None:
        f = DecodedField("PortStatus.LinkStatus[0]", 1, "Link", 0)
        assert FieldFormatter(self.catalog()).describe(f) == "PortStatus.LinkStatus[0]: Verbindung (0x1)"

    def test_esi_labeled_value(self) -> None:
        formatter = FieldFormatter(self.catalog())
        assert formatter.describe(EsiField("ESI.SyncM.Type", "MailboxOut", "SyncM0")) == "SyncM0 ESI.SyncM.Type: Mailbox aus"
        assert formatter.describe(EsiField("ESI.Pdo.Direction", "Tx", "TxPdo0x1A00")) == "TxPdo0x1A00 ESI.Pdo.Direction: Senden"

    def test_image_strings_are_not_translated(self) -> None:
        f = EsiField("ESI.Pdo.Entry.Name", "Link", "TxPdo0x1A00.Entry0")
        assert FieldFormatter(self.catalog()).describe(f) == "TxPdo0x1A00.Entry0 ESI.Pdo.Entry.Name: Link"

    def test_untranslated_value_falls_back(self) -> None:
        assert FieldFormatter(self.catalog()).format_value("Closed") == "Closed"

    def test_english_enum_text(self) -> None:
        f = DecodedField("PortStatus.LinkStatus[2]", 0, "NoLink", 2)
        assert FieldFormatter().describe(f) == "Physical link on port 2: No link (0x0)"
