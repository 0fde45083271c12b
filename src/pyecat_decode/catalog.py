"""
Field identifier catalog: the closed vocabulary both decoders emit, and the
flattening of an EsiTree into identifier-keyed EsiField records.
"""

import re

from .regtable import RegisterTable, get_default_register_table
from .registers import UNKNOWN_IDENTIFIER
from .types import EsiField, EsiTree, FmmuUsage, Pdo, PdoDirection, SyncManagerType

PORTS = range(4)

_PORT_SUFFIX = re.compile(r"\[(\d+)\]$")

# (identifier suffix, EsiHeader attribute)
HEADER_FIELDS: tuple[tuple[str, str], ...] = (
    ("PdiControl", "pdi_control"),
    ("PdiConfiguration", "pdi_configuration"),
    ("SyncImpulseLength", "sync_impulse_length"),
    ("PdiConfiguration2", "pdi_configuration2"),
    ("StationAlias", "station_alias"),
    ("Checksum", "checksum"),
    ("VendorId", "vendor_id"),
    ("ProductCode", "product_code"),
    ("RevisionNumber", "revision"),
    ("SerialNumber", "serial_number"),
    ("BootstrapReceiveMailboxOffset", "bootstrap_receive_mailbox_offset"),
    ("BootstrapReceiveMailboxSize", "bootstrap_receive_mailbox_size"),
    ("BootstrapSendMailboxOffset", "bootstrap_send_mailbox_offset"),
    ("BootstrapSendMailboxSize", "bootstrap_send_mailbox_size"),
    ("StandardReceiveMailboxOffset", "standard_receive_mailbox_offset"),
    ("StandardReceiveMailboxSize", "standard_receive_mailbox_size"),
    ("StandardSendMailboxOffset", "standard_send_mailbox_offset"),
    ("StandardSendMailboxSize", "standard_send_mailbox_size"),
    ("MailboxProtocol", "mailbox_protocol"),
    ("EepromSize", "eeprom_size"),
    ("Version", "version"),
)

GENERAL_FIELDS: tuple[tuple[str, str], ...] = (
    ("Group", "group"),
    ("Image", "image"),
    ("Order", "order"),
    ("Name", "name"),
    ("CoeDetails", "coe_details"),
    ("FoeDetails", "foe_details"),
    ("EoeDetails", "eoe_details"),
    ("SoeChannels", "soe_channels"),
    ("Ds402Channels", "ds402_channels"),
    ("SysmanClass", "sysman_class"),
    ("Flags", "flags"),
    ("EnableSafeOp", "enable_safeop"),
    ("EnableNotLrw", "enable_not_lrw"),
    ("MboxDataLinkLayer", "mbox_data_link_layer"),
    ("IdentAlStatus", "ident_al_status"),
    ("IdentPhysicalMemoryAddress", "ident_physical_memory"),
    ("CurrentOnEbus", "current_on_ebus"),
    ("PhysicalMemoryAddress", "physical_memory_address"),
)

SYNCM_FIELDS = (
    "PhysicalStartAddress",
    "Length",
    "ControlRegister",
    "StatusRegister",
    "Enable",
    "Type",
)
PDO_FIELDS = ("Index", "Direction", "EntryCount", "SyncManager", "Synchronization", "Name", "Flags")
PDO_ENTRY_FIELDS = ("Index", "SubIndex", "Name", "DataType", "BitLength", "Flags")
DC_FIELDS = (
    "CycleTimeSync0",
    "ShiftTimeSync0",
    "ShiftTimeSync1",
    "Sync1CycleFactor",
    "AssignActivate",
    "Sync0CycleFactor",
    "Name",
    "Description",
)

SYNCM_TYPE_LABELS: dict[SyncManagerType, str] = {
    SyncManagerType.UNUSED: "Unused",
    SyncManagerType.MAILBOX_OUT: "MailboxOut",
    SyncManagerType.MAILBOX_IN: "MailboxIn",
    SyncManagerType.PROCESS_OUT: "ProcessOut",
    SyncManagerType.PROCESS_IN: "ProcessIn",
}

FMMU_USAGE_LABELS: dict[FmmuUsage, str] = {
    FmmuUsage.UNUSED: "Unused",
    FmmuUsage.OUTPUTS: "Outputs",
    FmmuUsage.INPUTS: "Inputs",
    FmmuUsage.SYNCM_STATUS: "SyncManagerStatus",
}

PDO_DIRECTION_LABELS: dict[PdoDirection, str] = {PdoDirection.TX: "Tx", PdoDirection.RX: "Rx"}

# ESI fields whose string value is a fixed label rather than text read from the image
LABELED_ESI_FIELDS = frozenset({"ESI.Fmmu.Usage", "ESI.SyncM.Type", "ESI.Pdo.Direction"})


def port_template(identifier: str) -> tuple[str, int | None]:
    """Split ``X.Y[3]`` into (``X.Y[n]``, 3); identifiers without a port index come back unchanged."""
    m = _PORT_SUFFIX.search(identifier)
    if m is None:
        return identifier, None
    return identifier[: m.start()] + "[n]", int(m.group(1))


def esi_identifiers() -> list[str]:
    ids = [f"ESI.Header.{name}" for name, _ in HEADER_FIELDS]
    ids += [f"ESI.General.{name}" for name, _ in GENERAL_FIELDS]
    ids += [f"ESI.General.PhysicalPort[{n}]" for n in PORTS]
    ids.append("ESI.Fmmu.Usage")
    ids += [f"ESI.SyncM.{name}" for name in SYNCM_FIELDS]
    ids += [f"ESI.Pdo.{name}" for name in PDO_FIELDS]
    ids += [f"ESI.Pdo.Entry.{name}" for name in PDO_ENTRY_FIELDS]
    ids += [f"ESI.Dc.{name}" for name in DC_FIELDS]
    return ids


def register_identifiers(table: RegisterTable | None = None) -> list[str]:
    table = table if table is not None else get_default_register_table()
    return table.identifiers() + [UNKNOWN_IDENTIFIER]


def field_identifiers(table: RegisterTable | None = None) -> list[str]:
    """Complete vocabulary: ESI identifiers followed by register identifiers."""
    return esi_identifiers() + register_identifiers(table)


def value_keys(table: RegisterTable | None = None) -> list[str]:
    """Every fixed value label either decoder can emit, plus the boolean keys."""
    table = table if table is not None else get_default_register_table()
    keys = ["true", "false"]
    keys += SYNCM_TYPE_LABELS.values()
    keys += FMMU_USAGE_LABELS.values()
    keys += PDO_DIRECTION_LABELS.values()
    for reg in table.registers():
        for f in reg.fields:
            keys += f.labels
    return list(dict.fromkeys(keys))


def pdo_instance(pdo: Pdo) -> str:
    prefix = "TxPdo" if pdo.direction == PdoDirection.TX else "RxPdo"
    return f"{prefix}0x{pdo.index:04X}"


def esi_fields(tree: EsiTree) -> list[EsiField]:
    """Flatten a tree into EsiField records in display order."""
    out = [EsiField(f"ESI.Header.{name}", getattr(tree.header, attr)) for name, attr in HEADER_FIELDS]

    general = tree.general
    if general is not None:
        out += [EsiField(f"ESI.General.{name}", getattr(general, attr)) for name, attr in GENERAL_FIELDS]
        out += [
            EsiField(f"ESI.General.PhysicalPort[{n}]", port)
            for n, port in enumerate(general.physical_ports)
        ]

    for fmmu in tree.fmmus:
        out.append(EsiField("ESI.Fmmu.Usage", FMMU_USAGE_LABELS[fmmu.usage], f"Fmmu{fmmu.channel}"))

    for sm in tree.sync_managers:
        inst = f"SyncM{sm.channel}"
        out += [
            EsiField("ESI.SyncM.PhysicalStartAddress", sm.physical_start_address, inst),
            EsiField("ESI.SyncM.Length", sm.length, inst),
            EsiField("ESI.SyncM.ControlRegister", sm.control, inst),
            EsiField("ESI.SyncM.StatusRegister", sm.status, inst),
            EsiField("ESI.SyncM.Enable", sm.enabled, inst),
            EsiField("ESI.SyncM.Type", SYNCM_TYPE_LABELS[sm.sm_type], inst),
        ]

    for pdo in tree.pdos:
        inst = pdo_instance(pdo)
        out += [
            EsiField("ESI.Pdo.Index", pdo.index, inst),
            EsiField("ESI.Pdo.Direction", PDO_DIRECTION_LABELS[pdo.direction], inst),
            EsiField("ESI.Pdo.EntryCount", pdo.n_entry, inst),
            EsiField("ESI.Pdo.SyncManager", pdo.sync_manager, inst),
            EsiField("ESI.Pdo.Synchronization", pdo.synchronization, inst),
            EsiField("ESI.Pdo.Name", pdo.name, inst),
            EsiField("ESI.Pdo.Flags", pdo.flags, inst),
        ]
        for i, entry in enumerate(pdo.entries):
            entry_inst = f"{inst}.Entry{i}"
            out += [
                EsiField("ESI.Pdo.Entry.Index", entry.index, entry_inst),
                EsiField("ESI.Pdo.Entry.SubIndex", entry.sub_index, entry_inst),
                EsiField("ESI.Pdo.Entry.Name", entry.name, entry_inst),
                EsiField("ESI.Pdo.Entry.DataType", entry.data_type_name, entry_inst),
                EsiField("ESI.Pdo.Entry.BitLength", entry.bit_length, entry_inst),
                EsiField("ESI.Pdo.Entry.Flags", entry.flags, entry_inst),
            ]

    for i, mode in enumerate(tree.dc_op_modes):
        inst = f"DcOpMode{i}"
        out += [
            EsiField("ESI.Dc.CycleTimeSync0", mode.cycle_time_sync0, inst),
            EsiField("ESI.Dc.ShiftTimeSync0", mode.shift_time_sync0, inst),
            EsiField("ESI.Dc.ShiftTimeSync1", mode.shift_time_sync1, inst),
            EsiField("ESI.Dc.Sync1CycleFactor", mode.sync1_cycle_factor, inst),
            EsiField("ESI.Dc.AssignActivate", mode.assign_activate, inst),
            EsiField("ESI.Dc.Sync0CycleFactor", mode.sync0_cycle_factor, inst),
            EsiField("ESI.Dc.Name", mode.name, inst),
            EsiField("ESI.Dc.Description", mode.description, inst),
        ]
    return out
