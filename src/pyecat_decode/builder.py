"""EsiTreeBuilder: collects decoded categories in any order and resolves string references."""

import dataclasses
import logging

from .errors import EsiParseError
from .strings import StringTable
from .types import (
    CategoryHeader,
    DcOpMode,
    EsiHeader,
    EsiTree,
    Fmmu,
    GeneralInfo,
    Pdo,
    SyncManager,
)

logger = logging.getLogger(__name__)

MAX_CHANNELS = 16


class EsiTreeBuilder:
    """
    Mutable accumulator behind ``parse_esi``. Categories may arrive in any order and
    STRINGS may come last, so string indices are only resolved in ``build()``.
    """

    def __init__(self, header: EsiHeader) -> None:
        self._header = header
        self._strings = StringTable()
        self._general: GeneralInfo | None = None
        self._fmmus: list[Fmmu] = []
        self._sync_managers: list[SyncManager] = []
        self._pdos: list[Pdo] = []
        self._dc_op_modes: list[DcOpMode] = []
        self._skipped: list[CategoryHeader] = []
        self._warnings: list[Exception] = []
        self._error: Exception | None = None

    def set_strings(self, cat: CategoryHeader, strings: StringTable) -> None:
        if len(self._strings):
            logger.debug("Second STRINGS category at 0x%04X replaces the first", cat.offset)
        self._strings = strings

    def set_general(self, cat: CategoryHeader, general: GeneralInfo) -> None:
        self._general = general

    def _renumber(self, cat: CategoryHeader, existing: list, records: tuple) -> list:
        # channel numbers continue across repeated FMMU/SyncM categories
        base = len(existing)
        if base + len(records) > MAX_CHANNELS:
            raise EsiParseError(
                f"{base + len(records)} channels in total, at most {MAX_CHANNELS} allowed",
                category=cat.type_code,
                offset=cat.offset,
            )
        if base == 0:
            return list(records)
        return [dataclasses.replace(r, channel=base + i) for i, r in enumerate(records)]

    def add_fmmus(self, cat: CategoryHeader, fmmus: tuple[Fmmu, ...]) -> None:
        self._fmmus.extend(self._renumber(cat, self._fmmus, fmmus))

    def add_sync_managers(self, cat: CategoryHeader, sync_managers: tuple[SyncManager, ...]) -> None:
        self._sync_managers.extend(self._renumber(cat, self._sync_managers, sync_managers))

    def add_pdos(self, cat: CategoryHeader, pdos: tuple[Pdo, ...]) -> None:
        self._pdos.extend(pdos)

    def add_dc_op_modes(self, cat: CategoryHeader, modes: tuple[DcOpMode, ...]) -> None:
        self._dc_op_modes.extend(modes)

    def skip(self, cat: CategoryHeader) -> None:
        self._skipped.append(cat)

    def warn(self, warning: Exception) -> None:
        self._warnings.append(warning)

    def fail(self, error: Exception) -> None:
        self._error = error

    def _resolve(self, index: int) -> str:
        text, err = self._strings.resolve_or_empty(index)
        if err is not None:
            self._warnings.append(err)
        return text

    def build(self) -> EsiTree:
        general = self._general
        if general is not None:
            general = dataclasses.replace(
                general,
                group=self._resolve(general.group_index),
                image=self._resolve(general.image_index),
                order=self._resolve(general.order_index),
                name=self._resolve(general.name_index),
            )

        pdos = []
        for pdo in self._pdos:
            entries = tuple(
                dataclasses.replace(e, name=self._resolve(e.name_index)) for e in pdo.entries
            )
            pdos.append(dataclasses.replace(pdo, name=self._resolve(pdo.name_index), entries=entries))

        modes = tuple(
            dataclasses.replace(
                m,
                name=self._resolve(m.name_index),
                description=self._resolve(m.description_index),
            )
            for m in self._dc_op_modes
        )

        return EsiTree(
            header=self._header,
            general=general,
            strings=self._strings.strings,
            fmmus=tuple(self._fmmus),
            sync_managers=tuple(self._sync_managers),
            pdos=tuple(pdos),
            dc_op_modes=modes,
            skipped_categories=tuple(self._skipped),
            warnings=tuple(self._warnings),
            error=self._error,
        )
