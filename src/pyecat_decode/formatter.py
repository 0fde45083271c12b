"""Display labels for field identifiers. The only module that holds presentation text."""

import json
import logging
from functools import lru_cache
from importlib import resources
from typing import Any

from .catalog import LABELED_ESI_FIELDS, port_template
from .types import DecodedField, EsiField, FieldValue

logger = logging.getLogger(__name__)

_LABEL_PACKAGE = "pyecat_decode.data"
DEFAULT_LOCALE = "en"


class LabelCatalog:
    """
    Per-locale labels keyed by field identifier. Port-indexed identifiers share one
    ``X.Y[n]`` entry whose text may contain ``{port}``. Unknown identifiers fall back
    to the identifier itself.
    """

    def __init__(self, locale: str = DEFAULT_LOCALE, labels_override: dict[str, Any] | None = None) -> None:
        self._locale = locale.lower()
        if labels_override is not None:
            data = labels_override
            logger.debug("LabelCatalog loaded from override")
        else:
            json_name = f"labels_{self._locale}.json"
            try:
                with resources.files(_LABEL_PACKAGE).joinpath(json_name).open("r", encoding="utf-8") as f:
                    data = json.load(f)
            except FileNotFoundError:
                raise ValueError(f"Unknown locale: {locale!r}") from None
            logger.debug("LabelCatalog loaded for locale %s", self._locale)

        self._fields: dict[str, str] = dict(data.get("fields", {}))
        self._registers: dict[str, str] = dict(data.get("registers", {}))
        self._values: dict[str, str] = dict(data.get("values", {}))

    @property
    def locale(self) -> str:
        return self._locale

    def has(self, identifier: str) -> bool:
        return port_template(identifier)[0] in self._fields

    def field_label(self, identifier: str) -> str:
        template, port = port_template(identifier)
        text = self._fields.get(template)
        if text is None:
            return identifier
        return text.format(port=port) if port is not None else text

    def register_label(self, name: str) -> str:
        return self._registers.get(name, name)

    def has_value(self, key: str) -> bool:
        return key in self._values

    def value_label(self, key: str) -> str:
        return self._values.get(key, key)

    def __len__(self) -> int:
        return len(self._fields)


@lru_cache(maxsize=None)
def get_label_catalog(locale: str = DEFAULT_LOCALE) -> LabelCatalog:
    """Packaged catalog for ``locale``, loaded once per process."""
    return LabelCatalog(locale)


class FieldFormatter:
    """Turns decoded fields into operator-facing text using a LabelCatalog."""

    def __init__(self, catalog: LabelCatalog | None = None) -> None:
        self._catalog = catalog if catalog is not None else get_label_catalog()

    @property
    def catalog(self) -> LabelCatalog:
        return self._catalog

    def label(self, identifier: str) -> str:
        return self._catalog.field_label(identifier)

    def format_value(self, value: FieldValue) -> str:
        """Booleans and label strings go through the catalog's value labels; numbers print as-is."""
        if isinstance(value, bool):
            return self._catalog.value_label("true" if value else "false")
        if isinstance(value, str):
            return self._catalog.value_label(value)
        return str(value)

    def describe(self, field: DecodedField | EsiField) -> str:
        """One line: ``[instance] label: value``; register fields add the raw bits in hex."""
        if isinstance(field, EsiField) and isinstance(field.value, str) and field.identifier not in LABELED_ESI_FIELDS:
            # names and descriptions come from the image itself
            value = field.value
        else:
            value = self.format_value(field.value)
        text = f"{self.label(field.identifier)}: {value}"
        if isinstance(field, DecodedField):
            if not isinstance(field.value, int) or isinstance(field.value, bool):
                text += f" (0x{field.raw:X})"
            return text
        if field.instance:
            return f"{field.instance} {text}"
        return text
