from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field as dataclass_field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

__all__ = [
    "FieldType",
    "Choice",
    "OperatorDef",
    "FieldDef",
    "FieldCatalog",
    "load_catalog",
]

_logger = logging.getLogger("CondKit.Catalog")


class FieldType(str, enum.Enum):
    """Declared value type of an operator; drives the value-shape policy."""

    NONE = "NONE"
    TEXT = "TEXT"
    DATE = "DATE"
    RANGE = "RANGE"
    DATE_RANGE = "DATE_RANGE"
    BOOLEAN = "BOOLEAN"
    SELECT = "SELECT"

    @classmethod
    def parse(cls, raw: Any) -> Optional["FieldType"]:
        if isinstance(raw, FieldType):
            return raw
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class Choice:
    name: str
    label: str = ""

    @property
    def display(self) -> str:
        return self.label or self.name

    @staticmethod
    def from_raw(raw: Any) -> Optional["Choice"]:
        if isinstance(raw, Choice):
            return raw
        if isinstance(raw, dict):
            name = raw.get("name", raw.get("value"))
            if name is None:
                return None
            return Choice(name=str(name), label=str(raw.get("label") or ""))
        if isinstance(raw, str):
            return Choice(name=raw)
        return None


@dataclass(frozen=True)
class OperatorDef:
    name: str
    label: str = ""
    field_type: Optional[FieldType] = FieldType.TEXT
    choices: tuple = ()

    @property
    def display(self) -> str:
        return self.label or self.name

    @staticmethod
    def from_raw(raw: Any) -> Optional["OperatorDef"]:
        if isinstance(raw, OperatorDef):
            return raw
        if not isinstance(raw, dict) or not raw.get("name"):
            return None
        declared = raw.get("fieldType", raw.get("field_type"))
        return OperatorDef(
            name=str(raw["name"]),
            label=str(raw.get("label") or ""),
            field_type=FieldType.parse(declared) if declared is not None else FieldType.TEXT,
            choices=_parse_choices(raw.get("choices") or raw.get("options")),
        )


@dataclass(frozen=True)
class FieldDef:
    """A catalog field with its ordered operator list.

    ``choices`` is the list SELECT-typed operators of this field offer.
    """

    name: str
    label: str = ""
    operators: tuple = ()
    choices: tuple = ()

    @property
    def display(self) -> str:
        return self.label or self.name

    def get_operator(self, name: Optional[str]) -> Optional[OperatorDef]:
        for op in self.operators:
            if op.name == name:
                return op
        return None

    def first_operator(self) -> Optional[OperatorDef]:
        return self.operators[0] if self.operators else None


def _parse_choices(raw: Any) -> tuple:
    if not isinstance(raw, (list, tuple)):
        return ()
    parsed = (Choice.from_raw(item) for item in raw)
    return tuple(choice for choice in parsed if choice is not None)


def _parse_operators(raw: Any) -> tuple:
    if not isinstance(raw, (list, tuple)):
        return ()
    parsed = (OperatorDef.from_raw(item) for item in raw)
    return tuple(op for op in parsed if op is not None)


class FieldCatalog:
    """Ordered set of field definitions supplied by the host.

    Every lookup is total: unknown fields resolve to the first field and
    unknown operators to the field's first operator, so materialization
    never fails on stale data.
    """

    def __init__(self, fields: Optional[Iterable[FieldDef]] = None) -> None:
        self._fields: List[FieldDef] = list(fields or [])
        self._by_name: Dict[str, FieldDef] = {}
        for field_def in self._fields:
            self._by_name.setdefault(field_def.name, field_def)

    @property
    def fields(self) -> List[FieldDef]:
        return list(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self):
        return iter(self._fields)

    def __bool__(self) -> bool:
        return bool(self._fields)

    def first_field(self) -> Optional[FieldDef]:
        return self._fields[0] if self._fields else None

    def get_field(self, name: Optional[str]) -> Optional[FieldDef]:
        if name is None:
            return None
        return self._by_name.get(name)

    def operators_for(self, name: Optional[str]) -> List[OperatorDef]:
        field_def = self.get_field(name)
        return list(field_def.operators) if field_def else []

    def resolve_field(self, name: Optional[str]) -> Optional[FieldDef]:
        field_def = self.get_field(name)
        if field_def is None:
            fallback = self.first_field()
            if name and fallback is not None:
                _logger.debug("Unknown field '%s', falling back to '%s'", name, fallback.name)
            return fallback
        return field_def

    def resolve_operator(self, field_def: Optional[FieldDef], name: Optional[str]) -> Optional[OperatorDef]:
        if field_def is None:
            return None
        op = field_def.get_operator(name)
        if op is None:
            fallback = field_def.first_operator()
            if name and fallback is not None:
                _logger.debug(
                    "Operator '%s' not valid for field '%s', using '%s'", name, field_def.name, fallback.name
                )
            return fallback
        return op

    def choices_for(self, field_def: Optional[FieldDef], op: Optional[OperatorDef]) -> List[Choice]:
        if field_def is not None and field_def.choices:
            return list(field_def.choices)
        if op is not None:
            return list(op.choices)
        return []

    def default_rule_values(self) -> Dict[str, Optional[str]]:
        """Field and operator names of a freshly added rule."""
        field_def = self.first_field()
        op = field_def.first_operator() if field_def else None
        return {
            "name": field_def.name if field_def else None,
            "operator": op.name if op else None,
        }

    @staticmethod
    def from_config(payload: Any) -> "FieldCatalog":
        """Build a catalog from host configuration.

        ``payload`` is either a list of field dicts or a mapping with
        ``fields`` plus optional ``operatorSets`` / ``optionSets``. A field's
        ``operators`` and ``options`` may be inline lists or names of entries
        in those sets.
        """
        operator_sets: Mapping[str, Any] = {}
        option_sets: Mapping[str, Any] = {}
        if isinstance(payload, dict):
            operator_sets = payload.get("operatorSets") or {}
            option_sets = payload.get("optionSets") or {}
            raw_fields = payload.get("fields") or []
        else:
            raw_fields = payload or []
        if not isinstance(raw_fields, (list, tuple)):
            return FieldCatalog()

        fields: List[FieldDef] = []
        for raw in raw_fields:
            if isinstance(raw, FieldDef):
                fields.append(raw)
                continue
            if not isinstance(raw, dict):
                continue
            name = raw.get("name")
            if not name:
                continue
            operators = raw.get("operators")
            if isinstance(operators, str):
                if operators not in operator_sets:
                    _logger.warning("Field '%s' references unknown operator set '%s'", name, operators)
                operators = operator_sets.get(operators)
            options = raw.get("options", raw.get("choices"))
            if isinstance(options, str):
                if options not in option_sets:
                    _logger.warning("Field '%s' references unknown option set '%s'", name, options)
                options = option_sets.get(options)
            fields.append(
                FieldDef(
                    name=str(name),
                    label=str(raw.get("label") or ""),
                    operators=_parse_operators(operators),
                    choices=_parse_choices(options),
                )
            )
        return FieldCatalog(fields)


def load_catalog(path: Path) -> FieldCatalog:
    if not path.exists():
        _logger.warning("Catalog file %s does not exist", path)
        return FieldCatalog()
    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        _logger.warning("Could not read catalog %s: %s", path, exc)
        return FieldCatalog()
    return FieldCatalog.from_config(raw)
