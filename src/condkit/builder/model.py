from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, Iterable, List, Optional, Union

__all__ = [
    "GroupOperator",
    "Rule",
    "Group",
    "Node",
    "TreeModel",
    "node_from_dict",
    "node_to_dict",
    "nodes_from_list",
    "parse_quantity",
    "normalize_text",
]

# Literal the serialized form uses for "no value" inside range fields.
NULL_SENTINEL = "null"


class GroupOperator(str, enum.Enum):
    AND = "AND"
    OR = "OR"
    NOT = "NOT"

    @classmethod
    def parse(cls, raw: Any) -> Optional["GroupOperator"]:
        if isinstance(raw, GroupOperator):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw.strip().upper())
            except ValueError:
                return None
        return None


@dataclass
class Rule:
    """A leaf comparison: field, operator and a value in the operator's shape.

    ``value`` carries TEXT, DATE, SELECT and BOOLEAN (``"true"``/``"false"``)
    values. RANGE and DATE_RANGE values live in ``start`` and ``end``.
    ``None`` always means "no value".
    """

    field: str
    operator: str
    value: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None

    @property
    def is_range(self) -> bool:
        return self.start is not None and self.end is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.field,
            "operator": self.operator,
            "value": self.value,
        }
        if self.start is not None or self.end is not None:
            payload["start"] = self.start
            payload["end"] = self.end
        return payload

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Rule":
        return Rule(
            field=str(data.get("name") or data.get("field") or ""),
            operator=str(data.get("operator") or ""),
            value=normalize_text(data.get("value")),
            start=normalize_text(data.get("start")),
            end=normalize_text(data.get("end")),
        )


@dataclass
class Group:
    """A boolean combinator over child nodes, optionally quantified."""

    operator: GroupOperator = GroupOperator.AND
    children: List["Node"] = dataclass_field(default_factory=list)
    quantity: Optional[int] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groupOperator": self.operator.value,
            "quantity": self.quantity,
            "id": self.id,
            "groups": [node_to_dict(child) for child in self.children],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Group":
        operator = GroupOperator.parse(data.get("groupOperator")) or GroupOperator.AND
        raw_id = data.get("id")
        return Group(
            operator=operator,
            children=nodes_from_list(data.get("groups") or []),
            quantity=parse_quantity(data.get("quantity")),
            id=str(raw_id) if raw_id not in (None, "") else None,
        )


Node = Union[Group, Rule]


def normalize_text(raw: Any) -> Optional[str]:
    """Coerce a serialized scalar into the model's ``Optional[str]`` form."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        return "true" if raw else "false"
    text = str(raw)
    if text == NULL_SENTINEL:
        return None
    return text


def parse_quantity(raw: Any) -> Optional[int]:
    """Return a positive int or None; anything unusable counts as absent."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        qty = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return qty if qty > 0 else None


def node_from_dict(data: Dict[str, Any]) -> Node:
    # A node without a recognizable group operator is a rule.
    if GroupOperator.parse(data.get("groupOperator")) is not None:
        return Group.from_dict(data)
    return Rule.from_dict(data)


def node_to_dict(node: Node) -> Dict[str, Any]:
    return node.to_dict()


def nodes_from_list(raw: Iterable[Any]) -> List[Node]:
    if not isinstance(raw, (list, tuple)):
        return []
    return [node_from_dict(item) for item in raw if isinstance(item, dict)]


@dataclass
class TreeModel:
    """Canonical wrapper ``{"data": [...]}`` exchanged with the host.

    ``error`` is opaque host data passed through for display only.
    """

    data: List[Node] = dataclass_field(default_factory=list)
    error: Any = None

    @property
    def quantitative(self) -> bool:
        first = self.data[0] if self.data else None
        return isinstance(first, Group) and first.quantity is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"data": [node_to_dict(node) for node in self.data]}

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @staticmethod
    def from_dict(payload: Any) -> "TreeModel":
        if isinstance(payload, TreeModel):
            return payload
        if isinstance(payload, dict):
            return TreeModel(data=nodes_from_list(payload.get("data") or []), error=payload.get("error"))
        if isinstance(payload, (list, tuple)):
            if payload and all(isinstance(item, (Group, Rule)) for item in payload):
                return TreeModel(data=list(payload))
            return TreeModel(data=nodes_from_list(payload))
        return TreeModel()

    @staticmethod
    def from_json(text: str) -> "TreeModel":
        try:
            raw = json.loads(text)
        except (TypeError, json.JSONDecodeError):
            return TreeModel()
        return TreeModel.from_dict(raw)
