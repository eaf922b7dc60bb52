"""Editable presentation tree.

The tree is an arena: every node lives in ``PresentationTree._nodes`` under
an integer key and refers to its parent and children by key. Renderers read
it, edit operations mutate it, and the collector walks it back into the
canonical node list. Nothing in here knows about widgets.
"""
from __future__ import annotations

import enum
import itertools
import uuid
from dataclasses import dataclass, field as dataclass_field
from typing import Dict, Iterator, List, Optional, Tuple

from .catalog import Choice, FieldType
from ..core.labels import MessageKey

__all__ = [
    "NodeKind",
    "GroupFrame",
    "ValueInput",
    "RangeInputs",
    "BooleanRadios",
    "RuleRow",
    "PresentationNode",
    "PresentationTree",
    "MATCH_VALUES",
]

# Match selector values in display order with their label keys.
MATCH_VALUES: Tuple[Tuple[str, MessageKey], ...] = (
    ("all", MessageKey.MATCH_ALL),
    ("any", MessageKey.MATCH_ANY),
    ("none", MessageKey.MATCH_NONE),
)


class NodeKind(enum.Enum):
    ROOT = "root"
    CONDITIONAL = "conditional"
    RULE = "rule"
    AND_DIVIDER = "and-divider"
    ADD_AND = "add-and-button"
    ADD_OR = "add-or-button"


@dataclass
class GroupFrame:
    """Inputs of a group frame.

    ``quantity`` and ``group_id`` are ``None`` when the respective input is
    not rendered at all.
    """

    match: str = "all"
    quantity: Optional[str] = None
    group_id: Optional[str] = None
    removable: bool = False


@dataclass
class ValueInput:
    """Scalar value input: hidden (NONE), text, date picker or select."""

    shape: FieldType
    value: Optional[str] = None
    choices: List[Choice] = dataclass_field(default_factory=list)

    @property
    def is_date(self) -> bool:
        return self.shape is FieldType.DATE

    def set(self, value: Optional[str]) -> None:
        if self.shape is FieldType.SELECT and value is not None:
            names = [choice.name for choice in self.choices]
            if value not in names:
                value = names[0] if names else None
        self.value = value


@dataclass
class RangeInputs:
    start: Optional[str] = None
    end: Optional[str] = None
    dated: bool = False


@dataclass
class BooleanRadios:
    """A true/false radio pair; ``group_name`` keeps rows independent."""

    group_name: str
    true_checked: bool = False
    false_checked: bool = True

    def select(self, value: bool) -> None:
        self.true_checked = bool(value)
        self.false_checked = not value


def _new_token() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class RuleRow:
    token: str = dataclass_field(default_factory=_new_token)
    field: Optional[str] = None
    field_options: List[Tuple[str, str]] = dataclass_field(default_factory=list)
    operator: Optional[str] = None
    operator_options: List[Tuple[str, str, Optional[FieldType]]] = dataclass_field(default_factory=list)
    value_input: Optional[ValueInput] = None
    range_inputs: Optional[RangeInputs] = None
    radios: Optional[BooleanRadios] = None

    @property
    def shape(self) -> Optional[FieldType]:
        for name, _label, field_type in self.operator_options:
            if name == self.operator:
                return field_type
        return None

    def clear_value_slots(self) -> None:
        self.value_input = None
        self.range_inputs = None
        self.radios = None


@dataclass
class PresentationNode:
    key: int
    kind: NodeKind
    parent: Optional[int] = None
    children: List[int] = dataclass_field(default_factory=list)
    frame: Optional[GroupFrame] = None
    row: Optional[RuleRow] = None


class PresentationTree:
    """Arena of presentation nodes rooted at ``root``."""

    def __init__(self) -> None:
        self._keys = itertools.count()
        self._nodes: Dict[int, PresentationNode] = {}
        self.quantitative = False
        self.root = self._create(NodeKind.ROOT).key

    def _create(self, kind: NodeKind, *, frame: Optional[GroupFrame] = None, row: Optional[RuleRow] = None) -> PresentationNode:
        node = PresentationNode(key=next(self._keys), kind=kind, frame=frame, row=row)
        self._nodes[node.key] = node
        return node

    # --- lookup ----------------------------------------------------------
    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def node(self, key: int) -> PresentationNode:
        return self._nodes[key]

    def get(self, key: Optional[int]) -> Optional[PresentationNode]:
        if key is None:
            return None
        return self._nodes.get(key)

    def children_of(self, key: int) -> List[PresentationNode]:
        return [self._nodes[child] for child in self._nodes[key].children]

    def parent_of(self, key: int) -> Optional[PresentationNode]:
        return self.get(self._nodes[key].parent)

    def index_in_parent(self, key: int) -> int:
        parent = self.parent_of(key)
        if parent is None:
            return -1
        return parent.children.index(key)

    def previous_sibling(self, key: int) -> Optional[PresentationNode]:
        parent = self.parent_of(key)
        if parent is None:
            return None
        idx = parent.children.index(key)
        return self._nodes[parent.children[idx - 1]] if idx > 0 else None

    def next_sibling(self, key: int) -> Optional[PresentationNode]:
        parent = self.parent_of(key)
        if parent is None:
            return None
        idx = parent.children.index(key)
        return self._nodes[parent.children[idx + 1]] if idx + 1 < len(parent.children) else None

    def find_child(self, key: int, kind: NodeKind) -> Optional[PresentationNode]:
        for child in self.children_of(key):
            if child.kind is kind:
                return child
        return None

    def walk(self, key: Optional[int] = None) -> Iterator[PresentationNode]:
        """Depth-first, pre-order traversal starting at ``key`` (default root)."""
        stack = [self.root if key is None else key]
        while stack:
            current = self._nodes[stack.pop()]
            yield current
            stack.extend(reversed(current.children))

    def find_kind(self, kind: NodeKind, key: Optional[int] = None) -> List[PresentationNode]:
        return [node for node in self.walk(key) if node.kind is kind]

    def rule_rows(self, key: Optional[int] = None) -> List[PresentationNode]:
        return self.find_kind(NodeKind.RULE, key)

    def has_leaf_rule(self, key: int) -> bool:
        return any(node.kind is NodeKind.RULE for node in self.walk(key))

    def top_level(self) -> List[PresentationNode]:
        return [node for node in self.children_of(self.root) if node.kind in (NodeKind.CONDITIONAL, NodeKind.RULE)]

    # --- mutation --------------------------------------------------------
    def insert(
        self,
        parent: int,
        kind: NodeKind,
        *,
        index: Optional[int] = None,
        frame: Optional[GroupFrame] = None,
        row: Optional[RuleRow] = None,
    ) -> PresentationNode:
        node = self._create(kind, frame=frame, row=row)
        node.parent = parent
        siblings = self._nodes[parent].children
        if index is None or index >= len(siblings):
            siblings.append(node.key)
        else:
            siblings.insert(max(index, 0), node.key)
        return node

    def add(self, parent: int, kind: NodeKind, **kwargs) -> PresentationNode:
        return self.insert(parent, kind, **kwargs)

    def detach(self, key: int) -> List[int]:
        """Remove ``key`` and its whole subtree; returns the removed keys."""
        if key == self.root:
            raise ValueError("the root node cannot be removed")
        node = self._nodes[key]
        parent = self.get(node.parent)
        if parent is not None:
            parent.children.remove(key)
        removed = [n.key for n in self.walk(key)]
        for removed_key in removed:
            del self._nodes[removed_key]
        return removed
