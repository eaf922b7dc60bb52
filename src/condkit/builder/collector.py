from __future__ import annotations

import logging
from typing import List, Optional

from .model import Group, GroupOperator, Node, Rule, TreeModel, parse_quantity
from .presentation import NodeKind, PresentationNode, PresentationTree
from .value_shape import extract_value

__all__ = ["collect", "collect_node", "OPERATOR_FOR_MATCH"]

_logger = logging.getLogger("CondKit.Collector")

OPERATOR_FOR_MATCH = {
    "all": GroupOperator.AND,
    "any": GroupOperator.OR,
    "none": GroupOperator.NOT,
}

_STRUCTURAL = (NodeKind.CONDITIONAL, NodeKind.RULE)


def collect(tree: PresentationTree, error: object = None) -> TreeModel:
    """Walk the presentation tree back into the canonical node list.

    Frames without any rule row underneath are skipped entirely.
    """
    data: List[Node] = []
    for child in tree.children_of(tree.root):
        if child.kind not in _STRUCTURAL:
            continue
        node = collect_node(tree, child.key)
        if node is not None:
            data.append(node)
    return TreeModel(data=data, error=error)


def collect_node(tree: PresentationTree, key: int) -> Optional[Node]:
    """Collect one frame or rule row; None when it holds no rules."""
    current = tree.node(key)
    if not tree.has_leaf_rule(key):
        return None
    if current.kind is NodeKind.RULE:
        return _collect_rule(current)

    frame = current.frame
    match = (frame.match if frame is not None else None) or ""
    operator = OPERATOR_FOR_MATCH.get(str(match).strip().lower())
    if operator is None:
        # Unrecognized selector: the frame is read as a leaf rule.
        _logger.debug("Frame %d has unknown match value %r, collecting as rule", key, match)
        return _collect_rule(tree.rule_rows(key)[0])

    children: List[Node] = []
    for child in tree.children_of(key):
        if child.kind not in _STRUCTURAL:
            continue
        collected = collect_node(tree, child.key)
        if collected is not None:
            children.append(collected)
    if not children:
        return None
    group_id = frame.group_id if frame is not None else None
    return Group(
        operator=operator,
        children=children,
        quantity=parse_quantity(frame.quantity) if frame is not None else None,
        id=group_id or None,
    )


def _collect_rule(node: PresentationNode) -> Rule:
    row = node.row
    if row is None:
        return Rule(field="", operator="")
    value, start, end = extract_value(row)
    return Rule(
        field=row.field or "",
        operator=row.operator or "",
        value=value,
        start=start,
        end=end,
    )
