"""Structural and value edits on a live presentation tree.

Every operation completes synchronously. Stale or wrong-kind keys are
logged and reported through the return value, never raised.
"""
from __future__ import annotations

import logging
from typing import Optional

from .materializer import Materializer
from .presentation import NodeKind, PresentationNode, PresentationTree, RuleRow

__all__ = [
    "add_nested_condition",
    "add_alternative_rule",
    "add_top_level_group",
    "remove_node",
    "change_field",
    "change_operator",
    "set_match",
    "set_quantity",
    "set_value",
    "set_range",
    "set_boolean",
]

_logger = logging.getLogger("CondKit.Editing")


def _frame(tree: PresentationTree, key: int) -> Optional[PresentationNode]:
    node = tree.get(key)
    if node is not None and node.kind is NodeKind.ADD_OR:
        # The affordance was clicked; act on the frame that owns it.
        node = tree.parent_of(key)
    if node is None or node.kind is not NodeKind.CONDITIONAL:
        _logger.debug("Key %s is not a group frame", key)
        return None
    return node


def _row(tree: PresentationTree, key: int) -> Optional[RuleRow]:
    node = tree.get(key)
    if node is None or node.kind is not NodeKind.RULE or node.row is None:
        _logger.debug("Key %s is not a rule row", key)
        return None
    return node.row


def _affordance_index(tree: PresentationTree, frame: PresentationNode) -> int:
    add_or = tree.find_child(frame.key, NodeKind.ADD_OR)
    if add_or is None:
        return len(frame.children)
    return frame.children.index(add_or.key)


def _refresh_removable(tree: PresentationTree) -> None:
    frames = [node for node in tree.top_level() if node.kind is NodeKind.CONDITIONAL]
    for position, frame_node in enumerate(frames):
        if frame_node.frame is not None:
            frame_node.frame.removable = position > 0


# --- structure -----------------------------------------------------------
def add_nested_condition(tree: PresentationTree, materializer: Materializer, frame_key: int) -> Optional[int]:
    """Add a default AND sub-group (one default rule) inside a frame."""
    frame = _frame(tree, frame_key)
    if frame is None:
        return None
    index = _affordance_index(tree, frame)
    keys = materializer.build(tree, frame.key, [materializer.default_group()], index=index)
    return keys[0]


def add_alternative_rule(tree: PresentationTree, materializer: Materializer, frame_key: int) -> Optional[int]:
    """Add a default rule row just before the frame's "Or" affordance."""
    frame = _frame(tree, frame_key)
    if frame is None:
        return None
    index = _affordance_index(tree, frame)
    node = materializer.build_rule(tree, frame.key, materializer.default_rule(), index=index)
    return node.key


def add_top_level_group(tree: PresentationTree, materializer: Materializer) -> Optional[int]:
    """Append a ``quantity=1`` group before the "And" affordance.

    Only available in quantitative mode; returns None otherwise.
    """
    if not tree.quantitative:
        _logger.debug("Ignoring add-group request on a simple tree")
        return None
    add_and = tree.find_child(tree.root, NodeKind.ADD_AND)
    if add_and is None:
        add_and = tree.add(tree.root, NodeKind.ADD_AND)
    previous = tree.previous_sibling(add_and.key)
    if previous is not None and previous.kind is not NodeKind.AND_DIVIDER:
        tree.insert(tree.root, NodeKind.AND_DIVIDER, index=tree.index_in_parent(add_and.key))
    keys = materializer.build(
        tree,
        tree.root,
        [materializer.default_group(quantity=1)],
        is_alternative=True,
        index=tree.index_in_parent(add_and.key),
    )
    tree.insert(tree.root, NodeKind.AND_DIVIDER, index=tree.index_in_parent(add_and.key))
    _refresh_removable(tree)
    return keys[0]


def remove_node(tree: PresentationTree, key: int) -> bool:
    """Remove a rule row or a whole frame.

    Removing the only rule row of a frame removes the frame with it.
    """
    node = tree.get(key)
    if node is None or node.kind not in (NodeKind.RULE, NodeKind.CONDITIONAL):
        _logger.debug("Nothing removable at key %s", key)
        return False
    parent = tree.parent_of(key)
    if node.kind is NodeKind.CONDITIONAL or (parent is not None and parent.key == tree.root):
        _remove_frame(tree, node)
        return True
    if parent is not None and parent.kind is NodeKind.CONDITIONAL:
        rows = [child for child in tree.children_of(parent.key) if child.kind is NodeKind.RULE]
        if len(rows) == 1:
            _remove_frame(tree, parent)
            return True
    tree.detach(key)
    return True


def _remove_frame(tree: PresentationTree, frame: PresentationNode) -> None:
    """Detach a frame, or a bare top-level row, with its AND divider."""
    parent = tree.parent_of(frame.key)
    if parent is not None and parent.key == tree.root:
        divider = tree.previous_sibling(frame.key)
        if divider is None or divider.kind is not NodeKind.AND_DIVIDER:
            # The first group owns the divider that follows it.
            divider = tree.next_sibling(frame.key)
        if divider is not None and divider.kind is NodeKind.AND_DIVIDER:
            tree.detach(divider.key)
    tree.detach(frame.key)
    _refresh_removable(tree)


# --- selectors -----------------------------------------------------------
def change_field(tree: PresentationTree, materializer: Materializer, key: int, field_name: str) -> bool:
    """Select another field, keeping the operator only if the new field has it."""
    row = _row(tree, key)
    if row is None:
        return False
    materializer.configure_row(row, field_name, row.operator)
    return True


def change_operator(tree: PresentationTree, materializer: Materializer, key: int, operator_name: str) -> bool:
    row = _row(tree, key)
    if row is None:
        return False
    materializer.configure_row(row, row.field, operator_name)
    return True


def set_match(tree: PresentationTree, key: int, match: str) -> bool:
    frame = _frame(tree, key)
    if frame is None or frame.frame is None:
        return False
    frame.frame.match = match
    return True


def set_quantity(tree: PresentationTree, key: int, quantity: Optional[str]) -> bool:
    frame = _frame(tree, key)
    if frame is None or frame.frame is None or frame.frame.quantity is None:
        return False
    frame.frame.quantity = "" if quantity is None else str(quantity)
    return True


# --- values --------------------------------------------------------------
def set_value(tree: PresentationTree, key: int, value: Optional[str]) -> bool:
    row = _row(tree, key)
    if row is None or row.value_input is None:
        return False
    row.value_input.set(value)
    return True


def set_range(tree: PresentationTree, key: int, start: Optional[str], end: Optional[str]) -> bool:
    row = _row(tree, key)
    if row is None or row.range_inputs is None:
        return False
    row.range_inputs.start = start
    row.range_inputs.end = end
    return True


def set_boolean(tree: PresentationTree, key: int, value: bool) -> bool:
    row = _row(tree, key)
    if row is None or row.radios is None:
        return False
    row.radios.select(value)
    return True
