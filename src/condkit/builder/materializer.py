from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from .catalog import FieldCatalog, OperatorDef
from .model import Group, GroupOperator, Node, Rule, TreeModel
from .presentation import GroupFrame, NodeKind, PresentationNode, PresentationTree, RuleRow
from .value_shape import DateHook, apply_value_shape, restore_value

__all__ = ["Materializer", "materialize", "MATCH_FOR_OPERATOR"]

_logger = logging.getLogger("CondKit.Materializer")

MATCH_FOR_OPERATOR = {
    GroupOperator.AND: "all",
    GroupOperator.OR: "any",
    GroupOperator.NOT: "none",
}


class Materializer:
    """Builds presentation subtrees from canonical nodes.

    Edit operations reuse the same instance to build the subtrees they
    insert, so catalog fallbacks and the date hook behave identically for
    loaded and newly added rules.
    """

    def __init__(self, catalog: FieldCatalog, on_dates: Optional[DateHook] = None) -> None:
        self.catalog = catalog
        self.on_dates = on_dates

    # --- defaults --------------------------------------------------------
    def default_rule(self) -> Rule:
        defaults = self.catalog.default_rule_values()
        return Rule(field=defaults["name"] or "", operator=defaults["operator"] or "")

    def default_group(self, quantity: Optional[int] = None) -> Group:
        return Group(operator=GroupOperator.AND, children=[self.default_rule()], quantity=quantity)

    # --- building --------------------------------------------------------
    def build(
        self,
        tree: PresentationTree,
        parent: int,
        nodes: Sequence[Node],
        *,
        is_alternative: bool = False,
        index: Optional[int] = None,
    ) -> List[int]:
        """Materialize ``nodes`` under ``parent`` starting at ``index``.

        Returns the keys of the inserted top nodes in order. An empty
        sequence yields one default rule row.
        """
        if not nodes:
            return [self.build_rule(tree, parent, self.default_rule(), index=index).key]
        keys: List[int] = []
        for offset, node in enumerate(nodes):
            position = None if index is None else index + offset
            if isinstance(node, Group):
                built = self.build_group(tree, parent, node, is_alternative=is_alternative or offset > 0, index=position)
            else:
                built = self.build_rule(tree, parent, node, index=position)
            keys.append(built.key)
        return keys

    def build_group(
        self,
        tree: PresentationTree,
        parent: int,
        group: Group,
        *,
        is_alternative: bool = False,
        index: Optional[int] = None,
    ) -> PresentationNode:
        frame = GroupFrame(
            match=MATCH_FOR_OPERATOR[group.operator],
            quantity=str(group.quantity) if group.quantity is not None else None,
            group_id=group.id,
            removable=is_alternative,
        )
        node = tree.insert(parent, NodeKind.CONDITIONAL, index=index, frame=frame)
        # Each child is its own one-element sequence so later "Or" rows
        # attach to the right sibling scope.
        for child in group.children:
            self.build(tree, node.key, [child])
        tree.add(node.key, NodeKind.ADD_OR)
        return node

    def build_rule(
        self,
        tree: PresentationTree,
        parent: int,
        rule: Rule,
        *,
        index: Optional[int] = None,
    ) -> PresentationNode:
        row = RuleRow()
        self.configure_row(row, rule.field, rule.operator)
        restore_value(row, rule)
        return tree.insert(parent, NodeKind.RULE, index=index, row=row)

    def configure_row(self, row: RuleRow, field_name: Optional[str], operator_name: Optional[str]) -> Optional[OperatorDef]:
        """Populate selectors for ``field_name`` and install the value shape.

        Unknown fields fall back to the first catalog field, unknown
        operators to the field's first operator. With an empty catalog the
        selectors stay empty.
        """
        row.field_options = [(f.name, f.display) for f in self.catalog]
        field_def = self.catalog.resolve_field(field_name)
        row.field = field_def.name if field_def else None
        operators = list(field_def.operators) if field_def else []
        row.operator_options = [(op.name, op.display, op.field_type) for op in operators]
        op = self.catalog.resolve_operator(field_def, operator_name)
        row.operator = op.name if op else None
        apply_value_shape(row, op, self.catalog.choices_for(field_def, op), self.on_dates)
        return op

    def ensure_add_and(self, tree: PresentationTree) -> PresentationNode:
        """Return the root's add-group affordance, creating it (and its divider) once."""
        existing = tree.find_child(tree.root, NodeKind.ADD_AND)
        if existing is not None:
            return existing
        tree.add(tree.root, NodeKind.AND_DIVIDER)
        return tree.add(tree.root, NodeKind.ADD_AND)


def materialize(
    nodes: Any,
    catalog: FieldCatalog,
    *,
    is_alternative: bool = False,
    on_dates: Optional[DateHook] = None,
    materializer: Optional[Materializer] = None,
) -> PresentationTree:
    """Build a fresh presentation tree for ``nodes``.

    ``nodes`` may be a :class:`TreeModel`, a ``{"data": [...]}`` mapping, a
    list of node dicts or a list of model nodes.
    """
    model = TreeModel.from_dict(nodes)
    builder = materializer or Materializer(catalog, on_dates=on_dates)
    tree = PresentationTree()
    tree.quantitative = model.quantitative

    keys = builder.build(tree, tree.root, model.data, is_alternative=is_alternative)
    if tree.quantitative:
        for key in keys[1:]:
            tree.insert(tree.root, NodeKind.AND_DIVIDER, index=tree.index_in_parent(key))
        builder.ensure_add_and(tree)
    _logger.debug(
        "Materialized %d top-level node(s), %d rule row(s), quantitative=%s",
        len(keys),
        len(tree.rule_rows()),
        tree.quantitative,
    )
    return tree
