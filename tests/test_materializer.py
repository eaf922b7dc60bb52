from condkit.builder.catalog import FieldCatalog, FieldType
from condkit.builder.materializer import Materializer, materialize
from condkit.builder.model import Group, GroupOperator, Rule, TreeModel
from condkit.builder.presentation import NodeKind


def kinds(tree, key=None):
    return [child.kind for child in tree.children_of(tree.root if key is None else key)]


def test_single_group_with_one_rule(catalog, simple_data):
    tree = materialize(simple_data, catalog)
    assert kinds(tree) == [NodeKind.CONDITIONAL]
    frame = tree.top_level()[0]
    assert frame.frame.match == "all"
    assert frame.frame.quantity is None
    assert frame.frame.group_id is None
    assert frame.frame.removable is False
    assert kinds(tree, frame.key) == [NodeKind.RULE, NodeKind.ADD_OR]

    row = tree.children_of(frame.key)[0].row
    assert row.field == "age"
    assert row.operator == "equals"
    assert row.value_input.shape is FieldType.TEXT
    assert row.value_input.value == "21"
    assert [name for name, _label in row.field_options] == ["age", "status", "created", "priority"]
    assert [name for name, _label, _shape in row.operator_options] == ["equals", "between", "exists"]


def test_empty_input_gives_one_default_rule_row(catalog):
    tree = materialize([], catalog)
    assert kinds(tree) == [NodeKind.RULE]
    row = tree.top_level()[0].row
    assert (row.field, row.operator) == ("age", "equals")
    assert not tree.quantitative


def test_bare_rule_never_gets_a_frame(catalog):
    tree = materialize([{"name": "status", "operator": "is", "value": "closed"}], catalog)
    assert kinds(tree) == [NodeKind.RULE]
    assert tree.top_level()[0].row.value_input.value == "closed"


def test_group_operators_map_to_match_values(catalog):
    data = [Group(operator=op, children=[Rule("age", "equals", "1")]) for op in GroupOperator]
    tree = materialize(TreeModel(data=data), catalog)
    frames = tree.top_level()
    assert [f.frame.match for f in frames] == ["all", "any", "none"]
    assert [f.frame.removable for f in frames] == [False, True, True]
    assert NodeKind.ADD_AND not in kinds(tree)
    assert NodeKind.AND_DIVIDER not in kinds(tree)


def test_quantitative_tree_gets_dividers_and_one_add_affordance(catalog, quantitative_data):
    tree = materialize(quantitative_data, catalog)
    assert tree.quantitative
    assert kinds(tree) == [
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.CONDITIONAL,
        NodeKind.AND_DIVIDER,
        NodeKind.ADD_AND,
    ]
    first, second = tree.top_level()
    assert first.frame.quantity == "2"
    assert first.frame.group_id == "item-1"
    assert second.frame.quantity == "1"
    assert second.frame.group_id is None
    assert second.frame.removable

    materializer = Materializer(catalog)
    materializer.ensure_add_and(tree)
    assert kinds(tree).count(NodeKind.ADD_AND) == 1


def test_children_are_materialized_in_order(catalog):
    data = [
        {
            "groupOperator": "OR",
            "groups": [
                {"name": "age", "operator": "equals", "value": "1"},
                {"groupOperator": "AND", "groups": [{"name": "age", "operator": "equals", "value": "2"}]},
                {"name": "age", "operator": "equals", "value": "3"},
            ],
        }
    ]
    tree = materialize(data, catalog)
    frame = tree.top_level()[0]
    assert kinds(tree, frame.key) == [NodeKind.RULE, NodeKind.CONDITIONAL, NodeKind.RULE, NodeKind.ADD_OR]
    values = [node.row.value_input.value for node in tree.rule_rows()]
    assert values == ["1", "2", "3"]
    nested = tree.children_of(frame.key)[1]
    assert nested.frame.removable is False


def test_unknown_field_and_operator_fall_back(catalog):
    tree = materialize([{"name": "height", "operator": "taller", "value": "5"}], catalog)
    row = tree.top_level()[0].row
    assert (row.field, row.operator) == ("age", "equals")
    assert row.value_input.value == "5"

    tree = materialize([{"name": "status", "operator": "taller", "value": "x"}], catalog)
    row = tree.top_level()[0].row
    assert (row.field, row.operator) == ("status", "is")
    # "x" is not a choice of the select, the first choice stays selected
    assert row.value_input.value == "open"


def test_empty_catalog_still_builds_a_row():
    tree = materialize([], FieldCatalog())
    row = tree.top_level()[0].row
    assert row.field is None and row.operator is None
    assert row.field_options == [] and row.operator_options == []
    assert row.value_input is None and row.radios is None and row.range_inputs is None


def test_stored_values_are_restored_per_shape(catalog):
    data = [
        {
            "groupOperator": "AND",
            "groups": [
                {"name": "status", "operator": "active", "value": "true"},
                {"name": "status", "operator": "active", "value": None},
                {"name": "age", "operator": "between", "start": "18", "end": "65"},
                {"name": "age", "operator": "between", "start": "18", "end": "null"},
                {"name": "created", "operator": "during", "start": "2024-01-01", "end": "2024-02-01"},
                {"name": "age", "operator": "exists", "value": "ignored"},
            ],
        }
    ]
    rows = [node.row for node in materialize(data, catalog).rule_rows()]
    assert rows[0].radios.true_checked and not rows[0].radios.false_checked
    assert rows[1].radios.false_checked and not rows[1].radios.true_checked
    assert (rows[2].range_inputs.start, rows[2].range_inputs.end) == ("18", "65")
    assert (rows[3].range_inputs.start, rows[3].range_inputs.end) == (None, None)
    assert rows[4].range_inputs.dated
    assert rows[5].value_input.shape is FieldType.NONE
    assert rows[5].value_input.value is None


def test_date_hook_is_notified(catalog):
    calls = []
    data = [
        {
            "groupOperator": "AND",
            "groups": [
                {"name": "created", "operator": "on", "value": "2024-01-31"},
                {"name": "created", "operator": "during", "start": "2024-01-01", "end": "2024-02-01"},
                {"name": "age", "operator": "equals", "value": "3"},
            ],
        }
    ]
    tree = materialize(data, catalog, on_dates=lambda token, roles: calls.append((token, roles)))
    tokens = [node.row.token for node in tree.rule_rows()]
    assert calls == [(tokens[0], ("value",)), (tokens[1], ("start", "end"))]
